from solnews.errors import ValidationError
from solnews.utils import is_https_url

TITLE_MIN_LENGTH = 11
TITLE_MAX_LENGTH = 100
CONTENT_MIN_LENGTH = 10
CONTENT_MAX_LENGTH = 100


def validate_title(title: str) -> str:
    """Titles shared by suggestions and articles: 11 to 100 characters."""
    title = title.strip()
    if len(title) < TITLE_MIN_LENGTH:
        raise ValidationError("Title too short")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters long")
    return title


def validate_content(content: str) -> str:
    if not CONTENT_MIN_LENGTH <= len(content) <= CONTENT_MAX_LENGTH:
        raise ValidationError(
            f"Suggestion content must be between {CONTENT_MIN_LENGTH} and {CONTENT_MAX_LENGTH} characters"
        )
    return content


def validate_https_url(value: str, what: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError(f"No {what} url")
    if not is_https_url(value):
        raise ValidationError(f"Invalid {what} url")
    return value
