from solnews.errors import ValidationError

CONTENT_MIN_LENGTH = 1500
CONTENT_MAX_LENGTH = 2500
SUMMARY_LENGTH = 150


def validate_content(content: str) -> str:
    if not CONTENT_MIN_LENGTH <= len(content) <= CONTENT_MAX_LENGTH:
        raise ValidationError(
            f"Article content must be between {CONTENT_MIN_LENGTH} and {CONTENT_MAX_LENGTH} characters"
        )
    return content


def parse_references(references: str | list[str]) -> list[str]:
    """Accept a comma-separated string or a list; blanks are dropped."""
    if isinstance(references, str):
        references = references.split(",")
    parsed = [reference.strip() for reference in references if reference.strip()]
    if not parsed:
        raise ValidationError("No references")
    return parsed


def summarize(content: str) -> str:
    return content[:SUMMARY_LENGTH] + "..."
