from solnews.errors import ValidationError

USERNAME_MAX_LENGTH = 20
BIOGRAPHY_MAX_LENGTH = 150


def validate_username(username: str) -> str:
    """Validate a display name and return it stripped.

    Requirements:
    - Not blank
    - At most 20 characters
    - No whitespace inside the name

    Raises:
        ValidationError: If username doesn't meet requirements
    """
    username = username.strip()
    if not username:
        raise ValidationError("Username cannot be empty")

    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters long")

    if any(char.isspace() for char in username):
        raise ValidationError("Username cannot contain whitespace characters")

    return username


def validate_biography(biography: str) -> str:
    biography = biography.strip()
    if len(biography) > BIOGRAPHY_MAX_LENGTH:
        raise ValidationError(f"Biography must be at most {BIOGRAPHY_MAX_LENGTH} characters long")
    return biography
