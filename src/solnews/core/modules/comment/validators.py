from solnews.errors import ValidationError

BODY_MAX_LENGTH = 1000


def validate_body(body: str) -> str:
    body = body.strip()
    if not body:
        raise ValidationError("Comment cannot be empty")
    if len(body) > BODY_MAX_LENGTH:
        raise ValidationError(f"Comment must be at most {BODY_MAX_LENGTH} characters long")
    return body
