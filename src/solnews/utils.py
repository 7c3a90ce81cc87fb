from datetime import UTC, datetime
from urllib.parse import urlparse


def now() -> datetime:
    return datetime.now(UTC)


def is_https_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme == "https" and bool(parsed.netloc)
