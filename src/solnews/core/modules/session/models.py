"""Session management models."""

from datetime import datetime
from typing import NewType
from uuid import UUID

from pydantic import Field

from solnews.core.db import MongoModel
from solnews.utils import now

AuthToken = NewType("AuthToken", str)


class Session(MongoModel):
    """User authentication session opened by a Discord login.

    Indexed on auth_token - unique, user_id, created_at (TTL 30 days).
    """

    user_id: UUID
    auth_token: str
    discord_refresh_token: str | None = None  # Revoked on logout and account deletion
    created_at: datetime = Field(default_factory=now)
