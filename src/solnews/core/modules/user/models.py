from datetime import datetime
from enum import StrEnum
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from solnews.core.db import MongoModel
from solnews.utils import now


class UserRole(StrEnum):
    """Closed set of roles, see access.policy for what each may do."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    WRITER = "writer"
    READER = "reader"
    BANNED = "banned"


class User(MongoModel):
    """User account created on first Discord login.

    Indexed on discord_id - unique, username - unique when set.
    """

    discord_id: str
    discord_username: str
    discord_email: str | None = None
    discord_avatar: str | None = None  # Avatar hash as returned by Discord
    username: str | None = None  # Display name chosen on this site
    biography: str = ""
    role: UserRole = UserRole.READER
    is_banned: bool = False
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @model_validator(mode="after")
    def force_banned_role(self) -> Self:
        if self.is_banned:
            self.role = UserRole.BANNED
        return self

    @property
    def display_name(self) -> str:
        return self.username or self.discord_username

    @property
    def avatar_url(self) -> str | None:
        if self.discord_avatar is None:
            return None
        return f"https://cdn.discordapp.com/avatars/{self.discord_id}/{self.discord_avatar}.png"


class AuthorView(BaseModel):
    """Compact author info embedded in articles, suggestions and comments."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Display name")
    avatar: str | None = Field(None, description="Avatar URL")

    @classmethod
    def from_domain(cls, user: User) -> "AuthorView":
        return cls(id=user.id, username=user.display_name, avatar=user.avatar_url)

    @classmethod
    def deleted(cls, user_id: UUID) -> "AuthorView":
        """Placeholder for an author missing from the user cache."""
        return cls(id=user_id, username="[deleted]", avatar=None)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Display name")
    discord_username: str = Field(..., description="Discord username")
    avatar: str | None = Field(None, description="Avatar URL")
    biography: str = Field(..., description="Profile biography")
    role: UserRole = Field(..., description="User role")
    is_banned: bool = Field(..., description="Whether the user is banned")
    created_at: datetime = Field(..., description="Account creation time")
    updated_at: datetime = Field(..., description="Last profile update time")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            username=user.display_name,
            discord_username=user.discord_username,
            avatar=user.avatar_url,
            biography=user.biography,
            role=user.role,
            is_banned=user.is_banned,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserActivity(BaseModel):
    """How much content a user has produced."""

    articles: int = Field(0, ge=0)
    suggestions: int = Field(0, ge=0)
    comments: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)


class UserProfileView(UserView):
    """User with activity counters, returned by the profile endpoint."""

    activity: UserActivity = Field(..., description="Content counters")
