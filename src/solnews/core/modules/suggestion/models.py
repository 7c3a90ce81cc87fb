from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from solnews.core.db import MongoModel
from solnews.core.modules.user.models import AuthorView
from solnews.utils import now


class Suggestion(MongoModel):
    """News item submitted by a reader for writers to turn into articles."""

    author_id: UUID
    source: str  # https URL of the original news
    title: str
    content: str
    image: str  # https URL
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class SuggestionView(BaseModel):
    """News suggestion (API representation)."""

    id: UUID
    author: AuthorView
    source: str
    title: str
    content: str
    image: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, suggestion: Suggestion, author: AuthorView) -> "SuggestionView":
        return cls(
            id=suggestion.id,
            author=author,
            source=suggestion.source,
            title=suggestion.title,
            content=suggestion.content,
            image=suggestion.image,
            created_at=suggestion.created_at,
            updated_at=suggestion.updated_at,
        )
