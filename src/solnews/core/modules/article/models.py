from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from solnews.core.db import MongoModel
from solnews.core.modules.comment.models import CommentNode
from solnews.core.modules.suggestion.models import Suggestion
from solnews.core.modules.user.models import AuthorView
from solnews.utils import now


class Article(MongoModel):
    """Article written by a writer, optionally based on a news suggestion."""

    author_id: UUID
    title: str
    content: str
    image: str  # https URL
    content_summary: str  # Leading part of content shown in listings
    references: list[str]
    suggestion_id: UUID | None = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class SuggestionRef(BaseModel):
    """The suggestion an article is based on."""

    id: UUID
    title: str
    source: str

    @classmethod
    def from_domain(cls, suggestion: Suggestion) -> "SuggestionRef":
        return cls(id=suggestion.id, title=suggestion.title, source=suggestion.source)


class ArticleView(BaseModel):
    """Article (API representation)."""

    id: UUID
    author: AuthorView
    title: str
    content: str
    image: str
    content_summary: str
    references: list[str]
    based_on_suggestion: SuggestionRef | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, article: Article, author: AuthorView, based_on: SuggestionRef | None = None) -> "ArticleView":
        return cls(
            id=article.id,
            author=author,
            title=article.title,
            content=article.content,
            image=article.image,
            content_summary=article.content_summary,
            references=article.references,
            based_on_suggestion=based_on,
            created_at=article.created_at,
            updated_at=article.updated_at,
        )


class ArticleDetail(ArticleView):
    """Article with its comment threads, as seen by the requesting user."""

    comments: list[CommentNode] = Field(default_factory=list, description="Top-level comments, newest first")


class ArticleSummary(BaseModel):
    """Listing entry for home page and article index."""

    id: UUID
    author: AuthorView
    title: str
    content_summary: str
    image: str
    comment_count: int = Field(0, ge=0)
    created_at: datetime
