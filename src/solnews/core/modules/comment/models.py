from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from solnews.core.db import MongoModel
from solnews.core.modules.user.models import AuthorView
from solnews.utils import now


class Comment(MongoModel):
    """Comment on an article, optionally replying to another comment of the same article.

    like_count mirrors the number of like documents and is only changed by LikeService.
    """

    article_id: UUID
    author_id: UUID
    parent_id: UUID | None = None
    body: str
    like_count: int = 0
    was_edited: bool = False
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class CommentNode(BaseModel):
    """Comment as rendered in an article thread, with nested replies."""

    id: UUID = Field(..., description="Comment ID")
    author: AuthorView = Field(..., description="Comment author")
    body: str = Field(..., description="Comment text")
    parent_id: UUID | None = Field(None, description="ID of the comment this one replies to")
    like_count: int = Field(..., description="Number of likes")
    liked_by_viewer: bool = Field(False, description="Whether the requesting user liked this comment")
    was_edited: bool = Field(False, description="Whether the body was edited after posting")
    created_at: datetime
    updated_at: datetime
    children: list["CommentNode"] = Field(default_factory=list, description="Replies, newest first")


class LikeToggleResult(BaseModel):
    """Outcome of a like toggle."""

    liked: bool = Field(..., description="Whether the comment is liked after the toggle")
