from collections.abc import Collection
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase

from solnews.core.core import Service
from solnews.core.modules.comment.models import Comment, CommentNode
from solnews.core.modules.comment.tree import assemble_forest, collect_subtree_ids
from solnews.core.modules.comment.validators import validate_body
from solnews.errors import NotFoundError
from solnews.utils import now

logger = structlog.get_logger(__name__)


class CommentService(Service):
    """Manages threaded comments on articles."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("comments")

    async def on_start(self) -> None:
        """Create indexes for thread loading and per-author lookups."""
        await self._collection.create_index([("article_id", 1), ("created_at", -1)])
        await self._collection.create_index([("author_id", 1)])
        await self._collection.create_index([("parent_id", 1)])

    async def get_comment(self, comment_id: UUID) -> Comment:
        """Get comment by ID."""
        doc = await self._collection.find_one({"_id": comment_id})
        if doc is None:
            raise NotFoundError(f"Comment not found: {comment_id}")
        return Comment.model_validate(doc)

    async def create_comment(self, article_id: UUID, author_id: UUID, body: str, parent_id: UUID | None = None) -> Comment:
        """Create a top-level comment or a reply within the same article."""
        body = validate_body(body)
        if parent_id is not None:
            parent = await self._collection.find_one({"_id": parent_id, "article_id": article_id}, projection={"_id": 1})
            if parent is None:
                raise NotFoundError(f"Parent comment not found: {parent_id}")

        comment = Comment(article_id=article_id, author_id=author_id, parent_id=parent_id, body=body)
        await self._collection.insert_one(comment.to_mongo())
        logger.debug("comment_created", comment_id=comment.id, article_id=article_id, parent_id=parent_id)
        return comment

    async def edit_comment(self, comment_id: UUID, body: str) -> Comment:
        """Replace the body and mark the comment as edited."""
        body = validate_body(body)
        result = await self._collection.update_one(
            {"_id": comment_id}, {"$set": {"body": body, "was_edited": True, "updated_at": now()}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"Comment not found: {comment_id}")
        return await self.get_comment(comment_id)

    async def get_article_comments(self, article_id: UUID) -> list[Comment]:
        """All comments of an article, newest first."""
        cursor = self._collection.find({"article_id": article_id}).sort("created_at", -1)
        return await Comment.list_cursor(cursor)

    async def get_article_thread(self, article_id: UUID, viewer_id: UUID | None = None) -> list[CommentNode]:
        """Comment forest of an article annotated with the viewer's likes."""
        comments = await self.get_article_comments(article_id)
        viewer_likes: set[UUID] = set()
        if viewer_id is not None and comments:
            viewer_likes = await self.core.services.like.get_liked_comment_ids(viewer_id, [c.id for c in comments])
        return assemble_forest(comments, viewer_likes, self.core.services.user.get_user_cache())

    async def collect_subtree_ids(self, comment_ids: Collection[UUID], session: AsyncClientSession | None = None) -> set[UUID]:
        """Given comments plus all replies below them, across any number of articles."""
        if not comment_ids:
            return set()
        article_ids = await self._collection.distinct("article_id", {"_id": {"$in": list(comment_ids)}}, session=session)
        cursor = self._collection.find(
            {"article_id": {"$in": article_ids}}, projection={"_id": 1, "parent_id": 1}, session=session
        )
        links = [(doc["_id"], doc.get("parent_id")) async for doc in cursor]
        return collect_subtree_ids(links, comment_ids)

    async def get_comment_ids_by_articles(
        self, article_ids: Collection[UUID], session: AsyncClientSession | None = None
    ) -> set[UUID]:
        if not article_ids:
            return set()
        return set(await self._collection.distinct("_id", {"article_id": {"$in": list(article_ids)}}, session=session))

    async def get_comment_ids_by_author(self, author_id: UUID, session: AsyncClientSession | None = None) -> set[UUID]:
        return set(await self._collection.distinct("_id", {"author_id": author_id}, session=session))

    async def count_by_author(self, author_id: UUID) -> int:
        return await self._collection.count_documents({"author_id": author_id})

    async def delete_comments(self, comment_ids: Collection[UUID], session: AsyncClientSession) -> int:
        """Delete comments by id inside a transaction and return count of deleted comments.

        Callers pass whole subtrees (see collect_subtree_ids) and remove the likes first.
        """
        if not comment_ids:
            return 0
        result = await self._collection.delete_many({"_id": {"$in": list(comment_ids)}}, session=session)
        return result.deleted_count
