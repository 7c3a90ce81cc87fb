from collections import Counter
from collections.abc import Collection
from typing import Any
from uuid import UUID

import structlog
from pymongo import UpdateOne
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from solnews.core.core import Service
from solnews.core.modules.like.models import Like
from solnews.errors import ConflictError

logger = structlog.get_logger(__name__)


class LikeService(Service):
    """Owns like documents and the like_count they mirror on comments.

    Every insert or delete of a like changes comments.like_count in the same
    transaction, and nothing else writes like_count.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("likes")
        self._comments = database.get_collection("comments")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        # At most one like per user and comment; concurrent duplicate inserts fail here
        await self._collection.create_index([("user_id", 1), ("comment_id", 1)], unique=True)
        await self._collection.create_index([("comment_id", 1)])

    async def toggle_like(self, user_id: UUID, comment_id: UUID) -> bool:
        """Like the comment if the user has not yet, otherwise remove the like.

        Returns:
            True when the comment is liked after the call, False when the like was removed.

        Raises:
            ConflictError: A concurrent toggle of the same like won; either a write
                conflict inside the transaction or a duplicate on the unique index.
            InternalError: The transaction failed; nothing was changed.
        """
        try:
            async with self.core.transaction() as session:
                existing = await self._collection.find_one({"user_id": user_id, "comment_id": comment_id}, session=session)
                if existing is not None:
                    await self._remove_likes({"_id": existing["_id"]}, session)
                    liked = False
                else:
                    await self._add_like(Like(user_id=user_id, comment_id=comment_id), session)
                    liked = True
        except DuplicateKeyError as e:
            logger.warning("like_toggle_conflict", user_id=user_id, comment_id=comment_id)
            raise ConflictError("Like was changed concurrently, try again") from e

        logger.debug("like_toggled", user_id=user_id, comment_id=comment_id, liked=liked)
        return liked

    async def get_liked_comment_ids(self, user_id: UUID, comment_ids: Collection[UUID]) -> set[UUID]:
        """Subset of comment_ids the user has liked."""
        if not comment_ids:
            return set()
        cursor = self._collection.find(
            {"user_id": user_id, "comment_id": {"$in": list(comment_ids)}}, projection={"comment_id": 1}
        )
        return {doc["comment_id"] async for doc in cursor}

    async def count_by_user(self, user_id: UUID) -> int:
        return await self._collection.count_documents({"user_id": user_id})

    async def remove_likes_on_comments(self, comment_ids: Collection[UUID], session: AsyncClientSession) -> int:
        """Remove every like on the given comments inside a transaction."""
        if not comment_ids:
            return 0
        return await self._remove_likes({"comment_id": {"$in": list(comment_ids)}}, session)

    async def remove_likes_by_user(self, user_id: UUID, session: AsyncClientSession) -> int:
        """Remove every like given by a user inside a transaction, lowering the liked comments' counters."""
        return await self._remove_likes({"user_id": user_id}, session)

    async def _add_like(self, like: Like, session: AsyncClientSession) -> None:
        await self._collection.insert_one(like.to_mongo(), session=session)
        await self._comments.update_one({"_id": like.comment_id}, {"$inc": {"like_count": 1}}, session=session)

    async def _remove_likes(self, query: dict[str, Any], session: AsyncClientSession) -> int:
        cursor = self._collection.find(query, projection={"comment_id": 1}, session=session)
        per_comment = Counter([doc["comment_id"] async for doc in cursor])
        if not per_comment:
            return 0

        result = await self._collection.delete_many(query, session=session)
        await self._comments.bulk_write(
            [UpdateOne({"_id": comment_id}, {"$inc": {"like_count": -count}}) for comment_id, count in per_comment.items()],
            ordered=False,
            session=session,
        )
        return result.deleted_count
