from collections.abc import Collection
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase

from solnews.core.core import Service
from solnews.core.modules.suggestion.models import Suggestion
from solnews.core.modules.suggestion.validators import validate_content, validate_https_url, validate_title
from solnews.core.pagination import PaginationResult
from solnews.errors import NotFoundError, ValidationError
from solnews.utils import now

logger = structlog.get_logger(__name__)


class SuggestionService(Service):
    """Manages user-submitted news suggestions."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("suggestions")

    async def on_start(self) -> None:
        await self._collection.create_index([("created_at", -1)])
        await self._collection.create_index([("author_id", 1)])

    async def get_suggestion(self, suggestion_id: UUID) -> Suggestion:
        """Get suggestion by ID."""
        doc = await self._collection.find_one({"_id": suggestion_id})
        if doc is None:
            raise NotFoundError(f"News suggestion not found: {suggestion_id}")
        return Suggestion.model_validate(doc)

    async def list_suggestions(self, limit: int = 10, offset: int = 0) -> PaginationResult[Suggestion]:
        """Get paginated suggestions, newest first."""
        total = await self._collection.count_documents({})
        cursor = self._collection.find({}).sort("created_at", -1).skip(offset).limit(limit)
        items = await Suggestion.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def create_suggestion(
        self, author_id: UUID, source: str, title: str, content: str, image: str
    ) -> Suggestion:
        suggestion = Suggestion(
            author_id=author_id,
            source=validate_https_url(source, "source"),
            title=validate_title(title),
            content=validate_content(content),
            image=validate_https_url(image, "image"),
        )
        await self._collection.insert_one(suggestion.to_mongo())
        logger.debug("suggestion_created", suggestion_id=suggestion.id, author_id=author_id)
        return suggestion

    async def update_suggestion(
        self,
        suggestion_id: UUID,
        source: str | None = None,
        title: str | None = None,
        content: str | None = None,
        image: str | None = None,
    ) -> Suggestion:
        """Partial update: only fields that are not None are validated and written."""
        update: dict[str, Any] = {}
        if source is not None:
            update["source"] = validate_https_url(source, "source")
        if title is not None:
            update["title"] = validate_title(title)
        if content is not None:
            update["content"] = validate_content(content)
        if image is not None:
            update["image"] = validate_https_url(image, "image")
        if not update:
            raise ValidationError("Nothing to update")

        update["updated_at"] = now()
        result = await self._collection.update_one({"_id": suggestion_id}, {"$set": update})
        if result.matched_count == 0:
            raise NotFoundError(f"News suggestion not found: {suggestion_id}")
        return await self.get_suggestion(suggestion_id)

    async def get_suggestion_ids_by_author(self, author_id: UUID, session: AsyncClientSession | None = None) -> set[UUID]:
        return set(await self._collection.distinct("_id", {"author_id": author_id}, session=session))

    async def count_by_author(self, author_id: UUID) -> int:
        return await self._collection.count_documents({"author_id": author_id})

    async def delete_suggestions(self, suggestion_ids: Collection[UUID], session: AsyncClientSession) -> int:
        """Delete suggestions inside a transaction; articles based on them are removed by the caller."""
        if not suggestion_ids:
            return 0
        result = await self._collection.delete_many({"_id": {"$in": list(suggestion_ids)}}, session=session)
        return result.deleted_count

    async def get_suggestions_by_ids(self, suggestion_ids: Collection[UUID]) -> dict[UUID, Suggestion]:
        if not suggestion_ids:
            return {}
        cursor = self._collection.find({"_id": {"$in": list(suggestion_ids)}})
        return {suggestion.id: suggestion for suggestion in await Suggestion.list_cursor(cursor)}
