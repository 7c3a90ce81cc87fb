from collections.abc import Collection
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase

from solnews.core.core import Service
from solnews.core.modules.article.models import Article
from solnews.core.modules.article.validators import parse_references, summarize, validate_content
from solnews.core.modules.suggestion.validators import validate_https_url, validate_title
from solnews.core.pagination import PaginationResult
from solnews.errors import NotFoundError, ValidationError
from solnews.utils import now

logger = structlog.get_logger(__name__)


class ArticleService(Service):
    """Manages articles."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("articles")

    async def on_start(self) -> None:
        """Create indexes for listings and cascade lookups."""
        await self._collection.create_index([("created_at", -1)])
        await self._collection.create_index([("author_id", 1)])
        await self._collection.create_index([("suggestion_id", 1)])

    async def get_article(self, article_id: UUID) -> Article:
        """Get article by ID."""
        doc = await self._collection.find_one({"_id": article_id})
        if doc is None:
            raise NotFoundError(f"Article not found: {article_id}")
        return Article.model_validate(doc)

    async def list_articles(self, limit: int = 10, offset: int = 0) -> PaginationResult[Article]:
        """Get paginated articles, newest first."""
        total = await self._collection.count_documents({})
        cursor = self._collection.find({}).sort("created_at", -1).skip(offset).limit(limit)
        items = await Article.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def list_summaries(self, limit: int = 10, offset: int = 0) -> PaginationResult[dict[str, Any]]:
        """Get paginated article summaries with comment counts, newest first.

        Items are raw documents without `content`, with an extra `comment_count` key.
        """
        total = await self._collection.count_documents({})
        pipeline: list[dict[str, Any]] = [
            {"$sort": {"created_at": -1}},
            {"$skip": offset},
            {"$limit": limit},
            {
                "$lookup": {
                    "from": "comments",
                    "localField": "_id",
                    "foreignField": "article_id",
                    "pipeline": [{"$project": {"_id": 1}}],
                    "as": "comment_ids",
                }
            },
            {"$addFields": {"comment_count": {"$size": "$comment_ids"}}},
            {"$project": {"comment_ids": 0, "content": 0}},
        ]
        cursor = await self._collection.aggregate(pipeline)
        items = [doc async for doc in cursor]
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def create_article(
        self,
        author_id: UUID,
        title: str,
        content: str,
        image: str,
        references: str | list[str],
        suggestion_id: UUID | None = None,
    ) -> Article:
        """Create article; the suggestion, if given, must exist."""
        content = validate_content(content)
        article = Article(
            author_id=author_id,
            title=validate_title(title),
            content=content,
            image=validate_https_url(image, "image"),
            content_summary=summarize(content),
            references=parse_references(references),
            suggestion_id=suggestion_id,
        )
        if suggestion_id is not None:
            await self.core.services.suggestion.get_suggestion(suggestion_id)

        await self._collection.insert_one(article.to_mongo())
        logger.info("article_created", article_id=article.id, author_id=author_id, suggestion_id=suggestion_id)
        return article

    async def update_article(
        self,
        article_id: UUID,
        title: str | None = None,
        content: str | None = None,
        image: str | None = None,
        references: str | list[str] | None = None,
    ) -> Article:
        """Partial update: only fields that are not None are validated and written."""
        update: dict[str, Any] = {}
        if title is not None:
            update["title"] = validate_title(title)
        if content is not None:
            update["content"] = validate_content(content)
            update["content_summary"] = summarize(content)
        if image is not None:
            update["image"] = validate_https_url(image, "image")
        if references is not None:
            update["references"] = parse_references(references)
        if not update:
            raise ValidationError("Nothing to update")

        update["updated_at"] = now()
        result = await self._collection.update_one({"_id": article_id}, {"$set": update})
        if result.matched_count == 0:
            raise NotFoundError(f"Article not found: {article_id}")
        return await self.get_article(article_id)

    async def get_article_ids_by_suggestions(
        self, suggestion_ids: Collection[UUID], session: AsyncClientSession | None = None
    ) -> set[UUID]:
        if not suggestion_ids:
            return set()
        return set(
            await self._collection.distinct("_id", {"suggestion_id": {"$in": list(suggestion_ids)}}, session=session)
        )

    async def get_article_ids_by_author(self, author_id: UUID, session: AsyncClientSession | None = None) -> set[UUID]:
        return set(await self._collection.distinct("_id", {"author_id": author_id}, session=session))

    async def count_by_author(self, author_id: UUID) -> int:
        return await self._collection.count_documents({"author_id": author_id})

    async def delete_articles(self, article_ids: Collection[UUID], session: AsyncClientSession) -> int:
        """Delete articles inside a transaction; their comments are removed by the caller."""
        if not article_ids:
            return 0
        result = await self._collection.delete_many({"_id": {"$in": list(article_ids)}}, session=session)
        return result.deleted_count
