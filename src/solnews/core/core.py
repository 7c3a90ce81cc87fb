from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from solnews.config import Config
from solnews.errors import ConflictError, InternalError

if TYPE_CHECKING:
    from solnews.core.modules.access.service import AccessService
    from solnews.core.modules.article.service import ArticleService
    from solnews.core.modules.comment.service import CommentService
    from solnews.core.modules.discord.service import DiscordService
    from solnews.core.modules.like.service import LikeService
    from solnews.core.modules.session.service import SessionService
    from solnews.core.modules.suggestion.service import SuggestionService
    from solnews.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)

WRITE_CONFLICT = 112


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    user: UserService
    session: SessionService
    discord: DiscordService
    access: AccessService
    suggestion: SuggestionService
    article: ArticleService
    comment: CommentService
    like: LikeService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - user must be first to fill the cache
        service_configs = [
            ("user", "solnews.core.modules.user.service", "UserService"),
            ("session", "solnews.core.modules.session.service", "SessionService"),
            ("discord", "solnews.core.modules.discord.service", "DiscordService"),
            ("access", "solnews.core.modules.access.service", "AccessService"),
            ("suggestion", "solnews.core.modules.suggestion.service", "SuggestionService"),
            ("article", "solnews.core.modules.article.service", "ArticleService"),
            ("comment", "solnews.core.modules.comment.service", "CommentService"),
            ("like", "solnews.core.modules.like.service", "LikeService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services in reverse start order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, MongoDB, and auto-register services."""
        self.config = config
        self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncClientSession]:
        """Run the enclosed writes as one all-or-nothing MongoDB transaction.

        Every operation inside the block must pass the yielded session. Leaving
        the block with an exception aborts the transaction. Duplicate key errors
        propagate unchanged so callers can report a conflict. A write conflict
        with a concurrent transaction becomes ConflictError, other driver errors
        become InternalError.
        """
        try:
            async with self.mongo_client.start_session() as session:
                async with await session.start_transaction():
                    yield session
        except DuplicateKeyError:
            raise
        except OperationFailure as e:
            if e.code == WRITE_CONFLICT or e.has_error_label("TransientTransactionError"):
                logger.warning("transaction_write_conflict", error=str(e))
                raise ConflictError("Changed concurrently, try again") from e
            logger.exception("transaction_aborted", error=str(e))
            raise InternalError("Transaction aborted") from e
        except PyMongoError as e:
            logger.exception("transaction_aborted", error=str(e))
            raise InternalError("Transaction aborted") from e

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
