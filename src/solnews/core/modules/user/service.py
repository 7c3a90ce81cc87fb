from types import MappingProxyType
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from solnews.core.core import Service
from solnews.core.modules.discord.models import DiscordUser
from solnews.core.modules.user.models import User, UserRole
from solnews.core.modules.user.validators import validate_biography, validate_username
from solnews.errors import ConflictError, NotFoundError, ValidationError
from solnews.utils import now

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages users with in-memory cache."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")
        self._users: dict[UUID, User] = {}

    def get_user(self, user_id: UUID) -> User:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def find_user(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

    def get_user_by_discord_id(self, discord_id: str) -> User | None:
        return next((u for u in self._users.values() if u.discord_id == discord_id), None)

    def is_username_taken(self, username: str, exclude_user_id: UUID | None = None) -> bool:
        """Check if a display name is used by anyone other than exclude_user_id."""
        return any(user.username == username and user.id != exclude_user_id for user in self._users.values())

    def get_all_users(self) -> list[User]:
        """Get all users from cache, oldest first."""
        return sorted(self._users.values(), key=lambda u: u.created_at)

    def get_user_cache(self) -> MappingProxyType[UUID, User]:
        """Get read-only view of user cache for formatting purposes."""
        return MappingProxyType(self._users)

    async def upsert_discord_user(self, discord_user: DiscordUser) -> User:
        """Create the user on first login, refresh Discord fields on later logins."""
        existing = self.get_user_by_discord_id(discord_user.id)
        timestamp = now()
        discord_fields = {
            "discord_username": discord_user.username,
            "discord_email": discord_user.email,
            "discord_avatar": discord_user.avatar,
            "updated_at": timestamp,
        }

        if existing is not None:
            await self._collection.update_one({"_id": existing.id}, {"$set": discord_fields})
            return await self.update_user_cache(existing.id)

        role = UserRole.ADMIN if discord_user.id in self.core.config.admin_discord_ids else UserRole.READER
        user = User(
            discord_id=discord_user.id,
            discord_username=discord_user.username,
            discord_email=discord_user.email,
            discord_avatar=discord_user.avatar,
            role=role,
            created_at=timestamp,
            updated_at=timestamp,
        )
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError:
            # A parallel first login of the same account inserted it already
            doc = await self._collection.find_one({"discord_id": discord_user.id})
            if doc is None:
                raise
            logger.info("user_registered_concurrently", user_id=doc["_id"], discord_id=discord_user.id)
            return await self.update_user_cache(doc["_id"])

        logger.info("user_registered", user_id=user.id, discord_id=discord_user.id, role=role)
        return await self.update_user_cache(user.id)

    async def update_profile(self, user_id: UUID, username: str | None, biography: str | None) -> User:
        """Update display name and/or biography; None leaves the value unchanged."""
        self.get_user(user_id)
        update: dict[str, Any] = {}

        if username is not None:
            username = validate_username(username)
            if self.is_username_taken(username, exclude_user_id=user_id):
                raise ConflictError(f"Username '{username}' already taken")
            update["username"] = username

        if biography is not None:
            update["biography"] = validate_biography(biography)

        if not update:
            raise ValidationError("Nothing to update")

        update["updated_at"] = now()
        try:
            await self._collection.update_one({"_id": user_id}, {"$set": update})
        except DuplicateKeyError as e:
            # Another instance claimed the name between the cache check and the write
            raise ConflictError(f"Username '{username}' already taken") from e
        return await self.update_user_cache(user_id)

    async def ban_user(self, user_id: UUID) -> User:
        """Ban user; the role is forced to banned."""
        self.get_user(user_id)
        await self._collection.update_one(
            {"_id": user_id}, {"$set": {"is_banned": True, "role": UserRole.BANNED, "updated_at": now()}}
        )
        logger.info("user_banned", user_id=user_id)
        return await self.update_user_cache(user_id)

    async def set_role(self, user_id: UUID, role: UserRole) -> User:
        """Assign a role. Assigning anything but banned lifts an existing ban."""
        self.get_user(user_id)
        await self._collection.update_one(
            {"_id": user_id}, {"$set": {"role": role, "is_banned": role == UserRole.BANNED, "updated_at": now()}}
        )
        logger.info("user_role_changed", user_id=user_id, role=role)
        return await self.update_user_cache(user_id)

    async def delete_user(self, user_id: UUID, session: AsyncClientSession) -> None:
        """Delete the user document inside a transaction.

        The cache is not touched; call evict_user once the transaction commits.
        """
        await self._collection.delete_one({"_id": user_id}, session=session)

    def evict_user(self, user_id: UUID) -> None:
        self._users.pop(user_id, None)

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from database."""
        users = await User.list_cursor(self._collection.find())
        self._users = {user.id: user for user in users}

    async def update_user_cache(self, user_id: UUID) -> User:
        """Reload a specific user cache from database."""
        user = await self._collection.find_one({"_id": user_id})
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        self._users[user_id] = User.model_validate(user)
        return self._users[user_id]

    async def on_start(self) -> None:
        """Initialize indexes and cache."""
        await self._collection.create_index([("discord_id", 1)], unique=True)
        await self._collection.create_index(
            [("username", 1)], unique=True, partialFilterExpression={"username": {"$type": "string"}}
        )
        await self.update_all_users_cache()
        logger.debug("user_service_started", user_count=len(self._users))
