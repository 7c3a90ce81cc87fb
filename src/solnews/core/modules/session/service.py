import secrets
from typing import Any
from uuid import UUID

from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase

from solnews.core.core import Service
from solnews.core.modules.session.models import AuthToken, Session
from solnews.core.modules.user.models import User
from solnews.errors import AuthenticationError

SESSION_TTL_SECONDS = 30 * 24 * 60 * 60


class SessionService(Service):
    """Service for managing user sessions."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")
        # token -> user id; the user itself is always read from the user cache so role changes apply at once
        self._authenticated_users: dict[AuthToken, UUID] = {}

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("auth_token", 1)], unique=True)
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("created_at", 1)], expireAfterSeconds=SESSION_TTL_SECONDS)

    async def create_session(self, user_id: UUID, discord_refresh_token: str | None = None) -> AuthToken:
        auth_token = AuthToken(secrets.token_urlsafe(32))
        new_session = Session(user_id=user_id, auth_token=auth_token, discord_refresh_token=discord_refresh_token)
        await self._collection.insert_one(new_session.to_mongo())
        return auth_token

    async def get_session(self, auth_token: AuthToken) -> Session:
        doc = await self._collection.find_one({"auth_token": auth_token})
        if doc is None:
            raise AuthenticationError("Invalid or expired session")
        return Session.model_validate(doc)

    async def get_authenticated_user(self, auth_token: AuthToken) -> User:
        user_id = self._authenticated_users.get(auth_token)
        if user_id is None:
            session = await self.get_session(auth_token)
            user_id = session.user_id

        user = self.core.services.user.find_user(user_id)
        if user is None:
            self._authenticated_users.pop(auth_token, None)
            raise AuthenticationError("Invalid or expired session")

        self._authenticated_users[auth_token] = user_id
        return user

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        try:
            await self.get_authenticated_user(auth_token)
        except AuthenticationError:
            return False
        return True

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Invalidate a session by removing it from the database."""
        self._authenticated_users.pop(auth_token, None)
        await self._collection.delete_one({"auth_token": auth_token})

    async def get_refresh_tokens_by_user(self, user_id: UUID) -> list[str]:
        cursor = self._collection.find({"user_id": user_id, "discord_refresh_token": {"$ne": None}})
        return [session.discord_refresh_token for session in await Session.list_cursor(cursor) if session.discord_refresh_token]

    async def delete_sessions_by_user(self, user_id: UUID, session: AsyncClientSession) -> int:
        """Delete all sessions of a user inside a transaction and return their count."""
        result = await self._collection.delete_many({"user_id": user_id}, session=session)
        self._authenticated_users = {
            token: cached_user_id for token, cached_user_id in self._authenticated_users.items() if cached_user_id != user_id
        }
        return result.deleted_count
