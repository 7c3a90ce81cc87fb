"""Shared pytest fixtures."""

from uuid import UUID, uuid4

import pytest

from solnews.config import Config
from solnews.core.modules.comment.models import Comment
from solnews.core.modules.user.models import User, UserRole

ARTICLE_ID = UUID("12345678-1234-5678-1234-567812345678")


@pytest.fixture
def make_user():
    """Factory for users with a given role."""

    def _make_user(role: UserRole = UserRole.READER, **kwargs) -> User:
        user_id = kwargs.pop("id", uuid4())
        return User(
            id=user_id,
            discord_id=kwargs.pop("discord_id", str(user_id.int)[:18]),
            discord_username=kwargs.pop("discord_username", f"user-{str(user_id)[:8]}"),
            role=role,
            **kwargs,
        )

    return _make_user


@pytest.fixture
def make_comment():
    """Factory for comments of one article."""

    def _make_comment(comment_id: UUID | None = None, parent_id: UUID | None = None, **kwargs) -> Comment:
        return Comment(
            id=comment_id or uuid4(),
            article_id=kwargs.pop("article_id", ARTICLE_ID),
            author_id=kwargs.pop("author_id", uuid4()),
            parent_id=parent_id,
            body=kwargs.pop("body", "Nice article"),
            **kwargs,
        )

    return _make_comment


@pytest.fixture
def config():
    """Configuration with fake Discord credentials."""
    return Config(
        database_url="mongodb://localhost:27017/solnews_test?replicaSet=rs0",
        host="127.0.0.1",
        port=8000,
        debug=True,
        session_secret_key="test-secret",
        discord_client_id="client-id",
        discord_client_secret="client-secret",
        discord_redirect_url="http://localhost:8000/api/v1/auth/discord/redirect",
        discord_api_url="https://discord.test/api/v10",
        admin_discord_ids=["1000"],
    )
