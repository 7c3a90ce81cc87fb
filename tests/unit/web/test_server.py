"""Tests for the HTTP layer: error mapping, OAuth state check and optional authentication."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from solnews.app import App
from solnews.errors import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
    UserError,
    ValidationError,
)
from solnews.web.error_handlers import general_exception_handler, internal_error_handler, user_error_handler
from solnews.web.server import create_fastapi_app


@pytest.fixture
def app_mock():
    mock = MagicMock(spec=App)
    mock.is_auth_token_valid.return_value = False
    return mock


@pytest.fixture
def client(app_mock, config):
    """Client without lifespan: state is filled in directly, no database involved."""
    fastapi_app = create_fastapi_app(app_mock, config)
    fastapi_app.state.app = app_mock
    fastapi_app.state.config = config
    return TestClient(fastapi_app, raise_server_exceptions=False)


class TestErrorHandlers:
    """Each error kind maps to its own status code and type."""

    @pytest.mark.parametrize(
        ("error", "status_code", "error_type"),
        [
            (NotFoundError("Article not found"), 404, "not_found"),
            (AuthenticationError(), 401, "authentication_error"),
            (AccessDeniedError("Not allowed"), 403, "access_denied"),
            (ValidationError("Title too short"), 400, "validation_error"),
            (ConflictError("Username taken"), 409, "conflict"),
        ],
    )
    def test_user_errors(self, error, status_code, error_type):
        client = TestClient(self._raising_app(error))

        response = client.get("/fail")

        assert response.status_code == status_code
        assert response.json() == {"message": str(error), "type": error_type}

    def test_internal_error_message_is_hidden(self):
        client = TestClient(self._raising_app(InternalError("Transaction aborted: WriteConflict")))

        response = client.get("/fail")

        assert response.status_code == 500
        assert response.json() == {"message": "An unexpected error occurred.", "type": "internal_server_error"}

    def test_unexpected_error(self):
        client = TestClient(self._raising_app(RuntimeError("boom")), raise_server_exceptions=False)

        response = client.get("/fail")

        assert response.status_code == 500
        assert response.json()["type"] == "internal_server_error"

    @staticmethod
    def _raising_app(error: Exception) -> FastAPI:
        app = FastAPI()

        @app.get("/fail")
        async def fail() -> None:
            raise error

        app.add_exception_handler(UserError, user_error_handler)
        app.add_exception_handler(InternalError, internal_error_handler)
        app.add_exception_handler(Exception, general_exception_handler)
        return app


class TestServer:
    """Tests for the assembled FastAPI application."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_public_endpoints_have_no_security(self, client):
        paths = client.get("/openapi.json").json()["paths"]

        assert paths["/api/v1/home"]["get"]["security"] == []
        assert paths["/api/v1/articles/{article_id}"]["get"]["security"] == []
        assert paths["/api/v1/articles"]["post"]["security"] != []

    def test_mutation_requires_token(self, client, app_mock):
        response = client.post("/api/v1/suggestions", json={"source": "", "title": "", "content": "", "image": ""})

        assert response.status_code == 401
        app_mock.create_suggestion.assert_not_called()

    def test_read_without_token_passes_none(self, client, app_mock):
        """Anonymous readers get the thread without like markers."""
        article_id = uuid4()
        app_mock.get_article_comments.return_value = []

        response = client.get(f"/api/v1/articles/{article_id}/comments")

        assert response.status_code == 200
        app_mock.get_article_comments.assert_awaited_once_with(None, article_id)

    def test_read_with_bearer_token(self, client, app_mock):
        article_id = uuid4()
        app_mock.is_auth_token_valid.return_value = True
        app_mock.get_article_comments.return_value = []

        client.get(f"/api/v1/articles/{article_id}/comments", headers={"Authorization": "Bearer abc"})

        app_mock.get_article_comments.assert_awaited_once_with("abc", article_id)


class TestDiscordLogin:
    """Tests for the OAuth redirect flow."""

    def test_login_redirects_to_discord(self, client, app_mock):
        app_mock.discord_login_url.return_value = ("https://discord.com/oauth2/authorize?state=s1", "s1")

        response = client.get("/api/v1/auth/discord/login", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"].startswith("https://discord.com/oauth2/authorize")

    def test_redirect_with_matching_state(self, client, app_mock):
        app_mock.discord_login_url.return_value = ("https://discord.com/oauth2/authorize?state=s1", "s1")
        app_mock.discord_login.return_value = "new-token"
        client.get("/api/v1/auth/discord/login", follow_redirects=False)

        response = client.get("/api/v1/auth/discord/redirect", params={"code": "c1", "state": "s1"})

        assert response.status_code == 200
        assert response.json() == {"token": "new-token"}
        assert response.cookies["auth_token"] == "new-token"
        app_mock.discord_login.assert_awaited_once_with("c1")

    def test_redirect_with_foreign_state(self, client, app_mock):
        """A callback that was not started by this browser is rejected before touching Discord."""
        app_mock.discord_login_url.return_value = ("https://discord.com/oauth2/authorize?state=s1", "s1")
        client.get("/api/v1/auth/discord/login", follow_redirects=False)

        response = client.get("/api/v1/auth/discord/redirect", params={"code": "c1", "state": "forged"})

        assert response.status_code == 401
        app_mock.discord_login.assert_not_called()

    def test_redirect_to_frontend(self, app_mock, config):
        frontend_config = config.model_copy(update={"frontend_url": "https://solnews.example"})
        fastapi_app = create_fastapi_app(app_mock, frontend_config)
        fastapi_app.state.app = app_mock
        fastapi_app.state.config = frontend_config
        client = TestClient(fastapi_app)
        app_mock.discord_login_url.return_value = ("https://discord.com/oauth2/authorize?state=s1", "s1")
        app_mock.discord_login.return_value = "new-token"
        client.get("/api/v1/auth/discord/login", follow_redirects=False)

        response = client.get(
            "/api/v1/auth/discord/redirect", params={"code": "c1", "state": "s1"}, follow_redirects=False
        )

        assert response.status_code == 307
        assert response.headers["location"] == "https://solnews.example"
        assert response.cookies["auth_token"] == "new-token"
