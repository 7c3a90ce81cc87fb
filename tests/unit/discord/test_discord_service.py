"""Tests for the Discord OAuth2 client using httpx.MockTransport."""

from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from solnews.core.modules.discord import service as discord_module
from solnews.core.modules.discord.service import DiscordService
from solnews.errors import AuthenticationError, InternalError

REAL_ASYNC_CLIENT = httpx.AsyncClient

TOKEN_PAYLOAD = {
    "access_token": "access",
    "token_type": "Bearer",
    "expires_in": 604800,
    "refresh_token": "refresh",
    "scope": "identify email",
}


@pytest.fixture
def discord(config):
    service = DiscordService(database=None)
    service.set_core(SimpleNamespace(config=config))
    return service


@pytest.fixture
def mock_discord(monkeypatch):
    """Route the service's HTTP calls to a handler; returns the list of seen requests."""

    def install(handler):
        requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        def client_factory(**kwargs):
            return REAL_ASYNC_CLIENT(transport=httpx.MockTransport(recording_handler), **kwargs)

        monkeypatch.setattr(discord_module.httpx, "AsyncClient", client_factory)
        return requests

    return install


class TestAuthorizeUrl:
    """Tests for build_authorize_url."""

    def test_contains_client_and_state(self, discord, config):
        url = urlparse(discord.build_authorize_url("state-123"))
        query = parse_qs(url.query)

        assert url.netloc == "discord.com"
        assert query["client_id"] == [config.discord_client_id]
        assert query["redirect_uri"] == [config.discord_redirect_url]
        assert query["scope"] == ["identify email"]
        assert query["state"] == ["state-123"]

    def test_new_state_is_random(self):
        assert DiscordService.new_state() != DiscordService.new_state()


class TestExchangeCode:
    """Tests for exchange_code."""

    @pytest.mark.asyncio
    async def test_returns_tokens(self, discord, mock_discord):
        requests = mock_discord(lambda request: httpx.Response(200, json=TOKEN_PAYLOAD))

        tokens = await discord.exchange_code("code-1")

        assert tokens.access_token == "access"
        assert tokens.refresh_token == "refresh"
        assert requests[0].url.path == "/api/v10/oauth2/token"
        assert parse_qs(requests[0].content.decode())["code"] == ["code-1"]

    @pytest.mark.asyncio
    async def test_rejected_code(self, discord, mock_discord):
        mock_discord(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(AuthenticationError):
            await discord.exchange_code("expired")

    @pytest.mark.asyncio
    async def test_server_error(self, discord, mock_discord):
        mock_discord(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(InternalError):
            await discord.exchange_code("code-1")

    @pytest.mark.asyncio
    async def test_timeout(self, discord, mock_discord):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        mock_discord(handler)

        with pytest.raises(InternalError, match="timeout"):
            await discord.exchange_code("code-1")


class TestFetchUser:
    """Tests for fetch_user."""

    @pytest.mark.asyncio
    async def test_returns_user(self, discord, mock_discord):
        requests = mock_discord(
            lambda request: httpx.Response(200, json={"id": "42", "username": "sol", "avatar": "abc", "email": None})
        )

        user = await discord.fetch_user("access")

        assert user.id == "42"
        assert user.username == "sol"
        assert requests[0].headers["Authorization"] == "Bearer access"

    @pytest.mark.asyncio
    async def test_invalid_token(self, discord, mock_discord):
        mock_discord(lambda request: httpx.Response(401, json={"message": "401: Unauthorized"}))

        with pytest.raises(AuthenticationError):
            await discord.fetch_user("stale")


class TestRevokeToken:
    """Tests for revoke_token."""

    @pytest.mark.asyncio
    async def test_success(self, discord, mock_discord):
        requests = mock_discord(lambda request: httpx.Response(200, json={}))

        assert await discord.revoke_token("refresh") == (True, None)
        assert requests[0].url.path == "/api/v10/oauth2/token/revoke"
        assert requests[0].headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, discord, mock_discord):
        mock_discord(lambda request: httpx.Response(503))

        ok, error = await discord.revoke_token("refresh")

        assert ok is False
        assert "503" in error

    @pytest.mark.asyncio
    async def test_network_error_is_reported_not_raised(self, discord, mock_discord):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        mock_discord(handler)

        ok, error = await discord.revoke_token("refresh")

        assert ok is False
        assert error is not None
