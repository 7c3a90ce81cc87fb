import secrets
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from solnews.core.core import Service
from solnews.core.modules.discord.models import DiscordTokens, DiscordUser
from solnews.errors import AuthenticationError, InternalError

logger = structlog.get_logger(__name__)

DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
REQUEST_TIMEOUT = 10.0


class DiscordService(Service):
    """Discord OAuth2 client: authorize URL, code exchange, user lookup, token revocation."""

    @staticmethod
    def new_state() -> str:
        """Random value tying the redirect back to the browser session that started the login."""
        return secrets.token_urlsafe(24)

    def build_authorize_url(self, state: str) -> str:
        config = self.core.config
        query = urlencode(
            {
                "client_id": config.discord_client_id,
                "redirect_uri": config.discord_redirect_url,
                "response_type": "code",
                "scope": " ".join(config.discord_scopes),
                "state": state,
                "prompt": "none",
            }
        )
        return f"{DISCORD_AUTHORIZE_URL}?{query}"

    async def exchange_code(self, code: str) -> DiscordTokens:
        """Exchange an authorization code for access and refresh tokens."""
        config = self.core.config
        data = {
            "client_id": config.discord_client_id,
            "client_secret": config.discord_client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": config.discord_redirect_url,
        }
        response = await self._request("POST", "/oauth2/token", data=data)
        if response.status_code in (httpx.codes.BAD_REQUEST, httpx.codes.UNAUTHORIZED):
            # Expired, reused or forged code
            raise AuthenticationError("Discord rejected the authorization code")
        self._ensure_ok(response, "discord_token_exchange_failed")
        return DiscordTokens.model_validate(response.json())

    async def fetch_user(self, access_token: str) -> DiscordUser:
        """Get the Discord account behind an access token."""
        response = await self._request("GET", "/users/@me", headers={"Authorization": f"Bearer {access_token}"})
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthenticationError("Discord access token is invalid")
        self._ensure_ok(response, "discord_user_fetch_failed")
        return DiscordUser.model_validate(response.json())

    async def revoke_token(self, refresh_token: str) -> tuple[bool, str | None]:
        """Revoke a refresh token.

        Returns:
            Tuple of (success: bool, error_message: str | None)
        """
        config = self.core.config
        try:
            response = await self._request(
                "POST",
                "/oauth2/token/revoke",
                data={"token": refresh_token, "token_type_hint": "refresh_token"},
                auth=(config.discord_client_id, config.discord_client_secret),
            )
        except InternalError as e:
            return False, str(e)

        if response.status_code != httpx.codes.OK:
            logger.warning("discord_revoke_failed", status_code=response.status_code)
            return False, f"Discord responded with {response.status_code}"

        logger.debug("discord_token_revoked")
        return True, None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.core.config.discord_api_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("discord_timeout", path=path, error=str(e))
            raise InternalError("Discord API timeout") from e
        except httpx.RequestError as e:
            logger.error("discord_request_error", path=path, error=str(e))
            raise InternalError(f"Discord API request error: {e}") from e

    @staticmethod
    def _ensure_ok(response: httpx.Response, event: str) -> None:
        if response.status_code != httpx.codes.OK:
            logger.error(event, status_code=response.status_code, response_text=response.text[:500])
            raise InternalError(f"Discord API error: {response.status_code}")
