"""Payloads returned by the Discord OAuth2 and user endpoints."""

from pydantic import BaseModel


class DiscordTokens(BaseModel):
    """Response of POST /oauth2/token for the authorization_code grant."""

    access_token: str
    token_type: str
    expires_in: int
    refresh_token: str
    scope: str


class DiscordUser(BaseModel):
    """Subset of GET /users/@me used to create or refresh a local account."""

    id: str
    username: str
    email: str | None = None
    avatar: str | None = None
