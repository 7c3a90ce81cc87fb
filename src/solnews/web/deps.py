from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from solnews.app import App
from solnews.config import Config
from solnews.core.modules.session.models import AuthToken
from solnews.errors import AuthenticationError

AUTH_COOKIE = "auth_token"

# Security schemes
bearer_scheme = HTTPBearer(scheme_name="BearerAuth", auto_error=False)
cookie_scheme = APIKeyCookie(name=AUTH_COOKIE, scheme_name="AuthTokenCookie", auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_config(request: Request) -> Config:
    return cast(Config, request.app.state.config)


async def get_optional_auth_token(
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> AuthToken | None:
    """Valid auth token from Authorization Bearer header or cookie, None for anonymous readers."""

    # Check Bearer token first (preferred)
    if credentials and credentials.scheme == "Bearer":
        auth_token = AuthToken(credentials.credentials)
        if await app.is_auth_token_valid(auth_token):
            return auth_token

    # Fallback to cookie
    if token_cookie:
        auth_token = AuthToken(token_cookie)
        if await app.is_auth_token_valid(auth_token):
            return auth_token

    return None


async def get_auth_token(
    auth_token: Annotated[AuthToken | None, Depends(get_optional_auth_token)],
) -> AuthToken:
    """Get and validate auth token, raise AuthenticationError if missing or invalid."""
    if auth_token is None:
        raise AuthenticationError
    return auth_token


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
ConfigDep = Annotated[Config, Depends(get_config)]
AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
OptionalAuthTokenDep = Annotated[AuthToken | None, Depends(get_optional_auth_token)]
