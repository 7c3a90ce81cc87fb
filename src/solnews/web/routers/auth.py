from typing import Annotated

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from solnews.errors import AuthenticationError
from solnews.web.deps import AUTH_COOKIE, AppDep, AuthTokenDep, ConfigDep
from solnews.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])

OAUTH_STATE_KEY = "discord_oauth_state"
SESSION_MAX_AGE = 30 * 24 * 60 * 60  # 30 days to match session TTL


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Authentication token for subsequent requests")


@router.get(
    "/auth/discord/login",
    summary="Start Discord login",
    description="Redirect to the Discord authorization page.",
    operation_id="discordLogin",
    status_code=307,
    responses={307: {"description": "Redirect to Discord"}},
)
async def discord_login(request: Request, app: AppDep) -> RedirectResponse:
    url, state = app.discord_login_url()
    request.session[OAUTH_STATE_KEY] = state
    return RedirectResponse(url)


@router.get(
    "/auth/discord/redirect",
    summary="Finish Discord login",
    description=(
        "Discord sends the browser here after authorization. Creates the account on first login "
        "and a session; redirects to the frontend when one is configured."
    ),
    operation_id="discordRedirect",
    responses={
        200: {"description": "Successfully authenticated"},
        307: {"description": "Successfully authenticated, redirect to the frontend"},
        401: {"model": ErrorResponse, "description": "Invalid state or authorization code"},
    },
    response_model=LoginResponse,
)
async def discord_redirect(
    request: Request,
    app: AppDep,
    config: ConfigDep,
    response: Response,
    code: Annotated[str, Query(min_length=1, description="Authorization code from Discord")],
    state: Annotated[str, Query(min_length=1, description="State issued by the login endpoint")],
) -> Response | LoginResponse:
    expected_state = request.session.pop(OAUTH_STATE_KEY, None)
    if expected_state is None or expected_state != state:
        raise AuthenticationError("Invalid OAuth state")

    token = await app.discord_login(code)

    if config.frontend_url:
        redirect = RedirectResponse(config.frontend_url)
        _set_auth_cookie(redirect, token, secure=not config.debug)
        return redirect

    _set_auth_cookie(response, token, secure=not config.debug)
    return LoginResponse(token=token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Revoke the Discord grant and invalidate the current authentication session.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    await app.logout(auth_token)
    response.delete_cookie(AUTH_COOKIE)


def _set_auth_cookie(response: Response, token: str, secure: bool) -> None:
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=secure,
        max_age=SESSION_MAX_AGE,
    )
