from fastapi import APIRouter

from solnews.core.modules.user.models import UserProfileView
from solnews.web.deps import AppDep, AuthTokenDep
from solnews.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the profile of the currently authenticated user with activity counters.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, auth_token: AuthTokenDep) -> UserProfileView:
    return await app.get_current_user(auth_token)
