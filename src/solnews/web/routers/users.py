from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from solnews.core.modules.user.models import UserProfileView, UserRole, UserView
from solnews.web.deps import AppDep, AuthTokenDep
from solnews.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


class UpdateProfileRequest(BaseModel):
    """Profile changes; omitted fields stay unchanged."""

    username: str | None = Field(None, description="Display name, at most 20 characters without whitespace")
    biography: str | None = Field(None, description="Biography, at most 150 characters")


class SetRoleRequest(BaseModel):
    """Request to change a user's role."""

    role: UserRole = Field(..., description="New role")


@router.get(
    "/users",
    summary="List all users",
    description="Get all users, oldest account first.",
    operation_id="listUsers",
    responses={200: {"description": "List of all users"}},
)
async def list_users(app: AppDep) -> list[UserView]:
    return await app.get_all_users()


@router.get(
    "/users/{user_id}",
    summary="Get user profile",
    description="Get a user with counters of their articles, suggestions, comments and likes.",
    operation_id="getUser",
    responses={
        200: {"description": "User profile"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def get_user(user_id: UUID, app: AppDep) -> UserProfileView:
    return await app.get_user_profile(user_id)


@router.patch(
    "/users/{user_id}",
    summary="Update profile",
    description="Change display name and biography. Only the account owner can do this.",
    operation_id="updateUser",
    responses={
        200: {"description": "Profile updated"},
        400: {"model": ErrorResponse, "description": "Invalid display name or biography"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not your account"},
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Display name already taken"},
    },
)
async def update_user(user_id: UUID, request: UpdateProfileRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.update_profile(auth_token, user_id, request.username, request.biography)


@router.delete(
    "/users/{user_id}",
    summary="Delete user",
    description=(
        "Delete an account together with its suggestions, articles, comments, likes and sessions. "
        "Allowed for the account owner and admins."
    ),
    operation_id="deleteUser",
    responses={
        204: {"description": "User deleted successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not allowed to delete this user"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    status_code=204,
)
async def delete_user(user_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_user(auth_token, user_id)


@router.post(
    "/users/{user_id}/ban",
    summary="Ban user",
    description="Ban a user. A banned user keeps read access but cannot change anything. Admin only.",
    operation_id="banUser",
    responses={
        200: {"description": "User banned"},
        400: {"model": ErrorResponse, "description": "Cannot ban yourself"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def ban_user(user_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.ban_user(auth_token, user_id)


@router.put(
    "/users/{user_id}/role",
    summary="Change user role",
    description="Assign a role. Assigning any role but banned lifts a ban. Admin only.",
    operation_id="setUserRole",
    responses={
        200: {"description": "Role changed"},
        400: {"model": ErrorResponse, "description": "Cannot change your own role"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def set_user_role(user_id: UUID, request: SetRoleRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.set_user_role(auth_token, user_id, request.role)
