"""News suggestion endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from solnews.core.modules.suggestion.models import SuggestionView
from solnews.core.pagination import PaginationResult
from solnews.web.deps import AppDep, AuthTokenDep
from solnews.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["suggestions"])


class CreateSuggestionRequest(BaseModel):
    """Request to submit a news suggestion."""

    source: str = Field(..., description="Link to the original news, https URL")
    title: str = Field(..., description="Title, 11 to 100 characters")
    content: str = Field(..., description="Short description, 10 to 100 characters")
    image: str = Field(..., description="Image, https URL")


class UpdateSuggestionRequest(BaseModel):
    """Suggestion changes; omitted fields stay unchanged."""

    source: str | None = None
    title: str | None = None
    content: str | None = None
    image: str | None = None


@router.get(
    "/suggestions",
    summary="List news suggestions",
    description="Get paginated news suggestions, newest first.",
    operation_id="listSuggestions",
    responses={200: {"description": "Paginated list of suggestions"}},
)
async def list_suggestions(
    app: AppDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 10,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[SuggestionView]:
    return await app.get_suggestions(limit, offset)


@router.get(
    "/suggestions/{suggestion_id}",
    summary="Get news suggestion",
    operation_id="getSuggestion",
    responses={
        200: {"description": "News suggestion"},
        404: {"model": ErrorResponse, "description": "Suggestion not found"},
    },
)
async def get_suggestion(suggestion_id: UUID, app: AppDep) -> SuggestionView:
    return await app.get_suggestion(suggestion_id)


@router.post(
    "/suggestions",
    summary="Submit news suggestion",
    description="Suggest a news item for writers to cover.",
    operation_id="createSuggestion",
    status_code=201,
    responses={
        201: {"description": "Suggestion created"},
        400: {"model": ErrorResponse, "description": "Invalid suggestion data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "User is banned"},
    },
)
async def create_suggestion(request: CreateSuggestionRequest, app: AppDep, auth_token: AuthTokenDep) -> SuggestionView:
    return await app.create_suggestion(auth_token, request.source, request.title, request.content, request.image)


@router.patch(
    "/suggestions/{suggestion_id}",
    summary="Update news suggestion",
    description="Edit a news suggestion. Moderators and admins only.",
    operation_id="updateSuggestion",
    responses={
        200: {"description": "Suggestion updated"},
        400: {"model": ErrorResponse, "description": "Invalid suggestion data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Moderator or admin privileges required"},
        404: {"model": ErrorResponse, "description": "Suggestion not found"},
    },
)
async def update_suggestion(
    suggestion_id: UUID, request: UpdateSuggestionRequest, app: AppDep, auth_token: AuthTokenDep
) -> SuggestionView:
    return await app.update_suggestion(
        auth_token, suggestion_id, request.source, request.title, request.content, request.image
    )


@router.delete(
    "/suggestions/{suggestion_id}",
    summary="Delete news suggestion",
    description="Delete a suggestion together with the articles based on it. Moderators and admins only.",
    operation_id="deleteSuggestion",
    status_code=204,
    responses={
        204: {"description": "Suggestion deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Moderator or admin privileges required"},
        404: {"model": ErrorResponse, "description": "Suggestion not found"},
    },
)
async def delete_suggestion(suggestion_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_suggestion(auth_token, suggestion_id)
