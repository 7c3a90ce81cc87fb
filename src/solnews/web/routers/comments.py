"""Comment-related API endpoints."""

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from solnews.core.modules.comment.models import CommentNode, LikeToggleResult
from solnews.web.deps import AppDep, AuthTokenDep, OptionalAuthTokenDep
from solnews.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["comments"])


class CreateCommentRequest(BaseModel):
    """Request to create a new comment."""

    body: str = Field(..., description="The comment text, 1 to 1000 characters")
    parent_id: UUID | None = Field(None, description="Comment to reply to, must belong to the same article")


class EditCommentRequest(BaseModel):
    """Request to change the text of a comment."""

    body: str = Field(..., description="The new comment text")


@router.get(
    "/articles/{article_id}/comments",
    summary="List article comments",
    description="Get comment threads of an article, newest first. Comments liked by the requesting user are marked.",
    operation_id="listComments",
    responses={
        200: {"description": "Comment threads"},
        404: {"model": ErrorResponse, "description": "Article not found"},
    },
)
async def list_comments(article_id: UUID, app: AppDep, auth_token: OptionalAuthTokenDep) -> list[CommentNode]:
    return await app.get_article_comments(auth_token, article_id)


@router.post(
    "/articles/{article_id}/comments",
    summary="Create comment",
    description="Comment on an article or reply to one of its comments.",
    operation_id="createComment",
    status_code=201,
    responses={
        201: {"description": "Comment created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid comment text"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "User is banned"},
        404: {"model": ErrorResponse, "description": "Article or parent comment not found"},
    },
)
async def create_comment(
    article_id: UUID, request: CreateCommentRequest, app: AppDep, auth_token: AuthTokenDep
) -> CommentNode:
    return await app.create_comment(auth_token, article_id, request.body, request.parent_id)


@router.patch(
    "/articles/{article_id}/comments/{comment_id}",
    summary="Edit comment",
    description="Change the text of a comment. Only its author can do this.",
    operation_id="editComment",
    responses={
        200: {"description": "Comment updated"},
        400: {"model": ErrorResponse, "description": "Invalid comment text"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def edit_comment(
    article_id: UUID, comment_id: UUID, request: EditCommentRequest, app: AppDep, auth_token: AuthTokenDep
) -> CommentNode:
    return await app.edit_comment(auth_token, article_id, comment_id, request.body)


@router.delete(
    "/articles/{article_id}/comments/{comment_id}",
    summary="Delete comment",
    description="Delete a comment with all replies below it. Allowed for the author, moderators and admins.",
    operation_id="deleteComment",
    status_code=204,
    responses={
        204: {"description": "Comment deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not allowed to delete this comment"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def delete_comment(article_id: UUID, comment_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_comment(auth_token, article_id, comment_id)


@router.post(
    "/articles/{article_id}/comments/{comment_id}/like",
    summary="Toggle like",
    description="Like the comment, or remove the like if the user already liked it.",
    operation_id="toggleCommentLike",
    responses={
        200: {"description": "Like state after the toggle"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "User is banned"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
        409: {"model": ErrorResponse, "description": "Concurrent toggle, retry"},
    },
)
async def toggle_like(article_id: UUID, comment_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> LikeToggleResult:
    return LikeToggleResult(liked=await app.toggle_like(auth_token, article_id, comment_id))
