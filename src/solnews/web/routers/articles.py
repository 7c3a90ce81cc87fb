"""Article endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from solnews.core.modules.article.models import ArticleDetail, ArticleSummary, ArticleView
from solnews.core.pagination import PaginationResult
from solnews.web.deps import AppDep, AuthTokenDep, OptionalAuthTokenDep
from solnews.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["articles"])


class CreateArticleRequest(BaseModel):
    """Request to publish an article."""

    title: str = Field(..., description="Title, 11 to 100 characters")
    content: str = Field(..., description="Article text, 1500 to 2500 characters")
    image: str = Field(..., description="Cover image, https URL")
    references: str | list[str] = Field(..., description="Sources, a list or a comma-separated string")
    suggestion_id: UUID | None = Field(None, description="News suggestion the article is based on")


class UpdateArticleRequest(BaseModel):
    """Article changes; omitted fields stay unchanged."""

    title: str | None = None
    content: str | None = None
    image: str | None = None
    references: str | list[str] | None = None


@router.get(
    "/articles",
    summary="List articles",
    description="Get paginated articles, newest first.",
    operation_id="listArticles",
    responses={200: {"description": "Paginated list of articles"}},
)
async def list_articles(
    app: AppDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 10,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[ArticleView]:
    return await app.get_articles(limit, offset)


@router.get(
    "/articles/summaries",
    summary="List article summaries",
    description="Get paginated article summaries with comment counts, newest first.",
    operation_id="listArticleSummaries",
    responses={200: {"description": "Paginated list of article summaries"}},
)
async def list_article_summaries(
    app: AppDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 10,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[ArticleSummary]:
    return await app.get_article_summaries(limit, offset)


@router.post(
    "/articles",
    summary="Create article",
    description="Publish an article, optionally based on a news suggestion. Writers, moderators and admins only.",
    operation_id="createArticle",
    status_code=201,
    responses={
        201: {"description": "Article created"},
        400: {"model": ErrorResponse, "description": "Invalid article data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Role not allowed to publish"},
        404: {"model": ErrorResponse, "description": "Suggestion not found"},
    },
)
async def create_article(request: CreateArticleRequest, app: AppDep, auth_token: AuthTokenDep) -> ArticleView:
    return await app.create_article(
        auth_token, request.title, request.content, request.image, request.references, request.suggestion_id
    )


@router.get(
    "/articles/{article_id}",
    summary="Get article",
    description="Get an article with its comment threads. Comments liked by the requesting user are marked.",
    operation_id="getArticle",
    responses={
        200: {"description": "Article with comments"},
        404: {"model": ErrorResponse, "description": "Article not found"},
    },
)
async def get_article(article_id: UUID, app: AppDep, auth_token: OptionalAuthTokenDep) -> ArticleDetail:
    return await app.get_article(auth_token, article_id)


@router.patch(
    "/articles/{article_id}",
    summary="Update article",
    description="Edit an article. Moderators and admins only.",
    operation_id="updateArticle",
    responses={
        200: {"description": "Article updated"},
        400: {"model": ErrorResponse, "description": "Invalid article data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Moderator or admin privileges required"},
        404: {"model": ErrorResponse, "description": "Article not found"},
    },
)
async def update_article(
    article_id: UUID, request: UpdateArticleRequest, app: AppDep, auth_token: AuthTokenDep
) -> ArticleView:
    return await app.update_article(
        auth_token, article_id, request.title, request.content, request.image, request.references
    )


@router.delete(
    "/articles/{article_id}",
    summary="Delete article",
    description="Delete an article with all its comments and likes. Moderators and admins only.",
    operation_id="deleteArticle",
    status_code=204,
    responses={
        204: {"description": "Article deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Moderator or admin privileges required"},
        404: {"model": ErrorResponse, "description": "Article not found"},
    },
)
async def delete_article(article_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_article(auth_token, article_id)
