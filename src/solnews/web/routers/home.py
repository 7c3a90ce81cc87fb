from fastapi import APIRouter
from pydantic import BaseModel, Field

from solnews.core.modules.article.models import ArticleSummary
from solnews.core.modules.suggestion.models import SuggestionView
from solnews.web.deps import AppDep

router = APIRouter(tags=["home"])


class HomeResponse(BaseModel):
    """Content of the landing page."""

    articles: list[ArticleSummary] = Field(..., description="Latest article summaries")
    suggestions: list[SuggestionView] = Field(..., description="Latest news suggestions")


@router.get(
    "/home",
    summary="Home page content",
    description="Latest article summaries and latest news suggestions.",
    operation_id="getHome",
    responses={200: {"description": "Home page content"}},
)
async def get_home(app: AppDep) -> HomeResponse:
    articles, suggestions = await app.get_home_content()
    return HomeResponse(articles=articles, suggestions=suggestions)
