from solnews.web.routers.articles import router as articles_router
from solnews.web.routers.auth import router as auth_router
from solnews.web.routers.comments import router as comments_router
from solnews.web.routers.home import router as home_router
from solnews.web.routers.profile import router as profile_router
from solnews.web.routers.suggestions import router as suggestions_router
from solnews.web.routers.users import router as users_router

__all__ = [
    "articles_router",
    "auth_router",
    "comments_router",
    "home_router",
    "profile_router",
    "suggestions_router",
    "users_router",
]
