from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

# Endpoints that work without a session; reads accept one to mark the viewer's likes
PUBLIC_ENDPOINTS = {
    ("GET", "/api/v1/auth/discord/login"),
    ("GET", "/api/v1/auth/discord/redirect"),
    ("GET", "/api/v1/home"),
    ("GET", "/api/v1/users"),
    ("GET", "/api/v1/users/{user_id}"),
    ("GET", "/api/v1/articles"),
    ("GET", "/api/v1/articles/summaries"),
    ("GET", "/api/v1/articles/{article_id}"),
    ("GET", "/api/v1/articles/{article_id}/comments"),
    ("GET", "/api/v1/suggestions"),
    ("GET", "/api/v1/suggestions/{suggestion_id}"),
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="SolNews API",
            version="0.1.0",
            summary="News articles, reader suggestions and threaded discussions",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Bearer token authentication (preferred)",
            },
            "AuthTokenCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "auth_token",
                "description": "Authentication token stored in cookie",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [
            {"BearerAuth": []},
            {"AuthTokenCookie": []},
        ]

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PUBLIC_ENDPOINTS:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Authentication failed", "type": "authentication_error"},
                {"message": "Article not found", "type": "not_found"},
                {"message": "Not allowed to delete this comment", "type": "access_denied"},
                {"message": "Username 'sol' already taken", "type": "conflict"},
            ]
        }
    }
