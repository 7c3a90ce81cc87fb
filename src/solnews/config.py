from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # MongoDB replica set URL, transactions are required
    host: str
    port: int
    debug: bool
    session_secret_key: str
    cors_origins: list[str] = []
    frontend_url: str | None = None  # Browser is sent here after Discord login, e.g. https://solnews.app
    discord_client_id: str
    discord_client_secret: str
    discord_redirect_url: str  # Must match the redirect URI registered in the Discord application
    discord_api_url: str = "https://discord.com/api/v10"
    discord_scopes: list[str] = ["identify", "email"]
    admin_discord_ids: list[str] = []  # Discord accounts that become admin on first login

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SOLNEWS_",
        "extra": "ignore",
    }
