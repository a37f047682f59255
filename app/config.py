"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() == "true"


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "Ferdi Server"
    debug: bool = False
    # Public base URL; icon URLs are built from it
    app_url: str = "http://localhost:3333"

    # Database (postgresql+psycopg for psycopg3; sqlite for local use)
    database_url: str = "sqlite:///./ferdi.sqlite"
    db_connect_timeout: int = 10  # seconds

    # Security
    secret_key: str = ""
    access_token_expire_days: int = 365

    # Feature flags
    is_registration_enabled: bool = True
    connect_with_franz: bool = True  # federation with the upstream API
    import_rollback_on_failure: bool = False

    # Upstream (federation)
    upstream_api_url: str = "https://api.franzinfra.com/v1"
    upstream_timeout: float = 15.0

    # Storage
    recipes_dir: str = "recipes"
    uploads_dir: str = "uploads"
    max_icon_size: int = 2 * 1024 * 1024  # bytes

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.app_url = os.getenv("APP_URL", self.app_url).rstrip("/")

        raw_url = os.getenv("DATABASE_URL", self.database_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.secret_key = os.getenv("SECRET_KEY", "")
        self.access_token_expire_days = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", str(self.access_token_expire_days))
        )

        self.is_registration_enabled = _env_bool("IS_REGISTRATION_ENABLED", True)
        self.connect_with_franz = _env_bool("CONNECT_WITH_FRANZ", True)
        self.import_rollback_on_failure = _env_bool("IMPORT_ROLLBACK_ON_FAILURE", False)

        self.upstream_api_url = os.getenv("UPSTREAM_API_URL", self.upstream_api_url).rstrip("/")
        self.upstream_timeout = float(os.getenv("UPSTREAM_TIMEOUT", str(self.upstream_timeout)))

        self.recipes_dir = os.getenv("RECIPES_DIR", self.recipes_dir)
        self.uploads_dir = os.getenv("UPLOADS_DIR", self.uploads_dir)
        self.max_icon_size = int(os.getenv("MAX_ICON_SIZE", str(self.max_icon_size)))
