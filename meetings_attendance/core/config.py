# meetings_attendance/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file)
    at runtime and cover:
    - DB connection
    - Microsoft Teams (Graph) and Zoom client credentials
    - Operator API key protecting the attendance endpoints
    - Outbound HTTP timeout
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Meetings Attendance"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the service.")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./meetings_attendance.db",
        description="SQLAlchemy-compatible database URL",
    )
    AUTO_CREATE_SCHEMA: bool = Field(
        default=True,
        description="Create missing tables on application startup.",
    )

    OPERATOR_API_KEY: str | None = Field(
        default=None,
        description="API key required for sync / assignment / completion endpoints",
    )

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=15.0,
        description="Timeout applied to every outbound call to Graph or Zoom.",
    )

    # --- Microsoft Teams (Graph, client-credentials flow) ---
    TEAMS_TENANT_ID: str | None = None
    TEAMS_CLIENT_ID: str | None = None
    TEAMS_CLIENT_SECRET: str | None = None

    # --- Zoom (server-to-server OAuth, account credentials) ---
    ZOOM_CLIENT_ID: str | None = None
    ZOOM_CLIENT_SECRET: str | None = None
    ZOOM_ACCOUNT_ID: str | None = None


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Settings are read and validated once per process; FastAPI routes pull
    them through `Depends(get_settings)` so tests can override them.
    """
    return Settings()
