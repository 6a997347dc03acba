"""Application configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application settings
    app_name: str = Field(default="receiptsheet", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (text or json)")

    # Google Sheets configuration
    google_sheet_id: str = Field(
        default="",
        description="Spreadsheet ID rows are appended to",
    )
    google_sheet_name: str = Field(
        default="Sheet1",
        description="Worksheet (tab) name inside the spreadsheet",
    )
    google_access_token: str = Field(
        default="",
        description="OAuth2 access token used by the CLI (the API takes it per request)",
    )

    # Google API endpoints
    vision_api_url: str = Field(
        default="https://vision.googleapis.com/v1/images:annotate",
        description="Cloud Vision annotate endpoint",
    )
    sheets_api_base_url: str = Field(
        default="https://sheets.googleapis.com/v4/spreadsheets",
        description="Sheets API spreadsheets base URL",
    )
    http_timeout: float = Field(
        default=30.0,
        description="Timeout for Google API calls in seconds",
    )

    # API settings
    api_prefix: str = Field(default="/api", description="API route prefix")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins",
    )
    max_upload_size: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum receipt image upload size in bytes",
    )

    model_config = SettingsConfigDict(
        env_file=[".env.example", ".env.local"],  # Local overrides example
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
