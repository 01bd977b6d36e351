"""
Application configuration from environment variables.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, PositiveInt
from typing import List


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Application
    app_name: str = "Analytics Dashboard API"
    environment: str = "production"
    log_level: str = "INFO"
    allowed_origins: List[str] = ["http://localhost:3000", "http://localhost"]

    # Reporting timezone used for start/end of day boundaries
    timezone: str = "UTC"

    # Date range defaults
    default_period: str = Field(
        "last_30_days",
        description="Preset selected when a view does not specify a period"
    )
    default_comparison: str = Field(
        "previous_period",
        description="Comparison kind used when comparison is switched on (previous_period, previous_year)"
    )

    # Export settings
    export_default_filename: str = Field(
        "export",
        description="Base filename used when an export request omits one"
    )
    export_quote_record_cells: bool = Field(
        False,
        description="Quote cells of single-record CSV exports like table rows (changes legacy output)"
    )

    # Analytics data source
    analytics_api_url: str = Field(
        "http://localhost:5000",
        description="Base URL of the analytics data endpoints"
    )
    analytics_request_timeout_seconds: PositiveInt = Field(
        30,
        description="Timeout for analytics data requests in seconds"
    )


# Global settings instance
settings = Settings()
