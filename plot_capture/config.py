"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Farm management backend
    backend_api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL for the farm management backend"
    )
    backend_api_token: str = Field(
        default="",
        description="Bearer token sent with every backend request"
    )
    backend_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout in seconds for backend calls"
    )

    # Retry Configuration (read-only calls only)
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of attempts for idempotent backend reads"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=1,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Area validation
    default_tolerance_percent: float = Field(
        default=10.0,
        ge=0,
        description="Allowed difference between drawn and recorded plot area"
    )
    plots_page_size: int = Field(
        default=500,
        description="Number of plots fetched for the map"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=120,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Plot Boundary Capture Service",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )


# Global settings instance
settings = Settings()
