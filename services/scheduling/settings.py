"""
Settings and configuration for the Scheduling Service.
"""

from services.common.settings import (
    AliasChoices,
    BaseSettings,
    Field,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    office_service_url: str = Field(
        default=...,
        description="URL for the office service that serves calendar data",
        validation_alias=AliasChoices("OFFICE_SERVICE_URL"),
    )

    api_scheduling_office_key: str = Field(
        default=...,  # required
        description="API key for scheduling service to access office service",
        validation_alias=AliasChoices("API_SCHEDULING_OFFICE_KEY"),
    )

    api_frontend_scheduling_key: str = Field(
        default=...,  # required
        description="Frontend API key to access scheduling service",
        validation_alias=AliasChoices("API_FRONTEND_SCHEDULING_KEY"),
    )

    provider_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single calendar data request",
        validation_alias=AliasChoices("PROVIDER_TIMEOUT_SECONDS"),
    )

    max_concurrent_fetches: int = Field(
        default=5,
        description="Maximum concurrent calendar/participant fetches per request",
        validation_alias=AliasChoices("MAX_CONCURRENT_FETCHES"),
    )

    slot_step_minutes: int = Field(
        default=15,
        description="Step between candidate availability slots (capped at the duration)",
        validation_alias=AliasChoices("SLOT_STEP_MINUTES"),
    )

    suggestion_gap_minutes: int = Field(
        default=5,
        description="Gap kept between a suggested time and the conflict it avoids",
        validation_alias=AliasChoices("SUGGESTION_GAP_MINUTES"),
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias=AliasChoices("LOG_LEVEL"),
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
        validation_alias=AliasChoices("LOG_FORMAT"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
