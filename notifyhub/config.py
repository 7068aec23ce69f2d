"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./notifyhub.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone (or UTC+HH:MM offset) used for stored datetimes and quiet hours",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending email notifications via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of email notifications",
        min_length=3,
    )
    twilio_account_sid: str | None = Field(default=None, description="Twilio account SID")
    twilio_auth_token: str | None = Field(default=None, description="Twilio auth token")
    twilio_from_number: str | None = Field(
        default=None, description="Phone number SMS notifications are sent from"
    )
    twilio_api_base_url: str = Field(default="https://api.twilio.com/2010-04-01")
    fcm_server_key: str | None = Field(
        default=None, description="Server key used to authenticate against FCM"
    )
    fcm_endpoint: str = Field(default="https://fcm.googleapis.com/fcm/send")
    user_directory_url: str | None = Field(
        default=None, description="Base URL of the service exposing user contact data"
    )
    user_directory_token: str | None = Field(default=None)

    driver_timeout_seconds: float = Field(default=10.0, gt=0)
    sweep_timeout_seconds: float = Field(default=120.0, gt=0)

    user_rate_limit_max: int = Field(default=10, gt=0)
    user_rate_limit_window_minutes: int = Field(default=60, gt=0)

    delivery_max_retries: int = Field(default=3, ge=1)
    retry_base_delay_minutes: int = Field(default=5, gt=0)
    stale_processing_minutes: int = Field(default=10, gt=0)
    send_pending_limit: int = Field(default=100, gt=0)
    retry_failed_limit: int = Field(default=100, gt=0)
    cleanup_retention_days: int = Field(default=30, gt=0)

    campaign_batch_size: int = Field(default=1000, gt=0)
    campaign_batch_delay_seconds: int = Field(default=5, ge=0)

    celery_broker_url: str = Field(default="redis://localhost:6379/0")
    celery_result_backend: str | None = Field(default=None)
    unsent_sweep_seconds: float = Field(default=30.0, gt=0)
    retry_sweep_seconds: float = Field(default=60.0, gt=0)
    campaign_sweep_seconds: float = Field(default=5.0, gt=0)

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
