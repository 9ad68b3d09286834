"""Client configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Notification client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    server_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the portal backend hosting the realtime broker and REST API",
        min_length=1,
    )
    socketio_path: str = Field(
        default="socket.io",
        description="Path where the Socket.IO endpoint is mounted",
    )
    notifications_path: str = Field(
        default="/api/notifications",
        description="Path of the notification REST endpoints",
    )
    auth_cookie_name: str = Field(
        default="token",
        description="Name of the session cookie holding the bearer credential",
        min_length=1,
    )
    connect_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the realtime handshake",
        gt=0,
    )
    request_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for REST responses",
        gt=0,
    )
    retry_initial_delay: float = Field(
        default=5.0,
        description="Seconds before the first reconnection retry",
        gt=0,
    )
    retry_multiplier: float = Field(
        default=2.0,
        description="Backoff factor applied after every failed reconnection attempt",
        ge=1,
    )
    retry_max_delay: float = Field(
        default=60.0,
        description="Upper bound for the delay between reconnection attempts",
        gt=0,
    )
    retry_max_attempts: int = Field(
        default=8,
        description="Failed reconnection attempts tolerated before giving up",
        gt=0,
    )
    page_size: int = Field(
        default=10,
        description="Number of notifications requested per page",
        gt=0,
    )
    alert_duration_seconds: float = Field(
        default=5.0,
        description="Lifetime of the transient alert shown for realtime notifications",
        gt=0,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone or UTC offset used to display timestamps",
    )

    @model_validator(mode="after")
    def _validate_retry_window(self) -> "Settings":
        if self.retry_max_delay < self.retry_initial_delay:
            raise ValueError(
                "RETRY_MAX_DELAY must be greater than or equal to RETRY_INITIAL_DELAY"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
