"""Settings for the notification sync engine."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# listNotifications rejects pages larger than this.
MAX_PAGE_SIZE = 100


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


def clamp_page_size(size: int) -> int:
    return max(1, min(int(size), MAX_PAGE_SIZE))


class Settings(BaseSettings):
    page_size: int = _env_field(50, "NOTIFSYNC_PAGE_SIZE")
    # Periodic full refresh while the host app is in the foreground (20 minutes).
    refresh_interval_seconds: float = _env_field(1200.0, "NOTIFSYNC_REFRESH_INTERVAL_SECONDS")

    retry_max_attempts: int = _env_field(3, "NOTIFSYNC_RETRY_MAX_ATTEMPTS")
    retry_initial_delay: float = _env_field(1.0, "NOTIFSYNC_RETRY_INITIAL_DELAY")
    retry_backoff_multiplier: float = _env_field(2.0, "NOTIFSYNC_RETRY_BACKOFF_MULTIPLIER")

    service_url: str = _env_field("https://bsky.social", "NOTIFSYNC_SERVICE_URL")
    http_timeout_seconds: float = _env_field(10.0, "NOTIFSYNC_HTTP_TIMEOUT_SECONDS")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("notifsync", "SERVICE_NAME")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")

    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("page_size", mode="before")
    def _clamp_page_size(cls, value):  # type: ignore[override]
        try:
            size = int(value)
        except (TypeError, ValueError):
            return 50
        return clamp_page_size(size)

    @field_validator("retry_max_attempts", mode="before")
    def _min_attempts(cls, value):  # type: ignore[override]
        return max(1, int(value))


settings = Settings()
