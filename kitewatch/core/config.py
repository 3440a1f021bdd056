"""
Application configuration using pydantic-settings.
All environment variables are validated and typed.
"""

import os
from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator


POLLING_INTERVAL_CHOICES = (15, 30, 60, 120)
DEFAULT_POLLING_INTERVAL = 30


def validate_polling_interval(value: int) -> int:
    """Return ``value`` if it is an allowed polling interval, else raise ValueError."""
    if value not in POLLING_INTERVAL_CHOICES:
        choices = ", ".join(str(c) for c in POLLING_INTERVAL_CHOICES)
        raise ValueError(f"polling_interval must be one of {choices} seconds")
    return value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Buildkite credentials
    buildkite_api_token: str = ""
    buildkite_org: str = ""

    # Polling
    polling_interval: int = DEFAULT_POLLING_INTERVAL
    page_size: int = 10
    manual_fetch_concurrency: int = 4
    request_timeout: float = 10.0

    # Tracked set / diagnostics bounds
    completed_cap: int = 20
    diagnostic_log_size: int = 50

    # Notifications
    notify_completed_only: bool = False
    tg_token: str | None = None
    # Raw value may contain "chat_id:topic_id"
    notify_chat_id: str | None = None

    # Status HTTP server
    http_host: str = "127.0.0.1"
    http_port: int = 8081

    log_level: str = "INFO"

    # Parsed values (set by model_validator)
    _parsed_chat_id: int | None = None
    _parsed_topic_id: int | None = None

    @property
    def notify_chat(self) -> int | None:
        """Get parsed notification chat ID."""
        return self._parsed_chat_id

    @property
    def notify_topic(self) -> int | None:
        """Get parsed notification topic ID."""
        return self._parsed_topic_id

    @property
    def has_credentials(self) -> bool:
        return bool(self.buildkite_api_token and self.buildkite_org)

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.tg_token) and self._parsed_chat_id is not None

    @field_validator("polling_interval")
    @classmethod
    def _check_polling_interval(cls, value: int) -> int:
        return validate_polling_interval(value)

    @field_validator("buildkite_org", mode="before")
    @classmethod
    def _normalize_org(cls, value: str | None) -> str:
        if value is None:
            return ""
        return str(value).strip().strip("/")

    @staticmethod
    def _parse_channel_with_topic(raw: str | None) -> tuple[int | None, int | None]:
        if raw is None or raw == "":
            return None, None

        if ":" in raw:
            parts = raw.split(":")
            try:
                return int(parts[0]), int(parts[1])
            except (ValueError, IndexError):
                return None, None

        try:
            return int(raw), None
        except ValueError:
            return None, None

    @model_validator(mode="after")
    def parse_notify_chat_and_topic(self):
        """Parse NOTIFY_CHAT_ID which may contain 'chat_id:topic_id'."""
        self._parsed_chat_id, self._parsed_topic_id = self._parse_channel_with_topic(self.notify_chat_id)
        return self

    model_config = {
        "env_file": os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton settings instance
settings = Settings()
