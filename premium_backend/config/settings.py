"""
Application settings configuration for the premium gift backend.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


DEFAULT_DEVELOPER_ID = "1362553254117904496"

STORAGE_BACKENDS = ("memory", "file", "sql")


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        SB_DEVELOPER_ID: Discord id of the single privileged developer
        SB_ADMIN_IDS: Optional comma-separated admin ids; replaces the single-developer policy
        SB_STORAGE_BACKEND: Document store backend: memory, file or sql (default: file)
        SB_DATA_DIR: Directory holding the JSON documents for the file backend
        SB_DB_URL: SQLAlchemy URL for the sql backend
        SB_NOTIFICATION_RETENTION: Max notifications kept in the feed (default: 500)
        SB_REPEAT_INTERVAL_MINUTES: Idle interval before a persistent announcement repeats (default: 15)
        SB_COMPANION_BOT_URL: Base URL of the companion Discord bot (default: "" = disabled)
        SB_COMPANION_BOT_TOKEN: Bearer token sent to the companion bot
        SB_WEBHOOK_URL: Discord webhook URL for broadcast messages (default: "" = disabled)
        SB_DELIVERY_TIMEOUT: Outbound request timeout in seconds (default: 5)
        SB_RATE_LIMIT_ENABLED: Enable slowapi rate limits on claim/transfer (default: True)
        SB_CORS_ORIGINS: Comma-separated allowed CORS origins
    """

    developer_id: str = Field(
        default=DEFAULT_DEVELOPER_ID,
        validation_alias="SB_DEVELOPER_ID",
        description="Identifier allowed to perform admin operations",
    )

    admin_ids: str = Field(
        default="",
        validation_alias="SB_ADMIN_IDS",
        description="Comma-separated admin ids (empty = only SB_DEVELOPER_ID)",
    )

    storage_backend: str = Field(
        default="file",
        validation_alias="SB_STORAGE_BACKEND",
    )

    data_dir: str = Field(
        default="data",
        validation_alias="SB_DATA_DIR",
        description="Directory for gifts.json, notifications.json, site_wide_gift.json, ...",
    )

    database_url: str = Field(
        default="sqlite:///./premium_backend.db",
        validation_alias="SB_DB_URL",
    )

    notification_retention: int = Field(
        default=500,
        validation_alias="SB_NOTIFICATION_RETENTION",
        ge=1,
        le=10000,
    )

    repeat_interval_minutes: int = Field(
        default=15,
        validation_alias="SB_REPEAT_INTERVAL_MINUTES",
        ge=1,
    )

    # Outbound delivery (fire-and-forget)
    companion_bot_url: str = Field(
        default="",
        validation_alias="SB_COMPANION_BOT_URL",
    )

    companion_bot_token: str = Field(
        default="",
        validation_alias="SB_COMPANION_BOT_TOKEN",
    )

    webhook_url: str = Field(
        default="",
        validation_alias="SB_WEBHOOK_URL",
    )

    delivery_timeout: float = Field(
        default=5.0,
        validation_alias="SB_DELIVERY_TIMEOUT",
        gt=0,
    )

    rate_limit_enabled: bool = Field(
        default=True,
        validation_alias="SB_RATE_LIMIT_ENABLED",
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="SB_CORS_ORIGINS",
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Normalize and validate the storage backend name."""
        v = v.strip().lower()
        if v not in STORAGE_BACKENDS:
            raise ValueError(
                f"SB_STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}"
            )
        return v

    @field_validator("developer_id")
    @classmethod
    def validate_developer_id(cls, v: str) -> str:
        """Reject an empty developer id, which would lock out every admin call."""
        v = v.strip()
        if not v:
            raise ValueError("SB_DEVELOPER_ID must not be empty")
        return v

    @property
    def admin_ids_list(self) -> List[str]:
        """Configured admin ids as a list (empty when unset)."""
        return [a.strip() for a in self.admin_ids.split(",") if a.strip()]

    @property
    def companion_bot_configured(self) -> bool:
        """Check if the companion bot endpoint is configured."""
        return bool(self.companion_bot_url)

    @property
    def webhook_configured(self) -> bool:
        """Check if the Discord webhook is configured."""
        return bool(self.webhook_url)

    @property
    def cors_origins_list(self) -> List[str]:
        """Allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings.

    Returns:
        AppSettings instance (cached after first call)
    """
    return AppSettings()
