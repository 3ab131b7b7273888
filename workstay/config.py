"""Centralized configuration management using Pydantic Settings.

This module provides typed configuration for all application settings,
loaded from environment variables with sensible defaults.

Components never read settings on their own: the composition layer
(``workstay.dependencies`` and ``workstay.lifespan``) builds a ``Settings``
object and hands the relevant section to each service constructor.

Usage:
    from workstay.config import get_settings
    settings = get_settings()
    private_bucket = settings.gcp.private_bucket
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_flag(v):
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes")
    return bool(v)


class MongoSettings(BaseSettings):
    """MongoDB connection configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    uri: str = Field(
        default="mongodb://localhost:27017",
        validation_alias="MONGODB_URI",
        description="MongoDB connection URI",
    )
    database: str = Field(
        default="workstay",
        validation_alias="MONGODB_DATABASE",
        description="Database name",
    )
    server_selection_timeout_ms: int = Field(
        default=5000,
        validation_alias="MONGODB_SERVER_SELECTION_TIMEOUT_MS",
    )
    max_pool_size: int = Field(default=100, validation_alias="MONGODB_MAX_POOL_SIZE")


class RedisSettings(BaseSettings):
    """Redis connection configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    host: str = Field(default="redis", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str = Field(default="", description="Redis password")
    max_connections: int = Field(default=50, description="Maximum pool connections")
    pool_timeout_sec: float = Field(default=5.0, description="Pool timeout in seconds")
    socket_timeout: float = Field(default=5.0, description="Socket timeout in seconds")


class GCPSettings(BaseSettings):
    """Google Cloud Storage and Vision configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    project_id: str = Field(default="", validation_alias="GCP_PROJECT_ID")
    public_bucket: str = Field(
        default="workstay-public",
        validation_alias="GCP_STORAGE_PUBLIC_BUCKET",
    )
    private_bucket: str = Field(
        default="workstay-private",
        validation_alias="GCP_STORAGE_PRIVATE_BUCKET",
    )


class ImageModerationSettings(BaseSettings):
    """Image moderation thresholds.

    Each ``reject_*`` value is a likelihood label (``"LIKELY"``,
    ``"VERY_LIKELY"`` ...). A classification at or above the label rejects the
    image. An empty value disables rejection on that category.
    """

    model_config = SettingsConfigDict(env_prefix="IMAGE_", extra="ignore", populate_by_name=True)

    reject_adult: str = Field(default="LIKELY")
    reject_spoof: str = Field(default="LIKELY")
    reject_medical: str = Field(default="LIKELY")
    reject_violence: str = Field(default="LIKELY")
    reject_racy: str = Field(default="LIKELY")
    imagekit_endpoint: str = Field(default="", validation_alias="IMAGEKIT_URL_ENDPOINT")

    @field_validator(
        "reject_adult", "reject_spoof", "reject_medical", "reject_violence", "reject_racy",
        mode="before",
    )
    @classmethod
    def normalize_label(cls, v):
        if v is None:
            return ""
        return str(v).strip().upper()

    @field_validator("imagekit_endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def thresholds(self) -> dict[str, str]:
        """Threshold label per moderation category."""
        return {
            "adult": self.reject_adult,
            "spoof": self.reject_spoof,
            "medical": self.reject_medical,
            "violence": self.reject_violence,
            "racy": self.reject_racy,
        }


class AuthSettings(BaseSettings):
    """JWT verification configuration."""

    model_config = SettingsConfigDict(env_prefix="JWT_", extra="ignore")

    secret: str = Field(default="change-me", description="HMAC signing secret")
    algorithm: str = Field(default="HS256", description="Signing algorithm")


class NotificationSettings(BaseSettings):
    """Outbound notification queue configuration."""

    model_config = SettingsConfigDict(env_prefix="NOTIFICATION_", extra="ignore")

    queue_key: str = Field(default="workstay:notifications", description="Redis list holding queued messages")
    dead_letter_key: str = Field(default="workstay:notifications:dead", description="Redis list for exhausted messages")
    max_attempts: int = Field(default=5, description="Delivery attempts before dead-lettering")
    workers: int = Field(default=2, description="Number of queue consumers")
    poll_timeout_sec: int = Field(default=5, description="Blocking pop timeout")


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into list."""
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        """Credentials not allowed with wildcard origins."""
        return self.origins != ["*"]


class DebugSettings(BaseSettings):
    """Debug flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_flag(v)


class FeatureSettings(BaseSettings):
    """Feature flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    notification_worker: bool = Field(default=True, alias="enable_notification_worker")
    vision: bool = Field(default=True, alias="enable_vision")
    ensure_indexes: bool = Field(default=True, alias="enable_ensure_indexes")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_flag(v)


class Settings:
    """Main application settings combining all configuration sections.

    This is not a BaseSettings subclass to avoid env var conflicts.
    Each subsetting is loaded independently with its own prefix.
    """

    def __init__(self) -> None:
        self.mongo = MongoSettings()
        self.redis = RedisSettings()
        self.gcp = GCPSettings()
        self.image = ImageModerationSettings()
        self.auth = AuthSettings()
        self.notifications = NotificationSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()
        self.features = FeatureSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing)."""
    get_settings.cache_clear()
