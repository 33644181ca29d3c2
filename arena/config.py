"""Application configuration using Pydantic Settings."""

from datetime import datetime, tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Matchmaking window (local wall-clock hours, close is exclusive)
    window_open_hour: int = 21
    window_close_hour: int = 24
    timezone: Optional[str] = None  # IANA name, host local zone when unset

    # Pairing
    match_timeout_secs: float = 60.0
    pair_retry_limit: int = 3

    # Storage (empty => in-memory store)
    database_url: str = ""

    # Notifications
    notification_inbox_limit: int = 100

    # Admin
    admin_username: str = "admin"
    # bcrypt hash for "admin123" - override with ADMIN_PASSWORD_HASH
    admin_password_hash: str = "$2b$12$RZI94bkNCR6WZg6oF69WG.k8Wtp5C7E6amTtk6YOK3x1jrZtLGidu"
    jwt_secret: str = "change-this-secret-in-production"
    jwt_expiration_hours: int = 24

    # Application
    app_env: str = "dev"
    app_version: str = "1"
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def tz(self) -> Optional[tzinfo]:
        """Configured zone, or None for the host's local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None

    def now(self) -> datetime:
        """Current local time as an aware datetime."""
        tz = self.tz
        if tz is None:
            return datetime.now().astimezone()
        return datetime.now(tz)


# Global settings instance
settings = Settings()
