"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math
from urllib.parse import urlparse

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

FALLBACK_APP_BASE_URL = "https://pennywise.example.com"
OPEN_PIXEL_PATH = "/api/track/open"
CLICK_REDIRECT_PATH = "/api/track/click"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Pennywise"
    debug: bool = False
    log_level: str = "INFO"
    app_base_url: str = FALLBACK_APP_BASE_URL

    # Email tracking endpoints; default to the API under app_base_url
    open_pixel_url: str = ""
    click_redirect_url: str = ""

    # Database
    database_url: str = "sqlite:///./data/pennywise.db"

    # Auth
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15

    # Notifications
    notification_window_hours: float = 24
    sweep_interval_hours: float = 6
    timezone: str = "Asia/Taipei"

    # Email (SMTP); email is disabled when smtp_host is empty
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from_email: str = "Pennywise <notifications@pennywise.example.com>"
    smtp_timeout_seconds: float = 10

    # Push (Firebase Cloud Messaging); push is disabled without credentials
    firebase_credentials_path: str = ""
    firebase_http_timeout_seconds: float = 10

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        """Fail closed if SECRET_KEY is weak or placeholder quality."""
        if not value:
            raise ValueError("SECRET_KEY must be set.")

        if len(value) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered:
            raise ValueError("SECRET_KEY must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("SECRET_KEY entropy is too low; use a cryptographically random value.")

        return value

    @field_validator("app_base_url")
    @classmethod
    def normalize_base_url(cls, value: str) -> str:
        """Require an absolute http(s) URL and strip the trailing slash."""
        trimmed = (value or "").strip()
        if not trimmed:
            return FALLBACK_APP_BASE_URL

        parsed = urlparse(trimmed)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("APP_BASE_URL must be an absolute http(s) URL.")
        return trimmed.rstrip("/")

    @field_validator("open_pixel_url", "click_redirect_url")
    @classmethod
    def normalize_tracking_url(cls, value: str) -> str:
        trimmed = (value or "").strip()
        if not trimmed:
            return ""

        parsed = urlparse(trimmed)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Tracking URLs must be absolute http(s) URLs.")
        return trimmed

    @model_validator(mode="after")
    def validate_notification_window(self) -> "Settings":
        """Overdue reminders re-emit on every sweep, so the dedup window must cover the interval."""
        if self.notification_window_hours <= 0:
            raise ValueError("NOTIFICATION_WINDOW_HOURS must be positive.")
        if self.notification_window_hours < self.sweep_interval_hours:
            raise ValueError(
                "NOTIFICATION_WINDOW_HOURS must be at least SWEEP_INTERVAL_HOURS; "
                "otherwise overdue reminders are re-sent on every sweep."
            )
        return self

    @property
    def open_pixel_endpoint(self) -> str:
        return self.open_pixel_url or f"{self.app_base_url}{OPEN_PIXEL_PATH}"

    @property
    def click_redirect_endpoint(self) -> str:
        return self.click_redirect_url or f"{self.app_base_url}{CLICK_REDIRECT_PATH}"

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)

    @property
    def push_enabled(self) -> bool:
        return bool(self.firebase_credentials_path)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
