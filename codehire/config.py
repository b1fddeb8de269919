"""
CodeHire – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "CodeHire"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./codehire.db"
    AUTO_CREATE_TABLES: bool = True
    STORE_TIMEOUT_SECONDS: float = 5.0

    # ── Bidding ──
    BIDDING_WINDOW_DAYS: int = 7

    # ── JWT (tokens issued by the external auth provider) ──
    SECRET_KEY: str = "change-me-to-a-random-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ── Payments (Lemon Squeezy hosted checkout) ──
    LEMON_CHECKOUT_URL: str = ""
    LEMON_WEBHOOK_SECRET: str = ""
    # Unset means trusted everywhere except production, which waits for the signed webhook.
    PAYMENT_TRUST_REDIRECT: Optional[bool] = None

    # ── Notifications ──
    NOTIFY_TIMEOUT_SECONDS: float = 3.0
    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    @model_validator(mode="after")
    def _default_trust_redirect(self) -> "Settings":
        if self.PAYMENT_TRUST_REDIRECT is None:
            self.PAYMENT_TRUST_REDIRECT = not self.is_production
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
