# ==================================================================================
# core/config.py: FastAPI Configuration (Stripe + SendGrid + Storage + Pydantic v2)
# ==================================================================================
import logging
import sys

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./agency_portal.db"

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    MIN_TEMP_PASSWORD_LENGTH: int = 6
    INVITATION_VALID_DAYS: int = 7

    # ------------------------
    # SENDGRID EMAIL CONFIG
    # ------------------------
    SENDGRID_API_KEY: str | None = None
    MAIL_FROM: str | None = None

    # -----------------------------------------
    # FRONTEND & BACKEND CONFIG (local dev defaults)
    # -----------------------------------------
    FRONTEND_URL: str = "http://localhost:3000"
    BACKEND_URL: str = "http://localhost:8000"

    # ------------------------
    # STRIPE / PAYMENT CONFIG
    # ------------------------
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None
    STRIPE_CURRENCY: str = "usd"
    STRIPE_WEBHOOK_TOLERANCE: int = 300

    # ------------------------
    # BLOB STORAGE CONFIG
    # ------------------------
    STORAGE_DIR: str = "./storage"
    PROJECT_FILES_BUCKET: str = "project-files"
    AVATARS_BUCKET: str = "avatars"
    SIGNED_URL_EXPIRE_SECONDS: int = 60 * 10

    # ------------------------
    # BUSINESS DEFAULTS
    # ------------------------
    DEFAULT_DEPOSIT_PERCENT: int = 50
    WHATS_NEW_FALLBACK_DAYS: int = 14

    @property
    def STRIPE_SUCCESS_URL(self) -> str:
        """Where Stripe sends the client after a completed checkout."""
        return f"{self.FRONTEND_URL}/dashboard/client/invoices?paid=1"

    @property
    def STRIPE_CANCEL_URL(self) -> str:
        return f"{self.FRONTEND_URL}/dashboard/client/invoices?canceled=1"

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
    logger.info("✅ Environment variables loaded. Environment: %s, Debug: %s", settings.ENVIRONMENT, settings.DEBUG)
except ValidationError as e:
    logger.error("❌ Environment configuration error: missing or invalid settings!\n%s", e)
    sys.exit(1)
