"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URL, reseller API, Twilio, limits)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Database
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./lycapay_bot.db",
        description="SQLAlchemy async database URL"
    )

    # Reseller (Aryagami / Lycamobile Uganda) API
    RESELLER_API_ENVIRONMENT: Literal["test", "production"] = Field(
        default="test",
        description="Which reseller endpoint to call"
    )
    RESELLER_API_TEST_URL: str = Field(
        default="http://172.18.9.25/recharge",
        description="Reseller API base URL (test)"
    )
    RESELLER_API_PRODUCTION_URL: str = Field(
        default="http://10.20.15.41:8080/reseller",
        description="Reseller API base URL (production)"
    )
    RESELLER_API_KEY: Optional[str] = Field(
        default=None,
        description="Static API key sent in the API_KEY header"
    )
    RESELLER_API_TIMEOUT: float = Field(
        default=30.0,
        description="Reseller request timeout in seconds"
    )
    RESELLER_MAX_RETRIES: int = Field(
        default=3,
        description="Total attempts per reseller request"
    )
    RESELLER_RETRY_DELAY_SECONDS: float = Field(
        default=2.0,
        description="Fixed delay between reseller attempts"
    )

    # Twilio WhatsApp
    TWILIO_ACCOUNT_SID: Optional[str] = Field(default=None, description="Twilio account SID")
    TWILIO_AUTH_TOKEN: Optional[str] = Field(default=None, description="Twilio auth token")
    TWILIO_WHATSAPP_NUMBER: str = Field(
        default="whatsapp:+14155238886",
        description="Sender number (Twilio sandbox by default)"
    )
    VALIDATE_TWILIO_SIGNATURE: bool = Field(
        default=False,
        description="Reject webhooks without a valid X-Twilio-Signature"
    )

    # Bot
    BOT_NAME: str = Field(default="LycaPay", description="Name shown in replies")
    SUPPORT_EMAIL: str = Field(default="cs@lycamobile.ug")
    SUPPORT_PHONE: str = Field(default="+256726100100")

    # Session Management
    SESSION_TIMEOUT_MINUTES: int = Field(
        default=30,
        description="User session timeout in minutes"
    )

    # Purchase limits
    MIN_AIRTIME_AMOUNT: int = Field(
        default=500,
        description="Minimum airtime top-up in UGX"
    )
    MAX_RECHARGE_PER_HOUR: int = Field(
        default=2,
        description="Maximum recharges per number per hour"
    )

    # Duplicate webhook suppression
    DUPLICATE_WINDOW_SECONDS: int = Field(
        default=30,
        description="Identical messages from one sender inside this window are ignored"
    )

    # Application
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(default="/api/v1", description="API route prefix")
    CORS_ORIGINS: list = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("RESELLER_API_KEY")
    @classmethod
    def validate_reseller_key(cls, v, info: ValidationInfo):
        """Ensure the reseller key is set in production."""
        if info.data.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("RESELLER_API_KEY is required in production environment")
        return v

    @field_validator("MIN_AIRTIME_AMOUNT")
    @classmethod
    def validate_min_airtime(cls, v):
        if v < 1:
            raise ValueError("MIN_AIRTIME_AMOUNT must be positive")
        return v

    @property
    def reseller_api_url(self) -> str:
        """Reseller base URL for the configured environment."""
        if self.RESELLER_API_ENVIRONMENT == "production":
            return self.RESELLER_API_PRODUCTION_URL
        return self.RESELLER_API_TEST_URL

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None):
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    config = config or settings
    errors = []

    if not config.DATABASE_URL:
        errors.append("DATABASE_URL is required")

    if not config.reseller_api_url:
        errors.append("Reseller API URL is required")

    # Production-specific validations
    if config.is_production:
        if not config.TWILIO_ACCOUNT_SID or not config.TWILIO_AUTH_TOKEN:
            errors.append("TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN are required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
