"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, gateway credentials, token secrets)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="phone_auth",
        description="MongoDB database name"
    )
    MONGODB_CONNECT_RETRIES: int = Field(
        default=3,
        description="Startup connection attempts before giving up"
    )
    MONGODB_RETRY_DELAY_SECONDS: float = Field(
        default=2,
        description="Delay before the second attempt, doubled after each failure"
    )
    MONGODB_MAX_POOL_SIZE: int = Field(
        default=50,
        description="Motor connection pool upper bound"
    )
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = Field(
        default=5000,
        description="How long a ping waits for a reachable server"
    )

    # Verification codes
    CODE_TTL_MINUTES: int = Field(
        default=5,
        description="Minutes a verification code stays valid"
    )
    SWEEPER_ENABLED: bool = Field(
        default=True,
        description="Run the expired-code sweeper inside the API process"
    )
    SWEEP_INTERVAL_HOURS: float = Field(
        default=24,
        description="Hours between expired-code sweeps"
    )

    # WhatsApp Cloud API
    WHATSAPP_API_URL: str = Field(
        default="https://graph.facebook.com",
        description="WhatsApp Cloud API base URL"
    )
    WHATSAPP_API_VERSION: str = Field(
        default="v17.0",
        description="Graph API version"
    )
    WHATSAPP_PHONE_ID: Optional[str] = Field(
        default=None,
        description="Sender phone number ID"
    )
    WHATSAPP_TOKEN: Optional[str] = Field(
        default=None,
        description="Bearer access token for the Cloud API"
    )
    WHATSAPP_TEMPLATE_NAME: str = Field(
        default="verification",
        description="Approved message template carrying the code"
    )
    WHATSAPP_LANGUAGE: str = Field(
        default="en",
        description="Template language tag"
    )
    WHATSAPP_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Gateway request timeout in seconds"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Signing key for identity tokens"
    )
    TOKEN_ISSUER: str = Field(
        default="phone-auth-service",
        description="Issuer claim of identity tokens"
    )
    TOKEN_AUDIENCE: str = Field(
        default="phone-auth-clients",
        description="Audience claim of identity tokens"
    )
    TOKEN_TTL_SECONDS: int = Field(
        default=3600,
        description="Identity token lifetime in seconds"
    )

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info: ValidationInfo) -> str:
        """Ensure secret key is changed in production."""
        if info.data.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @field_validator(
        "CODE_TTL_MINUTES",
        "SWEEP_INTERVAL_HOURS",
        "TOKEN_TTL_SECONDS",
        "MONGODB_CONNECT_RETRIES",
        "MONGODB_MAX_POOL_SIZE",
    )
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.WHATSAPP_PHONE_ID and self.WHATSAPP_TOKEN)

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    # Production-specific validations
    if settings.is_production:
        if not settings.WHATSAPP_PHONE_ID:
            errors.append("WHATSAPP_PHONE_ID is required in production")
        if not settings.WHATSAPP_TOKEN:
            errors.append("WHATSAPP_TOKEN is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
