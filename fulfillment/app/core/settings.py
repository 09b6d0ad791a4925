"""
Application settings with validation using pydantic-settings.
Validates all configuration at first access.
"""
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fulfillment.app.core.constants import (
    DEFAULT_PAYOUT_RATE,
    DEFAULT_TOP_SELLERS_LIMIT,
    FALLBACK_CATEGORY,
)


class Settings(BaseSettings):
    """Fulfillment core settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: str = Field(default="development", description="Environment: development or production")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_JSON: bool = Field(default=False, description="Render logs as JSON instead of console output")

    # Reference repository database
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./fulfillment.db",
        description="SQLAlchemy async URL for the reference order repository",
    )

    # Revenue attribution
    SELLER_PAYOUT_RATE: Decimal = Field(
        default=DEFAULT_PAYOUT_RATE,
        description="Share of gross revenue paid out to the seller (platform keeps the rest)",
    )

    # Reporting
    TOP_SELLERS_LIMIT: int = Field(default=DEFAULT_TOP_SELLERS_LIMIT, description="Top-seller ranking size")
    FALLBACK_CATEGORY: str = Field(default=FALLBACK_CATEGORY, description="Label for unresolvable categories")

    # Dispatcher
    REPOSITORY_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Upper bound on a single repository write made by the dispatcher",
    )

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        if v not in ("development", "production"):
            raise ValueError("ENVIRONMENT must be 'development' or 'production'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("SELLER_PAYOUT_RATE")
    @classmethod
    def validate_payout_rate(cls, v: Decimal) -> Decimal:
        if v < 0 or v > 1:
            raise ValueError("SELLER_PAYOUT_RATE must be between 0 and 1")
        return v

    @field_validator("TOP_SELLERS_LIMIT")
    @classmethod
    def validate_top_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("TOP_SELLERS_LIMIT must be positive")
        return v

    @field_validator("REPOSITORY_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("REPOSITORY_TIMEOUT_SECONDS must be positive")
        return v

    @field_validator("FALLBACK_CATEGORY")
    @classmethod
    def validate_fallback_category(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("FALLBACK_CATEGORY must not be blank")
        return v

    def validate_production_settings(self) -> list[str]:
        """
        Validate settings that are only dangerous in production.
        Returns list of problems.
        """
        errors = []

        if self.ENVIRONMENT == "production":
            if self.DATABASE_URL.startswith("sqlite"):
                errors.append("DATABASE_URL must not point to SQLite in production")
            if self.LOG_LEVEL == "DEBUG":
                errors.append("LOG_LEVEL=DEBUG is not allowed in production")

        return errors

    @property
    def platform_fee_rate(self) -> Decimal:
        return Decimal("1") - self.SELLER_PAYOUT_RATE

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings (singleton)."""
    global _settings
    if _settings is None:
        settings = Settings()
        errors = settings.validate_production_settings()
        if errors:
            error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)
        _settings = settings
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
