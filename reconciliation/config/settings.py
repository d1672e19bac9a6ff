"""
Configuration management for the reconciliation layer.
"""

from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReconciliationConfig(BaseSettings):
    """Configuration settings for the reconciliation layer."""

    # Record store (Supabase / PostgREST)
    supabase_url: str = Field(alias="SUPABASE_URL")
    supabase_service_key: str = Field(alias="SUPABASE_SERVICE_KEY")
    request_timeout: float = Field(default=30.0, alias="REQUEST_TIMEOUT")

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Commission payouts
    default_commission_rate: Decimal = Field(
        default=Decimal("15"), alias="DEFAULT_COMMISSION_RATE"
    )
    commission_cap_counts_cancelled: bool = Field(
        default=True, alias="COMMISSION_CAP_COUNTS_CANCELLED"
    )

    # Utilization reporting
    utilization_history_months: int = Field(
        default=6, alias="UTILIZATION_HISTORY_MONTHS"
    )
    utilization_warning_threshold: Decimal = Field(
        default=Decimal("0.8"), alias="UTILIZATION_WARNING_THRESHOLD"
    )

    # Retry Configuration
    max_retries: int = Field(default=3, alias="MAX_RETRIES")
    retry_delay: float = Field(default=1.0, alias="RETRY_DELAY")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
    )

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v):
        """Ensure the store URL is an http(s) URL without a trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("SUPABASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Ensure environment is valid."""
        valid_envs = ["development", "testing", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("default_commission_rate")
    @classmethod
    def validate_commission_rate(cls, v):
        """Ensure the default commission rate is a percentage."""
        if not Decimal("0") <= v <= Decimal("100"):
            raise ValueError("DEFAULT_COMMISSION_RATE must be between 0 and 100")
        return v

    @field_validator("utilization_history_months")
    @classmethod
    def validate_history_months(cls, v):
        """Ensure at least one month of history is requested."""
        if v < 1:
            raise ValueError("UTILIZATION_HISTORY_MONTHS must be at least 1")
        return v


def load_config(env_file: Optional[str] = None) -> ReconciliationConfig:
    """Load configuration from environment variables and .env file."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    return ReconciliationConfig()


# Global configuration instance
_config: Optional[ReconciliationConfig] = None


def get_config() -> ReconciliationConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(env_file: Optional[str] = None) -> ReconciliationConfig:
    """Reload configuration (useful for testing)."""
    global _config
    _config = load_config(env_file)
    return _config
