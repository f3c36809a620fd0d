"""Environment-based settings using pydantic-settings.

This module provides type-safe environment variable loading with validation.

Usage:
    from onixport.env_settings import get_env_settings

    env = get_env_settings()
    print(env.onix.max_products)  # From ONIX_MAX_PRODUCTS env var

Environment Variables:
    ONIX import/export:
        ONIX_MAX_FILE_SIZE_BYTES - Upload size cap (default: 10 MiB)
        ONIX_MAX_PRODUCTS - Product count cap per file (default: 500)
        ONIX_DEFAULT_VERSION - Export version, "3.0" or "3.1" (default: "3.1")
        ONIX_DEFAULT_CURRENCY - Fallback price currency (default: "USD")
        ONIX_DEFAULT_COUNTRY - Sales territory for exported products (default: "US")

    Application:
        ONIXPORT_ENV - Environment name (default: "production")
        LOG_LEVEL - Logging level (default: "INFO")
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from onixport.exceptions import ConfigurationError
from onixport.onix.codelists import SUPPORTED_CURRENCIES

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_PRODUCTS = 500


class OnixEnvSettings(BaseSettings):
    """ONIX pipeline limits and export defaults.

    Reads from ONIX_* env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="ONIX_",
        extra="ignore",
    )

    max_file_size_bytes: int = Field(
        default=DEFAULT_MAX_FILE_SIZE_BYTES,
        gt=0,
        description="Maximum accepted upload size in bytes",
    )
    max_products: int = Field(
        default=DEFAULT_MAX_PRODUCTS,
        gt=0,
        description="Maximum number of products per imported file",
    )
    default_version: str = Field(default="3.1", description="ONIX version used for exports")
    default_currency: str = Field(default="USD", description="Currency when tenant has none")
    default_country: str = Field(default="US", description="Sales territory country code")

    @field_validator("default_version")
    @classmethod
    def validate_default_version(cls, v: str) -> str:
        """Only 3.x messages can be exported."""
        if v not in ("3.0", "3.1"):
            raise ValueError(f"ONIX_DEFAULT_VERSION must be 3.0 or 3.1, got: {v}")
        return v

    @field_validator("default_currency")
    @classmethod
    def validate_default_currency(cls, v: str) -> str:
        """Validate and normalize the fallback currency."""
        upper = v.upper()
        if upper not in SUPPORTED_CURRENCIES:
            raise ValueError(
                f"ONIX_DEFAULT_CURRENCY must be one of {sorted(SUPPORTED_CURRENCIES)}, got: {v}"
            )
        return upper

    @field_validator("default_country")
    @classmethod
    def validate_default_country(cls, v: str) -> str:
        """Country codes are two uppercase letters."""
        upper = v.upper()
        if len(upper) != 2 or not upper.isalpha():
            raise ValueError(f"ONIX_DEFAULT_COUNTRY must be an ISO 3166-1 code, got: {v}")
        return upper


class AppEnvSettings(BaseSettings):
    """Application-level settings from environment variables.

    Reads from ONIXPORT_ENV, LOG_LEVEL env vars.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    env: str = Field(
        default="production",
        validation_alias="ONIXPORT_ENV",
        description="Environment name (development/production)",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got: {v}")
        return upper


class EnvSettings(BaseSettings):
    """Combined environment settings.

    Use get_env_settings() to get a cached instance.

    Example:
        env = get_env_settings()
        print(env.onix.max_file_size_bytes)
        print(env.app.log_level)
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    onix: OnixEnvSettings = Field(default_factory=OnixEnvSettings)
    app: AppEnvSettings = Field(default_factory=AppEnvSettings)


@lru_cache(maxsize=1)
def get_env_settings() -> EnvSettings:
    """Get cached environment settings.

    Returns:
        EnvSettings instance with all environment-based configuration.

    Raises:
        ConfigurationError: If an environment variable has an invalid value.
    """
    try:
        return EnvSettings()
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ConfigurationError(
            f"Invalid environment settings: {first['msg']}",
            field=field,
            details={"error_count": e.error_count()},
        ) from e


def clear_env_settings_cache() -> None:
    """Clear the cached environment settings.

    Useful for testing to ensure fresh settings are loaded.
    """
    get_env_settings.cache_clear()


def load_env_settings_from_file(env_file: Path) -> EnvSettings:
    """Load environment settings from a specific .env file.

    Args:
        env_file: Path to .env file to load.

    Returns:
        EnvSettings instance with configuration from the file.
    """
    from dotenv import load_dotenv

    if not env_file.exists():
        raise ConfigurationError(f"Env file not found: {env_file}", config_file=env_file)

    load_dotenv(env_file, override=True)
    logger.debug("Loaded environment from %s", env_file)

    clear_env_settings_cache()
    return get_env_settings()
