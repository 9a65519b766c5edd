"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so every external dependency
(database, token signing) is visible in one place and validated at startup.
"""

import warnings
from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEV_JWT_SECRET = "dev-insecure-change-me-before-deploying"


class DatabaseSettings(BaseSettings):
    """Persistence store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        default="sqlite:///./finance.db",
        description="SQLAlchemy database URL"
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log"
    )


class AuthSettings(BaseSettings):
    """Bearer token configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    jwt_secret: str = Field(
        default=DEV_JWT_SECRET,
        min_length=8,
        description="Secret used to sign bearer tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    token_ttl_minutes: int = Field(
        default=60,
        ge=1,
        le=60 * 24 * 30,
        description="Lifetime of an issued token"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=16,
        description="bcrypt work factor for password hashes"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Pagination
    default_page_size: int = Field(
        default=10,
        ge=1,
        description="Transactions per page when the caller gives none"
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        description="Largest page a caller may request"
    )

    # Money limits
    max_amount: Decimal = Field(
        default=Decimal("99999999.99"),
        gt=0,
        description="Largest amount accepted for a transaction or budget"
    )

    # "expense" counts only expense transactions toward a budget,
    # "all" sums every transaction in the category.
    budget_spend_scope: Literal["expense", "all"] = Field(
        default="expense",
        description="Which transaction types count as budget spend"
    )

    @model_validator(mode="after")
    def check_page_sizes(self) -> "AppSettings":
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size cannot exceed max_page_size")
        return self


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("database", "auth", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    if results.get("auth") and results.get("app"):
        if (
            settings.auth.jwt_secret == DEV_JWT_SECRET
            and settings.app.app_environment != "development"
        ):
            warnings.warn(
                "AUTH_JWT_SECRET is using the development default. "
                "Set a real secret before deploying."
            )

    return results
