"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Session lifetimes, hashing cost and storage location are tunable
without touching the services that use them.
"""

from datetime import timedelta
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_STORAGE_",
        extra="ignore"
    )

    data_path: str = Field(
        default="~/.finance_tracker/store.json",
        description="Path of the JSON file backing the key-value store"
    )
    audit_path: str = Field(
        default="~/.finance_tracker/audit.json",
        description="Path of the JSON file holding the audit trail"
    )

    @field_validator('data_path', 'audit_path')
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ so the stores always get an absolute-ish path."""
        return str(Path(v).expanduser())


class AuthSettings(BaseSettings):
    """Authentication and session configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_AUTH_",
        extra="ignore"
    )

    min_password_length: int = Field(
        default=6,
        ge=1,
        le=72,
        description="Minimum accepted password length"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor (log2 of iterations)"
    )
    remember_me_days: int = Field(
        default=7,
        ge=1,
        description="Session lifetime when 'remember me' is set"
    )
    session_hours: int = Field(
        default=24,
        ge=1,
        description="Session lifetime otherwise"
    )
    reset_code_ttl_minutes: int = Field(
        default=5,
        ge=1,
        le=60,
        description="How long a password reset code stays valid"
    )

    def session_lifetime(self, remember: bool) -> timedelta:
        """Lifetime of a new session."""
        if remember:
            return timedelta(days=self.remember_me_days)
        return timedelta(hours=self.session_hours)

    @property
    def reset_code_ttl(self) -> timedelta:
        return timedelta(minutes=self.reset_code_ttl_minutes)


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
        description="Log at DEBUG level instead of INFO"
    )

    # Defaults shown to a brand new user
    default_savings_goal: Decimal = Field(
        default=Decimal("10000"),
        gt=0,
        description="Savings goal used until the user sets one"
    )
    trend_months: int = Field(
        default=6,
        ge=2,
        le=24,
        description="Number of months in the monthly comparison"
    )


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the sections that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "auth", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
