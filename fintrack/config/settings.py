"""
Configuration Management for fintrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RatesSettings(BaseSettings):
    """Exchange rate source and cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RATES_",
        extra="ignore"
    )

    api_base_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest",
        description="Endpoint returning the latest rates for a base currency"
    )
    timeout_seconds: float = Field(
        default=8.0,
        gt=0.0,
        le=30.0,
        description="Timeout for a single rate fetch"
    )
    cache_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description="How long a fetched rate stays valid"
    )
    max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Fetch attempts on transport failure before falling back"
    )
    retry_wait_seconds: float = Field(
        default=0.5,
        ge=0.0,
        le=5.0,
        description="Base wait between fetch attempts (exponential)"
    )

    @field_validator('api_base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class DashboardSettings(BaseSettings):
    """Defaults for dashboard aggregation."""

    model_config = SettingsConfigDict(
        env_prefix="DASHBOARD_",
        extra="ignore"
    )

    base_currency: str = Field(
        default="RUB",
        min_length=3,
        max_length=5,
        description="Currency all aggregated metrics are expressed in"
    )
    window_days: int = Field(
        default=30,
        ge=1,
        description="Days counted as the 'monthly' income/expense window"
    )
    top_n: int = Field(
        default=5,
        ge=1,
        description="Number of expense categories shown"
    )
    recent_n: int = Field(
        default=10,
        ge=1,
        description="Number of recent transactions shown"
    )
    trend_months: int = Field(
        default=6,
        ge=1,
        le=120,
        description="Calendar months covered by the net worth trend"
    )

    @field_validator('base_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.strip().upper()


class StorageSettings(BaseSettings):
    """Local JSON storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".fintrack",
        description="Directory holding one JSON document per entity type"
    )
    audit_log_name: str = Field(
        default="audit.jsonl",
        description="Line-delimited JSON file for audit events"
    )

    @property
    def audit_log_path(self) -> Path:
        return self.data_dir / self.audit_log_name


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
        description="Minimum level for local structured logs"
    )

    @field_validator('log_level')
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.strip().upper()


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def rates(self) -> RatesSettings:
        return RatesSettings()

    @property
    def dashboard(self) -> DashboardSettings:
        return DashboardSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    "<name>_error" entries for the groups that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("rates", "dashboard", "storage", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
