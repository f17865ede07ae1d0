"""
Configuration Management for Trip Budget

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which collaborators exist (storage file,
rate source) and ensures every value is validated at startup.
"""

import math
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trip_budget.models.ledger import FALLBACK_RATE, LedgerVariant


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRIP_BUDGET_STORAGE_",
        extra="ignore"
    )

    path: str = Field(
        default="data/trip_budget.json",
        description="Path to the JSON file holding the key-value store"
    )
    key: str = Field(
        default="korea_trip_budget_v2",
        min_length=1,
        description="Versioned key the state blob is stored under"
    )


class RateSourceSettings(BaseSettings):
    """Remote exchange rate source configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RATE_SOURCE_",
        extra="ignore"
    )

    url: str = Field(
        default="https://api.exchangerate.host/latest?base=KRW&symbols=EUR",
        description="Endpoint returning the KRW to EUR rate"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Upper bound on a single fetch; a stall counts as failure"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts on transport errors before giving up"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRIP_BUDGET_",
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
        description="Minimum level for structured logs"
    )

    # Ledger behaviour
    ledger_variant: LedgerVariant = Field(
        default=LedgerVariant.EXPENSES_ONLY,
        description="Which transaction schema the ledger runs with"
    )

    # Exchange rate
    fallback_rate: float = Field(
        default=FALLBACK_RATE,
        gt=0,
        description="Built-in rate used until a fetched or manual rate exists"
    )
    auto_refresh_rate_on_first_run: bool = Field(
        default=True,
        description="Fetch a rate at startup when none was ever stored"
    )

    @field_validator('fallback_rate')
    @classmethod
    def validate_fallback_rate(cls, v: float) -> float:
        """Reject infinities; gt=0 already rejects zero and negatives."""
        if not math.isfinite(v):
            raise ValueError("Fallback rate must be a finite number")
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def income_enabled(self) -> bool:
        """Whether income entries are part of the configured schema."""
        return self.ledger_variant is LedgerVariant.INCOME_AND_EXPENSES


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
    def rate_source(self) -> RateSourceSettings:
        return RateSourceSettings()

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

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each invalid group.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "rate_source", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
