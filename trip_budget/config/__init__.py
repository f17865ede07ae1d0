"""Configuration package."""

from trip_budget.config.settings import (
    AppSettings,
    RateSourceSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "RateSourceSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
