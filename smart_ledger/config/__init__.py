"""Configuration package."""

from smart_ledger.config.settings import (
    AppSettings,
    GeminiSettings,
    InsightSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "InsightSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
