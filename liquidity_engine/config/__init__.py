"""Configuration package."""

from liquidity_engine.config.settings import (
    AccountSettings,
    CycleSettings,
    PriceFeedSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AccountSettings",
    "CycleSettings",
    "PriceFeedSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
