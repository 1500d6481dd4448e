"""Configuration package."""

from guardian_wallet.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    WalletSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "WalletSettings",
    "get_settings",
    "validate_all_settings",
]
