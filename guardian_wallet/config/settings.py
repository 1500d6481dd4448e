"""
Configuration Management for Guardian Wallet

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what the wallet is bootstrapped with
(owner, guardians, quorum threshold) and what external services exist.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WalletSettings(BaseSettings):
    """Initial wallet state and voting parameters."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    owner: str = Field(
        ...,
        min_length=1,
        description="Identity of the initial owner"
    )
    guardians: str = Field(
        default="",
        description="Comma-separated list of initial guardian identities"
    )
    proposal_threshold: int = Field(
        default=3,
        ge=1,
        description="Number of repeated proposals for one candidate that commits it"
    )
    initial_pool_balance: int = Field(
        default=0,
        ge=0,
        description="Starting balance of the in-memory pool"
    )

    @field_validator("owner")
    @classmethod
    def strip_owner(cls, v: str) -> str:
        return v.strip()

    @property
    def guardians_list(self) -> list[str]:
        """Guardians as a list, preserving order and dropping blanks."""
        seen: dict[str, None] = {}
        for identity in self.guardians.split(","):
            identity = identity.strip()
            if identity:
                seen.setdefault(identity, None)
        return list(seen)


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets audit storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per audit row before giving up"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before enabling audit persistence."
            )
        return v


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

    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG level instead of INFO"
    )
    persist_audit_events: bool = Field(
        default=False,
        description="Write audit events to Google Sheets in addition to the local log"
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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def wallet(self) -> WalletSettings:
        return WalletSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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

    Returns a dict of {setting_name: is_valid}, with a `<name>_error`
    entry for each failure. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("wallet", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
