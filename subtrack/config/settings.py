"""
Configuration Management for SubTrack

Every setting comes from the environment (or a .env file) through
pydantic-settings, grouped by the part of the app that reads it.

DESIGN DECISION: Settings are split so each group validates on its own.
Guest mode needs no configuration at all; the remote store is only
required once a user wants an account.
"""

import warnings
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file (JSON)"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Spreadsheet holding the Subscriptions and Users worksheets"
    )

    # Worksheet titles; both are created on first use
    subscriptions_sheet_name: str = Field(
        default="Subscriptions",
        description="Name of the sheet holding subscription entries"
    )
    users_sheet_name: str = Field(
        default="Users",
        description="Name of the sheet holding registered accounts"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing key file only matters at sign-in, so warn here instead of failing."""
        if not Path(v).exists():
            warnings.warn(
                f"No service account key at {v}; account sign-in will fail until it exists."
            )
        return v


class LocalStorageSettings(BaseSettings):
    """Where guest-mode data lives on this machine."""

    model_config = SettingsConfigDict(
        env_prefix="SUBTRACK_LOCAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    path: Path = Field(
        default=Path.home() / ".subtrack" / "local_storage.json",
        description="JSON file used as the local key-value medium"
    )
    profiles_dir: Path = Field(
        default=Path.home() / ".subtrack" / "profiles",
        description="Directory holding one key-value file per browser profile"
    )


class AppSettings(BaseSettings):
    """
    Display, account and feedback settings.

    Read from unprefixed environment variables or .env.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Deployment name (development, production)"
    )
    debug_mode: bool = Field(
        default=False,
        description="Verbose logging and extra UI diagnostics"
    )

    # Display
    currency_symbol: str = Field(
        default="¥",
        description="Symbol shown in front of amounts"
    )

    # Accounts
    min_password_length: int = Field(
        default=6,
        ge=1,
        le=128,
        description="Shortest password accepted at registration"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor for new password hashes"
    )

    # Feedback
    feedback_message_seconds: int = Field(
        default=3,
        ge=0,
        le=60,
        description="How long the feedback thank-you message stays visible"
    )


class Settings(BaseSettings):
    """
    Entry point for every settings group.

    Each property builds its group on access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Google Sheets may be unconfigured; guest mode still works

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def local_storage(self) -> LocalStorageSettings:
        return LocalStorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    The process-wide Settings instance.

    Tests that change the environment call get_settings.cache_clear().
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Check each settings group.

    Returns {group: ok} plus "{group}_error" for each group that failed.
    The sidebar uses it to tell whether accounts are available.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.local_storage
        results["local_storage"] = True
    except Exception as e:
        results["local_storage"] = False
        results["local_storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
