"""
Configuration Management for HouseSplit

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The balance engine itself takes no configuration: its 0.01 settle
tolerance is fixed so that results are reproducible across deployments.
Everything around it (input limits, storage, logging) is configurable.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Limits applied when validating new expenses and settlements."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    max_amount: Decimal = Field(
        default=Decimal("999999"),
        gt=0,
        description="Largest amount accepted for a single expense or settlement"
    )
    max_description_length: int = Field(
        default=200,
        ge=1,
        description="Maximum length of an expense description"
    )
    max_note_length: int = Field(
        default=200,
        ge=1,
        description="Maximum length of a settlement note"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used when formatting amounts in messages"
    )

    # Snapshots with more records than this are computed off the event loop
    offload_threshold: int = Field(
        default=5000,
        ge=0,
        description="Record count above which balance computation runs in a worker thread"
    )

    def format_amount(self, amount: Decimal) -> str:
        """Format an amount with the configured currency symbol."""
        return f"{self.currency_symbol}{amount:.2f}"


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
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

    # Sheet names within the spreadsheet
    members_sheet_name: str = Field(
        default="Members",
        description="Name of the sheet for household members"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )
    splits_sheet_name: str = Field(
        default="ExpenseSplits",
        description="Name of the sheet for expense splits"
    )
    settlements_sheet_name: str = Field(
        default="Settlements",
        description="Name of the sheet for settlements"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
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
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )

    # How far ahead an expense or settlement date may be
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a record date can be"
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

    # Sub-settings are loaded lazily to allow partial configuration:
    # the engine runs fine without any Google Sheets credentials.

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

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

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry with the message for each failure.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = {
        "ledger": lambda: settings.ledger,
        "google_sheets": lambda: settings.google_sheets,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
