"""
Configuration Management for the Expense Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every limit the validation layer enforces and every storage location the
persistence layer touches is declared in one place and checked at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Ledger limits and defaults.

    The defaults are the bounds the ledger has always enforced; they are
    configurable mostly so tests can exercise them.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    max_expense_amount: float = Field(
        default=10_000_000.0,
        gt=0,
        description="Largest accepted expense/EMI magnitude"
    )
    max_budget_amount: float = Field(
        default=100_000_000.0,
        gt=0,
        description="Largest accepted monthly budget"
    )
    max_notes_length: int = Field(
        default=500,
        ge=1,
        description="Notes are truncated to this many characters after sanitizing"
    )
    max_loan_type_length: int = Field(
        default=100,
        ge=1,
        description="Maximum length of an EMI loan type label"
    )
    min_budget_year: int = Field(
        default=2020,
        description="Earliest year a budget may be set for"
    )
    max_budget_year: int = Field(
        default=2050,
        description="Latest year a budget may be set for"
    )
    default_language: str = Field(
        default="en",
        pattern="^(en|hi)$",
        description="Language written to settings on first launch"
    )

    # Export windows
    weekly_window_days: int = Field(
        default=7,
        ge=1,
        description="Days covered by the weekly export"
    )
    monthly_window_days: int = Field(
        default=30,
        ge=1,
        description="Days covered by the monthly export"
    )


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".expense_ledger",
        description="Directory holding one JSON document per storage key"
    )
    key_prefix: str = Field(
        default="hee_shah_bee_",
        description="Prefix applied to every logical storage key"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a file write before it is reported as failed"
    )

    @field_validator('key_prefix')
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Keys become file names, so path separators are not allowed."""
        if "/" in v or "\\" in v:
            raise ValueError("key_prefix must not contain path separators")
        return v


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render JSON lines instead of the console renderer"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


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

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "storage", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
