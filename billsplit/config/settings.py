"""
Configuration Management for billsplit

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable policy lives here (settlement epsilon,
rounding remainder order, sanity limits, logging output).
The accounting functions take explicit overrides, but fall back to
these values so every caller sees the same policy by default.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Accounting policy for splits, balances and settlement."""

    model_config = SettingsConfigDict(
        env_prefix="BILLSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    settlement_epsilon: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Balances smaller than this (in absolute value) count as settled"
    )
    remainder_order: str = Field(
        default="insertion",
        pattern="^(insertion|identifier)$",
        description=(
            "Which participants absorb leftover cents in an equal split: "
            "the caller's order or sorted participant id"
        )
    )
    max_expense_amount: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Expenses above this amount are flagged for review"
    )
    max_participants: int = Field(
        default=100,
        ge=2,
        description="Maximum number of participants in one bill"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used when formatting amounts in messages"
    )

    def format_amount(self, amount: Decimal) -> str:
        """Format an amount for human-readable messages."""
        return f"{self.currency_symbol}{amount:,.2f}"


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BILLSPLIT_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level for audit events"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (False renders for a console)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Only accept stdlib level names."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()


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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries describing failures.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
