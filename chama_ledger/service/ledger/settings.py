"""
Ledger Settings for the Chama Ledger calculation core.

This module contains the tunable parameters of the contribution and loan
ledger. Group-specific business rules (amounts, rates, grace periods) live
in each group's Rules and are NOT configured here; these settings cover
the behaviour shared by every group.

Environment variables use the LEDGER_ prefix:
    LEDGER_RECONCILIATION_TOLERANCE_CENTS=1
    LEDGER_INSTALLMENT_INTERVAL_DAYS=30

Usage:
    from chama_ledger.service.ledger.settings import ledger_settings

    tolerance = ledger_settings.reconciliation_tolerance_cents

    # Or create custom settings for testing
    custom = LedgerSettings(installment_interval_days=28)
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Configurable parameters for the ledger calculator.

    All monetary values are in minor units (cents).
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Reconciliation ===
    reconciliation_tolerance_cents: int = Field(
        default=1,
        ge=0,
        description="Largest cached-vs-ledger difference accepted without raising",
    )

    # === Loans ===
    installment_interval_days: int = Field(
        default=30,
        gt=0,
        description="Days between disbursement and each loan installment due date",
    )
    max_purpose_length: int = Field(
        default=500,
        gt=0,
        description="Maximum characters accepted for a loan purpose",
    )

    # === Contribution Cycle ===
    default_cycle_months: int = Field(
        default=12,
        ge=1,
        le=60,
        description="Monthly contribution periods created per cycle when rules omit it",
    )


@lru_cache
def get_ledger_settings() -> LedgerSettings:
    """Get cached ledger settings instance."""
    return LedgerSettings()


ledger_settings = get_ledger_settings()
