"""
Configuration Management for the Liquidity Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The cycle anchor day, the cash bucket and the price refresh interval are
business-relevant constants that must never be hard-coded in the rules
that use them.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CycleSettings(BaseSettings):
    """Billing cycle and projection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CYCLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    anchor_day: int = Field(
        default=25,
        ge=1,
        le=28,
        description="Day of month on which a new billing cycle starts"
    )
    projection_cycles: int = Field(
        default=12,
        ge=1,
        le=120,
        description="Number of future cycles in the default projection"
    )
    target_margin: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Monthly safety margin the user aims for"
    )
    net_worth_snapshot_threshold: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        description="Replace today's net worth snapshot when it moved more than this"
    )


class AccountSettings(BaseSettings):
    """Account bucketing configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    cash_account_id: str = Field(
        default="cash",
        min_length=1,
        description="Bucket that receives transactions with missing or unknown accounts"
    )
    primary_account_id: Optional[str] = Field(
        default=None,
        description="Primary operating account when no account is flagged is_primary"
    )


class PriceFeedSettings(BaseSettings):
    """Market price feed configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PRICE_FEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    refresh_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Seconds between price refreshes"
    )
    max_fetch_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Retries for a single price fetch"
    )
    volatility: float = Field(
        default=0.01,
        ge=0.0,
        le=0.5,
        description="Per-refresh relative move of the simulated feed"
    )
    seed_symbols: str = Field(
        default="BTC,ETH,SOL,VOO,VOOG",
        description="Comma-separated symbols quoted by the simulated feed"
    )

    @property
    def seed_symbols_list(self) -> list[str]:
        return [s.strip().upper() for s in self.seed_symbols.split(",") if s.strip()]


class StorageSettings(BaseSettings):
    """Key-value persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    state_path: str = Field(
        default="liquidity_state.json",
        description="Path of the JSON document holding all persisted keys"
    )
    max_write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Retries for a single write"
    )
    audit_path: str = Field(
        default="liquidity_audit.json",
        description="Path of the JSON document holding the audit log, kept apart from the state"
    )
    max_audit_events: int = Field(
        default=1000,
        ge=1,
        le=100000,
        description="Audit events kept; the oldest drop off first"
    )

    @field_validator('state_path', 'audit_path')
    @classmethod
    def validate_json_path(cls, v: str) -> str:
        if not v.endswith(".json"):
            raise ValueError("Storage paths must point to a .json file")
        return v


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
    def cycle(self) -> CycleSettings:
        return CycleSettings()

    @property
    def accounts(self) -> AccountSettings:
        return AccountSettings()

    @property
    def price_feed(self) -> PriceFeedSettings:
        return PriceFeedSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()


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

    Returns a dict of {setting_name: is_valid}, with a
    {setting_name}_error entry for each failure.
    """
    results = {}
    settings = get_settings()

    for name in ("cycle", "accounts", "price_feed", "storage"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
