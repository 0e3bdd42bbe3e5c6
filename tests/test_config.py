"""Tests for configuration loading."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from liquidity_engine.config import (
    AccountSettings,
    CycleSettings,
    PriceFeedSettings,
    StorageSettings,
    validate_all_settings,
)
from liquidity_engine.obligations import CycleSettlementScheduler


class TestCycleSettings:
    """Tests for billing cycle settings."""

    def test_defaults_from_environment(self, settings):
        """Test the values pinned by the test environment."""
        assert settings.cycle.anchor_day == 25
        assert settings.cycle.projection_cycles == 12
        assert settings.cycle.net_worth_snapshot_threshold == Decimal("100")

    @pytest.mark.parametrize("day", ["0", "29", "31"])
    def test_anchor_day_must_exist_in_every_month(self, monkeypatch, day):
        """Test that an anchor day outside 1-28 is rejected."""
        monkeypatch.setenv("CYCLE_ANCHOR_DAY", day)
        with pytest.raises(ValidationError):
            CycleSettings()

    def test_anchor_day_override(self, monkeypatch, clock):
        """Test that the anchor day is configurable."""
        monkeypatch.setenv("CYCLE_ANCHOR_DAY", "1")
        scheduler = CycleSettlementScheduler(CycleSettings().anchor_day, clock)
        assert str(scheduler.current_key()) == "2025-03"


class TestOtherSettings:
    """Tests for accounts, price feed and storage settings."""

    def test_primary_account_from_environment(self, monkeypatch):
        """Test the fallback primary account id."""
        monkeypatch.setenv("ACCOUNTS_PRIMARY_ACCOUNT_ID", "checking")
        assert AccountSettings().primary_account_id == "checking"
        assert AccountSettings().cash_account_id == "cash"

    def test_seed_symbols_list(self, monkeypatch):
        """Test that seed symbols are split, trimmed and upper-cased."""
        monkeypatch.setenv("PRICE_FEED_SEED_SYMBOLS", " btc, ,voo ")
        assert PriceFeedSettings().seed_symbols_list == ["BTC", "VOO"]

    def test_state_path_must_be_json(self, monkeypatch):
        """Test that the state document must be a .json file."""
        monkeypatch.setenv("STORAGE_STATE_PATH", "state.db")
        with pytest.raises(ValidationError):
            StorageSettings()

    def test_sub_settings_read_dotenv(self, monkeypatch, tmp_path):
        """Test that every settings group picks up values from a .env file."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("STORAGE_STATE_PATH", raising=False)
        monkeypatch.delenv("CYCLE_ANCHOR_DAY", raising=False)
        (tmp_path / ".env").write_text(
            "STORAGE_STATE_PATH=household.json\nCYCLE_ANCHOR_DAY=1\n",
            encoding="utf-8",
        )

        assert StorageSettings().state_path == "household.json"
        assert CycleSettings().anchor_day == 1


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_all_valid(self):
        """Test that the pinned environment validates."""
        results = validate_all_settings()
        assert results == {"cycle": True, "accounts": True, "price_feed": True, "storage": True}

    def test_reports_invalid_groups(self, monkeypatch):
        """Test that a bad value is reported against its group."""
        monkeypatch.setenv("CYCLE_ANCHOR_DAY", "30")
        results = validate_all_settings()
        assert results["cycle"] is False
        assert "cycle_error" in results
        assert results["storage"] is True
