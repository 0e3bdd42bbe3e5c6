"""Pytest configuration and fixtures."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from liquidity_engine.clock import FixedClock
from liquidity_engine.config import Settings
from liquidity_engine.engine import LiquidityEngine
from liquidity_engine.models.ledger import Account, AccountType
from liquidity_engine.models.obligation import RecurringExpense, RecurringIncome
from liquidity_engine.services.storage import InMemoryStore


@pytest.fixture(autouse=True)
def default_environment(monkeypatch):
    """Pin every setting the tests depend on, whatever the developer's .env says."""
    monkeypatch.setenv("CYCLE_ANCHOR_DAY", "25")
    monkeypatch.setenv("CYCLE_PROJECTION_CYCLES", "12")
    monkeypatch.setenv("CYCLE_TARGET_MARGIN", "0")
    monkeypatch.setenv("CYCLE_NET_WORTH_SNAPSHOT_THRESHOLD", "100")
    monkeypatch.setenv("ACCOUNTS_CASH_ACCOUNT_ID", "cash")
    monkeypatch.delenv("ACCOUNTS_PRIMARY_ACCOUNT_ID", raising=False)
    monkeypatch.setenv("PRICE_FEED_SEED_SYMBOLS", "BTC,ETH,SOL,VOO,VOOG")
    monkeypatch.setenv("PRICE_FEED_VOLATILITY", "0.01")


@pytest.fixture
def clock():
    """10 March 2025, inside the cycle that started on 25 February."""
    return FixedClock(datetime(2025, 3, 10, 9, 0))


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def engine(store, clock, settings):
    """An engine that has not loaded yet; the first operation loads it."""
    return LiquidityEngine(store, clock=clock, settings=settings)


@pytest.fixture
def electricity_bill():
    return RecurringExpense(
        id="electricity",
        description="Electricity",
        amount=Decimal("100"),
        day_of_month=5,
        next_due_date=date(2025, 3, 5),
    )


@pytest.fixture
def rent_bill():
    return RecurringExpense(
        id="rent",
        description="Rent",
        category="Housing",
        amount=Decimal("200"),
        day_of_month=1,
        next_due_date=date(2025, 3, 1),
    )


@pytest.fixture
def salary():
    return RecurringIncome(
        id="salary",
        description="Salary",
        amount=Decimal("3000"),
        day_of_month=25,
        next_confirmation_date=date(2025, 3, 25),
    )


@pytest.fixture
def checking_account():
    return Account(
        id="checking",
        name="1st National Checking",
        account_type=AccountType.BANK,
        opening_balance=Decimal("1000"),
        is_primary=True,
    )
