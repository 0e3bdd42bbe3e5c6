"""Tests for the engine facade: persistence, cycle checks and auditing."""

import asyncio
import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from liquidity_engine.clock import FixedClock
from liquidity_engine.config import Settings
from liquidity_engine.engine import LiquidityEngine
from liquidity_engine.errors import (
    AccountNotFoundError,
    CycleCheckError,
    DuplicateAccountError,
    DuplicateGoalError,
    GoalNotFoundError,
    InvalidAmountError,
    PrimaryAccountConflictError,
)
from liquidity_engine.models.audit import AuditEventType, AuditSeverity
from liquidity_engine.models.ledger import (
    Account,
    AccountType,
    AnalysisResult,
    AnalysisUpdateType,
    MarketPrice,
    PortfolioUpdate,
    SavingGoal,
    TransactionDirection,
    TransactionDraft,
)
from liquidity_engine.services.storage import (
    InMemoryStore,
    JsonFileStore,
    KeyValueAuditStorage,
)


class RecordingStore(InMemoryStore):
    """Remembers the keys of every write."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    async def set_many(self, values):
        self.writes.append(set(values))
        await super().set_many(values)


class FlakyClock(FixedClock):
    """A fixed clock that can be switched off."""

    broken = False

    def now(self) -> datetime:
        if self.broken:
            raise RuntimeError("time source unavailable")
        return super().now()


async def audit_types(store):
    events = await KeyValueAuditStorage(store).get_recent_events(limit=1000)
    return [e.event_type for e in events]


def coffee(amount="4.50", on=None):
    return TransactionDraft(
        amount=Decimal(amount),
        description="Coffee",
        category="Food",
        direction=TransactionDirection.EXPENSE,
        transaction_date=on,
    )


class TestLoading:
    """Tests for loading and initializing state."""

    async def test_first_load_initializes_cycle(self, engine, store):
        """Test that the first load records the current cycle key."""
        result = await engine.load()

        assert result.previous_key is None
        assert str(result.current_key) == "2025-02"
        assert str(engine.last_cycle_key) == "2025-02"
        assert store.snapshot()["last_cycle_key"] == "2025-02"
        assert AuditEventType.CYCLE_INITIALIZED in await audit_types(store)

    async def test_reopen_is_not_a_transition(self, engine, store, clock, settings, rent_bill):
        """Test that loading again in the same cycle changes nothing."""
        await engine.register_obligation(rent_bill)

        reopened = await LiquidityEngine.open(store, clock=clock, settings=settings)
        assert reopened.get_obligation("rent") == rent_bill
        assert str(reopened.last_cycle_key) == "2025-02"

        result = await reopened.run_cycle_check()
        assert result.transitioned is False
        assert result.previous_key is not None

    async def test_first_operation_loads(self, engine, store):
        """Test that an operation on an unloaded engine does not wipe stored state."""
        seeded = LiquidityEngine(store, clock=engine.clock)
        await seeded.record_transaction(coffee())

        fresh = LiquidityEngine(store, clock=engine.clock)
        await fresh.record_transaction(coffee("3"))
        assert len(fresh.transactions()) == 2

    async def test_corrupt_document_is_audited(self, tmp_path, clock, settings):
        """Test that an unreadable state file loads empty and is reported."""
        path = tmp_path / "state.json"
        path.write_text("{broken", encoding="utf-8")
        store = JsonFileStore(str(path), retry_wait_min=0)

        engine = await LiquidityEngine.open(store, clock=clock, settings=settings)

        assert engine.transactions() == []
        assert AuditEventType.STATE_LOAD_FALLBACK in await audit_types(store)
        assert (tmp_path / "state.json.corrupt").exists()

    async def test_bad_key_is_audited(self, clock, settings):
        """Test that a malformed key loads its default and is reported."""
        store = InMemoryStore({"transactions": "not a list"})
        engine = await LiquidityEngine.open(store, clock=clock, settings=settings)

        assert engine.transactions() == []
        events = await KeyValueAuditStorage(store).get_recent_events()
        fallback = [e for e in events if e.event_type == AuditEventType.STATE_LOAD_FALLBACK]
        assert fallback[0].entity_id == "transactions"

    async def test_reload_sees_other_writers(self, tmp_path, clock, settings):
        """Test that reload re-reads the document."""
        path = str(tmp_path / "state.json")
        reader = await LiquidityEngine.open(
            JsonFileStore(path, retry_wait_min=0), clock=clock, settings=settings
        )
        writer = await LiquidityEngine.open(
            JsonFileStore(path, retry_wait_min=0), clock=clock, settings=settings
        )
        await writer.record_transaction(coffee())

        assert reader.transactions() == []
        await reader.reload()
        assert len(reader.transactions()) == 1

    async def test_audit_log_kept_in_its_own_document(self, tmp_path, clock, settings):
        """Test that file-backed engines write audit events outside the state document."""
        state_path = tmp_path / "state.json"
        audit_path = tmp_path / "audit.json"
        engine = await LiquidityEngine.open_files(
            str(state_path), str(audit_path), clock=clock, settings=settings
        )

        await engine.record_transaction(coffee())

        state = json.loads(state_path.read_text(encoding="utf-8"))
        audit = json.loads(audit_path.read_text(encoding="utf-8"))
        assert "audit_log" not in state
        assert len(state["transactions"]) == 1
        assert AuditEventType.TRANSACTION_RECORDED.value in [
            e["event_type"] for e in audit["audit_log"]
        ]

    async def test_audit_log_bound_from_settings(self, monkeypatch, store, clock):
        """Test that STORAGE_MAX_AUDIT_EVENTS caps the stored audit log."""
        monkeypatch.setenv("STORAGE_MAX_AUDIT_EVENTS", "3")
        engine = await LiquidityEngine.open(store, clock=clock, settings=Settings())

        for _ in range(5):
            await engine.record_transaction(coffee())

        assert len(store.snapshot()["audit_log"]) == 3


class TestPayments:
    """Tests for payments and receipts through the engine."""

    async def test_payment_persists_in_one_write(self, clock, settings, rent_bill):
        """Test that the ledger entry and the obligation update are written together."""
        store = RecordingStore()
        engine = await LiquidityEngine.open(store, clock=clock, settings=settings)
        await engine.register_obligation(rent_bill)

        store.writes.clear()
        txn = await engine.apply_expense_payment("rent", "200", payment_date=date(2025, 3, 1))

        ledger_writes = [keys for keys in store.writes if "transactions" in keys]
        assert ledger_writes == [{"transactions", "recurring_expenses", "recurring_incomes"}]

        persisted = store.snapshot()
        assert persisted["transactions"][0]["id"] == txn.id
        assert persisted["recurring_expenses"][0]["next_due_date"] == "2025-04-01"

    async def test_payment_is_audited_with_correlation(self, engine, store, rent_bill):
        """Test that the ledger entry and the settlement share a correlation id."""
        await engine.register_obligation(rent_bill)
        await engine.apply_expense_payment("rent", "200")

        events = await KeyValueAuditStorage(store).get_recent_events()
        recorded = next(e for e in events if e.event_type == AuditEventType.TRANSACTION_RECORDED)
        settled = next(e for e in events if e.event_type == AuditEventType.EXPENSE_SETTLED)
        assert recorded.correlation_id is not None
        assert recorded.correlation_id == settled.correlation_id

    async def test_partial_payment(self, engine, store, rent_bill):
        """Test that a short payment is audited as partial."""
        await engine.register_obligation(rent_bill)
        await engine.apply_expense_payment("rent", "50")

        assert engine.get_obligation("rent").accumulated_overdue == Decimal("150")
        assert AuditEventType.EXPENSE_PARTIALLY_PAID in await audit_types(store)

    @pytest.mark.parametrize("amount", ["0", "-10"])
    async def test_rejected_amount_changes_nothing(self, engine, store, rent_bill, amount):
        """Test that a non-positive payment is refused and audited."""
        await engine.register_obligation(rent_bill)
        before = store.snapshot()

        with pytest.raises(InvalidAmountError):
            await engine.apply_expense_payment("rent", amount)

        after = store.snapshot()
        assert after.get("transactions") == before.get("transactions")
        assert after["recurring_expenses"] == before["recurring_expenses"]
        assert engine.get_obligation("rent") == rent_bill
        assert AuditEventType.AMOUNT_REJECTED in await audit_types(store)

    async def test_income_receipts(self, engine, store, salary):
        """Test partial then confirming receipts."""
        await engine.register_obligation(salary)
        await engine.apply_income_receipt("salary", "1000")
        assert engine.get_obligation("salary").accumulated_received == Decimal("1000")

        await engine.apply_income_receipt("salary", "2000")
        income = engine.get_obligation("salary")
        assert income.accumulated_received == Decimal("0")
        assert income.next_confirmation_date == date(2025, 4, 25)

        types = await audit_types(store)
        assert AuditEventType.INCOME_PARTIALLY_RECEIVED in types
        assert AuditEventType.INCOME_CONFIRMED in types


class TestCycleRollover:
    """Tests for the cycle check driven through the engine."""

    async def test_unpaid_bill_becomes_overdue_once(self, engine, store, clock, rent_bill):
        """Test rollover across the anchor day and its idempotence."""
        await engine.register_obligation(rent_bill)

        clock.set(datetime(2025, 3, 26, 8, 0))
        result = await engine.run_cycle_check()
        assert result.transitioned is True
        assert result.overdue_bill_ids == ["rent"]
        assert engine.get_obligation("rent").accumulated_overdue == Decimal("200")
        assert store.snapshot()["last_cycle_key"] == "2025-03"

        again = await engine.run_cycle_check()
        assert again.transitioned is False
        assert engine.get_obligation("rent").accumulated_overdue == Decimal("200")

    async def test_paid_bill_is_not_overdue(self, engine, clock, rent_bill):
        """Test that a payment inside the closed cycle counts."""
        await engine.register_obligation(rent_bill)
        await engine.apply_expense_payment("rent", "200", payment_date=date(2025, 3, 1))

        clock.set(datetime(2025, 3, 26, 8, 0))
        result = await engine.run_cycle_check()
        assert result.overdue_bill_ids == []
        assert engine.get_obligation("rent").accumulated_overdue == Decimal("0")

    async def test_mutation_runs_the_check_first(self, engine, store, clock, rent_bill, salary):
        """Test that the first mutation in a new cycle rolls over before applying."""
        await engine.register_obligation(rent_bill)
        await engine.register_obligation(salary)
        await engine.apply_income_receipt("salary", "500")

        clock.advance(days=16)
        await engine.record_transaction(coffee())

        assert engine.get_obligation("rent").accumulated_overdue == Decimal("200")
        assert engine.get_obligation("salary").accumulated_received == Decimal("0")
        assert store.snapshot()["last_cycle_key"] == "2025-03"
        assert AuditEventType.CYCLE_ROLLED_OVER in await audit_types(store)

    async def test_clock_failure(self, store, settings, rent_bill):
        """Test that an unreadable clock aborts the check without changes."""
        clock = FlakyClock(datetime(2025, 3, 10, 9, 0))
        engine = await LiquidityEngine.open(store, clock=clock, settings=settings)
        await engine.register_obligation(rent_bill)
        before = store.snapshot()

        clock.broken = True
        with pytest.raises(CycleCheckError):
            await engine.run_cycle_check()

        after = store.snapshot()
        assert after["last_cycle_key"] == "2025-02"
        assert after["recurring_expenses"] == before["recurring_expenses"]
        assert AuditEventType.CYCLE_CHECK_FAILED in await audit_types(store)

    async def test_clock_moved_back_keeps_persisted_key(self, engine, store, clock, rent_bill):
        """Test that a clock set back one cycle is audited and leaves state alone."""
        await engine.register_obligation(rent_bill)
        clock.set(datetime(2025, 3, 26, 8, 0))
        await engine.run_cycle_check()
        before = store.snapshot()

        clock.set(datetime(2025, 3, 10, 9, 0))
        result = await engine.run_cycle_check()

        assert result.transitioned is False
        assert engine.last_cycle_key == result.current_key
        assert str(engine.last_cycle_key) == "2025-03"
        after = store.snapshot()
        assert after["last_cycle_key"] == "2025-03"
        assert after["recurring_expenses"] == before["recurring_expenses"]
        assert engine.get_obligation("rent").accumulated_overdue == Decimal("200")
        assert AuditEventType.CYCLE_CLOCK_BEHIND in await audit_types(store)


class TestLedgerOperations:
    """Tests for recording, editing and deleting transactions."""

    async def test_record_defaults_to_today(self, engine):
        """Test that an undated draft is recorded for the clock's today."""
        txn = await engine.record_transaction(coffee())
        assert txn.transaction_date == date(2025, 3, 10)
        assert engine.get_transaction(txn.id) == txn

    async def test_edit_keeps_id_and_date(self, engine):
        """Test that an edit replaces the record wholesale."""
        txn = await engine.record_transaction(coffee(on=date(2025, 3, 1)))
        edited = await engine.edit_transaction(txn.id, coffee("6"))

        assert edited.id == txn.id
        assert edited.amount == Decimal("6")
        assert edited.transaction_date == date(2025, 3, 1)
        assert engine.transactions() == [edited]

    async def test_delete_unlinked(self, engine, store):
        """Test plain deletion."""
        txn = await engine.record_transaction(coffee())
        await engine.delete_transaction(txn.id)
        assert engine.transactions() == []
        assert AuditEventType.TRANSACTION_DELETED in await audit_types(store)

    async def test_unlinked_transactions_exclude_bill_payments(self, engine, rent_bill):
        """Test that the manual ledger view leaves out payments against obligations."""
        await engine.register_obligation(rent_bill)
        await engine.apply_expense_payment("rent", "200", payment_date=date(2025, 3, 1))
        older = await engine.record_transaction(coffee(on=date(2025, 3, 2)))
        newer = await engine.record_transaction(coffee(on=date(2025, 3, 9)))

        assert engine.unlinked_transactions() == [newer, older]

    async def test_delete_linked_keeps_obligation(self, engine, store, rent_bill):
        """Test that deleting a payment does not reverse the bill, and says so."""
        await engine.register_obligation(rent_bill)
        txn = await engine.apply_expense_payment("rent", "200")
        settled = engine.get_obligation("rent")

        await engine.delete_transaction(txn.id)

        assert engine.get_obligation("rent") == settled
        events = await KeyValueAuditStorage(store).get_recent_events()
        warning = next(
            e for e in events if e.event_type == AuditEventType.LINKED_TRANSACTION_DELETED
        )
        assert warning.severity == AuditSeverity.WARNING
        assert warning.details["recurring_id"] == "rent"

    async def test_concurrent_mutations_serialize(self, engine):
        """Test that concurrent records all land."""
        await asyncio.gather(*(engine.record_transaction(coffee(str(i))) for i in range(1, 11)))
        assert len(engine.transactions()) == 10

    async def test_analysis_result_transaction(self, engine):
        """Test that an approved parsed transaction is recorded."""
        result = AnalysisResult(update_type=AnalysisUpdateType.TRANSACTION, transaction=coffee())
        txn = await engine.apply_analysis_result(result)
        assert engine.transactions() == [txn]


class TestAccountsAndPortfolio:
    """Tests for accounts, holdings and prices."""

    @pytest.fixture
    def binance(self):
        return Account(id="binance", name="Binance", account_type=AccountType.INVESTMENT)

    async def test_duplicate_account(self, engine, checking_account):
        """Test that account ids are unique."""
        await engine.register_account(checking_account)
        with pytest.raises(DuplicateAccountError):
            await engine.register_account(checking_account)

    async def test_second_primary_rejected(self, engine, checking_account):
        """Test that only one account can be primary."""
        await engine.register_account(checking_account)
        other = Account(
            id="savings-bank",
            name="Credit Union",
            account_type=AccountType.CREDIT_UNION,
            is_primary=True,
        )
        with pytest.raises(PrimaryAccountConflictError):
            await engine.register_account(other)
        assert [a.id for a in engine.accounts()] == ["checking"]

    async def test_portfolio_upsert(self, engine, binance):
        """Test that a new holding takes the latest price and an update keeps it."""
        await engine.register_account(binance)
        await engine.update_prices([MarketPrice(symbol="BTC", price=Decimal("90000"))])

        await engine.apply_portfolio_update(
            PortfolioUpdate(provider="binance", symbol="btc", quantity=Decimal("0.5"))
        )
        await engine.update_prices([MarketPrice(symbol="BTC", price=Decimal("100000"))])
        account = await engine.apply_portfolio_update(
            PortfolioUpdate(provider="binance", symbol="BTC", quantity=Decimal("1"))
        )

        assert len(account.holdings) == 1
        assert account.holdings[0].quantity == Decimal("1")
        assert account.holdings[0].purchase_price == Decimal("90000")
        assert engine.portfolio_value() == Decimal("100000")

    async def test_portfolio_update_unknown_account(self, engine):
        """Test updating a provider that was never linked."""
        with pytest.raises(AccountNotFoundError):
            await engine.apply_portfolio_update(
                PortfolioUpdate(provider="kraken", symbol="BTC", quantity=Decimal("1"))
            )

    async def test_portfolio_update_bank_account(self, engine, checking_account):
        """Test that holdings only go into investment accounts."""
        await engine.register_account(checking_account)
        with pytest.raises(ValueError):
            await engine.apply_portfolio_update(
                PortfolioUpdate(provider="checking", symbol="BTC", quantity=Decimal("1"))
            )

    async def test_analysis_result_portfolio(self, engine, binance):
        """Test that an approved parsed statement updates holdings."""
        await engine.register_account(binance)
        result = AnalysisResult(
            update_type=AnalysisUpdateType.PORTFOLIO,
            portfolio=PortfolioUpdate(provider="binance", symbol="ETH", quantity=Decimal("2")),
        )
        account = await engine.apply_analysis_result(result)
        assert account.holdings[0].symbol == "ETH"
        assert account.holdings[0].purchase_price == Decimal("0")

    async def test_price_update_does_not_wait_for_mutations(self, engine):
        """Test that prices can be replaced while a mutation holds the lock."""
        await engine.load()
        async with engine._lock:
            await asyncio.wait_for(
                engine.update_prices([MarketPrice(symbol="SOL", price=Decimal("150"))]),
                timeout=1,
            )
        assert engine.latest_prices["SOL"].price == Decimal("150")


class TestGoalsThroughEngine:
    """Tests for saving goals through the engine."""

    async def test_contribute_and_withdraw(self, engine, store, checking_account):
        """Test that goal moves are persisted with their ledger entries."""
        await engine.register_account(checking_account)
        await engine.register_goal(SavingGoal(
            id="car",
            name="New Car",
            target_amount=Decimal("5000"),
            institution="hysa",
        ))

        await engine.contribute_to_goal("car", "300", source_account_id="checking")
        await engine.withdraw_from_goal("car", "100", destination_account_id="checking")

        assert engine.goals()[0].current_amount == Decimal("200")
        assert store.snapshot()["saving_goals"][0]["current_amount"] == "200"
        assert len(store.snapshot()["transactions"]) == 2
        assert engine.balances()["checking"].balance == Decimal("800")

    async def test_round_trip_without_institution(self, engine):
        """Test that contributing then withdrawing the same amount restores liquid funds."""
        await engine.register_goal(SavingGoal(id="g", name="Holiday", target_amount=Decimal("500")))
        before = engine.liquid_funds()

        await engine.contribute_to_goal("g", "100")
        assert engine.liquid_funds() == before - Decimal("100")
        await engine.withdraw_from_goal("g", "100")

        assert engine.liquid_funds() == before
        assert engine.goals()[0].current_amount == Decimal("0")

    async def test_remove_goal_keeps_transactions(self, engine, store):
        """Test that a removed goal is gone from state while its ledger entries stay."""
        await engine.register_goal(SavingGoal(id="car", name="Car", target_amount=Decimal("900")))
        contribution = await engine.contribute_to_goal("car", "150")

        removed = await engine.remove_goal("car")

        assert removed.current_amount == Decimal("150")
        assert engine.goals() == []
        assert store.snapshot()["saving_goals"] == []
        assert engine.goal_transactions("car") == [contribution]
        assert AuditEventType.GOAL_REMOVED in await audit_types(store)
        with pytest.raises(GoalNotFoundError):
            await engine.remove_goal("car")

    async def test_duplicate_goal(self, engine):
        """Test that registering a goal id twice is refused."""
        await engine.register_goal(SavingGoal(id="car", name="Car", target_amount=Decimal("900")))
        with pytest.raises(DuplicateGoalError):
            await engine.register_goal(SavingGoal(id="car", name="Van", target_amount=Decimal("1")))

    async def test_rejected_contribution(self, engine, store):
        """Test that a zero contribution is audited."""
        await engine.register_goal(SavingGoal(id="car", name="Car", target_amount=Decimal("10")))
        with pytest.raises(InvalidAmountError):
            await engine.contribute_to_goal("car", 0)
        assert AuditEventType.AMOUNT_REJECTED in await audit_types(store)


class TestReadViews:
    """Tests for the derived liquidity views."""

    async def test_summary(self, engine, checking_account, rent_bill, salary):
        """Test the dashboard numbers on 10 March with anchor day 25."""
        await engine.register_account(checking_account)
        await engine.register_obligation(rent_bill)
        await engine.register_obligation(salary)

        summary = engine.summary()
        assert summary.liquid_funds == Decimal("1000")
        assert summary.net_worth == Decimal("1000")
        assert summary.monthly_net == Decimal("2800")
        assert summary.safety_margin == Decimal("2800")
        assert summary.days_until_next_anchor == 15
        assert summary.daily_spend_limit == Decimal("186.67")
        assert summary.primary_account_id == "checking"
        assert engine.daily_spend_limit() == summary.daily_spend_limit

    async def test_projection_starts_in_current_month(self, engine, checking_account, salary):
        """Test the default projection horizon and labels."""
        await engine.register_account(checking_account)
        await engine.register_obligation(salary)

        points = engine.projection()
        assert len(points) == 12
        assert points[0].label == "Mar"
        assert points[1].projected_balance == Decimal("4000")

    async def test_net_worth_snapshot(self, engine, store, checking_account):
        """Test that today's snapshot is written once and kept while stable."""
        await engine.register_account(checking_account)

        history = await engine.record_net_worth_snapshot()
        assert [(s.snapshot_date, s.value) for s in history] == [(date(2025, 3, 10), Decimal("1000"))]
        assert store.snapshot()["net_worth_history"][0]["value"] == "1000"

        writes = store.write_count
        await engine.record_net_worth_snapshot()
        assert store.write_count == writes


class TestObligationManagement:
    """Tests for replacing and removing obligations through the engine."""

    async def test_replace_keeps_id(self, engine, store, rent_bill):
        """Test that a replacement takes over the id and is persisted."""
        await engine.register_obligation(rent_bill)
        new_lease = rent_bill.model_copy(update={"id": "ignored", "amount": Decimal("250")})

        replaced = await engine.replace_obligation("rent", new_lease)

        assert replaced.id == "rent"
        assert engine.get_obligation("rent").amount == Decimal("250")
        assert store.snapshot()["recurring_expenses"][0]["amount"] == "250"
        assert AuditEventType.OBLIGATION_REPLACED in await audit_types(store)

    async def test_replace_with_other_kind(self, engine, rent_bill, salary):
        """Test that a bill cannot be replaced by an income."""
        await engine.register_obligation(rent_bill)
        with pytest.raises(TypeError):
            await engine.replace_obligation("rent", salary)
        assert engine.get_obligation("rent") == rent_bill

    async def test_remove_keeps_linked_transactions(self, engine, store, rent_bill):
        """Test that removing a bill leaves its payments in the ledger."""
        await engine.register_obligation(rent_bill)
        txn = await engine.apply_expense_payment("rent", "200")

        await engine.remove_obligation("rent")

        assert engine.expenses() == []
        assert engine.transactions() == [txn]
        assert AuditEventType.OBLIGATION_REMOVED in await audit_types(store)

    async def test_cycle_priority(self, engine, clock, rent_bill, salary):
        """Test that anchor-day items and overdue bills are prioritised."""
        await engine.register_obligation(rent_bill)
        await engine.register_obligation(salary)

        bills, incomes = engine.cycle_priority()
        assert bills == []
        assert [i.id for i in incomes] == ["salary"]
        assert engine.cycle_priority_totals() == (Decimal("0"), Decimal("3000"))

        clock.set(datetime(2025, 3, 26, 8, 0))
        await engine.run_cycle_check()
        bills, _ = engine.cycle_priority()
        assert [b.id for b in bills] == ["rent"]
        assert engine.cycle_priority_totals()[0] == Decimal("400")

    async def test_bill_statuses(self, engine, rent_bill):
        """Test the paid flag once a bill is settled."""
        await engine.register_obligation(rent_bill)
        assert engine.bill_statuses()[0].is_paid_this_cycle is False

        await engine.apply_expense_payment("rent", "200")
        status = engine.bill_statuses()[0]
        assert status.is_paid_this_cycle is True
        assert status.is_overdue is False


class TestAnalytics:
    """Tests for the longer-range views."""

    async def test_category_averages(self, engine):
        """Test that averages are taken over the months a category was spent in."""
        await engine.record_transaction(coffee("4.50", on=date(2025, 2, 1)))
        await engine.record_transaction(coffee("5.50", on=date(2025, 3, 1)))
        assert engine.category_averages() == {"Food": Decimal("5.00")}

    async def test_growth_projection(self, engine, checking_account, salary):
        """Test the quarterly sampling of a one-year projection."""
        await engine.register_account(checking_account)
        await engine.register_obligation(salary)

        growth = engine.growth_projection(years=1, monthly_contribution="0", annual_return_pct="0")
        assert [p.month for p in growth.points] == [0, 3, 6, 9, 12]
        assert growth.points[-1].label == "Yr 1"
        assert growth.final_value == Decimal("37000")
