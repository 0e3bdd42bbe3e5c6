"""
Liquidity Engine

This module ties together the ledger, the obligation registry, the cycle
scheduler, the aggregator and the projector behind one async facade, and
owns persistence of their state.

DESIGN DECISION: The engine enforces the boundaries:
- Every mutation works on a copy of the state, persists the changed keys
  in one atomic write, and only then swaps the copy in. Readers see the
  state before or after a payment, never a ledger entry without its
  obligation update.
- Mutations run one at a time behind an asyncio lock. Price updates do
  not take the lock; they only replace the price map the next read uses.
- Every mutation starts with a cycle check, and so does load(), so a
  rollover is never missed and never applied twice (the persisted cycle
  key guards it).
- Every step is audited.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from liquidity_engine.audit import AuditLogger, create_correlation_id
from liquidity_engine.clock import Clock, SystemClock
from liquidity_engine.config import Settings, get_settings
from liquidity_engine.errors import (
    AccountNotFoundError,
    CycleCheckError,
    DuplicateAccountError,
    InvalidAmountError,
    PrimaryAccountConflictError,
)
from liquidity_engine.liquidity import LiquidityAggregator, price_map
from liquidity_engine.liquidity import projector
from liquidity_engine.models.audit import AuditEventBuilder, AuditEventType
from liquidity_engine.models.ledger import (
    Account,
    AccountType,
    AnalysisResult,
    AnalysisUpdateType,
    Holding,
    MarketPrice,
    NetWorthSnapshot,
    PortfolioUpdate,
    SavingGoal,
    Transaction,
    TransactionDraft,
)
from liquidity_engine.models.liquidity import (
    AccountBalance,
    GrowthProjection,
    LiquiditySummary,
    ProjectionPoint,
)
from liquidity_engine.models.obligation import (
    BillStatus,
    CycleCheckResult,
    CycleKey,
    IncomeStatus,
    RecurringExpense,
    RecurringIncome,
)
from liquidity_engine.obligations import (
    CycleSettlementScheduler,
    Obligation,
    PaymentResolver,
    require_positive,
    to_amount,
)
from liquidity_engine.services.prices import PriceFeed, PriceRefresher
from liquidity_engine.services.storage import (
    EngineState,
    JsonFileStore,
    KeyValueAuditStorage,
    KeyValueStore,
    StateRepository,
)
from liquidity_engine.services.storage.state import (
    ACCOUNTS_KEY,
    LAST_CYCLE_KEY,
    NET_WORTH_HISTORY_KEY,
    RECURRING_EXPENSES_KEY,
    RECURRING_INCOMES_KEY,
    SAVING_GOALS_KEY,
    STATE_KEYS,
    TRANSACTIONS_KEY,
)


Amount = Union[Decimal, int, float, str]

OBLIGATION_KEYS = (RECURRING_EXPENSES_KEY, RECURRING_INCOMES_KEY)
CYCLE_KEYS = (RECURRING_EXPENSES_KEY, RECURRING_INCOMES_KEY, LAST_CYCLE_KEY)
LEDGER_KEYS = (TRANSACTIONS_KEY, RECURRING_EXPENSES_KEY, RECURRING_INCOMES_KEY)


def _kind(obligation: Obligation) -> str:
    return "expense" if isinstance(obligation, RecurringExpense) else "income"


class LiquidityEngine:
    """
    The recurring obligation and liquidity engine.

    Args:
        store: Key-value store holding the engine state
        clock: Time source. Defaults to the system clock.
        settings: Configuration. Defaults to get_settings().
        audit_store: Store for the audit log. Defaults to store itself.
        audit_logger: Audit trail. Defaults to an AuditLogger writing to
            the 'audit_log' key of audit_store.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
        audit_store: Optional[KeyValueStore] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = settings or get_settings()
        cycle_settings = settings.cycle
        account_settings = settings.accounts

        self._store = store
        self._repository = StateRepository(store)
        self._clock = clock or SystemClock()
        self._scheduler = CycleSettlementScheduler(cycle_settings.anchor_day, self._clock)
        self._aggregator = LiquidityAggregator(
            cash_account_id=account_settings.cash_account_id,
            primary_account_id=account_settings.primary_account_id,
        )
        self._projection_cycles = cycle_settings.projection_cycles
        self._target_margin = cycle_settings.target_margin
        self._snapshot_threshold = cycle_settings.net_worth_snapshot_threshold
        self._audit = audit_logger or AuditLogger(KeyValueAuditStorage(
            audit_store or store,
            max_events=settings.storage.max_audit_events,
        ))

        self._state = EngineState()
        self._prices: dict[str, MarketPrice] = {}
        self._lock = asyncio.Lock()
        self._loaded = False

    @classmethod
    async def open(cls, store: KeyValueStore, **kwargs) -> "LiquidityEngine":
        """Create an engine and load its state."""
        engine = cls(store, **kwargs)
        await engine.load()
        return engine

    @classmethod
    async def open_files(
        cls,
        state_path: Optional[str] = None,
        audit_path: Optional[str] = None,
        **kwargs,
    ) -> "LiquidityEngine":
        """
        Open an engine on two JSON documents: one for state, one for the audit log.

        Paths default to STORAGE_STATE_PATH and STORAGE_AUDIT_PATH.
        """
        storage = (kwargs.get("settings") or get_settings()).storage
        return await cls.open(
            JsonFileStore(state_path or storage.state_path),
            audit_store=JsonFileStore(audit_path or storage.audit_path),
            **kwargs,
        )

    @property
    def anchor_day(self) -> int:
        return self._scheduler.anchor_day

    @property
    def clock(self) -> Clock:
        return self._clock

    # -------------------------------------------------------------------------
    # Loading and committing
    # -------------------------------------------------------------------------

    async def load(self) -> Optional[CycleCheckResult]:
        """
        Load persisted state and run the cycle check.

        Keys that cannot be read load as their defaults and are audited.

        Returns:
            The cycle check result, or None if the check could not run
        """
        async with self._lock:
            return await self._load_unlocked()

    async def reload(self) -> Optional[CycleCheckResult]:
        """Re-read state from the store, e.g. after another process changed it."""
        async with self._lock:
            await self._store.refresh()
            return await self._load_unlocked()

    async def _load_unlocked(self) -> Optional[CycleCheckResult]:
        state, fallbacks = await self._repository.load()

        if isinstance(self._store, JsonFileStore) and self._store.load_error:
            await self._audit.log_state_load_fallback(
                key=str(self._store.path),
                error_message=self._store.load_error,
            )
            self._store.load_error = None
        for key, error in fallbacks:
            await self._audit.log_state_load_fallback(key=key, error_message=error)

        self._state = state
        self._loaded = True

        working = state.copy()
        result = await self._settle_cycle(working)
        await self._commit(working, (), result)
        return result

    async def _begin(self) -> tuple[EngineState, Optional[CycleCheckResult]]:
        """Working copy for a mutation, with the cycle check already applied to it."""
        if not self._loaded:
            await self._load_unlocked()
        working = self._state.copy()
        return working, await self._settle_cycle(working)

    async def _settle_cycle(self, working: EngineState) -> Optional[CycleCheckResult]:
        try:
            result = self._scheduler.run(working.registry, working.ledger, working.last_cycle_key)
        except CycleCheckError as e:
            await self._audit.log(AuditEventBuilder.cycle_check_failed(str(e)))
            return None
        working.last_cycle_key = result.current_key
        return result

    async def _commit(
        self,
        working: EngineState,
        keys: Iterable[str],
        cycle_result: Optional[CycleCheckResult] = None,
    ) -> None:
        """Persist the changed keys in one write, then make working the live state."""
        changed = set(keys)
        if cycle_result is not None and (
            cycle_result.transitioned or cycle_result.previous_key is None
        ):
            changed.update(CYCLE_KEYS)

        if changed:
            await self._repository.save(working, [k for k in STATE_KEYS if k in changed])
        self._state = working

        if cycle_result is not None:
            await self._audit.log_cycle_check(cycle_result)

    async def _require_positive(
        self,
        operation: str,
        amount: Amount,
        entity_id: Optional[str],
    ) -> Decimal:
        try:
            return require_positive(operation, to_amount(amount))
        except InvalidAmountError as e:
            await self._audit.log_amount_rejected(e.operation, e.amount, entity_id)
            raise

    # -------------------------------------------------------------------------
    # Cycle settlement
    # -------------------------------------------------------------------------

    async def run_cycle_check(self) -> CycleCheckResult:
        """
        Roll obligations over if the anchor day was crossed since the last check.

        Safe to call any number of times: within one cycle it changes nothing.

        Raises:
            CycleCheckError: the clock could not be read (nothing changed)
        """
        async with self._lock:
            if not self._loaded:
                await self._load_unlocked()
            working = self._state.copy()
            try:
                result = self._scheduler.run(
                    working.registry, working.ledger, working.last_cycle_key
                )
            except CycleCheckError as e:
                await self._audit.log(AuditEventBuilder.cycle_check_failed(str(e)))
                raise
            working.last_cycle_key = result.current_key
            await self._commit(working, (), result)
            return result

    # -------------------------------------------------------------------------
    # Payments against obligations
    # -------------------------------------------------------------------------

    async def apply_expense_payment(
        self,
        recurring_id: str,
        amount: Amount,
        payment_date: Optional[date] = None,
        account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Pay toward a recurring bill.

        Args:
            recurring_id: The bill being paid
            amount: Payment amount, must be positive
            payment_date: Defaults to today
            account_id: Account the payment leaves from (cash bucket if None)

        Returns:
            The linked expense transaction

        Raises:
            InvalidAmountError: amount is not positive (nothing changes)
            ObligationNotFoundError: no such recurring expense
        """
        amount = await self._require_positive("expense payment", amount, recurring_id)
        correlation_id = create_correlation_id()

        async with self._lock:
            working, cycle_result = await self._begin()
            before = working.registry.get_expense(recurring_id)
            resolver = PaymentResolver(working.registry, working.ledger)
            transaction = resolver.apply_expense_payment(
                recurring_id,
                amount,
                payment_date or self._clock.today(),
                account_id=account_id,
            )
            await self._commit(working, LEDGER_KEYS, cycle_result)

        bill = self._state.registry.get_expense(recurring_id)
        await self._audit.log_transaction_recorded(
            transaction_id=transaction.id,
            direction=transaction.direction.value,
            amount=transaction.amount,
            recurring_id=recurring_id,
            correlation_id=correlation_id,
        )
        await self._audit.log(AuditEventBuilder.expense_payment_applied(
            recurring_id=recurring_id,
            amount=amount,
            settled=bill.next_due_date != before.next_due_date,
            accumulated_overdue=bill.accumulated_overdue,
            next_due_date=bill.next_due_date.isoformat(),
            correlation_id=correlation_id,
        ))
        return transaction

    async def apply_income_receipt(
        self,
        recurring_id: str,
        amount: Amount,
        receipt_date: Optional[date] = None,
        account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Receive money toward a recurring income.

        Raises:
            InvalidAmountError: amount is not positive (nothing changes)
            ObligationNotFoundError: no such recurring income
        """
        amount = await self._require_positive("income receipt", amount, recurring_id)
        correlation_id = create_correlation_id()

        async with self._lock:
            working, cycle_result = await self._begin()
            before = working.registry.get_income(recurring_id)
            resolver = PaymentResolver(working.registry, working.ledger)
            transaction = resolver.apply_income_receipt(
                recurring_id,
                amount,
                receipt_date or self._clock.today(),
                account_id=account_id,
            )
            await self._commit(working, LEDGER_KEYS, cycle_result)

        income = self._state.registry.get_income(recurring_id)
        await self._audit.log_transaction_recorded(
            transaction_id=transaction.id,
            direction=transaction.direction.value,
            amount=transaction.amount,
            recurring_id=recurring_id,
            correlation_id=correlation_id,
        )
        await self._audit.log(AuditEventBuilder.income_receipt_applied(
            recurring_id=recurring_id,
            amount=amount,
            confirmed=income.next_confirmation_date != before.next_confirmation_date,
            accumulated_received=income.accumulated_received,
            correlation_id=correlation_id,
        ))
        return transaction

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    async def record_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Record a manual, approved-parsed or bank-sync transaction.

        A draft without a date is recorded for today.
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            transaction = working.ledger.record(draft, default_date=self._clock.today())
            await self._commit(working, (TRANSACTIONS_KEY,), cycle_result)

        await self._audit.log_transaction_recorded(
            transaction_id=transaction.id,
            direction=transaction.direction.value,
            amount=transaction.amount,
            recurring_id=transaction.recurring_id,
        )
        return transaction

    async def edit_transaction(self, transaction_id: str, draft: TransactionDraft) -> Transaction:
        """
        Replace a transaction wholesale, keeping its id.

        A draft without a date keeps the original date. Obligation state is
        not recomputed.

        Raises:
            TransactionNotFoundError: no such transaction
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            current = working.ledger.get(transaction_id)
            data = draft.model_dump()
            data["id"] = transaction_id
            data["transaction_date"] = draft.transaction_date or current.transaction_date
            replacement = working.ledger.replace(Transaction(**data))
            await self._commit(working, (TRANSACTIONS_KEY,), cycle_result)

        await self._audit.log(AuditEventBuilder.transaction_edited(transaction_id))
        return replacement

    async def delete_transaction(self, transaction_id: str) -> Transaction:
        """
        Remove a transaction from the ledger.

        KNOWN LIMITATION: deleting a payment linked to a recurring obligation
        does not reverse the obligation's overdue or due date. The deletion
        is audited as a warning so the gap stays visible.

        Raises:
            TransactionNotFoundError: no such transaction
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            removed = working.ledger.remove(transaction_id)
            await self._commit(working, (TRANSACTIONS_KEY,), cycle_result)

        if removed.recurring_id is not None:
            await self._audit.log(AuditEventBuilder.linked_transaction_deleted(
                transaction_id=removed.id,
                recurring_id=removed.recurring_id,
                amount=removed.amount,
            ))
        else:
            await self._audit.log(AuditEventBuilder.transaction_deleted(removed.id))
        return removed

    # -------------------------------------------------------------------------
    # Obligation registry
    # -------------------------------------------------------------------------

    async def register_obligation(self, definition: Obligation) -> str:
        """
        Register a recurring expense or income.

        Raises:
            DuplicateObligationError: the id is already registered
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            recurring_id = working.registry.register(definition)
            await self._commit(working, OBLIGATION_KEYS, cycle_result)

        await self._audit.log(AuditEventBuilder.obligation_changed(
            AuditEventType.OBLIGATION_REGISTERED,
            _kind(definition),
            recurring_id,
            definition.description,
        ))
        return recurring_id

    async def replace_obligation(self, recurring_id: str, new_definition: Obligation) -> Obligation:
        """
        Replace an obligation's definition and state wholesale.

        Raises:
            ObligationNotFoundError: no such obligation
            TypeError: new_definition is the other kind
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            replacement = working.registry.replace(recurring_id, new_definition)
            await self._commit(working, OBLIGATION_KEYS, cycle_result)

        await self._audit.log(AuditEventBuilder.obligation_changed(
            AuditEventType.OBLIGATION_REPLACED,
            _kind(replacement),
            recurring_id,
            replacement.description,
        ))
        return replacement

    async def remove_obligation(self, recurring_id: str) -> Obligation:
        """
        Remove an obligation. Transactions already linked to it are kept.

        Raises:
            ObligationNotFoundError: no such obligation
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            removed = working.registry.remove(recurring_id)
            await self._commit(working, OBLIGATION_KEYS, cycle_result)

        await self._audit.log(AuditEventBuilder.obligation_changed(
            AuditEventType.OBLIGATION_REMOVED,
            _kind(removed),
            recurring_id,
            removed.description,
        ))
        return removed

    # -------------------------------------------------------------------------
    # Accounts and portfolio
    # -------------------------------------------------------------------------

    async def register_account(self, account: Account) -> Account:
        """
        Link a bank, cash or investment account.

        Raises:
            DuplicateAccountError: the id is already registered
            PrimaryAccountConflictError: another account is already primary
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            if account.id in working.accounts:
                raise DuplicateAccountError(f"Account already registered: {account.id}")
            if account.is_primary:
                current = [a.id for a in working.accounts.values() if a.is_primary]
                if current:
                    raise PrimaryAccountConflictError(
                        f"Account {current[0]} is already the primary operating account"
                    )
            working.accounts[account.id] = account
            await self._commit(working, (ACCOUNTS_KEY,), cycle_result)

        await self._audit.log(AuditEventBuilder.account_registered(
            account_id=account.id,
            account_type=account.account_type.value,
            opening_balance=account.opening_balance,
        ))
        return account

    async def apply_portfolio_update(self, update: PortfolioUpdate) -> Account:
        """
        Set the total quantity held for a symbol in an investment account.

        An existing holding keeps its purchase price. A new holding takes the
        latest market price as its purchase price, or 0 when none is known.

        Raises:
            AccountNotFoundError: no account with id update.provider
            ValueError: the account is not an investment account
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            account = working.accounts.get(update.provider)
            if account is None:
                raise AccountNotFoundError(update.provider)
            if account.account_type != AccountType.INVESTMENT:
                raise ValueError(f"Account {account.id} is not an investment account")

            holdings = list(account.holdings)
            for index, holding in enumerate(holdings):
                if holding.symbol == update.symbol:
                    holdings[index] = holding.model_copy(update={"quantity": update.quantity})
                    break
            else:
                quote = self._prices.get(update.symbol)
                holdings.append(Holding(
                    symbol=update.symbol,
                    quantity=update.quantity,
                    purchase_price=quote.price if quote is not None else Decimal("0"),
                ))

            updated = account.model_copy(update={"holdings": holdings})
            working.accounts[account.id] = updated
            await self._commit(working, (ACCOUNTS_KEY,), cycle_result)

        await self._audit.log(AuditEventBuilder.portfolio_updated(
            account_id=updated.id,
            symbol=update.symbol,
            quantity=update.quantity,
        ))
        return updated

    async def apply_analysis_result(
        self,
        result: AnalysisResult,
    ) -> Union[Transaction, Account]:
        """Apply an approved parsed record: a transaction or a portfolio update."""
        if result.update_type == AnalysisUpdateType.TRANSACTION:
            return await self.record_transaction(result.transaction)
        return await self.apply_portfolio_update(result.portfolio)

    # -------------------------------------------------------------------------
    # Saving goals
    # -------------------------------------------------------------------------

    async def register_goal(self, goal: SavingGoal) -> str:
        """
        Add a saving goal; its current_amount is the opening balance.

        Raises:
            DuplicateGoalError: the id is already registered
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            goal_id = working.goals.register(goal)
            await self._commit(working, (SAVING_GOALS_KEY,), cycle_result)

        await self._audit.log(AuditEventBuilder.goal_changed(
            AuditEventType.GOAL_REGISTERED, goal_id, goal.current_amount, goal.current_amount
        ))
        return goal_id

    async def contribute_to_goal(
        self,
        goal_id: str,
        amount: Amount,
        on: Optional[date] = None,
        source_account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Move money into a saving goal.

        Raises:
            InvalidAmountError: amount is not positive (nothing changes)
            GoalNotFoundError: no such goal
        """
        amount = await self._require_positive("goal contribution", amount, goal_id)
        async with self._lock:
            working, cycle_result = await self._begin()
            transaction = working.goals.contribute(
                goal_id,
                amount,
                on or self._clock.today(),
                working.ledger,
                source_account_id=source_account_id,
            )
            await self._commit(working, (TRANSACTIONS_KEY, SAVING_GOALS_KEY), cycle_result)

        await self._audit.log(AuditEventBuilder.goal_changed(
            AuditEventType.GOAL_CONTRIBUTION,
            goal_id,
            amount,
            self._state.goals.get(goal_id).current_amount,
        ))
        return transaction

    async def withdraw_from_goal(
        self,
        goal_id: str,
        amount: Amount,
        on: Optional[date] = None,
        destination_account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Take money out of a saving goal.

        Raises:
            InvalidAmountError: amount is not positive (nothing changes)
            GoalNotFoundError: no such goal
            InsufficientGoalBalanceError: the goal holds less than amount
        """
        amount = await self._require_positive("goal withdrawal", amount, goal_id)
        async with self._lock:
            working, cycle_result = await self._begin()
            transaction = working.goals.withdraw(
                goal_id,
                amount,
                on or self._clock.today(),
                working.ledger,
                destination_account_id=destination_account_id,
            )
            await self._commit(working, (TRANSACTIONS_KEY, SAVING_GOALS_KEY), cycle_result)

        await self._audit.log(AuditEventBuilder.goal_changed(
            AuditEventType.GOAL_WITHDRAWAL,
            goal_id,
            amount,
            self._state.goals.get(goal_id).current_amount,
        ))
        return transaction

    async def remove_goal(self, goal_id: str) -> SavingGoal:
        """
        Remove a saving goal. Transactions already linked to it are kept.

        Raises:
            GoalNotFoundError: no such goal
        """
        async with self._lock:
            working, cycle_result = await self._begin()
            removed = working.goals.remove(goal_id)
            await self._commit(working, (SAVING_GOALS_KEY,), cycle_result)

        await self._audit.log(AuditEventBuilder.goal_changed(
            AuditEventType.GOAL_REMOVED, goal_id, removed.current_amount, Decimal("0")
        ))
        return removed

    # -------------------------------------------------------------------------
    # Market prices
    # -------------------------------------------------------------------------

    async def update_prices(self, prices: Iterable[MarketPrice]) -> None:
        """Replace the latest price map. Does not wait for ledger mutations."""
        self._prices = price_map(prices)
        await self._audit.log(AuditEventBuilder.prices_refreshed(sorted(self._prices)))

    async def _report_price_failure(self, error: Exception) -> None:
        await self._audit.log_external_service_error(
            service="price_feed",
            error_message=str(error),
        )

    def price_refresher(self, feed: PriceFeed, **kwargs) -> PriceRefresher:
        """
        A refresher feeding this engine; start it or use it with async with.

        Refreshes that fail after every retry are audited and keep the
        previous prices.
        """
        return PriceRefresher(
            feed,
            self.update_prices,
            on_failure=self._report_price_failure,
            **kwargs,
        )

    @property
    def latest_prices(self) -> dict[str, MarketPrice]:
        return dict(self._prices)

    # -------------------------------------------------------------------------
    # Net worth history
    # -------------------------------------------------------------------------

    async def record_net_worth_snapshot(self) -> list[NetWorthSnapshot]:
        """Record today's net worth if it is new or moved past the threshold."""
        async with self._lock:
            working, cycle_result = await self._begin()
            history = projector.record_snapshot(
                working.net_worth_history,
                self._clock.today(),
                self._net_worth(working),
                self._snapshot_threshold,
            )
            changed = history is not working.net_worth_history
            working.net_worth_history = history
            await self._commit(
                working,
                (NET_WORTH_HISTORY_KEY,) if changed else (),
                cycle_result,
            )
        return list(history)

    @property
    def net_worth_history(self) -> list[NetWorthSnapshot]:
        return list(self._state.net_worth_history)

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def last_cycle_key(self) -> Optional[CycleKey]:
        return self._state.last_cycle_key

    def transactions(self) -> list[Transaction]:
        return self._state.ledger.all()

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self._state.ledger.get(transaction_id)

    def unlinked_transactions(self) -> list[Transaction]:
        """One-off entries with no recurring obligation, newest first."""
        return self._state.ledger.unlinked()

    def goal_transactions(self, goal_id: str) -> list[Transaction]:
        return self._state.ledger.for_saving_goal(goal_id)

    def obligations(self) -> list[Obligation]:
        return self._state.registry.list()

    def get_obligation(self, recurring_id: str) -> Obligation:
        return self._state.registry.get(recurring_id)

    def expenses(self) -> list[RecurringExpense]:
        return self._state.registry.expenses()

    def incomes(self) -> list[RecurringIncome]:
        return self._state.registry.incomes()

    def accounts(self) -> list[Account]:
        return list(self._state.accounts.values())

    def goals(self) -> list[SavingGoal]:
        return self._state.goals.goals()

    def _balances(self, state: EngineState) -> dict[str, AccountBalance]:
        return self._aggregator.balances(
            state.accounts.values(),
            state.ledger.all(),
            self._prices,
        )

    def _net_worth(self, state: EngineState) -> Decimal:
        balances = self._balances(state)
        return projector.net_worth(
            self._aggregator.liquid_funds(balances),
            [b.balance for b in balances.values() if b.account_type == AccountType.INVESTMENT],
        )

    def balances(self) -> dict[str, AccountBalance]:
        """Balance of every account plus the cash bucket."""
        return self._balances(self._state)

    def liquid_funds(self) -> Decimal:
        return self._aggregator.liquid_funds(self.balances())

    def portfolio_value(self) -> Decimal:
        return self._aggregator.portfolio_value(self.balances())

    def net_worth(self) -> Decimal:
        return self._net_worth(self._state)

    def monthly_net(self) -> Decimal:
        return projector.monthly_net(self._state.registry)

    def safety_margin(self) -> Decimal:
        return projector.safety_margin(self._state.registry)

    def projection(self, cycles: Optional[int] = None) -> list[ProjectionPoint]:
        """Liquid funds projected one point per future cycle."""
        return projector.projection(
            self.liquid_funds(),
            self._state.registry,
            cycles or self._projection_cycles,
            start_month=self._clock.today().month,
        )

    def daily_spend_limit(self) -> Decimal:
        return projector.daily_spend_limit(
            self._state.registry, self._clock.now(), self.anchor_day
        )

    def bill_statuses(self) -> list[BillStatus]:
        return self._state.registry.bill_statuses(self._clock.today())

    def income_statuses(self) -> list[IncomeStatus]:
        return self._state.registry.income_statuses(self._clock.today())

    def cycle_priority(self) -> tuple[list[RecurringExpense], list[RecurringIncome]]:
        """Bills and incomes that settle around the anchor day."""
        registry = self._state.registry
        return (
            registry.cycle_priority_bills(self.anchor_day),
            registry.cycle_priority_incomes(self.anchor_day),
        )

    def cycle_priority_totals(self) -> tuple[Decimal, Decimal]:
        return self._state.registry.cycle_priority_totals(self.anchor_day)

    def category_averages(self) -> dict[str, Decimal]:
        return projector.category_monthly_averages(self._state.ledger.all())

    def growth_projection(
        self,
        years: int = 5,
        monthly_contribution: Amount = Decimal("500"),
        annual_return_pct: Amount = Decimal("8"),
        category_budgets: Optional[Mapping[str, Decimal]] = None,
    ) -> GrowthProjection:
        balances = self.balances()
        return projector.growth_projection(
            current_net_worth=self.net_worth(),
            invested_balance=self._aggregator.portfolio_value(balances),
            registry=self._state.registry,
            years=years,
            monthly_contribution=to_amount(monthly_contribution),
            annual_return_pct=to_amount(annual_return_pct),
            category_budgets=category_budgets,
        )

    def summary(self) -> LiquiditySummary:
        """Everything the dashboard shows, computed from one state snapshot."""
        state = self._state
        now = self._clock.now()
        balances = self._balances(state)
        liquid = self._aggregator.liquid_funds(balances)
        portfolio = self._aggregator.portfolio_value(balances)
        margin = projector.safety_margin(state.registry)
        primary = next((b.account_id for b in balances.values() if b.is_primary), None)

        return LiquiditySummary(
            liquid_funds=liquid,
            portfolio_value=portfolio,
            net_worth=liquid + portfolio,
            monthly_net=projector.monthly_net(state.registry),
            total_overdue=state.registry.total_overdue(),
            safety_margin=margin,
            margin_progress=projector.margin_progress(margin, self._target_margin),
            daily_spend_limit=projector.daily_spend_limit(state.registry, now, self.anchor_day),
            days_until_next_anchor=projector.days_until_next_anchor(now, self.anchor_day),
            primary_account_id=primary,
        )
