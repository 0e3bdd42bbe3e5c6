"""
Engine State Repository

Maps the engine's in-memory state onto storage keys and back.

DESIGN DECISION: Each key is validated on its own. A key whose persisted
value is malformed falls back to its empty default and is reported, so
one corrupted list never takes the rest of the state down with it.
"""

from typing import Any, Callable, Iterable, Optional

from pydantic import TypeAdapter

from liquidity_engine.errors import EngineError
from liquidity_engine.ledger import LedgerStore
from liquidity_engine.models.ledger import Account, NetWorthSnapshot, SavingGoal, Transaction
from liquidity_engine.models.obligation import CycleKey, RecurringExpense, RecurringIncome
from liquidity_engine.obligations.registry import ObligationRegistry
from liquidity_engine.savings import SavingGoalBook
from liquidity_engine.services.storage.interface import JSONValue, KeyValueStore


TRANSACTIONS_KEY = "transactions"
RECURRING_EXPENSES_KEY = "recurring_expenses"
RECURRING_INCOMES_KEY = "recurring_incomes"
ACCOUNTS_KEY = "accounts"
SAVING_GOALS_KEY = "saving_goals"
LAST_CYCLE_KEY = "last_cycle_key"
NET_WORTH_HISTORY_KEY = "net_worth_history"
AUDIT_LOG_KEY = "audit_log"

STATE_KEYS = [
    TRANSACTIONS_KEY,
    RECURRING_EXPENSES_KEY,
    RECURRING_INCOMES_KEY,
    ACCOUNTS_KEY,
    SAVING_GOALS_KEY,
    LAST_CYCLE_KEY,
    NET_WORTH_HISTORY_KEY,
]

_transactions = TypeAdapter(list[Transaction])
_expenses = TypeAdapter(list[RecurringExpense])
_incomes = TypeAdapter(list[RecurringIncome])
_accounts = TypeAdapter(list[Account])
_goals = TypeAdapter(list[SavingGoal])
_history = TypeAdapter(list[NetWorthSnapshot])


class EngineState:
    """Everything the engine persists, as live domain objects."""

    def __init__(
        self,
        ledger: Optional[LedgerStore] = None,
        registry: Optional[ObligationRegistry] = None,
        accounts: Optional[dict[str, Account]] = None,
        goals: Optional[SavingGoalBook] = None,
        last_cycle_key: Optional[CycleKey] = None,
        net_worth_history: Optional[list[NetWorthSnapshot]] = None,
    ):
        self.ledger = ledger or LedgerStore()
        self.registry = registry or ObligationRegistry()
        self.accounts = accounts or {}
        self.goals = goals or SavingGoalBook()
        self.last_cycle_key = last_cycle_key
        self.net_worth_history = net_worth_history or []

    def copy(self) -> "EngineState":
        """Working copy for a mutation; models are immutable so a shallow copy per part is enough."""
        return EngineState(
            ledger=self.ledger.copy(),
            registry=self.registry.copy(),
            accounts=dict(self.accounts),
            goals=self.goals.copy(),
            last_cycle_key=self.last_cycle_key,
            net_worth_history=list(self.net_worth_history),
        )


def _parse_cycle_key(raw: Any) -> CycleKey:
    if not isinstance(raw, str):
        raise ValueError(f"cycle key must be a string, got {type(raw).__name__}")
    return CycleKey.parse(raw)


class StateRepository:
    """
    Reads and writes EngineState through a KeyValueStore.

    Args:
        store: Backing key-value store
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def _read(
        self,
        key: str,
        parse: Callable[[Any], Any],
        default: Any,
        fallbacks: list[tuple[str, str]],
    ) -> Any:
        raw = await self._store.get(key)
        if raw is None:
            return default
        try:
            return parse(raw)
        except (ValueError, EngineError) as e:
            fallbacks.append((key, str(e)))
            return default

    async def load(self) -> tuple[EngineState, list[tuple[str, str]]]:
        """
        Load the persisted state.

        Returns:
            (state, fallbacks) where fallbacks lists (key, error) for every
            key that was present but unreadable and got its default instead
        """
        fallbacks: list[tuple[str, str]] = []

        transactions = await self._read(
            TRANSACTIONS_KEY,
            lambda raw: LedgerStore(_transactions.validate_python(raw)),
            LedgerStore(),
            fallbacks,
        )
        expenses = await self._read(
            RECURRING_EXPENSES_KEY, _expenses.validate_python, [], fallbacks
        )
        incomes = await self._read(
            RECURRING_INCOMES_KEY, _incomes.validate_python, [], fallbacks
        )
        accounts = await self._read(
            ACCOUNTS_KEY,
            lambda raw: {a.id: a for a in _accounts.validate_python(raw)},
            {},
            fallbacks,
        )
        goals = await self._read(
            SAVING_GOALS_KEY,
            lambda raw: SavingGoalBook(_goals.validate_python(raw)),
            SavingGoalBook(),
            fallbacks,
        )
        last_cycle_key = await self._read(LAST_CYCLE_KEY, _parse_cycle_key, None, fallbacks)
        history = await self._read(
            NET_WORTH_HISTORY_KEY, _history.validate_python, [], fallbacks
        )

        state = EngineState(
            ledger=transactions,
            registry=ObligationRegistry(expenses, incomes),
            accounts=accounts,
            goals=goals,
            last_cycle_key=last_cycle_key,
            net_worth_history=history,
        )
        return state, fallbacks

    @staticmethod
    def dump(state: EngineState, keys: Optional[Iterable[str]] = None) -> dict[str, JSONValue]:
        """JSON-ready values for the given keys (all state keys by default)."""
        dumpers: dict[str, Callable[[], JSONValue]] = {
            TRANSACTIONS_KEY: lambda: _transactions.dump_python(state.ledger.all(), mode="json"),
            RECURRING_EXPENSES_KEY: lambda: _expenses.dump_python(
                state.registry.expenses(), mode="json"
            ),
            RECURRING_INCOMES_KEY: lambda: _incomes.dump_python(
                state.registry.incomes(), mode="json"
            ),
            ACCOUNTS_KEY: lambda: _accounts.dump_python(list(state.accounts.values()), mode="json"),
            SAVING_GOALS_KEY: lambda: _goals.dump_python(state.goals.goals(), mode="json"),
            LAST_CYCLE_KEY: lambda: (
                str(state.last_cycle_key) if state.last_cycle_key is not None else None
            ),
            NET_WORTH_HISTORY_KEY: lambda: _history.dump_python(
                state.net_worth_history, mode="json"
            ),
        }
        return {key: dumpers[key]() for key in (keys or STATE_KEYS)}

    async def save(self, state: EngineState, keys: Optional[Iterable[str]] = None) -> None:
        """Persist the given keys in a single atomic write."""
        await self._store.set_many(self.dump(state, keys))
