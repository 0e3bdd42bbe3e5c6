"""
Ledger Store

An append-style collection of recorded transactions. Entries are immutable
once created: an edit replaces the record with the same id, a delete
removes it. Order of insertion is kept so the ledger reads chronologically
as it was recorded, but nothing downstream depends on that order.
"""

from datetime import date
from typing import Iterable, Iterator, Optional

from liquidity_engine.errors import DuplicateTransactionError, TransactionNotFoundError
from liquidity_engine.models.ledger import Transaction, TransactionDirection, TransactionDraft
from liquidity_engine.models.obligation import CycleWindow


class LedgerStore:
    """In-memory ledger keyed by transaction id."""

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._entries: dict[str, Transaction] = {}
        for txn in transactions:
            self.append(txn)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._entries.values()))

    def __contains__(self, transaction_id: str) -> bool:
        return transaction_id in self._entries

    def copy(self) -> "LedgerStore":
        return LedgerStore(self._entries.values())

    def append(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._entries:
            raise DuplicateTransactionError(f"Transaction already recorded: {transaction.id}")
        self._entries[transaction.id] = transaction
        return transaction

    def record(self, draft: TransactionDraft, default_date: date) -> Transaction:
        """Turn a draft into a transaction and append it."""
        return self.append(draft.to_transaction(default_date))

    def get(self, transaction_id: str) -> Transaction:
        try:
            return self._entries[transaction_id]
        except KeyError:
            raise TransactionNotFoundError(transaction_id) from None

    def replace(self, transaction: Transaction) -> Transaction:
        """Replace the whole record that has the same id."""
        if transaction.id not in self._entries:
            raise TransactionNotFoundError(transaction.id)
        self._entries[transaction.id] = transaction
        return transaction

    def remove(self, transaction_id: str) -> Transaction:
        try:
            return self._entries.pop(transaction_id)
        except KeyError:
            raise TransactionNotFoundError(transaction_id) from None

    def all(self) -> list[Transaction]:
        return list(self._entries.values())

    def linked_to(
        self,
        recurring_id: str,
        window: Optional[CycleWindow] = None,
        direction: Optional[TransactionDirection] = None,
    ) -> list[Transaction]:
        """Transactions paying toward a recurring obligation, optionally within a cycle."""
        return [
            t for t in self._entries.values()
            if t.recurring_id == recurring_id
            and (window is None or window.contains(t.transaction_date))
            and (direction is None or t.direction == direction)
        ]

    def for_saving_goal(self, goal_id: str) -> list[Transaction]:
        return [t for t in self._entries.values() if t.saving_goal_id == goal_id]

    def unlinked(self) -> list[Transaction]:
        """One-off entries, newest first, as the manual ledger shows them."""
        return sorted(
            (t for t in self._entries.values() if t.recurring_id is None),
            key=lambda t: t.transaction_date,
            reverse=True,
        )
