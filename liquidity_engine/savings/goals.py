"""
Saving Goals

Goal balances move only through explicit contribute and withdraw calls.
Each call records a ledger transaction carrying saving_goal_id, so the
link between money and goal is a foreign key set at creation time and
never inferred from a description.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from liquidity_engine.errors import (
    DuplicateGoalError,
    GoalNotFoundError,
    InsufficientGoalBalanceError,
)
from liquidity_engine.ledger.store import LedgerStore
from liquidity_engine.models.ledger import (
    SavingGoal,
    Transaction,
    TransactionDirection,
    TransactionDraft,
)
from liquidity_engine.obligations.resolver import require_positive, to_amount


class SavingGoalBook:
    """Saving goals keyed by id."""

    def __init__(self, goals: Iterable[SavingGoal] = ()):
        self._goals: dict[str, SavingGoal] = {g.id: g for g in goals}

    def copy(self) -> "SavingGoalBook":
        return SavingGoalBook(self._goals.values())

    def register(self, goal: SavingGoal) -> str:
        """Add a goal; current_amount is its opening balance."""
        if goal.id in self._goals:
            raise DuplicateGoalError(f"Saving goal already registered: {goal.id}")
        self._goals[goal.id] = goal
        return goal.id

    def get(self, goal_id: str) -> SavingGoal:
        try:
            return self._goals[goal_id]
        except KeyError:
            raise GoalNotFoundError(goal_id) from None

    def goals(self) -> list[SavingGoal]:
        return list(self._goals.values())

    def remove(self, goal_id: str) -> SavingGoal:
        """Drop a goal. Ledger entries linked to it stay in the ledger."""
        try:
            return self._goals.pop(goal_id)
        except KeyError:
            raise GoalNotFoundError(goal_id) from None

    def contribute(
        self,
        goal_id: str,
        amount: Union[Decimal, int, float, str],
        on: date,
        ledger: LedgerStore,
        source_account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Move money into a goal.

        Records a savings transaction debiting source_account_id (and
        crediting the goal's institution, if any) and raises the goal
        balance by the same amount.
        """
        amount = require_positive("goal contribution", to_amount(amount))
        goal = self.get(goal_id)

        transaction = ledger.record(
            TransactionDraft(
                amount=amount,
                description=f"Contribution to {goal.name}",
                category=goal.category,
                direction=TransactionDirection.SAVINGS,
                transaction_date=on,
                source_account_id=source_account_id,
                destination_account_id=goal.institution,
                saving_goal_id=goal.id,
            ),
            default_date=on,
        )
        self._goals[goal.id] = goal.model_copy(
            update={"current_amount": goal.current_amount + amount}
        )
        return transaction

    def withdraw(
        self,
        goal_id: str,
        amount: Union[Decimal, int, float, str],
        on: date,
        ledger: LedgerStore,
        destination_account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Take money out of a goal back into an operating account.

        Raises:
            InsufficientGoalBalanceError: the goal holds less than amount
        """
        amount = require_positive("goal withdrawal", to_amount(amount))
        goal = self.get(goal_id)
        if amount > goal.current_amount:
            raise InsufficientGoalBalanceError(
                f"Goal {goal.name} holds {goal.current_amount}, cannot withdraw {amount}"
            )

        transaction = ledger.record(
            TransactionDraft(
                amount=amount,
                description=f"Withdrawal from {goal.name}",
                category=goal.category,
                direction=TransactionDirection.WITHDRAWAL,
                transaction_date=on,
                source_account_id=goal.institution,
                destination_account_id=destination_account_id,
                saving_goal_id=goal.id,
            ),
            default_date=on,
        )
        self._goals[goal.id] = goal.model_copy(
            update={"current_amount": goal.current_amount - amount}
        )
        return transaction
