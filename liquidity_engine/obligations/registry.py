"""
Recurring Obligation Registry

Holds the current definition and running state of every recurring expense
and income. The registry itself has no side effects beyond its own maps:
removing an obligation never touches transactions already recorded
against it.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Union

from liquidity_engine.errors import DuplicateObligationError, ObligationNotFoundError
from liquidity_engine.models.obligation import (
    BillStatus,
    IncomeStatus,
    RecurringExpense,
    RecurringIncome,
)

Obligation = Union[RecurringExpense, RecurringIncome]


class ObligationRegistry:
    """
    Registry of recurring expenses and incomes keyed by id.

    Ids are unique across both kinds so a transaction's recurring_id
    always resolves to exactly one obligation.
    """

    def __init__(
        self,
        expenses: Iterable[RecurringExpense] = (),
        incomes: Iterable[RecurringIncome] = (),
    ):
        self._expenses: dict[str, RecurringExpense] = {e.id: e for e in expenses}
        self._incomes: dict[str, RecurringIncome] = {i.id: i for i in incomes}

    def copy(self) -> "ObligationRegistry":
        return ObligationRegistry(self._expenses.values(), self._incomes.values())

    def register(self, definition: Obligation) -> str:
        """
        Add a new obligation and return its id.

        Running state starts clean: no overdue carried, nothing received.
        """
        if definition.id in self._expenses or definition.id in self._incomes:
            raise DuplicateObligationError(f"Obligation already registered: {definition.id}")

        if isinstance(definition, RecurringExpense):
            self._expenses[definition.id] = definition.model_copy(
                update={"accumulated_overdue": Decimal("0")}
            )
        else:
            self._incomes[definition.id] = definition.model_copy(
                update={"accumulated_received": Decimal("0")}
            )
        return definition.id

    def get(self, recurring_id: str) -> Obligation:
        if recurring_id in self._expenses:
            return self._expenses[recurring_id]
        if recurring_id in self._incomes:
            return self._incomes[recurring_id]
        raise ObligationNotFoundError(recurring_id)

    def get_expense(self, recurring_id: str) -> RecurringExpense:
        try:
            return self._expenses[recurring_id]
        except KeyError:
            raise ObligationNotFoundError(f"No recurring expense {recurring_id}") from None

    def get_income(self, recurring_id: str) -> RecurringIncome:
        try:
            return self._incomes[recurring_id]
        except KeyError:
            raise ObligationNotFoundError(f"No recurring income {recurring_id}") from None

    def expenses(self) -> list[RecurringExpense]:
        return list(self._expenses.values())

    def incomes(self) -> list[RecurringIncome]:
        return list(self._incomes.values())

    def replace(self, recurring_id: str, new_definition: Obligation) -> Obligation:
        """Replace an obligation wholesale, keeping its id."""
        current = self.get(recurring_id)
        if type(current) is not type(new_definition):
            raise TypeError("Cannot replace an expense with an income or vice versa")

        replacement = new_definition.model_copy(update={"id": recurring_id})
        self.put(replacement)
        return replacement

    def remove(self, recurring_id: str) -> Obligation:
        if recurring_id in self._expenses:
            return self._expenses.pop(recurring_id)
        if recurring_id in self._incomes:
            return self._incomes.pop(recurring_id)
        raise ObligationNotFoundError(recurring_id)

    def put(self, obligation: Obligation) -> None:
        """Store updated running state. Used by the resolver and the scheduler."""
        if isinstance(obligation, RecurringExpense):
            self._expenses[obligation.id] = obligation
        else:
            self._incomes[obligation.id] = obligation

    # -------------------------------------------------------------------------
    # Totals and derived views
    # -------------------------------------------------------------------------

    def total_expense_amount(self) -> Decimal:
        return sum((e.amount for e in self._expenses.values()), Decimal("0"))

    def total_income_amount(self) -> Decimal:
        return sum((i.amount for i in self._incomes.values()), Decimal("0"))

    def total_overdue(self) -> Decimal:
        return sum((e.accumulated_overdue for e in self._expenses.values()), Decimal("0"))

    def bill_statuses(self, today: date) -> list[BillStatus]:
        """A bill counts as paid for the cycle once its due date moved past today with nothing overdue."""
        return [
            BillStatus(
                expense=e,
                total_due=e.total_due,
                is_paid_this_cycle=e.next_due_date > today and e.accumulated_overdue == 0,
                is_overdue=e.accumulated_overdue > 0,
            )
            for e in self._expenses.values()
        ]

    def income_statuses(self, today: date) -> list[IncomeStatus]:
        return [
            IncomeStatus(
                income=i,
                remaining=i.remaining,
                is_received_this_cycle=i.next_confirmation_date > today,
            )
            for i in self._incomes.values()
        ]

    def cycle_priority_bills(self, anchor_day: int) -> list[RecurringExpense]:
        """Bills falling due around the anchor day, plus anything already overdue."""
        return [
            e for e in self._expenses.values()
            if e.day_of_month >= anchor_day or e.accumulated_overdue > 0
        ]

    def cycle_priority_incomes(self, anchor_day: int) -> list[RecurringIncome]:
        return [i for i in self._incomes.values() if i.day_of_month >= anchor_day]

    def cycle_priority_totals(self, anchor_day: int) -> tuple[Decimal, Decimal]:
        """(bills total due, incomes total) for the anchor-day settlement."""
        bills = sum(
            (e.total_due for e in self.cycle_priority_bills(anchor_day)),
            Decimal("0"),
        )
        incomes = sum(
            (i.amount for i in self.cycle_priority_incomes(anchor_day)),
            Decimal("0"),
        )
        return bills, incomes

    # Keep below every annotation that uses the builtin list.
    def list(self) -> list[Obligation]:
        return [*self._expenses.values(), *self._incomes.values()]
