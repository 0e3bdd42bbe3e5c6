"""
Payment Resolver

Applies an incoming payment or receipt against a recurring obligation.
Each call updates the obligation's running state AND appends the linked
ledger transaction; callers never see one without the other.

RULES:
- Expense: a payment covering amount + accumulated_overdue settles the
  cycle (overdue cleared, due date advanced one month). Anything less is a
  partial payment: the shortfall becomes the new overdue and the due date
  stays put. Overpayment is accepted; the excess is not credited forward.
- Income: receipts accumulate until the base amount is reached; then the
  cycle confirms, the confirmation date advances and the counter resets to
  zero. Surplus over the base amount is discarded.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union

from liquidity_engine.errors import InvalidAmountError
from liquidity_engine.ledger.store import LedgerStore
from liquidity_engine.models.ledger import Transaction, TransactionDirection, TransactionDraft
from liquidity_engine.models.obligation import advance_one_month
from liquidity_engine.obligations.registry import ObligationRegistry


def to_amount(value: Union[Decimal, int, float, str]) -> Decimal:
    """Coerce a caller-supplied amount to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def require_positive(operation: str, amount: Decimal) -> Decimal:
    if not amount > 0:
        raise InvalidAmountError(operation, amount)
    return amount


class PaymentResolver:
    """Resolves payments and receipts against the registry, recording them in the ledger."""

    def __init__(self, registry: ObligationRegistry, ledger: LedgerStore):
        self._registry = registry
        self._ledger = ledger

    def apply_expense_payment(
        self,
        recurring_id: str,
        amount: Union[Decimal, int, float, str],
        payment_date: date,
        account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Pay toward a recurring bill.

        Args:
            recurring_id: The bill being paid
            amount: Payment amount, must be positive
            payment_date: Date the payment was made
            account_id: Account the payment leaves from (cash bucket if None)

        Returns:
            The linked expense transaction

        Raises:
            InvalidAmountError: amount is zero or negative (nothing changes)
            ObligationNotFoundError: no such recurring expense
        """
        amount = require_positive("expense payment", to_amount(amount))
        bill = self._registry.get_expense(recurring_id)

        total_due = bill.total_due
        if amount >= total_due:
            updated = bill.model_copy(update={
                "accumulated_overdue": Decimal("0"),
                "next_due_date": advance_one_month(bill.next_due_date, bill.day_of_month),
                "last_billed_date": payment_date,
            })
        else:
            updated = bill.model_copy(update={
                "accumulated_overdue": total_due - amount,
                "last_billed_date": payment_date,
            })

        transaction = TransactionDraft(
            amount=amount,
            description=bill.description,
            category=bill.category,
            direction=TransactionDirection.EXPENSE,
            transaction_date=payment_date,
            source_account_id=account_id,
            recurring_id=bill.id,
        ).to_transaction(payment_date)

        self._ledger.append(transaction)
        self._registry.put(updated)
        return transaction

    def apply_income_receipt(
        self,
        recurring_id: str,
        amount: Union[Decimal, int, float, str],
        receipt_date: date,
        account_id: Optional[str] = None,
    ) -> Transaction:
        """
        Receive money toward a recurring income.

        Raises:
            InvalidAmountError: amount is zero or negative (nothing changes)
            ObligationNotFoundError: no such recurring income
        """
        amount = require_positive("income receipt", to_amount(amount))
        income = self._registry.get_income(recurring_id)

        received = income.accumulated_received + amount
        if received >= income.amount:
            updated = income.model_copy(update={
                "accumulated_received": Decimal("0"),
                "next_confirmation_date": advance_one_month(
                    income.next_confirmation_date, income.day_of_month
                ),
                "last_confirmed_date": receipt_date,
            })
        else:
            updated = income.model_copy(update={"accumulated_received": received})

        transaction = TransactionDraft(
            amount=amount,
            description=income.description,
            category=income.category,
            direction=TransactionDirection.INCOME,
            transaction_date=receipt_date,
            source_account_id=account_id,
            recurring_id=income.id,
        ).to_transaction(receipt_date)

        self._ledger.append(transaction)
        self._registry.put(updated)
        return transaction
