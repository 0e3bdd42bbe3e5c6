"""
Recurring Obligation Models

Recurring expenses (bills) and recurring incomes repeat on a monthly
billing cycle anchored to a fixed calendar day. Each record holds both its
definition (amount, due day) and its running state (next due date,
accrued overdue or received amount).

CRITICAL: Only the payment resolver and the cycle scheduler change the
running state. accumulated_overdue never goes negative and next_due_date
only moves forward, one whole month at a time.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field, model_validator

from liquidity_engine.models.ledger import new_id


def advance_one_month(current: date, day_of_month: int) -> date:
    """
    Move a due date forward by exactly one calendar month.

    The obligation's own due day is restored, clamped to the length of the
    target month (Jan 31 -> Feb 28 -> Mar 31).
    """
    return current + relativedelta(months=1, day=day_of_month)


# =============================================================================
# OBLIGATIONS
# =============================================================================

class RecurringExpense(BaseModel):
    """
    A recurring bill.

    total_due for the current cycle is the base amount plus whatever was
    left unpaid from earlier cycles.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    description: str = Field(..., min_length=1, max_length=300)
    category: str = Field(default="Utilities", min_length=1, max_length=50)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Base amount billed every cycle"
    )
    day_of_month: int = Field(..., ge=1, le=31)
    next_due_date: date
    accumulated_overdue: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Unpaid amount carried forward from previous cycles"
    )
    last_billed_date: Optional[date] = None
    external_portal_url: Optional[str] = None

    @property
    def total_due(self) -> Decimal:
        return self.amount + self.accumulated_overdue


class RecurringIncome(BaseModel):
    """
    A recurring income such as a salary.

    Partial receipts accumulate until the base amount is reached, at which
    point the cycle is confirmed and the counter resets.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    description: str = Field(..., min_length=1, max_length=300)
    category: str = Field(default="Income", min_length=1, max_length=50)
    amount: Decimal = Field(..., gt=0)
    day_of_month: int = Field(..., ge=1, le=31)
    next_confirmation_date: date
    accumulated_received: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Received toward the current cycle"
    )
    last_confirmed_date: Optional[date] = None

    @property
    def remaining(self) -> Decimal:
        return max(Decimal("0"), self.amount - self.accumulated_received)


# =============================================================================
# CYCLES
# =============================================================================

class CycleWindow(BaseModel):
    """A billing cycle as the half-open date range [start, end)."""
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode='after')
    def validate_range(self) -> 'CycleWindow':
        if self.end <= self.start:
            raise ValueError("Cycle window end must be after its start")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end


class CycleKey(BaseModel):
    """
    Identifies a billing cycle by the (year, month) in which it starts.

    Serialized as "YYYY-MM" for persistence.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def for_day(cls, day: date, anchor_day: int) -> "CycleKey":
        """Before the anchor day, the active cycle began last month."""
        if day.day < anchor_day:
            start = day - relativedelta(months=1)
            return cls(year=start.year, month=start.month)
        return cls(year=day.year, month=day.month)

    @classmethod
    def parse(cls, raw: str) -> "CycleKey":
        year, month = raw.split("-")
        return cls(year=int(year), month=int(month))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def precedes(self, other: "CycleKey") -> bool:
        return (self.year, self.month) < (other.year, other.month)

    def previous(self) -> "CycleKey":
        start = date(self.year, self.month, 1) - relativedelta(months=1)
        return CycleKey(year=start.year, month=start.month)

    def window(self, anchor_day: int) -> CycleWindow:
        start = date(self.year, self.month, anchor_day)
        return CycleWindow(start=start, end=start + relativedelta(months=1))


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class BillStatus(BaseModel):
    """A bill as shown to the user for the current cycle."""

    expense: RecurringExpense
    total_due: Decimal
    is_paid_this_cycle: bool
    is_overdue: bool


class IncomeStatus(BaseModel):
    """An income as shown to the user for the current cycle."""

    income: RecurringIncome
    remaining: Decimal
    is_received_this_cycle: bool


class CycleCheckResult(BaseModel):
    """
    Outcome of one cycle settlement check.

    transitioned is False when the check ran inside the same cycle as the
    last one and therefore changed nothing.

    observed_key is set when the clock reported a cycle older than
    previous_key. Nothing is settled and current_key stays at previous_key.
    """

    previous_key: Optional[CycleKey] = None
    current_key: CycleKey
    transitioned: bool
    settled_window: Optional[CycleWindow] = None
    overdue_bill_ids: list[str] = Field(default_factory=list)
    reset_income_ids: list[str] = Field(default_factory=list)
    observed_key: Optional[CycleKey] = None
