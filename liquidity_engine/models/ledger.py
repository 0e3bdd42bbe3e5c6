"""
Ledger and Account Models

These models define the schemas for everything that flows through the
ledger: transactions, the accounts they move money between, investment
holdings and the market prices used to value them.

DESIGN DECISION: Money is always Decimal and validated on construction.
A transaction amount is strictly positive; the direction decides the sign
when balances are aggregated, never the amount itself.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def new_id() -> str:
    """Generate a fresh identifier for a ledger entity."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionDirection(str, Enum):
    """
    Direction of a ledger transaction.

    income credits the account it names. expense and savings debit it.
    transfer and withdrawal debit the source and credit the destination.
    """
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    WITHDRAWAL = "withdrawal"
    SAVINGS = "savings"


class AccountType(str, Enum):
    """Kinds of financial source the engine aggregates."""
    BANK = "bank"
    CREDIT_UNION = "credit_union"
    CASH = "cash"
    INVESTMENT = "investment"


class AnalysisUpdateType(str, Enum):
    """What an approved parsed record updates."""
    TRANSACTION = "transaction"
    PORTFOLIO = "portfolio"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class LineItem(BaseModel):
    """A single line on a receipt attached to a transaction."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    quantity: Optional[Decimal] = Field(default=None, ge=0)


class TransactionDraft(BaseModel):
    """
    A transaction that has not been recorded yet.

    Manual entries, approved AI-parsed drafts and bank-sync drafts all
    arrive in this shape. The engine does not distinguish provenance.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount; direction decides the sign"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=300,
    )
    category: str = Field(
        default="Other",
        min_length=1,
        max_length=50,
    )
    direction: TransactionDirection
    transaction_date: Optional[date] = Field(
        default=None,
        description="Defaults to the engine clock's today when recorded"
    )
    source_account_id: Optional[str] = Field(
        default=None,
        description="Account the money comes from (or lands in, for income)"
    )
    destination_account_id: Optional[str] = Field(
        default=None,
        description="Account credited by a transfer or withdrawal"
    )
    recurring_id: Optional[str] = None
    saving_goal_id: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    vendor: Optional[str] = Field(default=None, max_length=200)
    line_items: list[LineItem] = Field(default_factory=list)

    def to_transaction(self, default_date: date) -> "Transaction":
        """Materialize the draft as an immutable Transaction with a new id."""
        data = self.model_dump()
        data["transaction_date"] = self.transaction_date or default_date
        return Transaction(**data)


class Transaction(TransactionDraft):
    """
    A recorded financial event.

    CRITICAL: Transactions are immutable once created. An edit replaces
    the whole record by id; nothing mutates a transaction in place.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique transaction ID"
    )
    transaction_date: date

    @model_validator(mode='after')
    def validate_accounts(self) -> 'Transaction':
        if (
            self.destination_account_id is not None
            and self.destination_account_id == self.source_account_id
        ):
            raise ValueError("Destination account cannot be the source account")
        return self


# =============================================================================
# ACCOUNTS AND HOLDINGS
# =============================================================================

class Holding(BaseModel):
    """
    A position inside an investment account.

    purchase_price is the fallback valuation when no live quote exists.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    symbol: str = Field(..., min_length=1, max_length=20)
    quantity: Decimal = Field(..., ge=0)
    purchase_price: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator('symbol')
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.upper()


class Account(BaseModel):
    """
    A financial source: bank connection, cash in hand or investment account.

    DESIGN DECISION: opening_balance is the baseline at registration time
    and is never mutated afterwards. The running balance is always derived
    from it plus the signed ledger flow.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    account_type: AccountType
    opening_balance: Decimal = Field(default=Decimal("0"))
    is_primary: bool = Field(
        default=False,
        description="The single primary operating account feeding liquid funds"
    )
    account_last_four: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    holdings: list[Holding] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_shape(self) -> 'Account':
        if self.holdings and self.account_type != AccountType.INVESTMENT:
            raise ValueError("Only investment accounts can carry holdings")
        if self.is_primary and self.account_type not in (
            AccountType.BANK,
            AccountType.CREDIT_UNION,
        ):
            raise ValueError("Only a bank account can be the primary operating account")
        return self

    @property
    def is_investment(self) -> bool:
        return self.account_type == AccountType.INVESTMENT


class MarketPrice(BaseModel):
    """Latest known price for a symbol. Has no identity beyond the symbol."""
    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1, max_length=20)
    price: Decimal = Field(..., ge=0)
    change_24h: float = Field(
        default=0.0,
        description="24h change in percent"
    )

    @field_validator('symbol')
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()


# =============================================================================
# GOALS, SNAPSHOTS AND PARSED UPDATES
# =============================================================================

class SavingGoal(BaseModel):
    """
    A savings target held at an institution.

    current_amount only moves through explicit contribute/withdraw
    operations, linked by saving_goal_id on the transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    institution: Optional[str] = Field(
        default=None,
        description="Account id of the institution holding the savings"
    )
    category: str = Field(default="Savings")

    @property
    def progress(self) -> float:
        """Progress toward the target in percent, capped at 100."""
        return min(100.0, float(self.current_amount / self.target_amount * 100))


class NetWorthSnapshot(BaseModel):
    """Net worth recorded for one day."""
    model_config = ConfigDict(frozen=True)

    snapshot_date: date
    value: Decimal


class PortfolioUpdate(BaseModel):
    """
    A statement of holdings, e.g. "Binance shows 1 BTC".

    quantity is the TOTAL amount held, not a delta.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    provider: str = Field(..., min_length=1, description="Investment account id")
    symbol: str = Field(..., min_length=1, max_length=20)
    quantity: Decimal = Field(..., ge=0)

    @field_validator('symbol')
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.upper()


class AnalysisResult(BaseModel):
    """
    An approved record from the parsing service.

    Only approved records reach the engine; the payload matching
    update_type must be present.
    """

    update_type: AnalysisUpdateType
    transaction: Optional[TransactionDraft] = None
    portfolio: Optional[PortfolioUpdate] = None

    @model_validator(mode='after')
    def validate_payload(self) -> 'AnalysisResult':
        if self.update_type == AnalysisUpdateType.TRANSACTION and self.transaction is None:
            raise ValueError("Transaction update requires a transaction payload")
        if self.update_type == AnalysisUpdateType.PORTFOLIO and self.portfolio is None:
            raise ValueError("Portfolio update requires a portfolio payload")
        return self
