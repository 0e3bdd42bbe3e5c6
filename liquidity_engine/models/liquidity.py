"""
Liquidity and Projection Models

Read models produced by the aggregator and the projector. None of these
is persisted except the net worth history; they are recomputed from the
ledger, the accounts and the latest prices on every read.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from liquidity_engine.models.ledger import AccountType


class AccountBalance(BaseModel):
    """Running balance of one account."""

    account_id: str
    name: str
    account_type: AccountType
    opening_balance: Decimal
    flow: Decimal = Field(
        ...,
        description="Signed sum of linked transactions (withdrawals only, for investments)"
    )
    balance: Decimal
    is_liquid: bool = Field(
        ...,
        description="Counts toward liquid funds (primary operating account or cash)"
    )
    is_primary: bool = False


class ProjectionPoint(BaseModel):
    """One future cycle in the liquid funds projection."""

    cycle: int = Field(..., ge=0)
    label: str
    projected_balance: Decimal
    burn_rate: Decimal = Field(
        ...,
        description="Reference line: total recurring expenses per cycle"
    )


class GrowthPoint(BaseModel):
    """One sampled month of the long-range growth simulation."""

    month: int = Field(..., ge=0)
    label: str
    total: Decimal
    invested: Decimal
    cash: Decimal


class GrowthProjection(BaseModel):
    """Long-range growth simulation with the milestones it reaches."""

    points: list[GrowthPoint]
    final_value: Decimal
    milestones_reached: list[str] = Field(default_factory=list)
    net_monthly_cashflow: Decimal


class LiquiditySummary(BaseModel):
    """Everything the dashboard reads in one object."""

    liquid_funds: Decimal
    portfolio_value: Decimal
    net_worth: Decimal
    monthly_net: Decimal
    total_overdue: Decimal
    safety_margin: Decimal
    margin_progress: float
    daily_spend_limit: Decimal
    days_until_next_anchor: int
    primary_account_id: Optional[str] = None
