"""
Data Models Package

This package contains all Pydantic models used by the liquidity engine.
All data flowing through the engine must conform to these schemas.
"""

from liquidity_engine.models.ledger import (
    Account,
    AccountType,
    AnalysisResult,
    AnalysisUpdateType,
    Holding,
    LineItem,
    MarketPrice,
    NetWorthSnapshot,
    PortfolioUpdate,
    SavingGoal,
    Transaction,
    TransactionDirection,
    TransactionDraft,
    new_id,
)
from liquidity_engine.models.obligation import (
    BillStatus,
    CycleCheckResult,
    CycleKey,
    CycleWindow,
    IncomeStatus,
    RecurringExpense,
    RecurringIncome,
    advance_one_month,
)
from liquidity_engine.models.liquidity import (
    AccountBalance,
    GrowthPoint,
    GrowthProjection,
    LiquiditySummary,
    ProjectionPoint,
)
from liquidity_engine.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "AnalysisResult",
    "AnalysisUpdateType",
    "Holding",
    "LineItem",
    "MarketPrice",
    "NetWorthSnapshot",
    "PortfolioUpdate",
    "SavingGoal",
    "Transaction",
    "TransactionDirection",
    "TransactionDraft",
    "new_id",
    # Obligation models
    "BillStatus",
    "CycleCheckResult",
    "CycleKey",
    "CycleWindow",
    "IncomeStatus",
    "RecurringExpense",
    "RecurringIncome",
    "advance_one_month",
    # Liquidity read models
    "AccountBalance",
    "GrowthPoint",
    "GrowthProjection",
    "LiquiditySummary",
    "ProjectionPoint",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
