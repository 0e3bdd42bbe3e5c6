"""
Audit Models for the Liquidity Engine

Every mutation of the ledger, the obligation registry or the account book
is logged for audit purposes. This provides:
1. Traceability of how an overdue balance or a due date came to be
2. Debugging information when a cycle rollover looks wrong
3. A record of limitations the engine knowingly accepts

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_EDITED = "transaction_edited"
    TRANSACTION_DELETED = "transaction_deleted"
    LINKED_TRANSACTION_DELETED = "linked_transaction_deleted"

    # Payments against obligations
    EXPENSE_SETTLED = "expense_settled"
    EXPENSE_PARTIALLY_PAID = "expense_partially_paid"
    INCOME_CONFIRMED = "income_confirmed"
    INCOME_PARTIALLY_RECEIVED = "income_partially_received"
    AMOUNT_REJECTED = "amount_rejected"

    # Registry
    OBLIGATION_REGISTERED = "obligation_registered"
    OBLIGATION_REPLACED = "obligation_replaced"
    OBLIGATION_REMOVED = "obligation_removed"

    # Cycle settlement
    CYCLE_ROLLED_OVER = "cycle_rolled_over"
    CYCLE_INITIALIZED = "cycle_initialized"
    CYCLE_CHECK_FAILED = "cycle_check_failed"
    CYCLE_CLOCK_BEHIND = "cycle_clock_behind"

    # Accounts, portfolio and goals
    ACCOUNT_REGISTERED = "account_registered"
    PORTFOLIO_UPDATED = "portfolio_updated"
    GOAL_REGISTERED = "goal_registered"
    GOAL_CONTRIBUTION = "goal_contribution"
    GOAL_WITHDRAWAL = "goal_withdrawal"
    GOAL_REMOVED = "goal_removed"

    # Prices and state
    PRICES_REFRESHED = "prices_refreshed"
    STATE_LOAD_FALLBACK = "state_load_fallback"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'expense', 'account')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a payment and its ledger entry)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_storage_dict(self) -> dict:
        """JSON-safe representation for the key-value audit log."""
        return json.loads(self.model_dump_json())


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_recorded(txn_id, "expense", amount)
        event = AuditEventBuilder.cycle_rolled_over("2025-01", "2025-02", [...], [...])
    """

    @staticmethod
    def transaction_recorded(
        transaction_id: str,
        direction: str,
        amount: Decimal,
        recurring_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Recorded {direction} of {amount}",
            details={
                "direction": direction,
                "amount": str(amount),
                "recurring_id": recurring_id,
            },
        )

    @staticmethod
    def transaction_edited(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_EDITED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction replaced by an edit",
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def linked_transaction_deleted(
        transaction_id: str,
        recurring_id: str,
        amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LINKED_TRANSACTION_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Deleted a payment linked to a recurring obligation; obligation state was not reversed",
            details={
                "recurring_id": recurring_id,
                "amount": str(amount),
            },
        )

    @staticmethod
    def expense_payment_applied(
        recurring_id: str,
        amount: Decimal,
        settled: bool,
        accumulated_overdue: Decimal,
        next_due_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.EXPENSE_SETTLED
                if settled
                else AuditEventType.EXPENSE_PARTIALLY_PAID
            ),
            entity_type="expense",
            entity_id=recurring_id,
            correlation_id=correlation_id,
            description=(
                f"Bill settled with {amount}"
                if settled
                else f"Partial payment of {amount}, {accumulated_overdue} still overdue"
            ),
            details={
                "amount": str(amount),
                "accumulated_overdue": str(accumulated_overdue),
                "next_due_date": next_due_date,
            },
        )

    @staticmethod
    def income_receipt_applied(
        recurring_id: str,
        amount: Decimal,
        confirmed: bool,
        accumulated_received: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.INCOME_CONFIRMED
                if confirmed
                else AuditEventType.INCOME_PARTIALLY_RECEIVED
            ),
            entity_type="income",
            entity_id=recurring_id,
            correlation_id=correlation_id,
            description=(
                f"Income cycle confirmed with {amount}"
                if confirmed
                else f"Partial receipt of {amount}"
            ),
            details={
                "amount": str(amount),
                "accumulated_received": str(accumulated_received),
            },
        )

    @staticmethod
    def amount_rejected(operation: str, amount: Decimal, entity_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_id=entity_id,
            description=f"Rejected non-positive amount for {operation}",
            details={
                "operation": operation,
                "amount": str(amount),
            },
        )

    @staticmethod
    def obligation_changed(
        event_type: AuditEventType,
        kind: str,
        recurring_id: str,
        description: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type=kind,
            entity_id=recurring_id,
            description=f"{event_type.value.replace('_', ' ').capitalize()}: {description}",
        )

    @staticmethod
    def cycle_rolled_over(
        previous_key: str,
        current_key: str,
        overdue_bill_ids: list[str],
        reset_income_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CYCLE_ROLLED_OVER,
            entity_type="cycle",
            entity_id=current_key,
            description=(
                f"Cycle {previous_key} closed, {len(overdue_bill_ids)} bills became overdue"
            ),
            details={
                "previous_key": previous_key,
                "current_key": current_key,
                "overdue_bill_ids": overdue_bill_ids,
                "reset_income_ids": reset_income_ids,
            },
        )

    @staticmethod
    def cycle_initialized(current_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CYCLE_INITIALIZED,
            entity_type="cycle",
            entity_id=current_key,
            description=f"First cycle check, tracking from {current_key}",
        )

    @staticmethod
    def cycle_check_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CYCLE_CHECK_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="cycle",
            description="Cycle check aborted, no state changed",
            error_message=error_message,
        )

    @staticmethod
    def cycle_clock_behind(last_key: str, observed_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CYCLE_CLOCK_BEHIND,
            severity=AuditSeverity.WARNING,
            entity_type="cycle",
            entity_id=last_key,
            description=f"Clock reports cycle {observed_key}, behind {last_key}; nothing settled",
            details={
                "last_key": last_key,
                "observed_key": observed_key,
            },
        )

    @staticmethod
    def account_registered(account_id: str, account_type: str, opening_balance: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REGISTERED,
            entity_type="account",
            entity_id=account_id,
            description=f"Linked {account_type} account {account_id}",
            details={
                "account_type": account_type,
                "opening_balance": str(opening_balance),
            },
        )

    @staticmethod
    def portfolio_updated(account_id: str, symbol: str, quantity: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PORTFOLIO_UPDATED,
            entity_type="account",
            entity_id=account_id,
            description=f"{symbol} holding set to {quantity}",
            details={
                "symbol": symbol,
                "quantity": str(quantity),
            },
        )

    @staticmethod
    def goal_changed(
        event_type: AuditEventType,
        goal_id: str,
        amount: Decimal,
        current_amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="saving_goal",
            entity_id=goal_id,
            description=f"{event_type.value.replace('_', ' ').capitalize()} of {amount}",
            details={
                "amount": str(amount),
                "current_amount": str(current_amount),
            },
        )

    @staticmethod
    def prices_refreshed(symbols: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRICES_REFRESHED,
            severity=AuditSeverity.DEBUG,
            entity_type="prices",
            description=f"Refreshed {len(symbols)} market prices",
            details={"symbols": symbols},
        )

    @staticmethod
    def state_load_fallback(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOAD_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            entity_id=key,
            description=f"Persisted '{key}' was unreadable, loaded default instead",
            error_message=error_message,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
        )
