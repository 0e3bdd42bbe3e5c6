"""
Audit Logger

DESIGN DECISION: Every mutation of engine state is logged.
This provides:
1. Traceability of how an overdue balance or a due date came to be
2. Debugging capability when a cycle rollover looks wrong
3. A visible record of limitations the engine knowingly accepts

The audit logger:
- Is async so it sits naturally inside engine operations
- Gracefully handles failures (a failed audit write never fails a payment)
- Supports correlation IDs to tie a payment to its ledger entry
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from liquidity_engine.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from liquidity_engine.models.obligation import CycleCheckResult
from liquidity_engine.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence and history views)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("liquidity_engine.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_recorded(
        self,
        transaction_id: str,
        direction: str,
        amount: Decimal,
        recurring_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new ledger entry."""
        event = AuditEventBuilder.transaction_recorded(
            transaction_id=transaction_id,
            direction=direction,
            amount=amount,
            recurring_id=recurring_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_amount_rejected(
        self,
        operation: str,
        amount: Decimal,
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a refused non-positive amount."""
        event = AuditEventBuilder.amount_rejected(
            operation=operation,
            amount=amount,
            entity_id=entity_id,
        )
        await self.log(event)

    async def log_cycle_check(self, result: CycleCheckResult) -> None:
        """Log a cycle check that changed or refused to change the cycle key."""
        if result.previous_key is None:
            event = AuditEventBuilder.cycle_initialized(str(result.current_key))
        elif result.observed_key is not None:
            event = AuditEventBuilder.cycle_clock_behind(
                last_key=str(result.previous_key),
                observed_key=str(result.observed_key),
            )
        elif result.transitioned:
            event = AuditEventBuilder.cycle_rolled_over(
                previous_key=str(result.previous_key),
                current_key=str(result.current_key),
                overdue_bill_ids=result.overdue_bill_ids,
                reset_income_ids=result.reset_income_ids,
            )
        else:
            return
        await self.log(event)

    async def log_state_load_fallback(self, key: str, error_message: str) -> None:
        """Log a persisted key that could not be read."""
        event = AuditEventBuilder.state_load_fallback(key=key, error_message=error_message)
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a payment or receipt and pass it to every
    event that operation produces.
    """
    return uuid4()
