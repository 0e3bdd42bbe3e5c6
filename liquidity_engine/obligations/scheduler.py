"""
Cycle Settlement Scheduler

Detects when the monthly anchor day has been crossed since the last check
and closes the cycle that just ended:
- every bill with no linked payment inside that cycle gets its base amount
  added to accumulated_overdue
- every income's accumulated_received is reset to zero, paid or not

IDEMPOTENCY: the check compares the cycle key for "now" against the last
persisted key. Within the same cycle it changes nothing, so it is safe to
run on every load and after every ledger mutation. The caller persists the
returned key together with the updated obligations.

A clock that reports an older cycle than the persisted key settles nothing
and leaves the key where it is.

KNOWN LIMITATION: after several missed cycles only one transition is
processed, for the cycle immediately before the current one.
"""

from decimal import Decimal
from typing import Optional

import structlog

from liquidity_engine.clock import Clock
from liquidity_engine.errors import CycleCheckError
from liquidity_engine.ledger.store import LedgerStore
from liquidity_engine.models.ledger import TransactionDirection
from liquidity_engine.models.obligation import CycleCheckResult, CycleKey
from liquidity_engine.obligations.registry import ObligationRegistry


logger = structlog.get_logger(__name__)


class CycleSettlementScheduler:
    """Rolls obligations over when a new billing cycle begins."""

    def __init__(self, anchor_day: int, clock: Clock):
        if not 1 <= anchor_day <= 28:
            raise ValueError(f"Anchor day must be between 1 and 28, got {anchor_day}")
        self._anchor_day = anchor_day
        self._clock = clock

    @property
    def anchor_day(self) -> int:
        return self._anchor_day

    def current_key(self) -> CycleKey:
        try:
            today = self._clock.today()
        except Exception as e:
            raise CycleCheckError(f"Clock unavailable: {e}") from e
        return CycleKey.for_day(today, self._anchor_day)

    def run(
        self,
        registry: ObligationRegistry,
        ledger: LedgerStore,
        last_key: Optional[CycleKey],
    ) -> CycleCheckResult:
        """
        Run one cycle check against the registry, in place.

        Every update is computed before any is applied, so a failure leaves
        the registry untouched.

        Args:
            registry: Obligations to roll over (mutated on transition)
            ledger: Read-only source of linked payments
            last_key: Cycle key persisted by the previous check, None on first run

        Returns:
            The result; persist result.current_key alongside the registry.

        Raises:
            CycleCheckError: the clock could not be read
        """
        current = self.current_key()

        if last_key is None:
            logger.info("cycle_initialized", current_key=str(current))
            return CycleCheckResult(current_key=current, transitioned=False)

        if last_key == current:
            return CycleCheckResult(
                previous_key=last_key,
                current_key=current,
                transitioned=False,
            )

        if current.precedes(last_key):
            logger.warning(
                "cycle_clock_behind",
                last_key=str(last_key),
                observed_key=str(current),
            )
            return CycleCheckResult(
                previous_key=last_key,
                current_key=last_key,
                transitioned=False,
                observed_key=current,
            )

        window = current.previous().window(self._anchor_day)

        expense_updates = []
        for bill in registry.expenses():
            paid = ledger.linked_to(
                bill.id,
                window=window,
                direction=TransactionDirection.EXPENSE,
            )
            if not paid:
                expense_updates.append(bill.model_copy(update={
                    "accumulated_overdue": bill.accumulated_overdue + bill.amount,
                }))

        income_updates = [
            income.model_copy(update={"accumulated_received": Decimal("0")})
            for income in registry.incomes()
        ]

        for obligation in (*expense_updates, *income_updates):
            registry.put(obligation)

        logger.info(
            "cycle_rolled_over",
            previous_key=str(last_key),
            current_key=str(current),
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
            overdue_bills=len(expense_updates),
        )

        return CycleCheckResult(
            previous_key=last_key,
            current_key=current,
            transitioned=True,
            settled_window=window,
            overdue_bill_ids=[b.id for b in expense_updates],
            reset_income_ids=[i.id for i in income_updates],
        )
