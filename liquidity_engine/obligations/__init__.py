"""Recurring obligations package: registry, payment resolver and cycle scheduler."""

from liquidity_engine.obligations.registry import Obligation, ObligationRegistry
from liquidity_engine.obligations.resolver import PaymentResolver, require_positive, to_amount
from liquidity_engine.obligations.scheduler import CycleSettlementScheduler

__all__ = [
    "CycleSettlementScheduler",
    "Obligation",
    "ObligationRegistry",
    "PaymentResolver",
    "require_positive",
    "to_amount",
]
