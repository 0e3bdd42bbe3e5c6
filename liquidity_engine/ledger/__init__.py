"""Ledger package."""

from liquidity_engine.ledger.store import LedgerStore

__all__ = ["LedgerStore"]
