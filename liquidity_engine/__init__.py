"""
Liquidity Engine - Source Package

The recurring obligation and liquidity core of a personal-finance tracker.
It tracks recurring bills and incomes across a monthly billing cycle,
resolves overdue balances as payments arrive, aggregates account balances
into liquid funds and net worth, and projects them forward.

DESIGN PRINCIPLES:
1. One source of truth for obligation and liquidity rules
2. Reject bad input loudly, never correct it silently
3. Ledger entry and obligation update happen together or not at all
4. Every mutation is auditable
5. Storage and price feed are swappable
"""

__version__ = "1.0.1"
__author__ = "Liquidity Engine Team"
