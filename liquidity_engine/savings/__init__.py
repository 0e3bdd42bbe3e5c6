"""Saving goals package."""

from liquidity_engine.savings.goals import SavingGoalBook

__all__ = ["SavingGoalBook"]
