"""Liquidity package: aggregation, valuation and projection."""

from liquidity_engine.liquidity.aggregator import LiquidityAggregator
from liquidity_engine.liquidity.valuation import (
    account_value,
    holdings_value,
    market_value,
    price_map,
)

__all__ = [
    "LiquidityAggregator",
    "account_value",
    "holdings_value",
    "market_value",
    "price_map",
]
