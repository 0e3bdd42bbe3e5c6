"""Market price feeds and the background refresher."""

from liquidity_engine.services.prices.feed import (
    SEED_PRICES,
    PriceFeed,
    SimulatedPriceFeed,
    StaticPriceFeed,
)
from liquidity_engine.services.prices.refresher import PriceRefresher

__all__ = [
    "SEED_PRICES",
    "PriceFeed",
    "PriceRefresher",
    "SimulatedPriceFeed",
    "StaticPriceFeed",
]
