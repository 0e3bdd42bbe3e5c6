"""
Market Price Feeds

A feed produces the latest {symbol, price, change_24h} snapshot on request.
The engine treats whatever it returns as a read-only, eventually-stale map.
"""

import random
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from liquidity_engine.config import get_settings
from liquidity_engine.models.ledger import MarketPrice


SEED_PRICES: dict[str, Decimal] = {
    "BTC": Decimal("94250.00"),
    "ETH": Decimal("2950.50"),
    "SOL": Decimal("155.20"),
    "VOO": Decimal("548.12"),
    "VOOG": Decimal("312.45"),
}


class PriceFeed(ABC):
    """Source of market prices."""

    @abstractmethod
    async def fetch(self) -> list[MarketPrice]:
        """
        Fetch the latest prices.

        Raises:
            Any exception the backend raises; the refresher retries and,
            failing that, keeps the previous prices.
        """
        pass


class StaticPriceFeed(PriceFeed):
    """Always returns the same prices. Useful for tests and offline use."""

    def __init__(self, prices: Iterable[MarketPrice]):
        self._prices = list(prices)

    async def fetch(self) -> list[MarketPrice]:
        return list(self._prices)


class SimulatedPriceFeed(PriceFeed):
    """
    Random-walks a set of seeded prices.

    Each fetch moves every price by up to +/- volatility (relative) and
    reports change_24h as the percentage move since the seed.

    Args:
        seed_prices: symbol -> starting price. Defaults to SEED_PRICES
            restricted to PRICE_FEED_SEED_SYMBOLS.
        volatility: Maximum relative move per fetch. Defaults to PRICE_FEED_VOLATILITY.
        rng: Random source, injectable for reproducible walks
    """

    def __init__(
        self,
        seed_prices: Optional[Mapping[str, Decimal]] = None,
        volatility: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        settings = get_settings().price_feed
        if seed_prices is None:
            seed_prices = {
                symbol: SEED_PRICES[symbol]
                for symbol in settings.seed_symbols_list
                if symbol in SEED_PRICES
            }
        self._seeds = {s.upper(): Decimal(str(p)) for s, p in seed_prices.items()}
        self._current = dict(self._seeds)
        self._volatility = settings.volatility if volatility is None else volatility
        self._rng = rng or random.Random()

    async def fetch(self) -> list[MarketPrice]:
        prices = []
        for symbol, seed in self._seeds.items():
            move = Decimal(str(self._rng.uniform(-self._volatility, self._volatility)))
            price = (self._current[symbol] * (1 + move)).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
            self._current[symbol] = price
            change = float((price - seed) / seed * 100) if seed else 0.0
            prices.append(MarketPrice(symbol=symbol, price=price, change_24h=round(change, 2)))
        return prices
