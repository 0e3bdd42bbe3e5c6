"""
Price Refresher

Polls a PriceFeed on an interval in its own asyncio task and hands every
snapshot to a callback (normally LiquidityEngine.update_prices).

The refresh loop never touches the ledger or the obligations, so it
neither blocks nor is blocked by payments and cycle checks. It must be
stopped when its owner goes away: call stop(), or use it as an async
context manager.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, Union

import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from liquidity_engine.config import get_settings
from liquidity_engine.models.ledger import MarketPrice
from liquidity_engine.services.prices.feed import PriceFeed


logger = structlog.get_logger(__name__)

PriceCallback = Callable[[list[MarketPrice]], Union[Awaitable[None], None]]
FailureCallback = Callable[[Exception], Union[Awaitable[None], None]]


async def _maybe_await(result) -> None:
    if inspect.isawaitable(result):
        await result


class PriceRefresher:
    """
    Background price refresh.

    Args:
        feed: Where prices come from
        on_update: Called with each successful snapshot
        on_failure: Called with the last error when every attempt of a refresh failed
        interval_seconds: Delay between refreshes. Defaults to PRICE_FEED_REFRESH_INTERVAL_SECONDS.
        max_attempts: Fetch attempts per refresh. Defaults to PRICE_FEED_MAX_FETCH_ATTEMPTS.
        retry_wait_min: Minimum back-off between attempts, in seconds
    """

    def __init__(
        self,
        feed: PriceFeed,
        on_update: PriceCallback,
        on_failure: Optional[FailureCallback] = None,
        interval_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_wait_min: float = 1,
    ):
        settings = get_settings().price_feed
        self._feed = feed
        self._on_update = on_update
        self._on_failure = on_failure
        self._interval = interval_seconds or settings.refresh_interval_seconds
        self._max_attempts = max_attempts or settings.max_fetch_attempts
        self._retry_wait_min = retry_wait_min
        self._task: Optional[asyncio.Task] = None
        self.refresh_count = 0
        self.failure_count = 0
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _fetch(self) -> list[MarketPrice]:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait_min, min=self._retry_wait_min, max=10),
            reraise=True,
        ):
            with attempt:
                return await self._feed.fetch()

    async def refresh_once(self) -> Optional[list[MarketPrice]]:
        """
        Fetch and publish one snapshot.

        Returns the prices, or None when every attempt failed. A failed
        refresh publishes nothing, so consumers keep the previous prices.
        """
        try:
            prices = await self._fetch()
        except Exception as e:
            self.failure_count += 1
            self.last_error = str(e)
            logger.warning("price_refresh_failed", error=str(e), attempts=self._max_attempts)
            if self._on_failure is not None:
                await _maybe_await(self._on_failure(e))
            return None

        await _maybe_await(self._on_update(prices))
        self.refresh_count += 1
        return prices

    async def _run(self) -> None:
        while True:
            await self.refresh_once()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Start refreshing. The first refresh happens immediately."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("price_refresher_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Cancel the refresh task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(
            "price_refresher_stopped",
            refreshes=self.refresh_count,
            failures=self.failure_count,
        )

    async def __aenter__(self) -> "PriceRefresher":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
