"""Price change feed — in-process publish/subscribe for ticker price updates.

A ``PriceSubscription`` is an explicit handle: it is acquired with
``PriceChangeFeed.subscribe`` for a set of tickers and released with
``close()`` (or by leaving its ``with`` / ``async with`` block). Only
events for the subscribed tickers are delivered.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

import structlog

log = structlog.get_logger("price_feed")

_CLOSED = object()


@dataclass(frozen=True)
class PriceChange:
    """An UPDATE to one row of the price table."""

    ticker: str
    price: Decimal
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PriceSubscription:
    """Handle for a filtered stream of price changes.

    Iterate with ``async for``; iteration ends once the handle is closed.
    """

    def __init__(self, feed: PriceChangeFeed, tickers: Iterable[str]) -> None:
        self._feed = feed
        self._tickers = frozenset(tickers)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        try:
            self._loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    @property
    def tickers(self) -> frozenset[str]:
        return self._tickers

    @property
    def closed(self) -> bool:
        return self._closed

    def set_tickers(self, tickers: Iterable[str]) -> None:
        """Change the filter. An empty set releases the subscription."""
        self._tickers = frozenset(tickers)
        if not self._tickers:
            self.close()

    def wants(self, ticker: str) -> bool:
        return not self._closed and ticker in self._tickers

    def _put(self, item: object) -> None:
        if self._loop is None:
            self._queue.put_nowait(item)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop or self._loop.is_closed():
            self._queue.put_nowait(item)
        else:
            # publisher on another thread (sync endpoint, test client)
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    def deliver(self, event: PriceChange) -> bool:
        if not self.wants(event.ticker):
            return False
        self._put(event)
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._put(_CLOSED)
        self._feed._release(self)

    async def get(self) -> PriceChange | None:
        """Wait for the next event; None once closed."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    def __aiter__(self) -> PriceSubscription:
        return self

    async def __anext__(self) -> PriceChange:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    def __enter__(self) -> PriceSubscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    async def __aenter__(self) -> PriceSubscription:
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class PriceChangeFeed:
    """Fans price changes out to open subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: set[PriceSubscription] = set()

    @property
    def open_subscriptions(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, tickers: Iterable[str]) -> PriceSubscription:
        tickers = frozenset(tickers)
        if not tickers:
            raise ValueError("Cannot subscribe to an empty ticker set")
        sub = PriceSubscription(self, tickers)
        self._subscriptions.add(sub)
        log.debug("price_subscription_opened", tickers=sorted(tickers))
        return sub

    def publish(self, event: PriceChange) -> int:
        """Deliver *event* to every interested subscription. Returns the count."""
        delivered = 0
        for sub in list(self._subscriptions):
            if sub.deliver(event):
                delivered += 1
        return delivered

    def _release(self, sub: PriceSubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.discard(sub)
            log.debug("price_subscription_closed", tickers=sorted(sub.tickers))
