"""PriceTableWatcher — turns UPDATEs on the tickers table into feed events.

The refresh job may run in another process, so the API side polls the
price table and publishes a ``PriceChange`` whenever a row's price or
``updated_at`` moves. Rows seen for the first time are only recorded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Generator
from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy.orm import Session

from contest_core.errors import StoreError
from contest_core.leaderboard.feed import PriceChange, PriceChangeFeed
from contest_core.store.repository import ContestStore

log = structlog.get_logger("price_watcher")


class PriceTableWatcher:
    """Polls the price table on an interval and publishes changes."""

    def __init__(
        self,
        feed: PriceChangeFeed,
        session_factory: Callable[[], Generator[Session, None, None]],
        interval_s: float = 5.0,
    ) -> None:
        self._feed = feed
        self._session_factory = session_factory
        self._interval_s = interval_s
        self._seen: dict[str, tuple[Decimal, datetime | None]] = {}
        self._task: asyncio.Task | None = None
        self._running = False

    def poll_once(self, session: Session) -> list[PriceChange]:
        """Diff the table against the last poll and publish what moved."""
        changes: list[PriceChange] = []
        for quote in ContestStore(session).list_prices():
            marker = (quote.price, quote.updated_at)
            previous = self._seen.get(quote.ticker)
            self._seen[quote.ticker] = marker
            if previous is None or previous == marker:
                continue
            event = PriceChange(ticker=quote.ticker, price=quote.price, updated_at=quote.updated_at)
            changes.append(event)
            delivered = self._feed.publish(event)
            log.debug("price_change_published", ticker=quote.ticker, subscribers=delivered)
        return changes

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        log.info("price_watcher_started", interval_s=self._interval_s)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("price_watcher_stopped")

    async def _loop(self) -> None:
        while self._running:
            session_gen = self._session_factory()
            session = next(session_gen)
            try:
                self.poll_once(session)
            except StoreError:
                log.warning("price_watcher_poll_failed", retry_in=self._interval_s)
            finally:
                session_gen.close()
            await asyncio.sleep(self._interval_s)
