"""Live update reconciler — applies price changes to a ranked leaderboard.

``apply_price_update`` gives the same result as re-running valuation and
ranking with the updated price map; it only touches entries on the changed
ticker before re-ranking.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal

import structlog

from contest_core.leaderboard.feed import PriceChange
from contest_core.leaderboard.ranking import rank
from contest_core.leaderboard.valuation import to_decimal
from contest_core.models.contest import Contest, ContestStatus
from contest_core.models.leaderboard import LeaderboardEntry

log = structlog.get_logger("reconciler")


def apply_price_update(
    leaderboard: Iterable[LeaderboardEntry],
    ticker: str,
    new_price: Decimal | float,
) -> list[LeaderboardEntry]:
    """Reprice every entry on *ticker* and re-rank the whole board."""
    price = to_decimal(new_price)
    updated = [
        entry.model_copy(update={
            "current_price": price,
            "current_value": entry.quantity * price,
        })
        if entry.ticker == ticker
        else entry
        for entry in leaderboard
    ]
    return rank(updated)


class LiveLeaderboard:
    """Leaderboard state for one contest-viewing session.

    Events are applied only while the contest is active and the board has
    at least one entry.
    """

    def __init__(
        self,
        contest: Contest,
        entries: list[LeaderboardEntry],
        prices: Mapping[str, Decimal] | None = None,
    ) -> None:
        self.contest = contest
        self.entries = list(entries)
        self.prices: dict[str, Decimal] = dict(prices or {})

    def status(self, now: datetime | None = None) -> ContestStatus:
        return self.contest.status(now)

    def is_live(self, now: datetime | None = None) -> bool:
        return self.status(now) is ContestStatus.ACTIVE and bool(self.entries)

    def tracked_tickers(self) -> frozenset[str]:
        return frozenset(e.ticker for e in self.entries)

    def handle(self, event: PriceChange, now: datetime | None = None) -> bool:
        """Apply *event* if it concerns this board. Returns True if applied."""
        if not self.is_live(now):
            return False
        if event.ticker not in self.tracked_tickers():
            return False
        self.prices[event.ticker] = event.price
        self.entries = apply_price_update(self.entries, event.ticker, event.price)
        log.debug(
            "leaderboard_repriced",
            contest_id=self.contest.id,
            ticker=event.ticker,
            price=str(event.price),
        )
        return True
