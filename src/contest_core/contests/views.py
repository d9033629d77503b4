"""Contest views — load picks, names and prices, then value and rank.

Loading degrades instead of failing: if current prices can't be read the
board is valued at buy prices, and if picks or contestants can't be read
the view comes back empty with ``error`` set.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import structlog
from pydantic import BaseModel, Field

from contest_core.errors import NotFound, StoreError
from contest_core.leaderboard.ranking import rank
from contest_core.leaderboard.valuation import value
from contest_core.models.contest import Contest, ContestStatus, ContestSummary, Pick
from contest_core.models.leaderboard import LeaderboardEntry
from contest_core.store.repository import ContestStore

log = structlog.get_logger("contest_views")


class ContestView(BaseModel):
    """Everything a contest detail screen shows."""

    contest: Contest
    status: ContestStatus
    participant_count: int = 0
    picks: list[Pick] = Field(default_factory=list)
    leaderboard: list[LeaderboardEntry] = Field(default_factory=list)
    prices: dict[str, Decimal] = Field(default_factory=dict)
    error: str | None = None

    def pick_for(self, user_id: str | None) -> Pick | None:
        if user_id is None:
            return None
        return next((p for p in self.picks if p.user_id == user_id), None)

    def can_join(self, user_id: str | None, now: datetime | None = None) -> bool:
        if user_id is None or self.error is not None:
            return False
        return self.pick_for(user_id) is None and self.contest.accepts_picks(now)


def load_leaderboard(
    store: ContestStore,
    contest_id: str,
    now: datetime | None = None,
) -> ContestView:
    """Build the ranked leaderboard for one contest."""
    contest = store.get_contest(contest_id)
    if contest is None:
        raise NotFound(f"Contest {contest_id} not found")
    status = contest.status(now)

    try:
        picks = store.picks_for_contest(contest_id)
        contestants = store.contestants(p.user_id for p in picks)
    except StoreError as exc:
        log.exception("contest_load_failed", contest_id=contest_id)
        return ContestView(contest=contest, status=status, error=exc.message)

    tickers = {p.ticker for p in picks}
    try:
        prices = store.prices(tickers)
    except StoreError:
        log.warning("ticker_prices_unavailable", contest_id=contest_id, tickers=sorted(tickers))
        prices = {}

    entries = rank(value(picks, prices, contestants))
    log.debug(
        "leaderboard_loaded",
        contest_id=contest_id,
        participants=len(picks),
        priced=len(prices),
    )
    return ContestView(
        contest=contest,
        status=status,
        participant_count=len(picks),
        picks=picks,
        leaderboard=entries,
        prices=prices,
    )


def list_contests(store: ContestStore, user_id: str | None = None) -> list[ContestSummary]:
    """All contests with participant counts and the user's own pick."""
    contests = store.list_contests()
    counts = store.participant_counts()
    user_picks = {p.contest_id: p for p in store.picks_for_user(user_id)} if user_id else {}
    return [
        ContestSummary(
            contest=c,
            participant_count=counts.get(c.id, 0),
            has_user_joined=c.id in user_picks,
            user_pick=user_picks.get(c.id),
        )
        for c in contests
    ]
