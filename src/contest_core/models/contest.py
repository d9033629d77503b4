"""Contest, pick and contestant models."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class ContestStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"


def _as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on the way back)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def contest_status(
    start_time: datetime,
    end_time: datetime,
    now: datetime | None = None,
) -> ContestStatus:
    """Derive status from the contest window; both boundaries are inclusive."""
    now = _as_utc(now or datetime.now(timezone.utc))
    if now < _as_utc(start_time):
        return ContestStatus.UPCOMING
    if now <= _as_utc(end_time):
        return ContestStatus.ACTIVE
    return ContestStatus.ENDED


class Contest(BaseModel):
    """A time-boxed contest. Status is never stored, only derived."""

    id: str
    name: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    created_at: datetime | None = None

    def status(self, now: datetime | None = None) -> ContestStatus:
        return contest_status(self.start_time, self.end_time, now)

    def accepts_picks(self, now: datetime | None = None) -> bool:
        return self.status(now) in (ContestStatus.UPCOMING, ContestStatus.ACTIVE)

    def seconds_until_end(self, now: datetime | None = None) -> float:
        """Time left before the window closes; 0 once it has."""
        now = _as_utc(now or datetime.now(timezone.utc))
        return max((_as_utc(self.end_time) - now).total_seconds(), 0.0)


class Pick(BaseModel):
    """One participant's single security pick in a contest."""

    contest_id: str
    user_id: str
    ticker: str
    quantity: Decimal
    buy_price: Decimal
    created_at: datetime | None = None


class Contestant(BaseModel):
    """Public profile of a participant."""

    id: str
    username: str | None = None
    full_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.username or self.full_name or "Unknown user"


class ContestSummary(BaseModel):
    """A contest as listed for one user."""

    contest: Contest
    participant_count: int = 0
    has_user_joined: bool = False
    user_pick: Pick | None = None
