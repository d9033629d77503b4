"""Pydantic domain models."""

from contest_core.models.contest import (
    Contest,
    Contestant,
    ContestStatus,
    ContestSummary,
    Pick,
    contest_status,
)
from contest_core.models.leaderboard import LeaderboardEntry, ValuedEntry
from contest_core.models.quote import PriceQuote, ResolvedQuote

__all__ = [
    "Contest",
    "ContestStatus",
    "ContestSummary",
    "Contestant",
    "LeaderboardEntry",
    "Pick",
    "PriceQuote",
    "ResolvedQuote",
    "ValuedEntry",
    "contest_status",
]
