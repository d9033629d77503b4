"""Leaderboard engine — valuation, ranking and live reconciliation."""

from contest_core.leaderboard.feed import PriceChange, PriceChangeFeed, PriceSubscription
from contest_core.leaderboard.ranking import rank
from contest_core.leaderboard.reconciler import LiveLeaderboard, apply_price_update
from contest_core.leaderboard.valuation import (
    DEFAULT_BUDGET,
    quantity_for_budget,
    value,
    value_pick,
)

__all__ = [
    "DEFAULT_BUDGET",
    "LiveLeaderboard",
    "PriceChange",
    "PriceChangeFeed",
    "PriceSubscription",
    "apply_price_update",
    "quantity_for_budget",
    "rank",
    "value",
    "value_pick",
]
