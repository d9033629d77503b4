"""Leaderboard ranker."""

from __future__ import annotations

from collections.abc import Iterable

from contest_core.models.leaderboard import LeaderboardEntry, ValuedEntry


def _sort_key(entry: ValuedEntry):
    # value descending, then user_id ascending
    return (-entry.current_value, entry.user_id)


def rank(entries: Iterable[ValuedEntry]) -> list[LeaderboardEntry]:
    """Order entries by current value and assign positional ranks 1..N.

    Equal values still get distinct consecutive ranks.
    """
    ordered = sorted(entries, key=_sort_key)
    return [
        LeaderboardEntry(**entry.model_dump(exclude={"rank"}), rank=position)
        for position, entry in enumerate(ordered, start=1)
    ]
