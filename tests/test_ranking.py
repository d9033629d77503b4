"""Tests for the leaderboard ranker."""

from __future__ import annotations

import random
from decimal import Decimal

from contest_core.leaderboard.ranking import rank
from contest_core.leaderboard.valuation import value
from contest_core.models import Pick, ValuedEntry


def _entry(user_id: str, current_value, ticker: str = "AAPL") -> ValuedEntry:
    v = Decimal(str(current_value))
    return ValuedEntry(
        user_id=user_id,
        user_name=user_id,
        ticker=ticker,
        quantity=Decimal("1"),
        buy_price=v,
        current_price=v,
        current_value=v,
    )


class TestRank:
    def test_sorted_by_value_descending(self):
        ranked = rank([_entry("a", 900), _entry("b", 1200), _entry("c", 1000)])
        assert [e.user_id for e in ranked] == ["b", "c", "a"]

    def test_monotonic_non_increasing(self):
        rng = random.Random(7)
        entries = [_entry(f"u{i}", rng.randint(500, 1500)) for i in range(50)]
        ranked = rank(entries)
        for upper, lower in zip(ranked, ranked[1:]):
            assert upper.current_value >= lower.current_value

    def test_ranks_are_one_to_n(self):
        entries = [_entry(f"u{i}", 1000 + (i % 3)) for i in range(10)]
        assert [e.rank for e in rank(entries)] == list(range(1, 11))

    def test_ties_get_distinct_consecutive_ranks(self):
        ranked = rank([_entry("a", 1500), _entry("c", 1000), _entry("b", 1000)])
        assert [(e.user_id, e.rank) for e in ranked] == [("a", 1), ("b", 2), ("c", 3)]

    def test_tie_break_independent_of_input_order(self):
        entries = [_entry(u, 1000) for u in ["d", "a", "c", "b"]]
        forward = rank(entries)
        backward = rank(list(reversed(entries)))
        assert [e.user_id for e in forward] == ["a", "b", "c", "d"]
        assert forward == backward

    def test_empty(self):
        assert rank([]) == []

    def test_rerank_overwrites_existing_rank(self):
        first = rank([_entry("a", 100), _entry("b", 200)])
        bumped = [first[1].model_copy(update={"current_value": Decimal("300")}), first[0]]
        again = rank(bumped)
        assert [(e.user_id, e.rank) for e in again] == [("a", 1), ("b", 2)]

    def test_same_ticker_fallback_scenario(self):
        picks = [
            Pick(contest_id="c1", user_id="u1", ticker="AAPL", quantity=Decimal("2"), buy_price=Decimal("100")),
            Pick(contest_id="c1", user_id="u2", ticker="AAPL", quantity=Decimal("3"), buy_price=Decimal("100")),
        ]
        ranked = rank(value(picks, {}))
        by_user = {e.user_id: e for e in ranked}
        assert by_user["u1"].current_value == Decimal("200")
        assert by_user["u2"].current_value == Decimal("300")
        assert by_user["u2"].rank == 1
        assert by_user["u1"].rank == 2
