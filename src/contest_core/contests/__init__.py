"""Contest views and the join workflow."""

from contest_core.contests.join import join_contest
from contest_core.contests.views import ContestView, list_contests, load_leaderboard

__all__ = ["ContestView", "join_contest", "list_contests", "load_leaderboard"]
