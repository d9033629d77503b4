"""Import all table modules so Base.metadata knows about them."""

from contest_core.db.tables.contests import ContestantRow, ContestRow, PickRow, TickerRow

__all__ = ["ContestRow", "ContestantRow", "PickRow", "TickerRow"]
