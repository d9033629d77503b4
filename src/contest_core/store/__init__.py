"""Store-of-record access."""

from contest_core.store.repository import ContestStore

__all__ = ["ContestStore"]
