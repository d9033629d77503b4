"""Database layer — engine, session, ORM base."""

from contest_core.db.base import Base
from contest_core.db.engine import dispose_engine, get_engine, get_session, init_engine

__all__ = ["Base", "dispose_engine", "get_engine", "get_session", "init_engine"]
