"""SQLAlchemy ORM models for contests, picks, contestants and ticker prices."""

from sqlalchemy import BigInteger, ForeignKey, Index, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from contest_core.db.base import Base


class ContestRow(Base):
    __tablename__ = "contests"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ContestantRow(Base):
    __tablename__ = "contestants"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    username: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)


class PickRow(Base):
    __tablename__ = "picks"
    __table_args__ = (
        UniqueConstraint("contest_id", "user_id", name="uq_picks_contest_user"),
        Index("ix_picks_ticker", "ticker"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    contest_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("contests.id"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    ticker: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[float] = mapped_column(Numeric, nullable=False)
    buy_price: Mapped[float] = mapped_column(Numeric, nullable=False)
    created_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class TickerRow(Base):
    __tablename__ = "tickers"

    ticker: Mapped[str] = mapped_column(Text, primary_key=True)
    price: Mapped[float] = mapped_column(Numeric, nullable=False)
    updated_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
