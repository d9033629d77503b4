"""ContestStore — store-of-record access for contests, picks and prices.

Every method converts SQLAlchemy failures into ``StoreError`` so callers
only deal with the contest-core error taxonomy. A unique-constraint
violation on picks surfaces as ``DuplicatePick``, never as an overwrite.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from contest_core.db.tables.contests import ContestantRow, ContestRow, PickRow, TickerRow
from contest_core.errors import DuplicatePick, StoreError
from contest_core.models.contest import Contest, Contestant, Pick
from contest_core.models.quote import PriceQuote

log = structlog.get_logger("contest_store")


def _contest_from_row(row: ContestRow) -> Contest:
    return Contest(
        id=row.id,
        name=row.name,
        description=row.description,
        start_time=row.start_time,
        end_time=row.end_time,
        created_at=row.created_at,
    )


def _pick_from_row(row: PickRow) -> Pick:
    return Pick(
        contest_id=row.contest_id,
        user_id=row.user_id,
        ticker=row.ticker,
        quantity=Decimal(str(row.quantity)),
        buy_price=Decimal(str(row.buy_price)),
        created_at=row.created_at,
    )


def _contestant_from_row(row: ContestantRow) -> Contestant:
    return Contestant(
        id=row.id,
        username=row.username,
        full_name=row.full_name,
        email=row.email,
        avatar_url=row.avatar_url,
    )


class ContestStore:
    """Repository over one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self, action: str, **context) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.session.rollback()
            if action == "create_pick" and "unique" in str(exc.orig).lower():
                raise DuplicatePick("User has already joined this contest") from exc
            log.warning("store_integrity_error", action=action, **context)
            raise StoreError(f"Store constraint violated during {action}") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            log.warning("store_error", action=action, error=str(exc), **context)
            raise StoreError(f"Store failure during {action}") from exc

    # ── Contests ──────────────────────────────────────────────

    def get_contest(self, contest_id: str) -> Contest | None:
        with self._guard("get_contest", contest_id=contest_id):
            row = self.session.get(ContestRow, contest_id)
        return _contest_from_row(row) if row is not None else None

    def list_contests(self) -> list[Contest]:
        """All contests, newest first."""
        with self._guard("list_contests"):
            rows = self.session.execute(
                select(ContestRow).order_by(ContestRow.created_at.desc(), ContestRow.start_time.desc())
            ).scalars().all()
        return [_contest_from_row(r) for r in rows]

    def add_contest(self, contest: Contest) -> Contest:
        """Administrative insert; contests are immutable afterwards."""
        with self._guard("add_contest", contest_id=contest.id):
            self.session.add(ContestRow(
                id=contest.id,
                name=contest.name,
                description=contest.description,
                start_time=contest.start_time,
                end_time=contest.end_time,
                created_at=contest.created_at or datetime.now(timezone.utc),
            ))
            self.session.commit()
        return contest

    def participant_counts(self) -> dict[str, int]:
        with self._guard("participant_counts"):
            rows = self.session.execute(
                select(PickRow.contest_id, func.count(PickRow.id)).group_by(PickRow.contest_id)
            ).all()
        return {contest_id: count for contest_id, count in rows}

    # ── Picks ─────────────────────────────────────────────────

    def picks_for_contest(self, contest_id: str) -> list[Pick]:
        with self._guard("picks_for_contest", contest_id=contest_id):
            rows = self.session.execute(
                select(PickRow).where(PickRow.contest_id == contest_id).order_by(PickRow.id)
            ).scalars().all()
        return [_pick_from_row(r) for r in rows]

    def picks_for_user(self, user_id: str) -> list[Pick]:
        with self._guard("picks_for_user", user_id=user_id):
            rows = self.session.execute(
                select(PickRow).where(PickRow.user_id == user_id)
            ).scalars().all()
        return [_pick_from_row(r) for r in rows]

    def get_pick(self, contest_id: str, user_id: str) -> Pick | None:
        with self._guard("get_pick", contest_id=contest_id, user_id=user_id):
            row = self.session.execute(
                select(PickRow).where(
                    PickRow.contest_id == contest_id,
                    PickRow.user_id == user_id,
                )
            ).scalar_one_or_none()
        return _pick_from_row(row) if row is not None else None

    def create_pick(self, pick: Pick) -> Pick:
        """Insert a pick. Raises DuplicatePick if the user already joined."""
        created_at = pick.created_at or datetime.now(timezone.utc)
        with self._guard("create_pick", contest_id=pick.contest_id, user_id=pick.user_id):
            self.session.add(PickRow(
                contest_id=pick.contest_id,
                user_id=pick.user_id,
                ticker=pick.ticker,
                quantity=pick.quantity,
                buy_price=pick.buy_price,
                created_at=created_at,
            ))
            self.session.commit()
        return pick.model_copy(update={"created_at": created_at})

    # ── Contestants ───────────────────────────────────────────

    def contestants(self, user_ids: Iterable[str]) -> dict[str, Contestant]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        with self._guard("contestants"):
            rows = self.session.execute(
                select(ContestantRow).where(ContestantRow.id.in_(ids))
            ).scalars().all()
        return {r.id: _contestant_from_row(r) for r in rows}

    def add_contestant(self, contestant: Contestant) -> Contestant:
        with self._guard("add_contestant", user_id=contestant.id):
            self.session.merge(ContestantRow(**contestant.model_dump()))
            self.session.commit()
        return contestant

    # ── Ticker prices ─────────────────────────────────────────

    def prices(self, tickers: Iterable[str]) -> dict[str, Decimal]:
        """Latest known price per ticker; tickers without a row are absent."""
        symbols = sorted(set(tickers))
        if not symbols:
            return {}
        with self._guard("prices"):
            rows = self.session.execute(
                select(TickerRow.ticker, TickerRow.price).where(TickerRow.ticker.in_(symbols))
            ).all()
        return {ticker: Decimal(str(price)) for ticker, price in rows if price is not None}

    def list_prices(self) -> list[PriceQuote]:
        with self._guard("list_prices"):
            rows = self.session.execute(select(TickerRow).order_by(TickerRow.ticker)).scalars().all()
        return [
            PriceQuote(ticker=r.ticker, price=Decimal(str(r.price)), updated_at=r.updated_at)
            for r in rows
        ]

    def all_tickers(self) -> list[str]:
        with self._guard("all_tickers"):
            rows = self.session.execute(
                select(TickerRow.ticker).distinct().order_by(TickerRow.ticker)
            ).scalars().all()
        return list(rows)

    def upsert_price(
        self,
        ticker: str,
        price: Decimal,
        updated_at: datetime | None = None,
    ) -> PriceQuote:
        """Insert or overwrite the price row keyed by *ticker*."""
        updated_at = updated_at or datetime.now(timezone.utc)
        with self._guard("upsert_price", ticker=ticker):
            row = self.session.get(TickerRow, ticker)
            if row is None:
                self.session.add(TickerRow(ticker=ticker, price=price, updated_at=updated_at))
            else:
                row.price = price
                row.updated_at = updated_at
            self.session.commit()
        return PriceQuote(ticker=ticker, price=price, updated_at=updated_at)

    def ensure_ticker(
        self,
        ticker: str,
        price: Decimal,
        updated_at: datetime | None = None,
    ) -> bool:
        """Start tracking *ticker* if it isn't already. Returns True if inserted.

        Losing an insert race to another writer counts as already tracked.
        """
        with self._guard("ensure_ticker", ticker=ticker):
            if self.session.get(TickerRow, ticker) is not None:
                return False
            self.session.add(TickerRow(
                ticker=ticker,
                price=price,
                updated_at=updated_at or datetime.now(timezone.utc),
            ))
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                log.info("ticker_already_tracked", ticker=ticker)
                return False
        return True
