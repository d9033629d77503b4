"""Join workflow — resolve the quote, size the position, record the pick."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import structlog

from contest_core.errors import ContestClosed, DuplicatePick, NotFound
from contest_core.leaderboard.valuation import DEFAULT_BUDGET, quantity_for_budget
from contest_core.models.contest import Pick
from contest_core.quotes.resolver import QuoteResolver, normalize_ticker
from contest_core.store.repository import ContestStore

log = structlog.get_logger("join")


async def join_contest(
    store: ContestStore,
    resolver: QuoteResolver,
    contest_id: str,
    user_id: str,
    ticker: str,
    now: datetime | None = None,
    budget: Decimal = DEFAULT_BUDGET,
) -> Pick:
    """Enter *user_id* into a contest with a single pick of *ticker*.

    The whole budget goes into the security at the current quote, so the
    quantity is fractional.
    """
    now = now or datetime.now(timezone.utc)
    symbol = normalize_ticker(ticker)

    contest = store.get_contest(contest_id)
    if contest is None:
        raise NotFound(f"Contest {contest_id} not found")
    if not contest.accepts_picks(now):
        raise ContestClosed("Contest has ended")
    if store.get_pick(contest_id, user_id) is not None:
        raise DuplicatePick("User has already joined this contest")

    quote = await resolver.resolve(symbol)
    pick = store.create_pick(Pick(
        contest_id=contest_id,
        user_id=user_id,
        ticker=quote.symbol,
        quantity=quantity_for_budget(quote.price, budget),
        buy_price=quote.price,
        created_at=now,
    ))
    if store.ensure_ticker(quote.symbol, quote.price, updated_at=now):
        log.info("ticker_tracked", ticker=quote.symbol)

    log.info(
        "contest_joined",
        contest_id=contest_id,
        user_id=user_id,
        ticker=pick.ticker,
        quantity=str(pick.quantity),
        buy_price=str(pick.buy_price),
    )
    return pick
