"""FastAPI application for the stock-picking contest backend."""

import asyncio
import os
from datetime import datetime, timezone
from typing import Callable, Generator, Optional

import structlog
from fastapi import Depends, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketState

from contest_core.config.loader import load_config
from contest_core.contests import ContestView, join_contest, list_contests, load_leaderboard
from contest_core.db.engine import dispose_engine, get_session as _get_session, init_engine
from contest_core.errors import ContestCoreError, NotFound
from contest_core.leaderboard.feed import PriceChange, PriceChangeFeed, PriceSubscription
from contest_core.leaderboard.reconciler import LiveLeaderboard
from contest_core.leaderboard.watcher import PriceTableWatcher
from contest_core.models.contest import Contest, Pick
from contest_core.quotes.resolver import QuoteResolver
from contest_core.refresh.job import refresh_prices
from contest_core.store.repository import ContestStore

logger = structlog.get_logger()

app = FastAPI(
    title="Stock Contest API",
    description="Contests, picks and live leaderboards",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Load config once at startup
config = load_config(os.environ.get("CONTEST_CONFIG"))

_feed = PriceChangeFeed()
_resolver: QuoteResolver | None = None
_watcher: PriceTableWatcher | None = None

# wait past the inclusive end boundary before re-checking the contest status
_END_GRACE_S = 0.05


def get_db() -> Generator[Session, None, None]:
    """Dependency to get DB session."""
    gen = _get_session()
    session = next(gen)
    try:
        yield session
    finally:
        gen.close()


def get_store(session: Session = Depends(get_db)) -> ContestStore:
    return ContestStore(session)


def get_resolver() -> QuoteResolver:
    global _resolver
    if _resolver is None:
        _resolver = QuoteResolver.from_config(config.quotes)
    return _resolver


def get_feed() -> PriceChangeFeed:
    return _feed


def get_session_factory() -> Callable[[], Generator[Session, None, None]]:
    """Session source for long-lived connections that must not pin a session."""
    return _get_session


@app.on_event("startup")
async def startup_event():
    """Initialize the database engine and the price table watcher."""
    global _watcher
    init_engine(config.database.url)
    logger.info("Database engine initialized")
    if config.live.poll_interval_s > 0:
        _watcher = PriceTableWatcher(_feed, _get_session, interval_s=config.live.poll_interval_s)
        await _watcher.start()


@app.on_event("shutdown")
async def shutdown_event():
    if _watcher is not None:
        await _watcher.stop()
    if _resolver is not None:
        await _resolver.close()
    dispose_engine()


@app.exception_handler(ContestCoreError)
async def contest_error_handler(request, exc: ContestCoreError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _contest_to_api(contest: Contest, now: datetime) -> dict:
    return {
        "id": contest.id,
        "name": contest.name,
        "description": contest.description,
        "startTime": contest.start_time.isoformat(),
        "endTime": contest.end_time.isoformat(),
        "createdAt": contest.created_at.isoformat() if contest.created_at else None,
        "status": contest.status(now).value,
    }


def _pick_to_api(pick: Pick | None) -> dict | None:
    if pick is None:
        return None
    return {
        "contestId": pick.contest_id,
        "userId": pick.user_id,
        "ticker": pick.ticker,
        "quantity": float(pick.quantity),
        "buyPrice": float(pick.buy_price),
        "createdAt": pick.created_at.isoformat() if pick.created_at else None,
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": _now().isoformat()}


# ═══════════════════════════════════════════════════════════════
# Stock search
# ═══════════════════════════════════════════════════════════════


@app.get("/api/stocks/search")
async def search_stock(
    ticker: Optional[str] = None,
    resolver: QuoteResolver = Depends(get_resolver),
):
    """Resolve a ticker to a USD quote for the stock picker."""
    try:
        quote = await resolver.resolve(ticker or "")
    except ContestCoreError as exc:
        logger.warning("stock_search_failed", ticker=ticker, error=exc.message)
        message = exc.message
        if exc.status_code >= 500:
            message = "Failed to fetch ticker price. Please try again."
        return JSONResponse({"error": message}, status_code=exc.status_code)

    return {
        "symbol": quote.symbol,
        "price": float(quote.price),
        "companyName": quote.display_name,
    }


# ═══════════════════════════════════════════════════════════════
# Contests
# ═══════════════════════════════════════════════════════════════


class JoinContestRequest(BaseModel):
    user_id: str
    ticker: str


@app.get("/api/contests")
async def get_contests(user_id: Optional[str] = None, store: ContestStore = Depends(get_store)):
    """List contests with participant counts and the caller's pick."""
    now = _now()
    summaries = list_contests(store, user_id)
    return {
        "contests": [
            {
                **_contest_to_api(s.contest, now),
                "participantCount": s.participant_count,
                "hasUserJoined": s.has_user_joined,
                "userPick": _pick_to_api(s.user_pick),
            }
            for s in summaries
        ]
    }


@app.get("/api/contests/{contest_id}")
async def get_contest(
    contest_id: str,
    user_id: Optional[str] = None,
    store: ContestStore = Depends(get_store),
):
    """Contest detail with the ranked leaderboard."""
    now = _now()
    view = load_leaderboard(store, contest_id, now)
    return {
        "contest": _contest_to_api(view.contest, now),
        "participantCount": view.participant_count,
        "leaderboard": [e.to_api() for e in view.leaderboard],
        "userPick": _pick_to_api(view.pick_for(user_id)),
        "canJoin": view.can_join(user_id, now),
        "error": view.error,
    }


@app.post("/api/contests/{contest_id}/picks", status_code=201)
async def create_pick(
    contest_id: str,
    req: JoinContestRequest,
    store: ContestStore = Depends(get_store),
    resolver: QuoteResolver = Depends(get_resolver),
):
    """Join a contest with a single pick."""
    pick = await join_contest(
        store,
        resolver,
        contest_id,
        req.user_id,
        req.ticker,
        budget=config.contest.budget,
    )
    return _pick_to_api(pick)


@app.post("/api/prices/refresh")
async def trigger_price_refresh(
    store: ContestStore = Depends(get_store),
    resolver: QuoteResolver = Depends(get_resolver),
):
    """Run one refresh batch; the watcher publishes the resulting UPDATEs."""
    report = await refresh_prices(store, resolver)
    return report.to_api()


# ═══════════════════════════════════════════════════════════════
# Live leaderboard
# ═══════════════════════════════════════════════════════════════


def _board_message(board: LiveLeaderboard) -> dict:
    now = _now()
    return {
        "type": "leaderboard",
        "contestId": board.contest.id,
        "status": board.status(now).value,
        "live": board.is_live(now),
        "leaderboard": [e.to_api() for e in board.entries],
    }


def _load_view(
    sessions: Callable[[], Generator[Session, None, None]],
    contest_id: str,
) -> ContestView:
    """Load the board on a session that is closed again before streaming."""
    gen = sessions()
    try:
        return load_leaderboard(ContestStore(next(gen)), contest_id)
    finally:
        gen.close()


async def _next_event(sub: PriceSubscription, board: LiveLeaderboard) -> PriceChange | None:
    """Next price change; None once the subscription closes or the contest ends."""
    while True:
        timeout = board.contest.seconds_until_end() + _END_GRACE_S
        try:
            return await asyncio.wait_for(sub.get(), timeout=timeout)
        except asyncio.TimeoutError:
            if not board.is_live():
                return None


async def _close_on_disconnect(websocket: WebSocket, sub: PriceSubscription) -> None:
    """Release the subscription as soon as the client goes away."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        sub.close()


@app.websocket("/api/contests/{contest_id}/live")
async def contest_live(
    websocket: WebSocket,
    contest_id: str,
    sessions: Callable[[], Generator[Session, None, None]] = Depends(get_session_factory),
    feed: PriceChangeFeed = Depends(get_feed),
):
    """Stream the re-ranked leaderboard after every price change."""
    await websocket.accept()
    try:
        view = _load_view(sessions, contest_id)
    except ContestCoreError as exc:
        await websocket.send_json({"type": "error", "error": exc.message})
        await websocket.close(code=1008 if isinstance(exc, NotFound) else 1011)
        return

    board = LiveLeaderboard(view.contest, view.leaderboard, view.prices)
    if not board.is_live():
        # upcoming, ended or empty contests get one snapshot and no subscription
        await websocket.send_json(_board_message(board))
        await websocket.close()
        return

    with feed.subscribe(board.tracked_tickers()) as sub:
        await websocket.send_json(_board_message(board))
        watcher = asyncio.create_task(_close_on_disconnect(websocket, sub))
        try:
            while True:
                event = await _next_event(sub, board)
                if event is None:
                    break
                if board.handle(event):
                    await websocket.send_json(_board_message(board))
                if not board.is_live():
                    break
        except WebSocketDisconnect:
            pass
        finally:
            watcher.cancel()
            try:
                await watcher
            except asyncio.CancelledError:
                pass

    if websocket.client_state == WebSocketState.CONNECTED:
        # contest ended while streaming
        await websocket.send_json(_board_message(board))
        await websocket.close()
    logger.info("live_session_ended", contest_id=contest_id)
