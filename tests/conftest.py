"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy import BigInteger, Integer

import contest_core.db.tables  # noqa: F401
from contest_core.db.base import Base
from contest_core.db.engine import dispose_engine, get_session, init_engine
from contest_core.leaderboard.feed import PriceChangeFeed
from contest_core.quotes.client import YahooChartClient
from contest_core.quotes.resolver import QuoteResolver
from contest_core.store.repository import ContestStore

NOW = datetime.now(timezone.utc)


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created.

    The engine shares one connection, so the API test client can use the
    session from its worker thread. BigInteger→Integer for autoincrement.
    """
    engine = init_engine("sqlite://")

    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, BigInteger):
                col.type = Integer()

    Base.metadata.create_all(engine)

    session_gen = get_session()
    yield next(session_gen)
    session_gen.close()
    dispose_engine()


@pytest.fixture
def store(db_session):
    return ContestStore(db_session)


@pytest.fixture
def feed():
    return PriceChangeFeed()


def chart_body(
    price=189.5,
    currency="USD",
    short_name="Apple Inc.",
    long_name="Apple Inc. Common Stock",
) -> dict:
    """A minimal /v8/finance/chart response."""
    meta = {"regularMarketPrice": price, "currency": currency}
    if short_name is not None:
        meta["shortName"] = short_name
    if long_name is not None:
        meta["longName"] = long_name
    return {"chart": {"result": [{"meta": meta}], "error": None}}


@pytest.fixture
def quotes():
    """ticker -> (status, body) served by the fake quote provider.

    Unknown tickers get the provider's empty-result answer.
    """
    return {}


@pytest.fixture
def provider_requests():
    return []


@pytest.fixture
def resolver(quotes, provider_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        provider_requests.append(request)
        ticker = request.url.path.rsplit("/", 1)[-1]
        status, body = quotes.get(ticker, (200, {"chart": {"result": [], "error": None}}))
        return httpx.Response(status, json=body)

    client = YahooChartClient(base_url="https://quotes.test", transport=httpx.MockTransport(handler))
    return QuoteResolver(client)


@pytest.fixture
def contest_window():
    """(start, end) for a contest that is active right now."""
    return NOW - timedelta(days=1), NOW + timedelta(days=1)


@pytest.fixture
def chart():
    return chart_body
