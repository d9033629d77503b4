"""QuoteResolver — turns a free-text ticker into a validated USD quote."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from contest_core.config.schema import QuotesConfig
from contest_core.errors import (
    InvalidPrice,
    InvalidTicker,
    NotFound,
    UnsupportedCurrency,
    UpstreamUnavailable,
)
from contest_core.models.quote import ResolvedQuote
from contest_core.quotes.client import YahooChartClient

log = structlog.get_logger("quote_resolver")

DEFAULT_ACCEPTED_CURRENCIES = frozenset({"USD", "USX"})


def normalize_ticker(ticker: str | None) -> str:
    """Trim and upper-case a ticker; blank input is rejected."""
    symbol = (ticker or "").strip().upper()
    if not symbol:
        raise InvalidTicker("Ticker symbol is required")
    return symbol


def _to_price(raw: Any) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        price = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite():
        return None
    return price


def _malformed(ticker: str) -> UpstreamUnavailable:
    return UpstreamUnavailable(f"Unexpected chart payload for {ticker}")


def parse_chart(
    ticker: str,
    body: dict[str, Any],
    accepted_currencies: Iterable[str] = DEFAULT_ACCEPTED_CURRENCIES,
) -> ResolvedQuote:
    """Validate a chart response body and extract the quote.

    Checks run in order: result present, currency accepted, price positive.
    A body that is not shaped like a chart response is an upstream failure.
    """
    if not isinstance(body, dict):
        raise _malformed(ticker)
    chart = body.get("chart") or {}
    if not isinstance(chart, dict):
        raise _malformed(ticker)
    results = chart.get("result") or []
    if not isinstance(results, list):
        raise _malformed(ticker)
    if not results:
        raise NotFound("Stock not found or invalid ticker symbol")

    first = results[0]
    if not isinstance(first, dict):
        raise _malformed(ticker)
    meta = first.get("meta") or {}
    if not isinstance(meta, dict):
        raise _malformed(ticker)

    currency = meta.get("currency")
    if currency not in set(accepted_currencies):
        raise UnsupportedCurrency("Please choose a USD denominated security", currency=currency)

    price = _to_price(meta.get("regularMarketPrice"))
    if price is None or price <= 0:
        raise InvalidPrice("Invalid data received")

    return ResolvedQuote(
        symbol=ticker,
        price=price,
        display_name=meta.get("shortName") or meta.get("longName") or ticker,
        currency=currency,
    )


class QuoteResolver:
    """Resolves tickers against the quote provider. Read-only."""

    def __init__(
        self,
        client: YahooChartClient,
        accepted_currencies: Iterable[str] = DEFAULT_ACCEPTED_CURRENCIES,
    ) -> None:
        self.client = client
        self.accepted_currencies = frozenset(c.upper() for c in accepted_currencies)

    @classmethod
    def from_config(cls, config: QuotesConfig) -> QuoteResolver:
        client = YahooChartClient(base_url=config.base_url, timeout_s=config.timeout_s)
        return cls(client, accepted_currencies=config.accepted_currencies)

    async def resolve(self, ticker: str) -> ResolvedQuote:
        """Fetch and validate the latest daily quote for *ticker*."""
        symbol = normalize_ticker(ticker)
        body = await self.client.get_chart(symbol)
        quote = parse_chart(symbol, body, self.accepted_currencies)
        log.debug("quote_resolved", ticker=symbol, price=str(quote.price), currency=quote.currency)
        return quote

    async def close(self) -> None:
        await self.client.close()
