"""Tests for chart parsing, the quote client and the resolver."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import httpx
import pytest

from contest_core.errors import (
    InvalidPrice,
    InvalidTicker,
    NotFound,
    UnsupportedCurrency,
    UpstreamUnavailable,
)
from contest_core.quotes.client import YahooChartClient
from contest_core.quotes.resolver import QuoteResolver, normalize_ticker, parse_chart


def _resolve(resolver: QuoteResolver, ticker: str):
    async def go():
        try:
            return await resolver.resolve(ticker)
        finally:
            await resolver.close()

    return asyncio.run(go())


def _resolver_for(handler) -> QuoteResolver:
    client = YahooChartClient(base_url="https://quotes.test/", transport=httpx.MockTransport(handler))
    return QuoteResolver(client)


class TestNormalizeTicker:
    def test_upper_cases_and_trims(self):
        assert normalize_ticker("  brk-b ") == "BRK-B"

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_blank_rejected(self, raw):
        with pytest.raises(InvalidTicker):
            normalize_ticker(raw)


class TestParseChart:
    def test_valid_usd_quote(self, chart):
        quote = parse_chart("AAPL", chart(price=189.5))
        assert quote.symbol == "AAPL"
        assert quote.price == Decimal("189.5")
        assert quote.display_name == "Apple Inc."
        assert quote.currency == "USD"

    def test_cent_denominated_code_accepted(self, chart):
        quote = parse_chart("ULVR", chart(price=3875, currency="USX"))
        assert quote.currency == "USX"
        assert quote.price == Decimal("3875")

    def test_eur_rejected(self, chart):
        with pytest.raises(UnsupportedCurrency) as exc_info:
            parse_chart("SAP.DE", chart(currency="EUR"))
        assert exc_info.value.currency == "EUR"
        assert exc_info.value.status_code == 400

    def test_missing_currency_rejected(self, chart):
        body = chart()
        del body["chart"]["result"][0]["meta"]["currency"]
        with pytest.raises(UnsupportedCurrency):
            parse_chart("AAPL", body)

    def test_currency_checked_before_price(self, chart):
        with pytest.raises(UnsupportedCurrency):
            parse_chart("SAP.DE", chart(price=0, currency="EUR"))

    @pytest.mark.parametrize(
        "body",
        [
            {"chart": {"result": [], "error": None}},
            {"chart": {"result": None, "error": {"code": "Not Found"}}},
            {"chart": {}},
            {},
        ],
    )
    def test_empty_result_is_not_found(self, body):
        with pytest.raises(NotFound):
            parse_chart("ZZZZ", body)

    @pytest.mark.parametrize("price", [0, -3.5, None, "abc", True, float("nan")])
    def test_bad_price_rejected(self, chart, price):
        with pytest.raises(InvalidPrice):
            parse_chart("AAPL", chart(price=price))

    @pytest.mark.parametrize(
        "body",
        [
            {"chart": {"result": [None]}},
            {"chart": {"result": ["AAPL"]}},
            {"chart": {"result": [{"meta": ["USD"]}]}},
            {"chart": {"result": {"meta": {}}}},
            {"chart": "unavailable"},
            [{"chart": {}}],
            "<html>",
        ],
    )
    def test_malformed_payload_is_upstream_unavailable(self, body):
        with pytest.raises(UpstreamUnavailable):
            parse_chart("AAPL", body)

    def test_display_name_falls_back_to_long_name(self, chart):
        quote = parse_chart("AAPL", chart(short_name=None))
        assert quote.display_name == "Apple Inc. Common Stock"

    def test_display_name_falls_back_to_symbol(self, chart):
        quote = parse_chart("AAPL", chart(short_name=None, long_name=None))
        assert quote.display_name == "AAPL"

    def test_custom_accepted_currencies(self, chart):
        quote = parse_chart("SAP.DE", chart(currency="EUR"), accepted_currencies={"EUR"})
        assert quote.currency == "EUR"


class TestYahooChartClient:
    def test_default_url(self):
        assert YahooChartClient().base_url == "https://query1.finance.yahoo.com"

    def test_trailing_slash_stripped(self):
        assert YahooChartClient(base_url="https://quotes.test/").base_url == "https://quotes.test"


class TestQuoteResolver:
    def test_requests_daily_chart(self, chart):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=chart(price=412.3, short_name="Microsoft"))

        quote = _resolve(_resolver_for(handler), " msft ")

        assert quote.symbol == "MSFT"
        assert quote.price == Decimal("412.3")
        assert quote.display_name == "Microsoft"
        assert seen[0].url.path == "/v8/finance/chart/MSFT"
        assert seen[0].url.params["interval"] == "1d"
        assert seen[0].url.params["range"] == "1d"

    def test_non_2xx_is_upstream_unavailable(self):
        resolver = _resolver_for(lambda request: httpx.Response(503, text="maintenance"))
        with pytest.raises(UpstreamUnavailable):
            _resolve(resolver, "AAPL")

    def test_transport_error_is_upstream_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamUnavailable):
            _resolve(_resolver_for(handler), "AAPL")

    def test_invalid_json_is_upstream_unavailable(self):
        resolver = _resolver_for(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(UpstreamUnavailable):
            _resolve(resolver, "AAPL")

    def test_empty_result_is_not_found(self, resolver):
        with pytest.raises(NotFound):
            _resolve(resolver, "NOPE")

    def test_blank_ticker_never_hits_provider(self, resolver, provider_requests):
        with pytest.raises(InvalidTicker):
            _resolve(resolver, "  ")
        assert provider_requests == []

    def test_currency_gate(self, resolver, quotes, chart):
        quotes["SAP.DE"] = (200, chart(currency="EUR"))
        with pytest.raises(UnsupportedCurrency):
            _resolve(resolver, "sap.de")

    def test_from_config(self):
        from contest_core.config.schema import QuotesConfig

        resolver = QuoteResolver.from_config(
            QuotesConfig(base_url="https://q.example/", accepted_currencies=["usd"])
        )
        assert resolver.client.base_url == "https://q.example"
        assert resolver.accepted_currencies == {"USD"}
