"""Quote provider client and resolver."""

from contest_core.quotes.client import YahooChartClient
from contest_core.quotes.resolver import QuoteResolver, normalize_ticker, parse_chart

__all__ = ["QuoteResolver", "YahooChartClient", "normalize_ticker", "parse_chart"]
