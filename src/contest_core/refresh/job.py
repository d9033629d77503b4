"""Price refresh job — re-resolve every tracked ticker and upsert its price.

Run: python -m contest_core.refresh [--config config.yaml]

One ticker failing never aborts the batch; every ticker ends up as a
result record in the aggregate report.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from datetime import datetime, timezone
from decimal import Decimal

import structlog
from pydantic import BaseModel, Field

from contest_core.config import load_config
from contest_core.db import dispose_engine, init_engine
from contest_core.db.engine import get_session
from contest_core.errors import ContestCoreError, StoreError
from contest_core.leaderboard.feed import PriceChange, PriceChangeFeed
from contest_core.logging import setup_logging
from contest_core.models.quote import ResolvedQuote
from contest_core.quotes.resolver import QuoteResolver
from contest_core.store.repository import ContestStore

log = structlog.get_logger("price_refresh")


class RefreshResult(BaseModel):
    ticker: str
    success: bool
    price: Decimal | None = None
    error: str | None = None


class RefreshReport(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0
    results: list[RefreshResult] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: list[RefreshResult]) -> RefreshReport:
        ok = sum(1 for r in results if r.success)
        return cls(total=len(results), successful=ok, failed=len(results) - ok, results=results)

    def to_api(self) -> dict:
        return {
            "message": "Ticker prices update completed." if self.total else "No tickers found to update.",
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "results": [
                {
                    "ticker": r.ticker,
                    "success": r.success,
                    **({"price": float(r.price)} if r.price is not None else {}),
                    **({"error": r.error} if r.error is not None else {}),
                }
                for r in self.results
            ],
        }


async def _resolve(resolver: QuoteResolver, ticker: str) -> ResolvedQuote | str:
    """Resolve one ticker; failures come back as an error message."""
    try:
        return await resolver.resolve(ticker)
    except ContestCoreError as exc:
        log.warning("price_refresh_failed", ticker=ticker, error=exc.message)
        return exc.message
    except Exception as exc:
        log.exception("price_refresh_error", ticker=ticker)
        return str(exc) or exc.__class__.__name__


async def refresh_prices(
    store: ContestStore,
    resolver: QuoteResolver,
    feed: PriceChangeFeed | None = None,
    now: datetime | None = None,
) -> RefreshReport:
    """Refresh all tracked tickers and return the aggregate report."""
    tickers = store.all_tickers()
    if not tickers:
        log.info("price_refresh_skipped", reason="no_tickers")
        return RefreshReport()

    outcomes = await asyncio.gather(*(_resolve(resolver, t) for t in tickers))

    results: list[RefreshResult] = []
    for ticker, outcome in zip(tickers, outcomes):
        if isinstance(outcome, str):
            results.append(RefreshResult(ticker=ticker, success=False, error=outcome))
            continue
        updated_at = now or datetime.now(timezone.utc)
        try:
            store.upsert_price(ticker, outcome.price, updated_at=updated_at)
        except StoreError as exc:
            results.append(RefreshResult(ticker=ticker, success=False, error=exc.message))
            continue
        if feed is not None:
            feed.publish(PriceChange(ticker=ticker, price=outcome.price, updated_at=updated_at))
        results.append(RefreshResult(ticker=ticker, success=True, price=outcome.price))

    report = RefreshReport.from_results(results)
    log.info(
        "price_refresh_complete",
        total=report.total,
        successful=report.successful,
        failed=report.failed,
    )
    return report


async def run(config_path: str | None = None) -> RefreshReport:
    """Entry point for one batch — load config, refresh, clean up."""
    cfg = load_config(config_path)
    setup_logging(level=cfg.logging.level, log_format=cfg.logging.format)
    init_engine(cfg.database.url)

    resolver = QuoteResolver.from_config(cfg.quotes)
    session_gen = get_session()
    session = next(session_gen)
    try:
        return await refresh_prices(ContestStore(session), resolver)
    finally:
        session_gen.close()
        await resolver.close()
        dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(description="Refresh tracked ticker prices")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    args = parser.parse_args()
    report = asyncio.run(run(args.config))
    print(json.dumps(report.to_api(), indent=2))


if __name__ == "__main__":
    main()
