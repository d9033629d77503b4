"""Scheduled ticker price refresh."""

from contest_core.refresh.job import RefreshReport, RefreshResult, refresh_prices

__all__ = ["RefreshReport", "RefreshResult", "refresh_prices"]
