"""Error taxonomy for quote resolution, contests and the store of record.

Every error carries the HTTP status the API surface maps it to, so route
handlers can convert any ``ContestCoreError`` into ``{"error": message}``
without a per-type lookup table.
"""

from __future__ import annotations


class ContestCoreError(Exception):
    """Base exception for all recoverable contest-core failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(ContestCoreError):
    """Ticker unknown to the quote provider, or contest unknown."""

    status_code = 404


class InvalidTicker(ContestCoreError):
    """Blank or malformed ticker symbol."""

    status_code = 400


class UnsupportedCurrency(ContestCoreError):
    """Quoted instrument is not settled in an accepted currency."""

    status_code = 400

    def __init__(self, message: str, currency: str | None = None):
        super().__init__(message)
        self.currency = currency


class InvalidPrice(ContestCoreError):
    """Price missing, zero or negative."""

    status_code = 400


class ContestClosed(ContestCoreError):
    """Contest has ended and no longer accepts picks."""

    status_code = 409


class UpstreamUnavailable(ContestCoreError):
    """Quote provider unreachable or answered with a non-2xx status."""

    status_code = 500


class StoreError(ContestCoreError):
    """Read or write against the store of record failed."""

    status_code = 500


class DuplicatePick(StoreError):
    """A pick already exists for this (contest, user) pair."""

    status_code = 409
