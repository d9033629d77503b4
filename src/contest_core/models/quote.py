"""Quote models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class ResolvedQuote(BaseModel):
    """A validated quote from the provider."""

    symbol: str
    price: Decimal
    display_name: str
    currency: str


class PriceQuote(BaseModel):
    """Latest known price for a ticker, as held by the price store."""

    ticker: str
    price: Decimal
    updated_at: datetime | None = None
