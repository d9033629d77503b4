"""Leaderboard view models — derived from picks and prices, never persisted."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class ValuedEntry(BaseModel):
    """A pick valued at its effective current price."""

    user_id: str
    user_name: str
    avatar_url: str | None = None
    ticker: str
    quantity: Decimal
    buy_price: Decimal
    current_price: Decimal
    current_value: Decimal


class LeaderboardEntry(ValuedEntry):
    """A valued entry with its 1-based leaderboard position."""

    rank: int

    def to_api(self) -> dict:
        return {
            "userId": self.user_id,
            "userName": self.user_name,
            "avatarUrl": self.avatar_url,
            "ticker": self.ticker,
            "quantity": float(self.quantity),
            "buyPrice": float(self.buy_price),
            "currentPrice": float(self.current_price),
            "currentValue": round(float(self.current_value), 2),
            "rank": self.rank,
        }
