"""Valuation engine — picks × prices → valued entries.

A pick whose ticker has no known price is valued at its buy price, so a
stale or missing quote still shows a meaningful value instead of zero.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from contest_core.errors import InvalidPrice
from contest_core.models.contest import Contestant, Pick
from contest_core.models.leaderboard import ValuedEntry

DEFAULT_BUDGET = Decimal("1000")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Coerce a DB/JSON number to Decimal without float repr noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantity_for_budget(entry_price: Decimal | float, budget: Decimal = DEFAULT_BUDGET) -> Decimal:
    """Fractional share count the fixed budget buys at *entry_price*. Unrounded."""
    price = to_decimal(entry_price)
    if price <= 0:
        raise InvalidPrice(f"Entry price must be positive, got {price}")
    return to_decimal(budget) / price


def value_pick(
    pick: Pick,
    prices: Mapping[str, Decimal | float | None],
    contestant: Contestant | None = None,
) -> ValuedEntry:
    quoted = prices.get(pick.ticker)
    current_price = to_decimal(quoted) if quoted is not None else pick.buy_price
    return ValuedEntry(
        user_id=pick.user_id,
        user_name=contestant.display_name if contestant else "Unknown user",
        avatar_url=contestant.avatar_url if contestant else None,
        ticker=pick.ticker,
        quantity=pick.quantity,
        buy_price=pick.buy_price,
        current_price=current_price,
        current_value=pick.quantity * current_price,
    )


def value(
    picks: Iterable[Pick],
    prices: Mapping[str, Decimal | float | None],
    contestants: Mapping[str, Contestant] | None = None,
) -> list[ValuedEntry]:
    """Value every pick at its effective price. Pure; returns a new list."""
    contestants = contestants or {}
    return [value_pick(p, prices, contestants.get(p.user_id)) for p in picks]
