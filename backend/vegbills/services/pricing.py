"""Line-item and bill totals.

Pure functions over reconciled items.  Every ``item_total`` is rounded
half-away-from-zero to ``PRICE_DECIMALS`` places on its own, and the bill
total is the rounded sum of those already-rounded values.  Rounding only
the grand total of raw products gives different answers and is not used.

Positivity of price and quantity is enforced by the request schemas
before anything reaches this module.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence

from vegbills.core.config import settings
from vegbills.services.reconciler import ResolvedItem


def _quantum(decimals: int) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def round_money(value: Decimal, decimals: int | None = None) -> Decimal:
    """Round half away from zero; ``ROUND_HALF_UP`` does exactly that for Decimal."""
    places = settings.PRICE_DECIMALS if decimals is None else decimals
    return Decimal(value).quantize(_quantum(places), rounding=ROUND_HALF_UP)


def item_total(price: Decimal, quantity: Decimal, decimals: int | None = None) -> Decimal:
    return round_money(Decimal(price) * Decimal(quantity), decimals)


def bill_total(item_totals: Iterable[Decimal], decimals: int | None = None) -> Decimal:
    return round_money(sum((Decimal(t) for t in item_totals), Decimal(0)), decimals)


def price_items(items: Sequence[ResolvedItem], decimals: int | None = None) -> tuple[list[ResolvedItem], Decimal]:
    """Fill ``item_total`` on each resolved item and return them with the bill total."""
    priced = [item.with_total(item_total(item.price, item.quantity, decimals)) for item in items]
    return priced, bill_total((item.item_total for item in priced), decimals)


__all__ = ["round_money", "item_total", "bill_total", "price_items"]
