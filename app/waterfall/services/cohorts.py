"""
Cohort expansion.

Turns one ``SkuItem`` and its growth rule into explicit per-month cohorts.
Every projected month produces a *new* cohort that starts in that month, so
each one goes through its own deposit / refund cycle in the accumulators.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from waterfall.models import Cohort, GrowthType, SkuItem

# every float at or above this magnitude is a whole number
_INTEGRAL_FLOAT = 2.0**52


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves away from zero (12.5 -> 13).

    Values too large to carry a fraction, and overflowed ones (infinity or
    NaN), are returned unchanged.
    """
    if not math.isfinite(value) or abs(value) >= _INTEGRAL_FLOAT:
        return value
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def grow_quantity(quantity: float, growth_type: GrowthType, growth_value: float | None) -> float:
    """Apply one month of growth to *quantity*.  No clamping at zero."""
    value = growth_value or 0.0
    if growth_type == GrowthType.PERCENTAGE:
        return round_half_up(quantity * (1 + value / 100))
    if growth_type == GrowthType.INCREMENT:
        return quantity + value
    return quantity


def expand_sku_item(item: SkuItem, horizon: int) -> list[Cohort]:
    """Expand *item* into one cohort per month from its start to *horizon*.

    The first month carries the item's own quantity; each later month's
    quantity is the previous one with the growth rule applied.  Items that
    start after the horizon expand to nothing.
    """
    cohorts: list[Cohort] = []
    current: float = item.quantity
    for month in range(item.start_month, horizon + 1):
        if month > item.start_month:
            current = grow_quantity(current, item.growth_type, item.growth_value)
        cohorts.append(Cohort(sku_id=item.sku_id, start_month=month, quantity=current))
    return cohorts


def expand_sku_items(items: list[SkuItem], horizon: int) -> list[Cohort]:
    """Union of the expanded cohorts of every item, in input order."""
    return [cohort for item in items for cohort in expand_sku_item(item, horizon)]
