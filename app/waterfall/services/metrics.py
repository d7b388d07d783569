"""Gross income, margin and cumulative gross profit from revenue and COGS."""

from __future__ import annotations

from itertools import accumulate

from waterfall.models import DerivedMetrics, MarginSeries, MonthSeries


def margin_percent(revenue: float, cogs: float) -> float | None:
    """Gross margin in percent, unrounded.

    With no revenue the margin is 0 when there is also no cost, and undefined
    (None) when there is cost.
    """
    if revenue == 0:
        return 0.0 if cogs == 0 else None
    return (revenue - cogs) / revenue * 100


def derive(revenue: MonthSeries, cogs: MonthSeries) -> DerivedMetrics:
    if len(revenue) != len(cogs):
        raise ValueError(
            f"revenue and COGS series differ in length ({len(revenue)} != {len(cogs)})"
        )

    gross = tuple(r - c for r, c in zip(revenue.values, cogs.values))
    margin = tuple(margin_percent(r, c) for r, c in zip(revenue.values, cogs.values))

    return DerivedMetrics(
        gross_income=MonthSeries(values=gross),
        margin=MarginSeries(values=margin),
        cumulative_gross_profit=MonthSeries(values=tuple(accumulate(gross))),
    )
