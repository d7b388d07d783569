"""
COGS accumulation and schedule resolution.

COGS is keyed by cohort age, not calendar month: a cohort that starts in
month 5 incurs its month-1 cost in calendar month 5, its month-2 cost in
month 6, and so on.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Mapping

from waterfall.exceptions import CogsScheduleNotFound
from waterfall.models import Cohort, CogsScheduleEntry, MonthSeries
from waterfall.services.catalog import SkuCatalog

logger = logging.getLogger(__name__)


class CogsResolutionMode(str, Enum):
    """How a missing COGS schedule is treated.

    STRICT raises ``CogsScheduleNotFound``.  TOLERANT logs a warning and
    treats the SKU as having no cost.
    """

    STRICT = "strict"
    TOLERANT = "tolerant"


def resolve_cogs_schedule(
    catalog: SkuCatalog,
    revenue_sku_id: str,
    mode: CogsResolutionMode = CogsResolutionMode.STRICT,
) -> list[CogsScheduleEntry]:
    """Fetch the COGS schedule linked to *revenue_sku_id*.

    Only a missing COGS link or empty breakdown is subject to *mode*; an
    unknown revenue SKU and upstream failures always propagate.
    """
    try:
        return catalog.get_cogs_schedule_for_revenue_sku(revenue_sku_id)
    except CogsScheduleNotFound as exc:
        if mode == CogsResolutionMode.STRICT:
            raise
        logger.warning("%s; treating COGS as zero", exc)
        return []


def build_cogs_lookup(entries: Iterable[CogsScheduleEntry]) -> dict[int, float]:
    """Map cohort age -> per-unit COGS.  Entries sharing a month are summed."""
    lookup: dict[int, float] = {}
    for entry in entries:
        lookup[entry.month_number] = lookup.get(entry.month_number, 0.0) + entry.cogs_amount
    return lookup


def accumulate_cogs(
    cohorts: Iterable[Cohort],
    schedule: Mapping[str, Iterable[CogsScheduleEntry]],
    horizon: int,
) -> MonthSeries:
    """Sum ``quantity * cogs_amount`` of every cohort into months ``1..horizon``.

    SKUs absent from *schedule* contribute nothing.
    """
    lookups = {sku_id: build_cogs_lookup(entries) for sku_id, entries in schedule.items()}
    totals = [0.0] * horizon

    for cohort in cohorts:
        lookup = lookups.get(cohort.sku_id)
        if not lookup:
            continue
        for month in range(max(cohort.start_month, 1), horizon + 1):
            age = month - cohort.start_month + 1
            if age in lookup:
                totals[month - 1] += cohort.quantity * lookup[age]

    return MonthSeries(values=tuple(totals))
