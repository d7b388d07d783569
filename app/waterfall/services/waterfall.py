"""
Waterfall orchestration.

Resolves SKU rules and COGS schedules from the catalog, runs the revenue and
COGS accumulators over the cohort set, derives gross income / margin /
cumulative gross profit and pairs every value with its display string.

Catalog reads are blocking, so each distinct SKU is fetched in a worker
thread and all fetches are awaited together before any accumulation starts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, TypeVar

from waterfall.models import (
    Cohort,
    CogsScheduleEntry,
    MonthlyMargin,
    MonthlyTotal,
    MonthSeries,
    RevenueSkuRule,
    WaterfallRequest,
    WaterfallResponse,
)
from waterfall.services.catalog import SkuCatalog
from waterfall.services.cogs import CogsResolutionMode, accumulate_cogs, resolve_cogs_schedule
from waterfall.services.cohorts import expand_sku_items
from waterfall.services.formatting import format_currency, format_margin
from waterfall.services.metrics import derive
from waterfall.services.revenue import accumulate_revenue
from waterfall.utils.config import DEFAULT_HORIZON_MONTHS, FIXED_SCENARIO_SKU_ID

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (start_month, quantity) of the built-in demonstration scenario
FIXED_SCENARIO_COHORTS: tuple[tuple[int, int], ...] = ((1, 10), (2, 20), (3, 0), (4, 40))


# ---------------------------------------------------------------------------
# Catalog resolution
# ---------------------------------------------------------------------------
async def _fetch_each(keys: Iterable[str], fetch: Callable[[str], T]) -> dict[str, T]:
    """Run ``fetch(key)`` for every distinct key concurrently.

    The first failure (or cancellation of the caller) cancels the remaining
    fetches and propagates unchanged.
    """
    tasks: dict[str, asyncio.Future[T]] = {
        key: asyncio.ensure_future(asyncio.to_thread(fetch, key))
        for key in dict.fromkeys(keys)
    }
    try:
        results = await asyncio.gather(*tasks.values())
    except BaseException:
        for task in tasks.values():
            task.cancel()
        raise
    return dict(zip(tasks.keys(), results))


async def resolve_revenue_skus(
    catalog: SkuCatalog, sku_ids: Iterable[str]
) -> dict[str, RevenueSkuRule]:
    """Rule for every distinct id; ``RevenueSkuNotFound`` if any is unknown."""
    return await _fetch_each(sku_ids, catalog.get_revenue_sku)


async def resolve_cogs_schedules(
    catalog: SkuCatalog,
    sku_ids: Iterable[str],
    mode: CogsResolutionMode,
) -> dict[str, list[CogsScheduleEntry]]:
    return await _fetch_each(
        sku_ids, lambda sku_id: resolve_cogs_schedule(catalog, sku_id, mode)
    )


# ---------------------------------------------------------------------------
# Response assembly
# ---------------------------------------------------------------------------
def _totals(series: MonthSeries) -> list[MonthlyTotal]:
    return [
        MonthlyTotal(month=month, total=value, formatted_total=format_currency(value))
        for month, value in series.items()
    ]


def build_waterfall(
    name: str,
    cohorts: list[Cohort],
    rules: dict[str, RevenueSkuRule],
    schedules: dict[str, list[CogsScheduleEntry]],
    horizon: int,
    warnings: list[str] | None = None,
) -> WaterfallResponse:
    """Accumulate, derive and format one projection."""
    revenue = accumulate_revenue(cohorts, rules, horizon)
    cogs = accumulate_cogs(cohorts, schedules, horizon)
    metrics = derive(revenue, cogs)

    return WaterfallResponse(
        name=name,
        horizon_months=horizon,
        revenue_skus=list(rules.values()),
        revenue=_totals(revenue),
        cogs=_totals(cogs),
        gross_income=_totals(metrics.gross_income),
        margin=[
            MonthlyMargin(month=month, margin_percent=value, formatted_margin=format_margin(value))
            for month, value in metrics.margin.items()
        ],
        cumulative_gross_profit=_totals(metrics.cumulative_gross_profit),
        warnings=warnings or [],
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------
async def run_fixed_scenario(
    catalog: SkuCatalog,
    sku_id: str = FIXED_SCENARIO_SKU_ID,
    horizon: int = DEFAULT_HORIZON_MONTHS,
) -> WaterfallResponse:
    """The built-in four-cohort scenario for the well-known revenue SKU.

    A missing SKU or a SKU without a COGS schedule is an error here.
    """
    rules = await resolve_revenue_skus(catalog, [sku_id])
    schedules = await resolve_cogs_schedules(catalog, [sku_id], CogsResolutionMode.STRICT)

    cohorts = [
        Cohort(sku_id=sku_id, start_month=start_month, quantity=quantity)
        for start_month, quantity in FIXED_SCENARIO_COHORTS
    ]
    return build_waterfall(f"{sku_id} waterfall", cohorts, rules, schedules, horizon)


async def run_dynamic_scenario(
    catalog: SkuCatalog, request: WaterfallRequest
) -> WaterfallResponse:
    """Project a caller-defined set of SKU items, possibly across many SKUs.

    Every item is expanded month by month into fresh cohorts.  SKUs without a
    COGS schedule are projected with zero cost and reported in ``warnings``.
    """
    horizon = request.horizon_months
    sku_ids = [item.sku_id for item in request.skus]

    rules = await resolve_revenue_skus(catalog, sku_ids)
    schedules = await resolve_cogs_schedules(catalog, rules.keys(), CogsResolutionMode.TOLERANT)

    warnings = [
        f"No COGS schedule for revenue SKU {sku_id}; COGS treated as zero"
        for sku_id, entries in schedules.items()
        if not entries
    ]

    cohorts = expand_sku_items(request.skus, horizon)
    logger.info(
        "Projecting '%s': %d items, %d SKUs, %d cohorts over %d months",
        request.name,
        len(request.skus),
        len(rules),
        len(cohorts),
        horizon,
    )
    return build_waterfall(request.name, cohorts, rules, schedules, horizon, warnings)
