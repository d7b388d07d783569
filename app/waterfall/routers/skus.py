"""
SKU master data router.

Read-only listings of revenue and COGS SKUs, plus the resolved COGS
amortization schedule of a single revenue SKU.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from waterfall.exceptions import SkuNotFoundError
from waterfall.models import CogsScheduleEntry, CogsSku, RevenueSkuRule
from waterfall.services.catalog import SkuCatalog, get_catalog
from waterfall.services.cogs import CogsResolutionMode, resolve_cogs_schedule

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/skus", tags=["skus"])


# ---------------------------------------------------------------------------
# GET /revenue
# ---------------------------------------------------------------------------
@router.get(
    "/revenue",
    response_model=list[RevenueSkuRule],
    summary="List revenue SKUs, newest first",
)
async def list_revenue_skus(
    catalog: SkuCatalog = Depends(get_catalog),
) -> list[RevenueSkuRule]:
    try:
        return await run_in_threadpool(catalog.list_revenue_skus)
    except Exception as exc:
        logger.exception("Failed to fetch revenue SKUs")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /cogs
# ---------------------------------------------------------------------------
@router.get(
    "/cogs",
    response_model=list[CogsSku],
    summary="List COGS SKUs, newest first",
)
async def list_cogs_skus(
    catalog: SkuCatalog = Depends(get_catalog),
) -> list[CogsSku]:
    try:
        return await run_in_threadpool(catalog.list_cogs_skus)
    except Exception as exc:
        logger.exception("Failed to fetch COGS SKUs")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /revenue/{sku_id}/cogs-schedule
# ---------------------------------------------------------------------------
@router.get(
    "/revenue/{sku_id}/cogs-schedule",
    response_model=list[CogsScheduleEntry],
    summary="COGS amortization schedule linked to a revenue SKU",
)
async def get_cogs_schedule(
    sku_id: str,
    catalog: SkuCatalog = Depends(get_catalog),
) -> list[CogsScheduleEntry]:
    """Return the per-unit COGS rows by cohort month.  404 when the revenue
    SKU is unknown or has no COGS schedule.
    """
    try:
        return await run_in_threadpool(
            resolve_cogs_schedule, catalog, sku_id, CogsResolutionMode.STRICT
        )
    except SkuNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to fetch COGS schedule for %s", sku_id)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
