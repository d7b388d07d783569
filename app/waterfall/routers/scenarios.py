"""
Waterfall scenarios router.

``GET`` runs the built-in four-cohort scenario for the well-known revenue
SKU; ``POST`` projects a caller-defined list of SKU items.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from waterfall.exceptions import SkuNotFoundError
from waterfall.models import WaterfallRequest, WaterfallResponse
from waterfall.services.catalog import SkuCatalog, get_catalog
from waterfall.services.waterfall import run_dynamic_scenario, run_fixed_scenario

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/scenarios", tags=["scenarios"])


# ---------------------------------------------------------------------------
# GET /waterfall
# ---------------------------------------------------------------------------
@router.get(
    "/waterfall",
    response_model=WaterfallResponse,
    summary="Built-in waterfall scenario",
)
async def get_waterfall(
    catalog: SkuCatalog = Depends(get_catalog),
) -> WaterfallResponse:
    """Return revenue, COGS, gross income, margin and cumulative gross profit
    for cohorts of 10, 20, 0 and 40 units starting in months 1-4.
    """
    try:
        return await run_fixed_scenario(catalog)
    except SkuNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Fixed waterfall scenario failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# POST /waterfall
# ---------------------------------------------------------------------------
@router.post(
    "/waterfall",
    response_model=WaterfallResponse,
    summary="Project a custom multi-SKU waterfall",
)
async def post_waterfall(
    body: WaterfallRequest,
    catalog: SkuCatalog = Depends(get_catalog),
) -> WaterfallResponse:
    """Expand every SKU item by its growth rule and return the combined
    series.  SKUs without a COGS schedule contribute zero cost and are listed
    in ``warnings``; an unknown revenue SKU fails the whole request (404).
    """
    try:
        return await run_dynamic_scenario(catalog, body)
    except SkuNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Waterfall scenario '%s' failed", body.name)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
