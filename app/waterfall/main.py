"""
SKU Cohort Waterfall -- FastAPI application.

Provides REST endpoints for cohort revenue / COGS waterfall projections and
read-only access to the SKU master data they are computed from.

The application is designed to run inside a Databricks App with SDK
auto-authentication.  For local development, set DATABRICKS_HOST and
DATABRICKS_TOKEN environment variables.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import Depends, FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from waterfall.models import CatalogStatus
from waterfall.routers import scenarios, skus
from waterfall.services.catalog import SkuCatalog, get_catalog
from waterfall.utils.config import APP_TITLE, APP_VERSION, CORS_ORIGINS, LOG_LEVEL

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown hooks."""
    logger.info("Starting %s v%s", APP_TITLE, APP_VERSION)
    yield
    logger.info("Shutting down %s", APP_TITLE)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(skus.router)
app.include_router(scenarios.router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return a simple health-check response."""
    return {"status": "healthy", "version": APP_VERSION}


# ---------------------------------------------------------------------------
# Catalog connectivity
# ---------------------------------------------------------------------------
@app.get(
    "/api/v1/catalog/status",
    response_model=CatalogStatus,
    tags=["health"],
    summary="SKU record store connectivity",
)
async def catalog_status(
    catalog: SkuCatalog = Depends(get_catalog),
) -> CatalogStatus:
    """Check the record store.  Always 200; failures are reported in the body."""
    connected = True
    error: str | None = None
    try:
        await run_in_threadpool(catalog.ping)
    except Exception as exc:
        logger.warning("Catalog connectivity check failed: %r", exc)
        connected = False
        error = str(exc) or exc.__class__.__name__

    return CatalogStatus(
        database="connected" if connected else "disconnected",
        error=error,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
