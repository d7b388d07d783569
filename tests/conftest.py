"""
Shared fixtures for the SKU waterfall tests.

Catalog records mirror the SKU master rows the service runs against: the
well-known ``R10`` revenue SKU linked to the ``COGS001`` amortization table.
"""

from __future__ import annotations

import os
import sys

import pytest

# Ensure the app package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from waterfall.models import CogsScheduleEntry, CogsSku, RevenueSkuRule  # noqa: E402
from waterfall.services.catalog import InMemorySkuCatalog  # noqa: E402
from waterfall.utils.databricks_client import invalidate_cache  # noqa: E402


# ---------------------------------------------------------------------------
# Catalog rows
# ---------------------------------------------------------------------------
@pytest.fixture()
def r10_rule() -> RevenueSkuRule:
    return RevenueSkuRule(
        sku_id="R10",
        sku_name="Premium Nurse Placement with Deposit",
        upfront_deposit=10000,
        selection_period_months=3,
        active_revenue_start_month=4,
        active_revenue_end_month=39,
        monthly_revenue=2513,
        deposit_refund_month=40,
        cogs_sku_id="COGS001",
        created_at="2025-08-24T18:03:06.349862",
    )


@pytest.fixture()
def r20_rule() -> RevenueSkuRule:
    """A revenue SKU with no linked COGS SKU."""
    return RevenueSkuRule(
        sku_id="R20",
        sku_name="Standard Nurse Placement",
        upfront_deposit=0,
        active_revenue_start_month=1,
        monthly_revenue=1000,
        created_at="2025-08-25T09:00:00",
    )


@pytest.fixture()
def cogs001_entries() -> list[CogsScheduleEntry]:
    return [
        CogsScheduleEntry(sku_id="COGS001", month_number=1, cogs_amount=1000, phase="training"),
        CogsScheduleEntry(sku_id="COGS001", month_number=2, cogs_amount=1500, phase="training"),
        CogsScheduleEntry(sku_id="COGS001", month_number=3, cogs_amount=800, phase="onboarding"),
    ]


@pytest.fixture()
def cogs_skus() -> list[CogsSku]:
    return [
        CogsSku(
            sku_id="COGS001",
            sku_name="Nurse Training COGS",
            total_cogs=3300,
            description="Training costs for nurses",
            created_at="2023-01-01T00:00:00Z",
        )
    ]


@pytest.fixture()
def catalog(r10_rule, r20_rule, cogs001_entries, cogs_skus) -> InMemorySkuCatalog:
    return InMemorySkuCatalog(
        revenue_skus=[r10_rule, r20_rule],
        cogs_skus=cogs_skus,
        cogs_entries=cogs001_entries,
    )


@pytest.fixture(autouse=True)
def _clear_sql_cache():
    """Keep cached SQL results from leaking between tests."""
    invalidate_cache()
    yield
    invalidate_cache()
