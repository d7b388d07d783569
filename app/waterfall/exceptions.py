"""
Error taxonomy shared by the catalog accessor, the waterfall engine and the
HTTP layer.

``SkuNotFoundError`` subclasses are client-visible (404).  ``UpstreamFailure``
covers record-store and SDK errors that are not a missing row (500).
"""

from __future__ import annotations


class SkuNotFoundError(LookupError):
    """Base class for catalog lookups that found no matching row."""


class RevenueSkuNotFound(SkuNotFoundError):
    """The requested revenue SKU has no catalog row."""

    def __init__(self, sku_id: str):
        super().__init__(f"{sku_id} revenue SKU not found")
        self.sku_id = sku_id


class CogsScheduleNotFound(SkuNotFoundError):
    """The revenue SKU exists but no COGS schedule can be attached to it."""

    NO_COGS_LINK = "no_cogs_link"
    NO_COGS_ROWS = "no_cogs_rows"

    def __init__(self, revenue_sku_id: str, reason: str = NO_COGS_LINK):
        if reason == self.NO_COGS_ROWS:
            message = f"No COGS breakdown rows for revenue SKU {revenue_sku_id}"
        else:
            message = f"Revenue SKU {revenue_sku_id} has no linked COGS SKU"
        super().__init__(message)
        self.revenue_sku_id = revenue_sku_id
        self.reason = reason


class UpstreamFailure(RuntimeError):
    """The record store failed for a reason other than a missing row."""
