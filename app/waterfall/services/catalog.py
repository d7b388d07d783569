"""
SKU catalog accessor.

The waterfall engine depends on the ``SkuCatalog`` read interface only.
``DatabricksSkuCatalog`` reads the SKU master tables in Unity Catalog through
the ``execute_sql`` helper (results are cached there); ``InMemorySkuCatalog``
serves fixed records and backs tests and local runs without a workspace.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from waterfall.exceptions import CogsScheduleNotFound, RevenueSkuNotFound
from waterfall.models import CogsScheduleEntry, CogsSku, RevenueSkuRule
from waterfall.utils.config import (
    TABLE_COGS_BREAKDOWN,
    TABLE_COGS_SKUS,
    TABLE_REVENUE_SKUS,
)
from waterfall.utils.databricks_client import execute_sql

logger = logging.getLogger(__name__)


class SkuCatalog(Protocol):
    """Read-only access to revenue SKU rules and COGS schedules."""

    def get_revenue_sku(self, sku_id: str) -> RevenueSkuRule:
        """Raise ``RevenueSkuNotFound`` when *sku_id* has no row."""
        ...

    def get_cogs_schedule_for_revenue_sku(
        self, revenue_sku_id: str
    ) -> list[CogsScheduleEntry]:
        """Raise ``RevenueSkuNotFound`` or ``CogsScheduleNotFound``."""
        ...

    def list_revenue_skus(self) -> list[RevenueSkuRule]: ...

    def list_cogs_skus(self) -> list[CogsSku]: ...

    def ping(self) -> None:
        """Raise when the record store cannot be reached."""
        ...


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------
def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _opt_int(value: Any) -> int | None:
    return None if value in (None, "") else int(float(value))


def _opt_float(value: Any) -> float | None:
    return None if value in (None, "") else float(value)


def _revenue_sku_from_row(r: dict[str, Any]) -> RevenueSkuRule:
    return RevenueSkuRule(
        sku_id=str(r["sku_id"]),
        sku_name=str(r.get("sku_name") or ""),
        description=_opt_str(r.get("description")),
        upfront_deposit=float(r.get("upfront_deposit") or 0),
        selection_period_months=_opt_int(r.get("selection_period_months")),
        active_revenue_start_month=_opt_int(r.get("active_revenue_start_month")) or 1,
        active_revenue_end_month=_opt_int(r.get("active_revenue_end_month")),
        monthly_revenue=float(r.get("monthly_revenue") or 0),
        deposit_refund_month=_opt_int(r.get("deposit_refund_month")),
        cogs_sku_id=_opt_str(r.get("cogs_sku_id")) or None,
        created_at=_opt_str(r.get("created_at")),
    )


def _cogs_sku_from_row(r: dict[str, Any]) -> CogsSku:
    return CogsSku(
        sku_id=str(r["sku_id"]),
        sku_name=str(r.get("sku_name") or ""),
        description=_opt_str(r.get("description")),
        total_cogs=_opt_float(r.get("total_cogs")),
        created_at=_opt_str(r.get("created_at")),
    )


def _cogs_entry_from_row(r: dict[str, Any]) -> CogsScheduleEntry:
    return CogsScheduleEntry(
        sku_id=_opt_str(r.get("sku_id")),
        month_number=int(float(r["month_number"])),
        cogs_amount=float(r["cogs_amount"]),
        phase=_opt_str(r.get("phase")),
    )


# ---------------------------------------------------------------------------
# Unity Catalog implementation
# ---------------------------------------------------------------------------
_REVENUE_COLUMNS = """
    sku_id, sku_name, description, upfront_deposit, selection_period_months,
    active_revenue_start_month, active_revenue_end_month, monthly_revenue,
    deposit_refund_month, cogs_sku_id, created_at
"""


class DatabricksSkuCatalog:
    """SKU master data read from the gold-layer tables."""

    def get_revenue_sku(self, sku_id: str) -> RevenueSkuRule:
        query = f"""
            SELECT {_REVENUE_COLUMNS}
            FROM {TABLE_REVENUE_SKUS}
            WHERE sku_id = :sku_id
            LIMIT 1
        """
        rows = execute_sql(
            query,
            parameters={"sku_id": sku_id},
            cache_key=f"revenue_sku:{sku_id}",
        )
        if not rows:
            raise RevenueSkuNotFound(sku_id)
        return _revenue_sku_from_row(rows[0])

    def get_cogs_schedule_for_revenue_sku(
        self, revenue_sku_id: str
    ) -> list[CogsScheduleEntry]:
        rule = self.get_revenue_sku(revenue_sku_id)
        if not rule.cogs_sku_id:
            raise CogsScheduleNotFound(revenue_sku_id, CogsScheduleNotFound.NO_COGS_LINK)

        query = f"""
            SELECT sku_id, month_number, cogs_amount, phase
            FROM {TABLE_COGS_BREAKDOWN}
            WHERE sku_id = :cogs_sku_id
            ORDER BY month_number ASC
        """
        rows = execute_sql(
            query,
            parameters={"cogs_sku_id": rule.cogs_sku_id},
            cache_key=f"cogs_breakdown:{rule.cogs_sku_id}",
        )
        if not rows:
            raise CogsScheduleNotFound(revenue_sku_id, CogsScheduleNotFound.NO_COGS_ROWS)
        return [_cogs_entry_from_row(r) for r in rows]

    def list_revenue_skus(self) -> list[RevenueSkuRule]:
        query = f"""
            SELECT {_REVENUE_COLUMNS}
            FROM {TABLE_REVENUE_SKUS}
            ORDER BY created_at DESC
        """
        rows = execute_sql(query, cache_key="revenue_skus:all")
        return [_revenue_sku_from_row(r) for r in rows]

    def list_cogs_skus(self) -> list[CogsSku]:
        query = f"""
            SELECT sku_id, sku_name, description, total_cogs, created_at
            FROM {TABLE_COGS_SKUS}
            ORDER BY created_at DESC
        """
        rows = execute_sql(query, cache_key="cogs_skus:all")
        return [_cogs_sku_from_row(r) for r in rows]

    def ping(self) -> None:
        execute_sql("SELECT 1 AS ok")


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------
class InMemorySkuCatalog:
    """Catalog backed by fixed records; rows are never mutated after load."""

    def __init__(
        self,
        revenue_skus: Iterable[RevenueSkuRule] = (),
        cogs_skus: Iterable[CogsSku] = (),
        cogs_entries: Iterable[CogsScheduleEntry] = (),
    ):
        self._revenue = {sku.sku_id: sku for sku in revenue_skus}
        self._cogs_skus = list(cogs_skus)
        self._entries: dict[str, list[CogsScheduleEntry]] = {}
        for entry in cogs_entries:
            self._entries.setdefault(entry.sku_id or "", []).append(entry)

    def get_revenue_sku(self, sku_id: str) -> RevenueSkuRule:
        try:
            return self._revenue[sku_id]
        except KeyError:
            raise RevenueSkuNotFound(sku_id) from None

    def get_cogs_schedule_for_revenue_sku(
        self, revenue_sku_id: str
    ) -> list[CogsScheduleEntry]:
        rule = self.get_revenue_sku(revenue_sku_id)
        if not rule.cogs_sku_id:
            raise CogsScheduleNotFound(revenue_sku_id, CogsScheduleNotFound.NO_COGS_LINK)
        entries = self._entries.get(rule.cogs_sku_id)
        if not entries:
            raise CogsScheduleNotFound(revenue_sku_id, CogsScheduleNotFound.NO_COGS_ROWS)
        return sorted(entries, key=lambda e: e.month_number)

    def list_revenue_skus(self) -> list[RevenueSkuRule]:
        return sorted(
            self._revenue.values(), key=lambda s: s.created_at or "", reverse=True
        )

    def list_cogs_skus(self) -> list[CogsSku]:
        return sorted(self._cogs_skus, key=lambda s: s.created_at or "", reverse=True)

    def ping(self) -> None:
        return None


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------
_catalog: SkuCatalog | None = None


def get_catalog() -> SkuCatalog:
    """Return the process-wide catalog (Unity Catalog backed)."""
    global _catalog
    if _catalog is None:
        logger.info("Using Unity Catalog SKU tables (%s)", TABLE_REVENUE_SKUS)
        _catalog = DatabricksSkuCatalog()
    return _catalog
