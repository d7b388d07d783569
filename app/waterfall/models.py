"""
Pydantic data models for the SKU waterfall API.

Catalog records, engine value objects and request / response schemas are all
defined here so they can be shared across routers, services, and tests.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel

from waterfall.utils.config import DEFAULT_HORIZON_MONTHS, MAX_HORIZON_MONTHS


class CamelModel(BaseModel):
    """Wire model: camelCase on output, camelCase or snake_case on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------
class RevenueSkuRule(CamelModel):
    """Static revenue policy of one revenue SKU, as stored in the catalog."""

    model_config = ConfigDict(frozen=True)

    sku_id: str
    sku_name: str = ""
    description: Optional[str] = None
    upfront_deposit: float = 0.0
    selection_period_months: Optional[int] = None
    active_revenue_start_month: int = Field(1, ge=1)
    active_revenue_end_month: Optional[int] = None
    monthly_revenue: float = 0.0
    deposit_refund_month: Optional[int] = None
    cogs_sku_id: Optional[str] = None
    created_at: Optional[str] = None

    @model_validator(mode="after")
    def check_revenue_window(self) -> "RevenueSkuRule":
        end = self.active_revenue_end_month
        if end is not None and end < self.active_revenue_start_month:
            raise ValueError(
                "active_revenue_end_month must not precede active_revenue_start_month"
            )
        return self


class CogsSku(CamelModel):
    """COGS SKU master row."""

    model_config = ConfigDict(frozen=True)

    sku_id: str
    sku_name: str = ""
    description: Optional[str] = None
    total_cogs: Optional[float] = None
    created_at: Optional[str] = None


class CogsScheduleEntry(CamelModel):
    """One row of a COGS SKU's amortization table, keyed by cohort age."""

    model_config = ConfigDict(frozen=True)

    sku_id: Optional[str] = None
    month_number: int = Field(..., ge=1)
    cogs_amount: float
    phase: Optional[str] = None


# ---------------------------------------------------------------------------
# Engine value objects
# ---------------------------------------------------------------------------
class Cohort(BaseModel):
    """Units of one SKU entering the timeline together in ``start_month``."""

    model_config = ConfigDict(frozen=True)

    sku_id: str
    start_month: int
    quantity: float


class GrowthType(str, Enum):
    NONE = "none"
    PERCENTAGE = "percentage"
    INCREMENT = "increment"


class MonthSeries(BaseModel):
    """Values for calendar months 1..N, in month order."""

    model_config = ConfigDict(frozen=True)

    values: tuple[float, ...]

    @classmethod
    def zeros(cls, horizon: int) -> "MonthSeries":
        return cls(values=(0.0,) * horizon)

    def __len__(self) -> int:
        return len(self.values)

    def at(self, month: int) -> float:
        """Value for 1-based calendar *month*."""
        return self.values[month - 1]

    def items(self) -> Iterator[tuple[int, float]]:
        return ((index + 1, value) for index, value in enumerate(self.values))


class MarginSeries(BaseModel):
    """Margin percentages for months 1..N; None where margin is undefined."""

    model_config = ConfigDict(frozen=True)

    values: tuple[Optional[float], ...]

    def __len__(self) -> int:
        return len(self.values)

    def at(self, month: int) -> Optional[float]:
        return self.values[month - 1]

    def items(self) -> Iterator[tuple[int, Optional[float]]]:
        return ((index + 1, value) for index, value in enumerate(self.values))


class DerivedMetrics(BaseModel):
    """Gross income, margin and cumulative gross profit for one projection."""

    model_config = ConfigDict(frozen=True)

    gross_income: MonthSeries
    margin: MarginSeries
    cumulative_gross_profit: MonthSeries


# ---------------------------------------------------------------------------
# Dynamic scenario request
# ---------------------------------------------------------------------------
class SkuItem(CamelModel):
    """One purchase cohort of a revenue SKU, with optional growth."""

    sku_id: str = Field(..., min_length=1, description="Revenue SKU identifier")
    start_month: int = Field(..., ge=1, description="First calendar month")
    quantity: int = Field(..., ge=0, description="Units bought in start_month")
    growth_type: GrowthType = Field(
        GrowthType.NONE,
        description="How the monthly quantity changes after start_month",
    )
    growth_value: Optional[float] = Field(
        None,
        allow_inf_nan=False,
        description="Percent for 'percentage', units for 'increment'; ignored for 'none'",
    )


class WaterfallRequest(CamelModel):
    """Payload for a caller-defined multi-SKU waterfall projection."""

    name: str = Field("Custom scenario", description="Label echoed back")
    skus: list[SkuItem] = Field(default_factory=list)
    horizon_months: int = Field(
        DEFAULT_HORIZON_MONTHS,
        ge=1,
        le=MAX_HORIZON_MONTHS,
        description="Number of calendar months to project",
    )


# ---------------------------------------------------------------------------
# Waterfall response
# ---------------------------------------------------------------------------
def _finite_or_none(value: Optional[float]) -> Optional[float]:
    """JSON has no infinity or NaN; overflowed amounts are sent as null."""
    if value is None or not math.isfinite(value):
        return None
    return value


class MonthlyTotal(CamelModel):
    """One month of a monetary series, with its display string."""

    month: int
    total: float
    formatted_total: str

    @field_serializer("total", when_used="json")
    def serialize_total(self, value: float) -> Optional[float]:
        return _finite_or_none(value)


class MonthlyMargin(CamelModel):
    """One month of the margin series; None when revenue is zero but COGS is not."""

    month: int
    margin_percent: Optional[float]
    formatted_margin: str

    @field_serializer("margin_percent", when_used="json")
    def serialize_margin(self, value: Optional[float]) -> Optional[float]:
        return _finite_or_none(value)


class WaterfallResponse(CamelModel):
    """Five parallel month-indexed series for a projection."""

    name: str
    horizon_months: int
    revenue_skus: list[RevenueSkuRule]
    revenue: list[MonthlyTotal]
    cogs: list[MonthlyTotal]
    gross_income: list[MonthlyTotal]
    margin: list[MonthlyMargin]
    cumulative_gross_profit: list[MonthlyTotal]
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Catalog status
# ---------------------------------------------------------------------------
class CatalogStatus(BaseModel):
    """Connectivity report for the SKU record store."""

    database: str
    error: Optional[str] = None
    timestamp: str
