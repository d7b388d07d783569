"""
Tests for the FastAPI endpoints.

The catalog dependency is overridden with an in-memory catalog so the tests
run without a live workspace connection.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from waterfall.exceptions import UpstreamFailure
from waterfall.main import app
from waterfall.services.catalog import get_catalog


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def client(catalog):
    """TestClient whose catalog dependency resolves to the fixture catalog."""
    app.dependency_overrides[get_catalog] = lambda: catalog
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def broken_client():
    """TestClient whose catalog fails every call with an upstream error."""
    broken = MagicMock()
    for method in (
        "get_revenue_sku",
        "get_cogs_schedule_for_revenue_sku",
        "list_revenue_skus",
        "list_cogs_skus",
        "ping",
    ):
        getattr(broken, method).side_effect = UpstreamFailure("warehouse unavailable")
    app.dependency_overrides[get_catalog] = lambda: broken
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _waterfall_payload(**overrides) -> dict:
    payload = {
        "name": "Q3 plan",
        "skus": [
            {
                "skuId": "R10",
                "startMonth": 1,
                "quantity": 10,
                "growthType": "percentage",
                "growthValue": 10,
            }
        ],
        "horizonMonths": 3,
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
class TestHealth:
    """Tests for /health and the catalog status check."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_catalog_connected(self, client):
        response = client.get("/api/v1/catalog/status")
        assert response.status_code == 200
        data = response.json()
        assert data["database"] == "connected"
        assert data["error"] is None
        assert data["timestamp"]

    def test_catalog_disconnected(self, broken_client):
        response = broken_client.get("/api/v1/catalog/status")
        assert response.status_code == 200
        data = response.json()
        assert data["database"] == "disconnected"
        assert "warehouse unavailable" in data["error"]

    def test_catalog_error_without_message(self):
        silent = MagicMock()
        silent.ping.side_effect = TimeoutError()
        app.dependency_overrides[get_catalog] = lambda: silent
        try:
            with TestClient(app) as test_client:
                data = test_client.get("/api/v1/catalog/status").json()
        finally:
            app.dependency_overrides.clear()
        assert data["database"] == "disconnected"
        assert data["error"] == "TimeoutError"


# ---------------------------------------------------------------------------
# SKUs
# ---------------------------------------------------------------------------
class TestSkus:
    """Tests for /api/v1/skus/*."""

    def test_list_revenue_skus_newest_first(self, client):
        response = client.get("/api/v1/skus/revenue")
        assert response.status_code == 200
        assert [row["skuId"] for row in response.json()] == ["R20", "R10"]

    def test_list_cogs_skus(self, client):
        response = client.get("/api/v1/skus/cogs")
        assert response.status_code == 200
        assert response.json()[0]["skuId"] == "COGS001"

    def test_cogs_schedule(self, client):
        response = client.get("/api/v1/skus/revenue/R10/cogs-schedule")
        assert response.status_code == 200
        assert [row["cogsAmount"] for row in response.json()] == [1000, 1500, 800]

    def test_cogs_schedule_missing_link(self, client):
        response = client.get("/api/v1/skus/revenue/R20/cogs-schedule")
        assert response.status_code == 404
        assert "no linked COGS SKU" in response.json()["detail"]

    def test_cogs_schedule_unknown_sku(self, client):
        response = client.get("/api/v1/skus/revenue/R99/cogs-schedule")
        assert response.status_code == 404

    def test_upstream_failure(self, broken_client):
        response = broken_client.get("/api/v1/skus/revenue")
        assert response.status_code == 500


# ---------------------------------------------------------------------------
# Fixed waterfall
# ---------------------------------------------------------------------------
class TestFixedWaterfall:
    """Tests for GET /api/v1/scenarios/waterfall."""

    def test_fixed_waterfall(self, client):
        response = client.get("/api/v1/scenarios/waterfall")
        assert response.status_code == 200

        data = response.json()
        assert data["horizonMonths"] == 36
        for key in ("revenue", "cogs", "grossIncome", "margin", "cumulativeGrossProfit"):
            assert len(data[key]) == 36

        assert [e["total"] for e in data["revenue"][:7]] == [
            100000, 200000, 0, 425130, 75390, 75390, 175910,
        ]
        assert data["revenue"][3] == {
            "month": 4,
            "total": 425130,
            "formattedTotal": "$425,130.00",
        }
        assert data["margin"][2] == {
            "month": 3,
            "marginPercent": None,
            "formattedMargin": "N/A",
        }
        assert data["revenueSkus"][0]["skuId"] == "R10"

    def test_fixed_waterfall_without_sku(self, r20_rule):
        from waterfall.services.catalog import InMemorySkuCatalog

        app.dependency_overrides[get_catalog] = lambda: InMemorySkuCatalog(revenue_skus=[r20_rule])
        try:
            with TestClient(app) as test_client:
                response = test_client.get("/api/v1/scenarios/waterfall")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 404
        assert response.json()["detail"] == "R10 revenue SKU not found"

    def test_fixed_waterfall_upstream_failure(self, broken_client):
        response = broken_client.get("/api/v1/scenarios/waterfall")
        assert response.status_code == 500


# ---------------------------------------------------------------------------
# Custom waterfall
# ---------------------------------------------------------------------------
class TestCustomWaterfall:
    """Tests for POST /api/v1/scenarios/waterfall."""

    def test_custom_waterfall(self, client):
        response = client.post("/api/v1/scenarios/waterfall", json=_waterfall_payload())
        assert response.status_code == 200

        data = response.json()
        assert data["name"] == "Q3 plan"
        assert [e["total"] for e in data["revenue"]] == [100000, 110000, 120000]
        assert [e["total"] for e in data["cogs"]] == [10000, 26000, 36500]
        assert [e["total"] for e in data["grossIncome"]] == [90000, 84000, 83500]
        assert [e["total"] for e in data["cumulativeGrossProfit"]] == [90000, 174000, 257500]
        assert data["warnings"] == []

    def test_snake_case_payload_is_accepted(self, client):
        payload = {
            "name": "snake",
            "skus": [{"sku_id": "R10", "start_month": 2, "quantity": 1, "growth_type": "none"}],
            "horizon_months": 2,
        }
        response = client.post("/api/v1/scenarios/waterfall", json=payload)
        assert response.status_code == 200
        assert [e["total"] for e in response.json()["revenue"]] == [0, 10000]

    def test_missing_cogs_is_a_warning(self, client):
        payload = _waterfall_payload(
            skus=[{"skuId": "R20", "startMonth": 1, "quantity": 1, "growthType": "none"}]
        )
        response = client.post("/api/v1/scenarios/waterfall", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert [e["total"] for e in data["cogs"]] == [0, 0, 0]
        assert len(data["warnings"]) == 1

    def test_unknown_sku(self, client):
        payload = _waterfall_payload(skus=[{"skuId": "R99", "startMonth": 1, "quantity": 1}])
        response = client.post("/api/v1/scenarios/waterfall", json=payload)
        assert response.status_code == 404

    @pytest.mark.parametrize(
        "item",
        [
            {"skuId": "R10", "startMonth": 0, "quantity": 1},
            {"skuId": "R10", "startMonth": 1, "quantity": -1},
            {"skuId": "R10", "startMonth": 1, "quantity": 1, "growthType": "exponential"},
        ],
    )
    def test_invalid_item(self, client, item):
        response = client.post(
            "/api/v1/scenarios/waterfall", json=_waterfall_payload(skus=[item])
        )
        assert response.status_code == 422

    def test_horizon_limit(self, client):
        response = client.post(
            "/api/v1/scenarios/waterfall", json=_waterfall_payload(horizonMonths=0)
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("raw_value", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_growth_value_is_rejected(self, client, raw_value):
        body = (
            '{"skus": [{"skuId": "R10", "startMonth": 1, "quantity": 10, '
            '"growthType": "percentage", "growthValue": %s}], "horizonMonths": 4}'
            % raw_value
        )
        response = client.post(
            "/api/v1/scenarios/waterfall",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422

    def test_overflowing_growth_still_projects(self, client):
        payload = _waterfall_payload(
            skus=[
                {
                    "skuId": "R10",
                    "startMonth": 1,
                    "quantity": 10,
                    "growthType": "percentage",
                    "growthValue": 1e200,
                }
            ],
            horizonMonths=4,
        )
        response = client.post("/api/v1/scenarios/waterfall", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert data["revenue"][0]["total"] == 100000
        assert data["revenue"][3]["total"] is None
        assert data["revenue"][3]["formattedTotal"] == "N/A"
