"""
Configuration module for the SKU waterfall backend.

All settings are configurable via environment variables with sensible defaults
for Databricks Apps deployment.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Unity Catalog
# ---------------------------------------------------------------------------
CATALOG_NAME: str = os.getenv("CATALOG_NAME", "finance_catalog")
SCHEMA_GOLD: str = os.getenv("SCHEMA_GOLD", "gold")


# Fully-qualified table helpers
def _fqn(schema: str, table: str) -> str:
    """Return a fully-qualified three-level Unity Catalog table name."""
    return f"{CATALOG_NAME}.{schema}.{table}"


# SKU master data
TABLE_REVENUE_SKUS: str = _fqn(SCHEMA_GOLD, "revenue_skus")
TABLE_COGS_SKUS: str = _fqn(SCHEMA_GOLD, "cogs_skus")
TABLE_COGS_BREAKDOWN: str = _fqn(SCHEMA_GOLD, "cogs_monthly_breakdown")

# ---------------------------------------------------------------------------
# SQL Warehouse
# ---------------------------------------------------------------------------
WAREHOUSE_ID: str = os.getenv("DATABRICKS_WAREHOUSE_ID", "your-warehouse-id")

# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------
CACHE_TTL: int = int(os.getenv("CACHE_TTL", "300"))  # seconds

# ---------------------------------------------------------------------------
# Databricks connection (local dev fallback)
# ---------------------------------------------------------------------------
DATABRICKS_HOST: str = os.getenv("DATABRICKS_HOST", "")
DATABRICKS_TOKEN: str = os.getenv("DATABRICKS_TOKEN", "")

# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------
FIXED_SCENARIO_SKU_ID: str = os.getenv("FIXED_SCENARIO_SKU_ID", "R10")
DEFAULT_HORIZON_MONTHS: int = int(os.getenv("DEFAULT_HORIZON_MONTHS", "36"))
MAX_HORIZON_MONTHS: int = int(os.getenv("MAX_HORIZON_MONTHS", "240"))

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_TITLE: str = "SKU Cohort Waterfall"
APP_VERSION: str = "1.0.0"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
