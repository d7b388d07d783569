"""
Display strings for waterfall values.

Negative amounts put the sign before the currency symbol ("-$40,000.00").
Values that round to zero are shown without a sign.
"""

from __future__ import annotations

import math


def format_currency(value: float) -> str:
    """Format *value* as US dollars with thousands separators and two decimals."""
    if not math.isfinite(value):
        return "N/A"
    sign = "-" if round(value, 2) < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_margin(value: float | None) -> str:
    """Two-decimal percentage, or ``"N/A"`` for an undefined margin."""
    if value is None or not math.isfinite(value):
        return "N/A"
    if round(value, 2) == 0:
        value = 0.0
    return f"{value:.2f}%"
