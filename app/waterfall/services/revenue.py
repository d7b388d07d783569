"""
Revenue accumulation.

Each cohort contributes, by cohort age:

* age 1 -- ``quantity * upfront_deposit`` (the deposit),
* ages inside the active window -- ``quantity * monthly_revenue``,
* the refund age, when set -- ``-quantity * upfront_deposit``.

The three rules are independent and may all fire in the same month.
Contributions of all cohorts add up per calendar month.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from waterfall.models import Cohort, MonthSeries, RevenueSkuRule


def deposit_revenue(quantity: float, upfront_deposit: float) -> float:
    return quantity * upfront_deposit


def recurring_revenue(quantity: float, monthly_revenue: float) -> float:
    return quantity * monthly_revenue


def deposit_refund(quantity: float, upfront_deposit: float) -> float:
    return quantity * upfront_deposit


def in_revenue_window(rule: RevenueSkuRule, age: int) -> bool:
    """True when recurring revenue is recognised at cohort *age*."""
    if age < rule.active_revenue_start_month:
        return False
    return rule.active_revenue_end_month is None or age <= rule.active_revenue_end_month


def cohort_revenue_at(rule: RevenueSkuRule, quantity: float, age: int) -> float:
    """Net revenue of one cohort of *quantity* units at cohort *age*."""
    amount = 0.0
    if age == 1:
        amount += deposit_revenue(quantity, rule.upfront_deposit)
    if in_revenue_window(rule, age):
        amount += recurring_revenue(quantity, rule.monthly_revenue)
    if rule.deposit_refund_month is not None and age == rule.deposit_refund_month:
        amount -= deposit_refund(quantity, rule.upfront_deposit)
    return amount


def accumulate_revenue(
    cohorts: Iterable[Cohort],
    rules: Mapping[str, RevenueSkuRule],
    horizon: int,
) -> MonthSeries:
    """Sum the revenue of every cohort into months ``1..horizon``.

    *rules* must hold a rule for every cohort's SKU; the orchestrator resolves
    them before calling (a missing key raises ``KeyError``).
    """
    totals = [0.0] * horizon
    for cohort in cohorts:
        rule = rules[cohort.sku_id]
        for month in range(max(cohort.start_month, 1), horizon + 1):
            age = month - cohort.start_month + 1
            totals[month - 1] += cohort_revenue_at(rule, cohort.quantity, age)
    return MonthSeries(values=tuple(totals))
