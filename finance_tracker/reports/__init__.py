"""Dashboard statistics computed from stored records."""

from finance_tracker.reports.statistics import (
    budget_status,
    category_breakdown,
    financial_overview,
    month_total,
    monthly_totals,
    percentage_change,
    recent_trend,
    savings_progress,
    total_amount,
)

__all__ = [
    "budget_status",
    "category_breakdown",
    "financial_overview",
    "month_total",
    "monthly_totals",
    "percentage_change",
    "recent_trend",
    "savings_progress",
    "total_amount",
]
