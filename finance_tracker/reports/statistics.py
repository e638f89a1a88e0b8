"""
Statistics Engine

DESIGN DECISION: Every figure shown on the dashboard is computed here,
from the stored records the caller passes in. These are pure functions:
no storage access, no clock unless `today` is omitted.

Amounts stay Decimal; percentages are floats rounded only for display.
"""

import calendar
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from finance_tracker.models.common import utc_now
from finance_tracker.models.report import (
    BudgetStatus,
    CategoryTotal,
    FinancialOverview,
    MonthlyTotal,
    SavingsProgress,
    SavingsStatus,
)
from finance_tracker.models.transaction import TransactionRecord

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _today(today: Optional[date]) -> date:
    return today if today is not None else utc_now().date()


def _category_name(record: TransactionRecord) -> str:
    return getattr(record.category, "value", record.category)


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def total_amount(records: Iterable[TransactionRecord]) -> Decimal:
    return sum((r.amount for r in records), ZERO)


def percentage_change(current: Decimal, previous: Decimal) -> float:
    """
    Percent change from `previous` to `current`.

    A previous value of zero gives 100 when current is positive and 0
    otherwise. A negative previous value is measured by its magnitude,
    so an improvement always reads as a positive change.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return float((current - previous) / abs(previous) * HUNDRED)


def category_breakdown(records: Sequence[TransactionRecord]) -> list[CategoryTotal]:
    """Total and share per category, largest first."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        totals[_category_name(record)] += record.amount

    grand_total = sum(totals.values(), ZERO)
    breakdown = [
        CategoryTotal(
            category=category,
            total=total,
            percentage=float(total / grand_total * HUNDRED) if grand_total else 0.0,
        )
        for category, total in totals.items()
    ]
    breakdown.sort(key=lambda c: c.total, reverse=True)
    return breakdown


def recent_trend(records: Sequence[TransactionRecord]) -> float:
    """
    Compare the newer half of the records with the older half.

    Records are ordered by date; with an odd count the extra record
    belongs to the newer half. Fewer than two records gives 0.
    """
    if len(records) < 2:
        return 0.0

    ordered = sorted(records, key=lambda r: r.occurred_at, reverse=True)
    split = (len(ordered) + 1) // 2
    newer = total_amount(ordered[:split])
    older = total_amount(ordered[split:])
    return percentage_change(newer, older)


def month_total(records: Iterable[TransactionRecord], year: int, month: int) -> Decimal:
    return total_amount(
        r for r in records
        if r.occurred_at.year == year and r.occurred_at.month == month
    )


def monthly_totals(
    records: Sequence[TransactionRecord],
    months: int = 6,
    today: Optional[date] = None,
) -> list[MonthlyTotal]:
    """Totals for the last `months` calendar months, oldest first."""
    if months < 1:
        raise ValueError("months must be at least 1")

    current = _today(today)
    year, month = current.year, current.month
    periods = []
    for _ in range(months):
        periods.append((year, month))
        year, month = _previous_month(year, month)

    by_month: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        by_month[(record.occurred_at.year, record.occurred_at.month)] += record.amount

    return [
        MonthlyTotal(
            year=y,
            month=m,
            label=calendar.month_abbr[m],
            total=by_month[(y, m)],
        )
        for y, m in reversed(periods)
    ]


def financial_overview(
    expenses: Sequence[TransactionRecord],
    incomes: Sequence[TransactionRecord],
    today: Optional[date] = None,
) -> FinancialOverview:
    """This month's income, spending and net, each against last month."""
    current = _today(today)
    prev_year, prev_month = _previous_month(current.year, current.month)

    expense_now = month_total(expenses, current.year, current.month)
    expense_prev = month_total(expenses, prev_year, prev_month)
    income_now = month_total(incomes, current.year, current.month)
    income_prev = month_total(incomes, prev_year, prev_month)

    net_now = income_now - expense_now
    net_prev = income_prev - expense_prev

    savings_rate = float(net_now / income_now * HUNDRED) if income_now > 0 else 0.0

    return FinancialOverview(
        net_income=net_now,
        net_income_trend=percentage_change(net_now, net_prev),
        income_total=income_now,
        income_trend=percentage_change(income_now, income_prev),
        expense_total=expense_now,
        expense_trend=percentage_change(expense_now, expense_prev),
        savings_rate=savings_rate,
    )


def budget_status(
    monthly_budget: Decimal,
    expenses: Sequence[TransactionRecord],
    today: Optional[date] = None,
) -> BudgetStatus:
    current = _today(today)
    spent = month_total(expenses, current.year, current.month)

    if monthly_budget > 0:
        used = float(spent / monthly_budget * HUNDRED)
    else:
        # no budget set: anything spent counts as fully used
        used = 100.0 if spent > 0 else 0.0

    return BudgetStatus(
        monthly_budget=monthly_budget,
        spent=spent,
        remaining=monthly_budget - spent,
        percentage_used=used,
        is_over_budget=spent > monthly_budget,
    )


def savings_progress(current: Decimal, goal: Decimal) -> SavingsProgress:
    """
    Raises:
        ValueError: If the goal is not positive
    """
    if goal <= 0:
        raise ValueError("Savings goal must be greater than zero")

    percentage = float(current / goal * HUNDRED)
    if percentage >= 100:
        status = SavingsStatus.ACHIEVED
    elif percentage >= 75:
        status = SavingsStatus.ON_TRACK
    elif percentage >= 50:
        status = SavingsStatus.HALFWAY
    else:
        status = SavingsStatus.BEHIND

    return SavingsProgress(
        current=current,
        goal=goal,
        remaining=max(goal - current, ZERO),
        percentage=percentage,
        status=status,
    )
