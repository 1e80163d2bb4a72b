from collections import defaultdict
from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Dict, Iterable, Tuple

from expenses.domain import CategoryAggregate, DashboardSummary, Expense, MonthlyAggregate, PeriodFilter
from expenses.transforms import average_amount, recent_expenses, total_amount

MONTH_LABEL_FORMAT = "%b %Y"


def in_period(period: PeriodFilter):
    def _filter(e: Expense) -> bool:
        if period.month is not None and e.date.month != period.month:
            return False
        if period.year is not None and e.date.year != period.year:
            return False
        return True

    return _filter


def filter_by_period(expenses: Tuple[Expense, ...], period: PeriodFilter) -> Tuple[Expense, ...]:
    if period.is_identity():
        return expenses
    return tuple(filter(in_period(period), expenses))


def aggregate_by_category(expenses: Iterable[Expense]) -> Tuple[CategoryAggregate, ...]:
    # dicts keep first-seen order
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    for e in expenses:
        totals[e.category] += e.amount
    return tuple(CategoryAggregate(category=c, total=t) for c, t in totals.items())


def aggregate_by_month(expenses: Iterable[Expense]) -> Tuple[MonthlyAggregate, ...]:
    totals: Dict[date, Decimal] = defaultdict(Decimal)
    for e in expenses:
        totals[e.date.replace(day=1)] += e.amount
    return tuple(
        MonthlyAggregate(month=month_start.strftime(MONTH_LABEL_FORMAT), total=totals[month_start])
        for month_start in sorted(totals)
    )


def available_years(expenses: Iterable[Expense]) -> Tuple[int, ...]:
    return tuple(sorted({e.date.year for e in expenses}, reverse=True))


@lru_cache(maxsize=32)
def dashboard_summary(
    expenses: Tuple[Expense, ...], period: PeriodFilter = PeriodFilter(), recent_count: int = 5
) -> DashboardSummary:
    working_set = filter_by_period(expenses, period)
    return DashboardSummary(
        count=len(working_set),
        total=total_amount(working_set),
        average=average_amount(working_set),
        by_category=aggregate_by_category(working_set),
        by_month=aggregate_by_month(working_set),
        recent=recent_expenses(working_set, recent_count),
    )
