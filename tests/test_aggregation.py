from datetime import date
from decimal import Decimal

from expenses.aggregation import (
    aggregate_by_category,
    aggregate_by_month,
    available_years,
    dashboard_summary,
    filter_by_period,
)
from expenses.domain import Expense, PeriodFilter
from expenses.transforms import total_amount


def make_exp(id, amount, category, day, description=""):
    return Expense(id=id, amount=Decimal(str(amount)), description=description, category=category, date=day)


def sample():
    return (
        make_exp("1", 100, "Food", date(2024, 1, 5)),
        make_exp("2", 50, "Food", date(2024, 2, 10)),
        make_exp("3", 200, "Rent", date(2024, 1, 20)),
    )


def test_dashboard_scenario():
    summary = dashboard_summary(sample())

    assert summary.count == 3
    assert summary.total == Decimal("350")
    assert summary.average.quantize(Decimal("0.01")) == Decimal("116.67")
    assert [(a.category, a.total) for a in summary.by_category] == [
        ("Food", Decimal("150")),
        ("Rent", Decimal("200")),
    ]
    assert [(m.month, m.total) for m in summary.by_month] == [
        ("Jan 2024", Decimal("300")),
        ("Feb 2024", Decimal("50")),
    ]


def test_category_aggregate_sums_to_total():
    expenses = sample() + (make_exp("4", "12.34", "Travel", date(2023, 6, 1)),)
    aggregates = aggregate_by_category(expenses)
    assert sum(a.total for a in aggregates) == total_amount(expenses)


def test_category_aggregate_is_case_sensitive_and_first_seen_order():
    expenses = (
        make_exp("1", 10, "rent", date(2024, 1, 1)),
        make_exp("2", 20, "Food", date(2024, 1, 2)),
        make_exp("3", 30, "Rent", date(2024, 1, 3)),
    )
    assert [a.category for a in aggregate_by_category(expenses)] == ["rent", "Food", "Rent"]


def test_monthly_aggregate_sorts_by_calendar_not_label():
    expenses = (
        make_exp("1", 10, "Food", date(2025, 1, 3)),
        make_exp("2", 20, "Food", date(2024, 12, 3)),
        make_exp("3", 30, "Food", date(2024, 1, 3)),
        make_exp("4", 40, "Food", date(2024, 4, 3)),
    )
    months = aggregate_by_month(expenses)
    assert [m.month for m in months] == ["Jan 2024", "Apr 2024", "Dec 2024", "Jan 2025"]
    assert sum(m.total for m in months) == total_amount(expenses)


def test_empty_working_set():
    summary = dashboard_summary(())
    assert summary.count == 0
    assert summary.total == 0
    assert summary.average == 0
    assert summary.by_category == ()
    assert summary.by_month == ()


def test_period_filter_identity_and_restriction():
    expenses = sample()
    assert filter_by_period(expenses, PeriodFilter()) == expenses

    january = filter_by_period(expenses, PeriodFilter(month=1))
    assert [e.id for e in january] == ["1", "3"]

    none_2023 = filter_by_period(expenses, PeriodFilter(year=2023))
    assert none_2023 == ()

    feb_2024 = dashboard_summary(expenses, PeriodFilter(month=2, year=2024))
    assert feb_2024.total == Decimal("50")
    assert [a.category for a in feb_2024.by_category] == ["Food"]


def test_recent_expenses_in_summary():
    summary = dashboard_summary(sample(), PeriodFilter(), 2)
    assert [e.id for e in summary.recent] == ["2", "3"]


def test_available_years_descending():
    expenses = sample() + (make_exp("4", 1, "Food", date(2022, 3, 3)),)
    assert available_years(expenses) == (2024, 2022)
