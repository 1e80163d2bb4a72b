from decimal import Decimal

from expenses.charts import PALETTE, budget_bars, category_color, category_doughnut, monthly_line, predictions_line
from expenses.domain import Budget, CategoryAggregate, MonthlyAggregate


def test_category_doughnut_uses_aggregates():
    fig = category_doughnut((CategoryAggregate("Food", Decimal("150")), CategoryAggregate("Rent", Decimal("200"))))
    trace = fig.data[0]
    assert list(trace.labels) == ["Food", "Rent"]
    assert list(trace.values) == [150.0, 200.0]


def test_monthly_line_keeps_order():
    fig = monthly_line((MonthlyAggregate("Jan 2024", Decimal("300")), MonthlyAggregate("Feb 2024", Decimal("50"))))
    assert list(fig.data[0].x) == ["Jan 2024", "Feb 2024"]
    assert list(fig.data[0].y) == [300.0, 50.0]


def test_predictions_line_one_trace_per_category():
    fig = predictions_line(["Jan 2025", "Feb 2025"], {"Food": [1.0, 2.0], "Rent": [3.0, 0.0]})
    assert [t.name for t in fig.data] == ["Food", "Rent"]
    assert fig.data[1].line.color == PALETTE[1]


def test_budget_bars_cap_at_100():
    budgets = (Budget(id="1", category="2", category_name="Food", limit=Decimal("100"), percentage=130.0),)
    fig = budget_bars(budgets, ["danger"])
    assert list(fig.data[0].x) == [100.0]
    assert list(fig.data[0].text) == ["130.0%"]


def test_category_color_wraps():
    categories = [f"c{i}" for i in range(len(PALETTE) + 1)]
    assert category_color(categories[-1], categories) == PALETTE[0]
