from typing import Dict, List, Tuple

import plotly.express as px
import plotly.graph_objects as go

from expenses.domain import Budget, CategoryAggregate, MonthlyAggregate

PALETTE = [
    "#4F46E5",
    "#7C3AED",
    "#EC4899",
    "#F59E0B",
    "#10B981",
    "#3B82F6",
    "#8B5CF6",
    "#EF4444",
]

LEVEL_COLORS = {"ok": "#16A34A", "warning": "#EAB308", "danger": "#DC2626"}


def category_color(category: str, categories: List[str]) -> str:
    return PALETTE[categories.index(category) % len(PALETTE)]


def category_doughnut(aggregates: Tuple[CategoryAggregate, ...]) -> go.Figure:
    fig = px.pie(
        names=[a.category for a in aggregates],
        values=[float(a.total) for a in aggregates],
        hole=0.5,
        color_discrete_sequence=PALETTE,
        title="Expenses by Category",
    )
    fig.update_layout(margin=dict(t=40, b=10, l=10, r=10))
    return fig


def monthly_line(aggregates: Tuple[MonthlyAggregate, ...]) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[a.month for a in aggregates],
        y=[float(a.total) for a in aggregates],
        mode="lines+markers",
        name="Expenses",
        line=dict(color=PALETTE[0]),
    ))
    fig.update_layout(title="Monthly Expenses", margin=dict(t=40, b=10, l=10, r=10))
    return fig


def predictions_line(months: List[str], series: Dict[str, List[float]]) -> go.Figure:
    fig = go.Figure()
    categories = list(series)
    for category, values in series.items():
        fig.add_trace(go.Scatter(
            x=months,
            y=values,
            mode="lines+markers",
            name=category,
            line=dict(color=category_color(category, categories)),
        ))
    fig.update_layout(title="Predicted Expenses", margin=dict(t=40, b=10, l=10, r=10))
    return fig


def budget_bars(budgets: Tuple[Budget, ...], levels: List[str]) -> go.Figure:
    fig = go.Figure(go.Bar(
        x=[min(b.percentage, 100.0) for b in budgets],
        y=[b.category_name for b in budgets],
        orientation="h",
        marker_color=[LEVEL_COLORS[level] for level in levels],
        text=[f"{b.percentage:.1f}%" for b in budgets],
    ))
    fig.update_layout(title="Budget Usage", xaxis=dict(range=[0, 100]), margin=dict(t=40, b=10, l=10, r=10))
    return fig
