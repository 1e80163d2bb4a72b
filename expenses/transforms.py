from decimal import Decimal
from functools import reduce
from typing import Iterable, Mapping, Tuple

import pandas as pd

from expenses.domain import Expense
from expenses.functional import parse_expense
from expenses.logger import get_logger

logger = get_logger("transforms")

EXPORT_COLUMNS = ["date", "description", "category", "amount"]


def load_expenses(raw: Iterable[Mapping]) -> Tuple[Tuple[Expense, ...], Tuple[dict, ...]]:
    """Parse API records, keeping fetch order. Returns (expenses, rejected errors)."""
    valid = []
    rejected = []
    for record in raw:
        result = parse_expense(record)
        if result.is_right():
            valid.append(result.get_or_else(None))
        else:
            error = {**result.get_error(), "record_id": record.get("id")}
            logger.warning(f"Rejected expense {error['record_id']}: {error['message']}")
            rejected.append(error)
    return tuple(valid), tuple(rejected)


def add_expense(expenses: Tuple[Expense, ...], e: Expense) -> Tuple[Expense, ...]:
    return expenses + (e,)


def remove_expense(expenses: Tuple[Expense, ...], expense_id: str) -> Tuple[Expense, ...]:
    return tuple(e for e in expenses if e.id != expense_id)


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    return reduce(lambda acc, e: acc + e.amount, expenses, Decimal("0"))


def average_amount(expenses: Tuple[Expense, ...]) -> Decimal:
    if not expenses:
        return Decimal("0")
    return total_amount(expenses) / len(expenses)


def recent_expenses(expenses: Tuple[Expense, ...], k: int = 5) -> Tuple[Expense, ...]:
    ordered = sorted(expenses, key=lambda e: e.date, reverse=True)
    return tuple(ordered[: max(0, k)])


def unique_categories(expenses: Iterable[Expense]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(e.category for e in expenses))


def expenses_to_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    rows = [
        {
            "id": e.id,
            "date": pd.Timestamp(e.date),
            "description": e.description,
            "category": e.category,
            "amount": float(e.amount),
        }
        for e in expenses
    ]
    df = pd.DataFrame(rows, columns=["id"] + EXPORT_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    return df


def expenses_to_csv(expenses: Iterable[Expense]) -> str:
    df = expenses_to_frame(expenses)[EXPORT_COLUMNS]
    df["date"] = df["date"].dt.strftime("%Y-%m-%d")
    return df.to_csv(index=False)
