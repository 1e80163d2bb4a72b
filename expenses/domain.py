from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

SORT_FIELDS = ("date", "category", "amount")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class Expense:
    id: str
    amount: Decimal      # always >= 0
    description: str
    category: str        # category name, not id
    date: date


@dataclass(frozen=True)
class Category:
    id: str
    name: str


# A monthly limit for a category; spent/percentage/remaining come from the server
@dataclass(frozen=True)
class Budget:
    id: str
    category: str
    category_name: str
    limit: Decimal
    spent: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    percentage: float = 0.0
    remaining: Decimal = Decimal("0")


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: date


@dataclass(frozen=True)
class Prediction:
    category: str
    month: str
    predicted_amount: float


@dataclass(frozen=True)
class CategoryAggregate:
    category: str
    total: Decimal


@dataclass(frozen=True)
class MonthlyAggregate:
    month: str       # "Jan 2024"
    total: Decimal


@dataclass(frozen=True)
class PeriodFilter:
    """Dashboard restriction; None means "All Months" / "All Years"."""
    month: Optional[int] = None
    year: Optional[int] = None

    def is_identity(self) -> bool:
        return self.month is None and self.year is None


@dataclass(frozen=True)
class FilterCriteria:
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    search: str = ""


@dataclass(frozen=True)
class HistoryState:
    """Filter, sort and page selection of the expense history screen.

    Every transition returns a new state. Changing filters or sort order
    always goes back to page 1.
    """
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    sort_field: str = "date"
    sort_direction: str = "desc"
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def with_criteria(self, criteria: FilterCriteria) -> "HistoryState":
        return replace(self, criteria=criteria, page=1)

    def toggle_sort(self, sort_field: str) -> "HistoryState":
        if sort_field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {sort_field}")
        if sort_field == self.sort_field:
            direction = "asc" if self.sort_direction == "desc" else "desc"
            return replace(self, sort_direction=direction, page=1)
        return replace(self, sort_field=sort_field, sort_direction="asc", page=1)

    def with_page(self, page: int) -> "HistoryState":
        return replace(self, page=page)

    def first_page(self) -> "HistoryState":
        return replace(self, page=1)

    def reset(self) -> "HistoryState":
        return HistoryState(page_size=self.page_size)


@dataclass(frozen=True)
class HistoryView:
    rows: Tuple[Expense, ...]
    filtered: Tuple[Expense, ...]
    page: int
    total_pages: int

    @property
    def total_count(self) -> int:
        return len(self.filtered)


@dataclass(frozen=True)
class DashboardSummary:
    count: int
    total: Decimal
    average: Decimal
    by_category: Tuple[CategoryAggregate, ...]
    by_month: Tuple[MonthlyAggregate, ...]
    recent: Tuple[Expense, ...]


@dataclass(frozen=True)
class ExportRequest:
    fmt: str = "csv"
    month: Optional[int] = None
    year: Optional[int] = None

    def params(self) -> dict:
        params = {}
        if self.month is not None:
            params["month"] = self.month
        if self.year is not None:
            params["year"] = self.year
        return params

    def filename(self) -> str:
        parts = ["expenses"]
        if self.year is not None:
            parts.append(str(self.year))
        if self.month is not None:
            parts.append(f"{self.month:02d}")
        return "_".join(parts) + f".{self.fmt}"
