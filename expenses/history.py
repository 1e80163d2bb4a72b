import locale
import math
import unicodedata
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, MutableMapping, Tuple

from expenses.domain import (
    DEFAULT_PAGE_SIZE,
    SORT_DIRECTIONS,
    SORT_FIELDS,
    Expense,
    FilterCriteria,
    HistoryState,
    HistoryView,
)
from expenses.functional import pipe

Predicate = Callable[[Expense], bool]


def by_category(category: str) -> Predicate:
    def _filter(e: Expense) -> bool:
        return e.category == category

    return _filter


def by_date_range(start: date = None, end: date = None) -> Predicate:
    # dates carry no time, so "<= end" already covers the whole end day
    def _filter(e: Expense) -> bool:
        if start is not None and e.date < start:
            return False
        if end is not None and e.date > end:
            return False
        return True

    return _filter


def by_amount_range(min_amount: Decimal = None, max_amount: Decimal = None) -> Predicate:
    def _filter(e: Expense) -> bool:
        if min_amount is not None and e.amount < min_amount:
            return False
        if max_amount is not None and e.amount > max_amount:
            return False
        return True

    return _filter


def by_search(query: str) -> Predicate:
    needle = query.lower()

    def _filter(e: Expense) -> bool:
        return needle in e.description.lower() or needle in e.category.lower()

    return _filter


def predicates_for(criteria: FilterCriteria) -> List[Predicate]:
    predicates = []
    if criteria.category:
        predicates.append(by_category(criteria.category))
    if criteria.start_date is not None or criteria.end_date is not None:
        predicates.append(by_date_range(criteria.start_date, criteria.end_date))
    if criteria.min_amount is not None or criteria.max_amount is not None:
        predicates.append(by_amount_range(criteria.min_amount, criteria.max_amount))
    if criteria.search:
        predicates.append(by_search(criteria.search))
    return predicates


def filter_expenses(expenses: Iterable[Expense], criteria: FilterCriteria) -> Tuple[Expense, ...]:
    predicates = predicates_for(criteria)
    return tuple(e for e in expenses if all(p(e) for p in predicates))


def _fold_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _category_key(e: Expense):
    # collation first, then the exact name so distinct categories never tie
    folded = _fold_accents(e.category).casefold()
    return locale.strxfrm(folded), locale.strxfrm(e.category), e.category


_SORT_KEYS = {
    "date": lambda e: e.date,
    "category": _category_key,
    "amount": lambda e: e.amount,
}


def sort_expenses(expenses: Iterable[Expense], field: str, direction: str = "asc") -> Tuple[Expense, ...]:
    """Stable single-key sort; equal keys keep their fetch order in both directions."""
    if field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {field}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")
    return tuple(sorted(expenses, key=_SORT_KEYS[field], reverse=direction == "desc"))


def page_count(count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    return math.ceil(count / page_size)


def paginate(expenses: Tuple[Expense, ...], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Tuple[Expense, ...]:
    if page < 1:
        return ()
    start = (page - 1) * page_size
    return tuple(expenses[start:start + page_size])


def history_view(expenses: Tuple[Expense, ...], state: HistoryState) -> HistoryView:
    filtered = pipe(
        expenses,
        lambda es: filter_expenses(es, state.criteria),
        lambda es: sort_expenses(es, state.sort_field, state.sort_direction),
    )
    return HistoryView(
        rows=paginate(filtered, state.page, state.page_size),
        filtered=filtered,
        page=state.page,
        total_pages=page_count(len(filtered), state.page_size),
    )


FILTER_WIDGET_KEYS = (
    "history_category",
    "history_search",
    "history_start",
    "history_end",
    "history_min",
    "history_max",
)
ALL_CATEGORIES = "All"


def criteria_from_inputs(category=ALL_CATEGORIES, search="", start=None, end=None,
                         min_amount=None, max_amount=None) -> FilterCriteria:
    """Build criteria from the history filter widgets; blank widgets filter nothing."""
    return FilterCriteria(
        category=None if not category or category == ALL_CATEGORIES else category,
        start_date=start,
        end_date=end,
        min_amount=None if min_amount is None else Decimal(str(min_amount)),
        max_amount=None if max_amount is None else Decimal(str(max_amount)),
        search=search or "",
    )


def reset_filters(session: MutableMapping) -> HistoryState:
    """Clear the filter widgets and put the history screen back to its defaults.

    The widget values have to go too, otherwise the next rerun rebuilds the
    old criteria from them.
    """
    for key in FILTER_WIDGET_KEYS:
        session.pop(key, None)
    state = session["history_state"].reset()
    session["history_state"] = state
    return state
