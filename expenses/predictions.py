from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from expenses.domain import Prediction

_MONTH_FORMATS = ("%b %Y", "%B %Y", "%Y-%m", "%Y-%m-%d")


def month_sort_key(label: str) -> date:
    """Month-start date for a backend month label; unknown labels sort last."""
    for fmt in _MONTH_FORMATS:
        try:
            return datetime.strptime(label, fmt).date().replace(day=1)
        except ValueError:
            continue
    return date.max


def prediction_categories(predictions: Iterable[Prediction]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(p.category for p in predictions))


def prediction_series(
    predictions: Tuple[Prediction, ...], category: Optional[str] = None
) -> Tuple[List[str], Dict[str, List[float]]]:
    """Chart-ready (months, {category: values}); months missing for a category count as 0."""
    if category is not None:
        predictions = tuple(p for p in predictions if p.category == category)

    months = sorted({p.month for p in predictions}, key=month_sort_key)
    amounts: Dict[Tuple[str, str], float] = {(p.category, p.month): p.predicted_amount for p in predictions}

    series = {
        cat: [amounts.get((cat, m), 0.0) for m in months]
        for cat in prediction_categories(predictions)
    }
    return months, series
