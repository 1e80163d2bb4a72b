from expenses.domain import Prediction
from expenses.predictions import month_sort_key, prediction_categories, prediction_series


def sample():
    return (
        Prediction("Food", "Feb 2025", 120.0),
        Prediction("Food", "Dec 2024", 100.0),
        Prediction("Rent", "Jan 2025", 900.0),
        Prediction("Rent", "Dec 2024", 900.0),
    )


def test_series_sorted_chronologically_with_gaps_filled():
    months, series = prediction_series(sample())
    assert months == ["Dec 2024", "Jan 2025", "Feb 2025"]
    assert series == {
        "Food": [100.0, 0.0, 120.0],
        "Rent": [900.0, 900.0, 0.0],
    }


def test_series_for_one_category():
    months, series = prediction_series(sample(), "Rent")
    assert months == ["Dec 2024", "Jan 2025"]
    assert list(series) == ["Rent"]


def test_unknown_category_gives_empty_chart():
    assert prediction_series(sample(), "Travel") == ([], {})


def test_categories_first_seen():
    assert prediction_categories(sample()) == ("Food", "Rent")


def test_month_sort_key_accepts_iso_months():
    assert month_sort_key("2024-03") < month_sort_key("Apr 2024")
    assert month_sort_key("not a month") > month_sort_key("Dec 9999")
