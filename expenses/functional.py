import math
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar

from expenses.domain import Budget, Category, Expense, Goal, Prediction

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def _invalid(error: str, message: str, **extra) -> Left:
    return Left({"error": error, "message": message, **extra})


def parse_amount(value: Any, field_name: str = "amount") -> Either[dict, Decimal]:
    """Normalize an API or form amount to a finite, non-negative Decimal."""
    if isinstance(value, bool) or value is None:
        return _invalid("invalid_amount", f"{field_name} is missing or not a number", value=value)
    if isinstance(value, float) and not math.isfinite(value):
        return _invalid("invalid_amount", f"{field_name} must be finite", value=value)
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except InvalidOperation:
        return _invalid("invalid_amount", f"{field_name} {value!r} is not a number", value=value)
    if not amount.is_finite():
        return _invalid("invalid_amount", f"{field_name} must be finite", value=value)
    if amount < 0:
        return _invalid("negative_amount", f"{field_name} cannot be negative", value=value)
    return Right(amount)


def parse_date(value: Any, field_name: str = "date") -> Either[dict, date]:
    # only the calendar day matters; "2024-01-05T10:00:00Z" -> 2024-01-05
    if isinstance(value, datetime):
        return Right(value.date())
    if isinstance(value, date):
        return Right(value)
    if not isinstance(value, str) or len(value) < 10:
        return _invalid("invalid_date", f"{field_name} {value!r} is not an ISO-8601 date", value=value)
    try:
        return Right(date.fromisoformat(value[:10]))
    except ValueError:
        return _invalid("invalid_date", f"{field_name} {value!r} is not an ISO-8601 date", value=value)


def _require(raw: Mapping, *keys: str) -> Either[dict, Mapping]:
    missing = [k for k in keys if raw.get(k) is None]
    if missing:
        return _invalid("missing_fields", f"Missing fields: {', '.join(missing)}", fields=missing)
    return Right(raw)


def parse_expense(raw: Mapping) -> Either[dict, Expense]:
    def build(r: Mapping) -> Either[dict, Expense]:
        return parse_amount(r["amount"]).bind(
            lambda amount: parse_date(r["date"]).map(
                lambda day: Expense(
                    id=str(r["id"]),
                    amount=amount,
                    description=str(r.get("description") or ""),
                    category=str(r["category"]),
                    date=day,
                )
            )
        )

    return _require(raw, "id", "amount", "category", "date").bind(build)


def parse_category(raw: Mapping) -> Either[dict, Category]:
    return _require(raw, "id", "name").map(lambda r: Category(id=str(r["id"]), name=str(r["name"])))


def parse_budget(raw: Mapping) -> Either[dict, Budget]:
    def build(r: Mapping) -> Either[dict, Budget]:
        try:
            spent = Decimal(str(r.get("spent", 0)))
            total_spent = Decimal(str(r.get("total_spent", 0)))
            remaining = Decimal(str(r.get("remaining", 0)))
            percentage = float(r.get("percentage", 0))
        except (InvalidOperation, TypeError, ValueError):
            return _invalid("invalid_budget", f"Budget {r['id']} has malformed totals")
        return parse_amount(r["limit"], "limit").map(
            lambda limit: Budget(
                id=str(r["id"]),
                category=str(r["category"]),
                category_name=str(r.get("category_name") or r["category"]),
                limit=limit,
                spent=spent,
                total_spent=total_spent,
                percentage=percentage,
                remaining=remaining,
            )
        )

    return _require(raw, "id", "category", "limit").bind(build)


def parse_goal(raw: Mapping) -> Either[dict, Goal]:
    def build(r: Mapping) -> Either[dict, Goal]:
        return parse_amount(r["targetAmount"], "targetAmount").bind(
            lambda target: parse_amount(r["currentAmount"], "currentAmount").bind(
                lambda current: parse_date(r["deadline"], "deadline").map(
                    lambda deadline: Goal(
                        id=str(r["id"]),
                        name=str(r["name"]),
                        target_amount=target,
                        current_amount=current,
                        deadline=deadline,
                    )
                )
            )
        )

    return _require(raw, "id", "name", "targetAmount", "currentAmount", "deadline").bind(build)


def parse_prediction_rows(raw: Mapping) -> Either[dict, tuple]:
    """One backend entry is {"category": ..., "predictions": [{"month", "predicted_amount"}]}."""
    if raw.get("category") is None or not isinstance(raw.get("predictions"), list):
        return _invalid("invalid_prediction", "Prediction entry needs a category and a predictions list")
    rows = []
    for item in raw["predictions"]:
        try:
            amount = float(item["predicted_amount"])
        except (KeyError, TypeError, ValueError):
            return _invalid("invalid_prediction", f"Malformed prediction for {raw['category']}")
        if not math.isfinite(amount):
            return _invalid("invalid_prediction", f"Malformed prediction for {raw['category']}")
        rows.append(Prediction(category=str(raw["category"]), month=str(item["month"]), predicted_amount=amount))
    return Right(tuple(rows))


def validate_expense_form(amount: Any, description: str, category: str, day: Any) -> Either[dict, dict]:
    """Check the add-expense form and build the POST payload."""
    if amount is None or str(amount).strip() == "" or not (description or "").strip() or not category or not day:
        return _invalid("required", "All fields are required")

    def positive(value: Decimal) -> Either[dict, Decimal]:
        if value == 0:
            return _invalid("invalid_amount", "amount must be greater than zero")
        return Right(value)

    return parse_amount(amount).bind(positive).bind(
        lambda value: parse_date(day).map(
            lambda d: {
                "amount": float(value),
                "description": description.strip(),
                "category": category,
                "date": d.isoformat(),
            }
        )
    )


def validate_registration(username: str, email: str, password: str, confirm: str) -> Either[dict, dict]:
    if not username or not email or not password:
        return _invalid("required", "All fields are required")
    if password != confirm:
        return _invalid("password_mismatch", "Passwords do not match")
    return Right({"username": username, "email": email, "password": password})


def validate_new_password(password: str, confirm: str, min_length: int = 8) -> Either[dict, str]:
    if len(password or "") < min_length:
        return _invalid("password_too_short", f"Password must be at least {min_length} characters long")
    if password != confirm:
        return _invalid("password_mismatch", "New passwords do not match")
    return Right(password)


def find_category(categories: Iterable[Category], name: str) -> Maybe[Category]:
    for c in categories:
        if c.name == name:
            return Some(c)
    return Nothing()


def pipe(x, *funcs):
    """pipe(x, f, g, h) == h(g(f(x)))"""
    res = x
    for f in funcs:
        res = f(res)
    return res
