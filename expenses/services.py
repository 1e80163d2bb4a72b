from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from expenses.api import ApiClient
from expenses.chatbot import FAILURE_REPLY
from expenses.domain import ExportRequest
from expenses.exceptions import AuthError, ExpenseTrackerError
from expenses.functional import (
    Either,
    parse_budget,
    parse_category,
    parse_goal,
    parse_prediction_rows,
    validate_expense_form,
    validate_new_password,
    validate_registration,
)
from expenses.logger import get_logger
from expenses.transforms import load_expenses

logger = get_logger("services")

CONFIRMATION_REQUIRED = "Please confirm the deletion first."


@dataclass(frozen=True)
class ServiceResult:
    ok: bool
    data: Any = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None, message: Optional[str] = None) -> "ServiceResult":
        return cls(ok=True, data=data, message=message)

    @classmethod
    def failure(cls, message: str) -> "ServiceResult":
        return cls(ok=False, message=message)


def _parse_all(records: Iterable[Mapping], parser: Callable[[Mapping], Either]) -> Tuple[Any, ...]:
    parsed = []
    for record in records:
        result = parser(record)
        if result.is_right():
            parsed.append(result.get_or_else(None))
        else:
            logger.warning(f"Skipping record {record.get('id')}: {result.get_error()['message']}")
    return tuple(parsed)


class ExpenseService:
    """Facade the screens talk to: API calls plus parsing into domain objects.

    Each operation returns a ServiceResult with at most one user-facing
    message; the underlying exception is logged, never re-raised.
    """

    def __init__(self, client: ApiClient):
        self.client = client

    def _call(self, action: str, failure_message: str, fn: Callable[[], Any]) -> ServiceResult:
        try:
            return ServiceResult.success(fn())
        except AuthError as e:
            logger.warning(f"{action}: not authorized ({e.status_code})")
            return ServiceResult.failure("Your session has expired. Please log in again.")
        except ExpenseTrackerError as e:
            logger.error(f"{action} failed: {e}")
            return ServiceResult.failure(failure_message)

    # auth

    def login(self, username: str, password: str) -> ServiceResult:
        try:
            return ServiceResult.success(self.client.login(username, password))
        except ExpenseTrackerError as e:
            logger.warning(f"login failed for {username}: {e}")
            return ServiceResult.failure("Invalid username or password")

    def register(self, username: str, email: str, password: str, confirm: str) -> ServiceResult:
        checked = validate_registration(username, email, password, confirm)
        if checked.is_left():
            return ServiceResult.failure(checked.get_error()["message"])
        return self._call("register", "Registration failed. Please try again.",
                          lambda: self.client.register(username, email, password))

    def logout(self) -> None:
        self.client.clear_token()

    def profile(self) -> ServiceResult:
        def fetch():
            return {
                "profile": self.client.profile(),
                "expense_count": len(self.client.list_expenses()),
                "category_count": len(self.client.list_categories()),
            }

        return self._call("profile", "Failed to load user profile. Please try again later.", fetch)

    def change_password(self, current: str, new: str, confirm: str) -> ServiceResult:
        checked = validate_new_password(new, confirm)
        if checked.is_left():
            return ServiceResult.failure(checked.get_error()["message"])
        return self._call("change_password", "Failed to change password.",
                          lambda: self.client.change_password(current, new))

    def update_username(self, new_username: str) -> ServiceResult:
        return self._call("update_username", "Failed to update username.",
                          lambda: self.client.update_username(new_username))

    def update_email(self, new_email: str) -> ServiceResult:
        return self._call("update_email", "Failed to update email.",
                          lambda: self.client.update_email(new_email))

    def request_password_reset(self, email: str) -> ServiceResult:
        return self._call("request_password_reset", "Failed to send reset email. Please try again.",
                          lambda: self.client.request_password_reset(email))

    def reset_password(self, uid: str, token: str, new: str, confirm: str) -> ServiceResult:
        checked = validate_new_password(new, confirm)
        if checked.is_left():
            return ServiceResult.failure(checked.get_error()["message"])
        try:
            valid = self.client.validate_reset_token(uid, token)
        except ExpenseTrackerError as e:
            logger.warning(f"reset token check failed: {e}")
            valid = False
        if not valid:
            return ServiceResult.failure("This password reset link is invalid or has expired.")
        return self._call("reset_password", "Failed to reset password. Please try again.",
                          lambda: self.client.reset_password(uid, token, new))

    # expenses

    def load_expenses(self) -> ServiceResult:
        def fetch():
            expenses, rejected = load_expenses(self.client.list_expenses())
            logger.info(f"Loaded {len(expenses)} expenses ({len(rejected)} rejected)")
            return expenses, rejected

        return self._call("load_expenses", "Failed to load data. Please try again later.", fetch)

    def add_expense(self, amount: Any, description: str, category: str, day: Any) -> ServiceResult:
        payload = validate_expense_form(amount, description, category, day)
        if payload.is_left():
            return ServiceResult.failure(payload.get_error()["message"])
        return self._call("add_expense", "Failed to add expense. Please try again.",
                          lambda: self.client.create_expense(payload.get_or_else(None)))

    def delete_expense(self, expense_id: str, confirmed: bool = False) -> ServiceResult:
        if not confirmed:
            return ServiceResult.failure(CONFIRMATION_REQUIRED)
        return self._call("delete_expense", "Failed to delete expense. Please try again.",
                          lambda: self.client.delete_expense(expense_id))

    def export(self, request: ExportRequest) -> ServiceResult:
        return self._call("export", f"Failed to export {request.fmt}. Please try again.",
                          lambda: self.client.export(request))

    # categories

    def load_categories(self) -> ServiceResult:
        return self._call("load_categories", "Failed to load categories.",
                          lambda: _parse_all(self.client.list_categories(), parse_category))

    def add_category(self, name: str) -> ServiceResult:
        name = (name or "").strip()
        if not name:
            return ServiceResult.failure("Category name is required")
        return self._call("add_category", "Failed to add category. It may already exist.",
                          lambda: self.client.create_category(name))

    def delete_category(self, category_id: str, confirmed: bool = False) -> ServiceResult:
        if not confirmed:
            return ServiceResult.failure(CONFIRMATION_REQUIRED)
        return self._call("delete_category", "Failed to delete category.",
                          lambda: self.client.delete_category(category_id))

    # budgets

    def load_budgets(self) -> ServiceResult:
        return self._call("load_budgets", "Failed to load data. Please try again later.",
                          lambda: _parse_all(self.client.list_budgets(), parse_budget))

    def save_budget(self, category_id: int, limit: float) -> ServiceResult:
        if not category_id or limit is None or limit <= 0:
            return ServiceResult.failure("Choose a category and a positive limit")
        return self._call("save_budget", "Failed to save budget. Please try again.",
                          lambda: self.client.save_budget(category_id, limit))

    def delete_budget(self, budget_id: str, confirmed: bool = False) -> ServiceResult:
        if not confirmed:
            return ServiceResult.failure(CONFIRMATION_REQUIRED)
        return self._call("delete_budget", "Failed to delete budget. Please try again.",
                          lambda: self.client.delete_budget(budget_id))

    # goals

    def load_goals(self) -> ServiceResult:
        return self._call("load_goals", "Failed to load goals. Please try again later.",
                          lambda: _parse_all(self.client.list_goals(), parse_goal))

    def save_goal(self, payload: dict, goal_id: Optional[str] = None) -> ServiceResult:
        if not payload.get("name"):
            return ServiceResult.failure("Goal name is required")
        if goal_id is None:
            return self._call("create_goal", "Failed to save goal. Please try again.",
                              lambda: self.client.create_goal(payload))
        return self._call("update_goal", "Failed to save goal. Please try again.",
                          lambda: self.client.update_goal(goal_id, payload))

    def delete_goal(self, goal_id: str, confirmed: bool = False) -> ServiceResult:
        if not confirmed:
            return ServiceResult.failure(CONFIRMATION_REQUIRED)
        return self._call("delete_goal", "Failed to delete goal. Please try again.",
                          lambda: self.client.delete_goal(goal_id))

    def contribute_to_goal(self, goal_id: str, amount: float) -> ServiceResult:
        if amount is None or amount <= 0:
            return ServiceResult.failure("Contribution must be greater than zero")
        return self._call("contribute_to_goal", "Failed to update goal contribution. Please try again.",
                          lambda: self.client.add_goal_contribution(goal_id, amount))

    # predictions & chatbot

    def load_predictions(self) -> ServiceResult:
        def fetch():
            rows = _parse_all(self.client.predictions(), parse_prediction_rows)
            return tuple(p for group in rows for p in group)

        return self._call("load_predictions", "Failed to load predictions. Please try again later.", fetch)

    def ask(self, query: str) -> str:
        try:
            return self.client.ask_chatbot(query)
        except ExpenseTrackerError as e:
            logger.error(f"chatbot query failed: {e}")
            return FAILURE_REPLY
