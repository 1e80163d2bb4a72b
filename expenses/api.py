"""Thin client for the expense tracker REST API."""
from typing import Any, Dict, List, Optional

import requests

from expenses.domain import ExportRequest
from expenses.exceptions import ApiError, ApiValidationError, AuthError, NetworkError
from expenses.logger import get_logger

logger = get_logger("api")


class ApiClient:
    """Wraps a ``requests.Session`` with the API base URL and token auth header.

    Every method either returns the decoded JSON body or raises an
    ``ApiError`` subclass. Nothing is retried.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.set_token(token)

    def set_token(self, token: str) -> None:
        self.session.headers["Authorization"] = f"Token {token}"

    def clear_token(self) -> None:
        self.session.headers.pop("Authorization", None)

    @property
    def is_authenticated(self) -> bool:
        return "Authorization" in self.session.headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._url(path)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(f"Could not reach {url}") from e

        status = response.status_code
        if status < 400:
            return response

        payload = _safe_json(response)
        logger.warning(f"{method} {url} returned {status}")
        if status in (401, 403):
            raise AuthError("Not authorized", status_code=status, payload=payload)
        if status == 400:
            raise ApiValidationError("Request rejected by the server", status_code=status, payload=payload)
        raise ApiError(f"Server error {status}", status_code=status, payload=payload)

    def _json(self, method: str, path: str, **kwargs) -> Any:
        response = self._request(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Malformed JSON response", status_code=response.status_code) from e

    # auth

    def login(self, username: str, password: str) -> str:
        data = self._json("POST", "/auth/login/", json={"username": username, "password": password})
        token = (data or {}).get("token")
        if not token:
            raise AuthError("Login failed. Please try again.")
        self.set_token(token)
        return token

    def register(self, username: str, email: str, password: str) -> str:
        data = self._json("POST", "/auth/register/",
                          json={"username": username, "email": email, "password": password})
        token = (data or {}).get("token")
        if not token:
            raise AuthError("Registration did not return a token")
        self.set_token(token)
        return token

    def profile(self) -> Dict[str, Any]:
        return self._json("GET", "/auth/profile/")

    def change_password(self, current_password: str, new_password: str) -> Any:
        return self._json("POST", "/auth/change-password/",
                          json={"current_password": current_password, "new_password": new_password})

    def update_username(self, new_username: str) -> str:
        data = self._json("POST", "/auth/update-username/", json={"new_username": new_username})
        return self._refresh_token(data)

    def update_email(self, new_email: str) -> str:
        data = self._json("POST", "/auth/update-email/", json={"new_email": new_email})
        return self._refresh_token(data)

    def _refresh_token(self, data: Optional[dict]) -> Optional[str]:
        # username/email changes invalidate the old token
        token = (data or {}).get("token")
        if token:
            self.set_token(token)
        return token

    def request_password_reset(self, email: str) -> None:
        self._json("POST", "/password-reset/request/", json={"email": email})

    def validate_reset_token(self, uid: str, token: str) -> bool:
        data = self._json("POST", "/password-reset/validate-token/", json={"uid": uid, "token": token})
        return bool((data or {}).get("valid"))

    def reset_password(self, uid: str, token: str, new_password: str) -> None:
        self._json("POST", "/password-reset/reset/",
                   json={"uid": uid, "token": token, "new_password": new_password})

    # resources

    def list_expenses(self) -> List[dict]:
        return self._json("GET", "/expenses/") or []

    def create_expense(self, payload: dict) -> dict:
        return self._json("POST", "/expenses/", json=payload)

    def delete_expense(self, expense_id: str) -> None:
        self._json("DELETE", f"/expenses/{expense_id}/")

    def list_categories(self) -> List[dict]:
        return self._json("GET", "/categories/") or []

    def create_category(self, name: str) -> dict:
        return self._json("POST", "/categories/", json={"name": name})

    def delete_category(self, category_id: str) -> None:
        self._json("DELETE", f"/categories/{category_id}/")

    def list_budgets(self) -> List[dict]:
        return self._json("GET", "/budgets/") or []

    def save_budget(self, category_id: int, limit: float) -> dict:
        # the server upserts by category
        return self._json("POST", "/budgets/", json={"category": category_id, "limit": limit})

    def delete_budget(self, budget_id: str) -> None:
        self._json("DELETE", f"/budgets/{budget_id}/")

    def list_goals(self) -> List[dict]:
        return self._json("GET", "/goals/") or []

    def create_goal(self, payload: dict) -> dict:
        return self._json("POST", "/goals/", json=payload)

    def update_goal(self, goal_id: str, payload: dict) -> dict:
        return self._json("PUT", f"/goals/{goal_id}/", json=payload)

    def delete_goal(self, goal_id: str) -> None:
        self._json("DELETE", f"/goals/{goal_id}/")

    def add_goal_contribution(self, goal_id: str, amount: float) -> dict:
        return self._json("POST", f"/goals/{goal_id}/update_contribution/", json={"amount": amount})

    def predictions(self) -> List[dict]:
        return self._json("GET", "/predictions/") or []

    def ask_chatbot(self, query: str) -> str:
        data = self._json("POST", "/chatbot/", json={"query": query})
        return (data or {}).get("response", "")

    def export(self, request: ExportRequest) -> bytes:
        response = self._request("GET", f"/export/{request.fmt}/", params=request.params())
        return response.content


def _safe_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
