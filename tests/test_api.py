import json

import pytest
import requests

from expenses.api import ApiClient
from expenses.domain import ExportRequest
from expenses.exceptions import ApiError, ApiValidationError, AuthError, NetworkError, ValidationError

BASE = "http://localhost:7001/api"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=None):
        self.status_code = status_code
        self._payload = payload
        if content is not None:
            self.content = content
        elif payload is not None:
            self.content = json.dumps(payload).encode()
        else:
            self.content = b""
        self.text = self.content.decode("utf-8", errors="replace")

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.headers = {}
        self.calls = []
        self.responses = list(responses)

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses, token=None):
    session = FakeSession(*responses)
    return ApiClient(BASE + "/", token=token, timeout=3, session=session), session


def test_login_stores_token_header():
    client, session = make_client(FakeResponse(payload={"token": "abc123"}))
    assert client.login("alice", "secret") == "abc123"

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", f"{BASE}/auth/login/")
    assert kwargs["json"] == {"username": "alice", "password": "secret"}
    assert kwargs["timeout"] == 3
    assert session.headers["Authorization"] == "Token abc123"
    assert client.is_authenticated


def test_login_without_token_fails():
    client, _ = make_client(FakeResponse(payload={"detail": "nope"}))
    with pytest.raises(AuthError):
        client.login("alice", "secret")


def test_logout_clears_header():
    client, session = make_client(token="abc")
    client.clear_token()
    assert "Authorization" not in session.headers


def test_list_expenses():
    rows = [{"id": 1, "amount": "10", "description": "x", "category": "Food", "date": "2024-01-01"}]
    client, session = make_client(FakeResponse(payload=rows))
    assert client.list_expenses() == rows
    assert session.calls[0][:2] == ("GET", f"{BASE}/expenses/")


def test_delete_with_empty_body():
    client, session = make_client(FakeResponse(status_code=204))
    assert client.delete_expense("5") is None
    assert session.calls[0][:2] == ("DELETE", f"{BASE}/expenses/5/")


def test_status_codes_map_to_exceptions():
    client, _ = make_client(
        FakeResponse(status_code=401, payload={"detail": "Invalid token."}),
        FakeResponse(status_code=400, payload={"name": ["exists"]}),
        FakeResponse(status_code=500, content=b"oops"),
    )
    with pytest.raises(AuthError) as auth:
        client.list_expenses()
    assert auth.value.status_code == 401

    with pytest.raises(ValidationError) as invalid:
        client.create_category("Food")
    assert isinstance(invalid.value, ApiValidationError)
    assert invalid.value.payload == {"name": ["exists"]}

    with pytest.raises(ApiError) as server:
        client.list_goals()
    assert server.value.status_code == 500
    assert server.value.payload == "oops"


def test_network_failure():
    client, _ = make_client(requests.ConnectionError("refused"))
    with pytest.raises(NetworkError):
        client.list_expenses()


def test_export_passes_period_params():
    client, session = make_client(FakeResponse(content=b"date,amount\n"))
    data = client.export(ExportRequest(fmt="csv", month=1, year=2024))
    assert data == b"date,amount\n"

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", f"{BASE}/export/csv/")
    assert kwargs["params"] == {"month": 1, "year": 2024}


def test_update_username_refreshes_token():
    client, session = make_client(FakeResponse(payload={"token": "new-token"}), token="old")
    assert client.update_username("bob") == "new-token"
    assert session.headers["Authorization"] == "Token new-token"


def test_chatbot_and_reset_token():
    client, _ = make_client(
        FakeResponse(payload={"response": "You spent ₹350 in total."}),
        FakeResponse(payload={"valid": False}),
    )
    assert client.ask_chatbot("How much have I spent in total?") == "You spent ₹350 in total."
    assert client.validate_reset_token("uid", "tok") is False


def test_export_request_filename():
    assert ExportRequest().filename() == "expenses.csv"
    assert ExportRequest().params() == {}
    assert ExportRequest(month=3, year=2024).filename() == "expenses_2024_03.csv"
    assert ExportRequest(year=2023).params() == {"year": 2023}
