"""Tests for the LogMeIn API client.

HTTP is replaced by a scripted session so each test controls exactly what the
service returns and can inspect the requests that were sent.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Iterable

import pytest
import requests

from host_inventory.client import InventoryClient
from host_inventory.config import encode_basic_auth
from host_inventory.models import InventoryRecord

BASE_URL = "https://api.example.test/public-api"
AUTH = encode_basic_auth("user", "secret")
NOT_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, *, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        if text is not None:
            self.text = text
        elif payload is NOT_JSON:
            self.text = "<html>oops</html>"
        else:
            self.text = json.dumps(payload)

    def json(self) -> Any:
        if self._payload is NOT_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeSession:
    def __init__(self, get_responses: Iterable[Any] = (), post_responses: Iterable[Any] = ()) -> None:
        self._get_responses = list(get_responses)
        self._post_responses = list(post_responses)
        self.get_calls: list[dict[str, Any]] = []
        self.post_calls: list[dict[str, Any]] = []

    def _next(self, responses: list[Any]) -> FakeResponse:
        if not responses:
            raise AssertionError("Unexpected HTTP call")
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url: str, headers: dict[str, str] | None = None, timeout: float | None = None) -> FakeResponse:
        self.get_calls.append({"url": url, "headers": dict(headers or {}), "timeout": timeout})
        return self._next(self._get_responses)

    def post(
        self,
        url: str,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        self.post_calls.append({"url": url, "json": copy.deepcopy(json), "headers": dict(headers or {}), "timeout": timeout})
        return self._next(self._post_responses)


def _client(session: FakeSession) -> InventoryClient:
    return InventoryClient(authorization=AUTH, base_url=BASE_URL, timeout=12.5, session=session)


def test_list_host_ids_sends_basic_auth_and_returns_ids() -> None:
    """Host listing should hit the v2 endpoint with the Basic header and keep id order."""
    session = FakeSession(
        get_responses=[
            FakeResponse(payload={"hosts": [{"id": 7, "description": "a"}, {"id": 3, "description": "b"}]}),
        ]
    )

    result = _client(session).list_host_ids()

    assert result.ok
    assert result.value == [7, 3]
    assert session.get_calls == [
        {
            "url": f"{BASE_URL}/v2/hosts",
            "headers": {"Authorization": "Basic dXNlcjpzZWNyZXQ="},
            "timeout": 12.5,
        }
    ]


def test_list_host_ids_skips_entries_without_numeric_id() -> None:
    session = FakeSession(get_responses=[FakeResponse(payload={"hosts": [{"id": 1}, {"id": "x"}, {"id": True}, "junk"]})])

    result = _client(session).list_host_ids()

    assert result.value == [1]


def test_list_host_ids_http_error_logs_body_and_degrades(caplog: pytest.LogCaptureFixture) -> None:
    """A 401 should be logged with the response body and unwrap to an empty list."""
    session = FakeSession(get_responses=[FakeResponse(401, {"error": "bad credentials"})])

    with caplog.at_level(logging.ERROR, logger="host_inventory.client"):
        result = _client(session).list_host_ids()

    assert not result.ok
    assert result.error == "http_status"
    assert result.unwrap_or([]) == []
    assert "bad credentials" in caplog.text
    assert len(session.get_calls) == 1


def test_list_host_ids_transport_error_is_not_retried() -> None:
    session = FakeSession(get_responses=[requests.ConnectionError("connection refused")])

    result = _client(session).list_host_ids()

    assert result.error == "transport"
    assert result.detail == "connection refused"
    assert len(session.get_calls) == 1


def test_list_host_ids_rejects_payload_without_hosts() -> None:
    session = FakeSession(get_responses=[FakeResponse(payload={"items": []})])

    result = _client(session).list_host_ids()

    assert result.error == "malformed_response"


def test_request_report_posts_host_ids_and_fields() -> None:
    """The report request body should carry host ids and requested fields."""
    session = FakeSession(post_responses=[FakeResponse(payload={"token": "T0"})])

    result = _client(session).request_report([42, 43], ["ServiceTag"])

    assert result.ok
    assert result.value == "T0"
    call = session.post_calls[0]
    assert call["url"] == f"{BASE_URL}/v1/inventory/hardware/reports"
    assert call["json"] == {"hostIds": [42, 43], "fields": ["ServiceTag"]}
    assert call["headers"] == {"Authorization": AUTH, "Content-Type": "application/json"}


def test_request_report_accepts_empty_host_list() -> None:
    session = FakeSession(post_responses=[FakeResponse(payload={"token": "EMPTY"})])

    result = _client(session).request_report([])

    assert result.value == "EMPTY"
    assert session.post_calls[0]["json"] == {"hostIds": [], "fields": ["ServiceTag"]}


@pytest.mark.parametrize("payload", [{}, {"token": None}, {"token": ""}, {"token": 12}, ["T0"]])
def test_request_report_without_usable_token_fails(payload: Any) -> None:
    session = FakeSession(post_responses=[FakeResponse(payload=payload)])

    result = _client(session).request_report([1])

    assert result.error == "malformed_response"
    assert result.value is None


def test_request_report_non_json_response_fails() -> None:
    session = FakeSession(post_responses=[FakeResponse(payload=NOT_JSON)])

    result = _client(session).request_report([1])

    assert result.error == "malformed_response"


def test_fetch_report_page_parses_rows_and_next_token() -> None:
    """Rows keyed by opaque row keys become records in payload order."""
    session = FakeSession(
        get_responses=[
            FakeResponse(
                payload={
                    "hosts": {
                        "r1": {"hostId": 42, "serviceTag": "ABC123"},
                        "r2": {"hostId": 43, "serviceTag": "DEF456"},
                    },
                    "report": {"token": "T1"},
                }
            )
        ]
    )

    result = _client(session).fetch_report_page("T0")

    assert result.ok
    page = result.value
    assert page is not None
    assert page.records == [
        InventoryRecord(host_id=42, service_tag="ABC123", row_key="r1"),
        InventoryRecord(host_id=43, service_tag="DEF456", row_key="r2"),
    ]
    assert page.next_token == "T1"
    assert session.get_calls[0]["url"] == f"{BASE_URL}/v1/inventory/hardware/reports/T0"


def test_fetch_report_page_quotes_token_in_path() -> None:
    session = FakeSession(get_responses=[FakeResponse(payload={"hosts": {}, "report": {"token": None}})])

    _client(session).fetch_report_page("a/b c")

    assert session.get_calls[0]["url"].endswith("/reports/a%2Fb%20c")


def test_fetch_report_page_last_page_has_no_token() -> None:
    session = FakeSession(get_responses=[FakeResponse(payload={"hosts": {}, "report": {"token": None}})])

    page = _client(session).fetch_report_page("T9").value

    assert page is not None
    assert page.records == []
    assert page.next_token is None


def test_fetch_report_page_without_hosts_reports_missing_records() -> None:
    """A payload with no `hosts` object is distinct from an empty page."""
    session = FakeSession(get_responses=[FakeResponse(payload={"report": {"token": "T2"}})])

    page = _client(session).fetch_report_page("T1").value

    assert page is not None
    assert page.records is None
    assert page.next_token == "T2"


def test_fetch_report_page_skips_malformed_rows() -> None:
    session = FakeSession(
        get_responses=[
            FakeResponse(
                payload={
                    "hosts": {
                        "ok": {"hostId": 1, "serviceTag": "AAA"},
                        "no-tag": {"hostId": 2},
                        "bad-id": {"hostId": "3", "serviceTag": "CCC"},
                        "not-a-row": None,
                    },
                    "report": {},
                }
            )
        ]
    )

    page = _client(session).fetch_report_page("T0").value

    assert page is not None
    assert page.records == [InventoryRecord(host_id=1, service_tag="AAA", row_key="ok")]
    assert page.next_token is None


def test_fetch_report_page_server_error() -> None:
    session = FakeSession(get_responses=[FakeResponse(500, text="internal error")])

    result = _client(session).fetch_report_page("T0")

    assert result.error == "http_status"
    assert result.detail == "HTTP 500: internal error"
