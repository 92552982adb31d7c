"""Thin client for the LogMeIn Central hosts and hardware inventory endpoints.

Every public method returns a `CallResult` instead of raising: failures are
logged here with whatever the server sent back, and the caller decides how to
degrade. Nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any
from urllib.parse import quote

import requests

from .config import DEFAULT_BASE_URL, DEFAULT_REPORT_FIELDS, DEFAULT_TIMEOUT, Settings
from .models import CallResult, InventoryRecord, ReportPage

LOG = logging.getLogger("host_inventory.client")

HOSTS_PATH = "/v2/hosts"
REPORTS_PATH = "/v1/inventory/hardware/reports"


def _response_text(response: requests.Response | None) -> str:
    if response is None:
        return ""
    return response.text


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


class InventoryClient:
    """Blocking client for the three calls the reconciliation needs."""

    def __init__(
        self,
        *,
        authorization: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or LOG
        self._authorization = authorization

    @classmethod
    def from_settings(cls, settings: Settings, *, session: requests.Session | None = None) -> InventoryClient:
        return cls(
            authorization=settings.authorization,
            base_url=settings.base_url,
            timeout=settings.timeout,
            session=session,
        )

    # ------------------------------------------------------------------
    # Network helpers
    # ------------------------------------------------------------------
    def _headers(self, *, json_body: bool = False) -> dict[str, str]:
        headers = {"Authorization": self._authorization}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _call(self, method: str, path: str, *, action: str, body: dict[str, Any] | None = None) -> CallResult[Any]:
        url = f"{self.base_url}{path}"
        try:
            if method == "POST":
                response = self.session.post(url, json=body, headers=self._headers(json_body=True), timeout=self.timeout)
            else:
                response = self.session.get(url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            text = _response_text(exc.response)
            self.logger.error("Error %s: HTTP %s %s", action, status, text)
            return CallResult(error="http_status", detail=f"HTTP {status}: {text}".strip())
        except requests.RequestException as exc:
            self.logger.error("Error %s: %s", action, exc)
            return CallResult(error="transport", detail=str(exc))

        try:
            payload = response.json()
        except ValueError as exc:
            self.logger.error("Error %s: response is not JSON (%s)", action, exc)
            return CallResult(error="malformed_response", detail=str(exc))
        return CallResult(value=payload)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def list_host_ids(self) -> CallResult[list[int]]:
        """Return the ids of every host visible to the account."""

        result = self._call("GET", HOSTS_PATH, action="listing hosts")
        if not result.ok:
            return CallResult(error=result.error, detail=result.detail)

        payload = result.value
        hosts = payload.get("hosts") if isinstance(payload, dict) else None
        if not isinstance(hosts, list):
            self.logger.error("Error listing hosts: payload has no 'hosts' list: %r", payload)
            return CallResult(error="malformed_response", detail="missing 'hosts' list")

        host_ids: list[int] = []
        for host in hosts:
            host_id = _as_int(host.get("id")) if isinstance(host, dict) else None
            if host_id is None:
                self.logger.warning("Skipping host entry without a numeric id: %r", host)
                continue
            host_ids.append(host_id)
        self.logger.info("Fetched %d host id(s)", len(host_ids))
        return CallResult(value=host_ids)

    def request_report(
        self,
        host_ids: Sequence[int],
        fields: Iterable[str] = DEFAULT_REPORT_FIELDS,
    ) -> CallResult[str]:
        """Ask the service to build a hardware report and return its first token.

        An empty `host_ids` is sent as-is; what the service does with it is up
        to the service.
        """

        body = {"hostIds": list(host_ids), "fields": list(fields)}
        result = self._call("POST", REPORTS_PATH, action="requesting inventory report", body=body)
        if not result.ok:
            return CallResult(error=result.error, detail=result.detail)

        payload = result.value
        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            self.logger.error("Error requesting inventory report: no token in response: %r", payload)
            return CallResult(error="malformed_response", detail="missing report token")
        return CallResult(value=token)

    def fetch_report_page(self, token: str) -> CallResult[ReportPage]:
        """Fetch the report page behind `token` along with the next token, if any."""

        path = f"{REPORTS_PATH}/{quote(token, safe='')}"
        result = self._call("GET", path, action="fetching inventory report")
        if not result.ok:
            return CallResult(error=result.error, detail=result.detail)

        payload = result.value
        if not isinstance(payload, dict):
            self.logger.error("Error fetching inventory report: unexpected payload %r", payload)
            return CallResult(error="malformed_response", detail="report payload is not an object")
        return CallResult(value=self._parse_page(payload))

    def _parse_page(self, payload: dict[str, Any]) -> ReportPage:
        report = payload.get("report")
        next_token = report.get("token") if isinstance(report, dict) else None
        if not isinstance(next_token, str) or not next_token:
            next_token = None

        rows = payload.get("hosts")
        if not isinstance(rows, dict):
            return ReportPage(records=None, next_token=next_token)

        records: list[InventoryRecord] = []
        for row_key, row in rows.items():
            host_id = _as_int(row.get("hostId")) if isinstance(row, dict) else None
            service_tag = row.get("serviceTag") if isinstance(row, dict) else None
            if host_id is None or not isinstance(service_tag, str):
                self.logger.warning("Skipping report row %s without hostId/serviceTag: %r", row_key, row)
                continue
            records.append(InventoryRecord(host_id=host_id, service_tag=service_tag, row_key=str(row_key)))
        return ReportPage(records=records, next_token=next_token)
