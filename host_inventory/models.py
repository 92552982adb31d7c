"""Core typed models shared by the API client, reconciliation and writers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Literal, TypeAlias, TypedDict, TypeVar

T = TypeVar("T")

ErrorKind: TypeAlias = Literal[
    "transport",
    "http_status",
    "malformed_response",
    "missing_records",
    "repeated_token",
    "pagination_limit_exceeded",
]
InventoryMap: TypeAlias = dict[str, int]


@dataclass(frozen=True, slots=True)
class CallResult(Generic[T]):
    """Outcome of one remote call: a value, or the kind of failure that occurred."""

    value: T | None = None
    error: ErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        """Return whether the call succeeded."""

        return self.error is None

    def unwrap_or(self, default: T) -> T:
        """Return the value on success, otherwise `default`."""

        if self.error is not None or self.value is None:
            return default
        return self.value


@dataclass(frozen=True, slots=True)
class InventoryRecord:
    """One host row from a hardware inventory report page."""

    host_id: int
    service_tag: str
    row_key: str = ""


@dataclass(frozen=True, slots=True)
class ReportPage:
    """One page of a hardware report.

    `records` is None when the payload carried no host rows at all, which is
    different from a page that legitimately lists zero hosts.
    """

    records: list[InventoryRecord] | None
    next_token: str | None = None


@dataclass(slots=True)
class InventoryCollection:
    """Records accumulated while following a report token chain."""

    records: list[InventoryRecord] = field(default_factory=list)
    pages_fetched: int = 0
    stop_reason: ErrorKind | None = None

    @property
    def completed(self) -> bool:
        """Return whether the chain ran until the service returned no token."""

        return self.stop_reason is None


class MatchedHost(TypedDict):
    """An input serial found in the remote inventory."""

    id: int
    serviceTag: str


class ReconciliationSummary(TypedDict):
    """Input serials partitioned by whether the remote inventory knows them."""

    matched: list[MatchedHost]
    unmatched: list[str]


class DuplicateServiceTag(TypedDict):
    """A service tag reported for more than one report row."""

    service_tag: str
    row_count: int
    host_ids: list[int]
    kept_host_id: int
