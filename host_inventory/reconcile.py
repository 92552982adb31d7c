"""Report pagination and reconciliation of input serials against the inventory."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import TypeAlias

from .models import (
    CallResult,
    DuplicateServiceTag,
    InventoryCollection,
    InventoryMap,
    InventoryRecord,
    MatchedHost,
    ReconciliationSummary,
    ReportPage,
)

LOG = logging.getLogger("host_inventory.reconcile")

PageFetcher: TypeAlias = Callable[[str], CallResult[ReportPage]]


def collect_inventory(
    fetch_page: PageFetcher,
    token: str | None,
    *,
    max_pages: int | None = None,
) -> InventoryCollection:
    """Follow a report token chain and accumulate every record it yields.

    Each token is handed to `fetch_page` exactly once. The chain ends normally
    when a page carries no next token. It also ends early, keeping whatever was
    accumulated, when a fetch fails, a page has no host rows, a token comes
    back a second time, or `max_pages` pages have been read while more remain.
    `stop_reason` on the result says which of these happened.
    """

    collection = InventoryCollection()
    seen_tokens: set[str] = set()
    next_token = token

    while next_token is not None:
        if max_pages is not None and collection.pages_fetched >= max_pages:
            LOG.warning("Stopping report pagination after %d page(s): page limit reached", collection.pages_fetched)
            collection.stop_reason = "pagination_limit_exceeded"
            break
        if next_token in seen_tokens:
            LOG.warning("Stopping report pagination: token %r was already consumed", next_token)
            collection.stop_reason = "repeated_token"
            break
        seen_tokens.add(next_token)

        result = fetch_page(next_token)
        if not result.ok or result.value is None:
            LOG.warning(
                "Stopping report pagination after %d page(s): fetch failed (%s)",
                collection.pages_fetched,
                result.error,
            )
            collection.stop_reason = result.error or "malformed_response"
            break

        page = result.value
        if page.records is None:
            LOG.warning("Stopping report pagination after %d page(s): page has no host rows", collection.pages_fetched)
            collection.stop_reason = "missing_records"
            break

        collection.records.extend(page.records)
        collection.pages_fetched += 1
        LOG.debug("Report page %d: %d row(s)", collection.pages_fetched, len(page.records))
        next_token = page.next_token

    LOG.info(
        "Collected %d inventory row(s) from %d report page(s)",
        len(collection.records),
        collection.pages_fetched,
    )
    return collection


def build_inventory_map(records: Iterable[InventoryRecord]) -> InventoryMap:
    """Map service tag -> host id.

    A tag reported more than once keeps the host id from the last row seen.
    """

    inventory: InventoryMap = {}
    for record in records:
        inventory[record.service_tag] = record.host_id
    return inventory


def detect_duplicate_service_tags(records: Iterable[InventoryRecord]) -> list[DuplicateServiceTag]:
    """Return service tags that appear on more than one report row.

    The inventory map keeps only the last host id for such tags; this helper
    shows where that happened and which id survived.
    """

    host_ids_by_tag: defaultdict[str, list[int]] = defaultdict(list)
    for record in records:
        host_ids_by_tag[record.service_tag].append(record.host_id)

    duplicates: list[DuplicateServiceTag] = []
    for service_tag in sorted(host_ids_by_tag):
        host_ids = host_ids_by_tag[service_tag]
        if len(host_ids) <= 1:
            continue
        duplicates.append(
            {
                "service_tag": service_tag,
                "row_count": len(host_ids),
                "host_ids": sorted(set(host_ids)),
                "kept_host_id": host_ids[-1],
            }
        )
    return duplicates


def reconcile_serials(serials: Sequence[str], inventory: InventoryMap) -> ReconciliationSummary:
    """Partition `serials` into those found in `inventory` and those not found.

    Lookup is exact and case-sensitive. Input order is kept in both lists and
    repeated serials are reported once per occurrence. Empty serials never match.
    """

    matched: list[MatchedHost] = []
    unmatched: list[str] = []
    for serial in serials:
        host_id = inventory.get(serial) if serial else None
        if host_id is None:
            LOG.debug("Serial %s not found in inventory", serial)
            unmatched.append(serial)
        else:
            LOG.debug("Serial %s found in inventory (host %s)", serial, host_id)
            matched.append({"id": host_id, "serviceTag": serial})

    return {"matched": matched, "unmatched": unmatched}
