"""CSV and JSON writers for reconciliation output."""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from .models import MatchedHost

LOG = logging.getLogger("host_inventory.writer")

INVENTORY_SNAPSHOT_HEADER = ("serviceTag", "hostId")
MATCHED_HEADER = ("id", "serviceTag")
UNMATCHED_HEADER = ("serviceTag",)


def _write_rows(path: Path, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(header)
        for row in rows:
            writer.writerow(row)
            count += 1
    LOG.info("Wrote %d row(s) to %s", count, path)
    return count


def write_inventory_snapshot(inventory: Mapping[str, int], *, output_path: Path) -> int:
    """Write the full remote inventory as `serviceTag,hostId` rows."""

    return _write_rows(output_path, INVENTORY_SNAPSHOT_HEADER, inventory.items())


def write_matched(matched: Iterable[MatchedHost], *, output_path: Path) -> int:
    """Write matched serials as `id,serviceTag` rows (host id first)."""

    return _write_rows(output_path, MATCHED_HEADER, ((item["id"], item["serviceTag"]) for item in matched))


def write_unmatched(unmatched: Iterable[str], *, output_path: Path) -> int:
    """Write serials that were not found, one per row."""

    return _write_rows(output_path, UNMATCHED_HEADER, ((serial,) for serial in unmatched))


def write_summary(summary: dict[str, Any], *, output_path: Path) -> None:
    """Write the run summary as JSON."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(summary, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    LOG.info("Wrote run summary to %s", output_path)
