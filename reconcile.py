"""Runner for host inventory reconciliation.

Reads the local serial list, pulls the hardware inventory report from
LogMeIn Central, and writes three CSV files to the output directory:
the full inventory snapshot, the serials that were found, and the serials
that were not. Optionally writes a JSON run summary as well.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from host_inventory import (
    InventoryClient,
    Settings,
    build_inventory_map,
    collect_inventory,
    detect_duplicate_service_tags,
    load_serials,
    load_settings,
    reconcile_serials,
    write_inventory_snapshot,
    write_matched,
    write_summary,
    write_unmatched,
)

LOG = logging.getLogger("host_inventory")

STATUS_COMPLETED = "completed"
STATUS_REPORT_UNAVAILABLE = "report_unavailable"


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the package logger once."""

    LOG.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not LOG.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        LOG.addHandler(handler)
    return LOG


def run_pipeline(settings: Settings, *, client: InventoryClient | None = None) -> dict[str, Any]:
    """Run one reconciliation and return a summary of what happened.

    Remote failures never raise: a failed host listing continues with no
    hosts, and a failed report request stops before reconciliation with only
    an empty inventory snapshot written.
    """

    serials = load_serials(settings.input_path)
    client = client or InventoryClient.from_settings(settings)

    hosts = client.list_host_ids()
    host_ids = hosts.unwrap_or([])

    metadata: dict[str, Any] = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "input_path": str(settings.input_path),
        "base_url": settings.base_url,
        "host_list_error": hosts.error,
        "report_error": None,
        "pagination_stop_reason": None,
        "pages_fetched": 0,
        "outputs": {"inventory_snapshot": str(settings.inventory_snapshot_path)},
    }
    counts: dict[str, int] = {
        "input_serial_count": len(serials),
        "host_id_count": len(host_ids),
        "inventory_count": 0,
        "matched_count": 0,
        "unmatched_count": 0,
    }

    token = client.request_report(host_ids, settings.report_fields)
    if not token.ok or token.value is None:
        LOG.error("Could not obtain an inventory report token; nothing to reconcile")
        write_inventory_snapshot({}, output_path=settings.inventory_snapshot_path)
        metadata["status"] = STATUS_REPORT_UNAVAILABLE
        metadata["report_error"] = token.error
        return {"metadata": metadata, "summary": counts, "duplicate_service_tags": []}

    collection = collect_inventory(client.fetch_report_page, token.value, max_pages=settings.max_pages)
    inventory = build_inventory_map(collection.records)
    duplicates = detect_duplicate_service_tags(collection.records)
    for duplicate in duplicates:
        LOG.warning(
            "Service tag %s reported for hosts %s; keeping host %s",
            duplicate["service_tag"],
            duplicate["host_ids"],
            duplicate["kept_host_id"],
        )

    write_inventory_snapshot(inventory, output_path=settings.inventory_snapshot_path)

    reconciliation = reconcile_serials(serials, inventory)
    LOG.info(
        "%d serial(s) found, %d not found",
        len(reconciliation["matched"]),
        len(reconciliation["unmatched"]),
    )
    write_matched(reconciliation["matched"], output_path=settings.matched_path)
    write_unmatched(reconciliation["unmatched"], output_path=settings.unmatched_path)

    metadata["status"] = STATUS_COMPLETED
    metadata["pagination_stop_reason"] = collection.stop_reason
    metadata["pages_fetched"] = collection.pages_fetched
    metadata["outputs"]["matched"] = str(settings.matched_path)
    metadata["outputs"]["unmatched"] = str(settings.unmatched_path)
    counts["inventory_count"] = len(inventory)
    counts["matched_count"] = len(reconciliation["matched"])
    counts["unmatched_count"] = len(reconciliation["unmatched"])
    return {"metadata": metadata, "summary": counts, "duplicate_service_tags": duplicates}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for a reconciliation run."""

    parser = argparse.ArgumentParser(description="Reconcile a serial list against the LogMeIn hardware inventory.")
    parser.add_argument("--input", type=Path, default=None, help="Serial list path (overrides PATH_TO_CSV)")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for the output CSV files")
    parser.add_argument("--env-file", type=Path, default=None, help="Path to a .env file with credentials")
    parser.add_argument("--max-pages", type=int, default=None, help="Report page limit, 0 for no limit")
    parser.add_argument("--summary", type=Path, default=None, help="Also write a JSON run summary here")
    parser.add_argument("--log-level", default=None, help="Logging level (default INFO)")
    return parser.parse_args(argv)


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.input is not None:
        overrides["input_path"] = args.input
    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages if args.max_pages > 0 else None
    if args.log_level is not None:
        overrides["log_level"] = args.log_level.upper()
    return dataclasses.replace(settings, **overrides) if overrides else settings


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for command-line execution."""

    args = _parse_args(argv)
    setup_logger(args.log_level or "INFO")
    try:
        settings = _apply_overrides(load_settings(args.env_file), args)
        setup_logger(settings.log_level)
        summary = run_pipeline(settings)
        if args.summary is not None:
            write_summary(summary, output_path=args.summary)
    except Exception:
        LOG.exception("Inventory reconciliation failed")
        return 1
    return 0 if summary["metadata"]["status"] == STATUS_COMPLETED else 1


if __name__ == "__main__":
    raise SystemExit(main())
