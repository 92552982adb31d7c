"""Public API exports for the host inventory client and reconciliation helpers."""

from .client import InventoryClient
from .config import Settings, encode_basic_auth, load_settings
from .models import (
    CallResult,
    DuplicateServiceTag,
    ErrorKind,
    InventoryCollection,
    InventoryMap,
    InventoryRecord,
    MatchedHost,
    ReconciliationSummary,
    ReportPage,
)
from .reconcile import (
    build_inventory_map,
    collect_inventory,
    detect_duplicate_service_tags,
    reconcile_serials,
)
from .serials import load_serials, normalize_serial, parse_serials
from .writer import write_inventory_snapshot, write_matched, write_summary, write_unmatched

__all__ = [
    "CallResult",
    "DuplicateServiceTag",
    "ErrorKind",
    "InventoryClient",
    "InventoryCollection",
    "InventoryMap",
    "InventoryRecord",
    "MatchedHost",
    "ReconciliationSummary",
    "ReportPage",
    "Settings",
    "build_inventory_map",
    "collect_inventory",
    "detect_duplicate_service_tags",
    "encode_basic_auth",
    "load_serials",
    "load_settings",
    "normalize_serial",
    "parse_serials",
    "reconcile_serials",
    "write_inventory_snapshot",
    "write_matched",
    "write_summary",
    "write_unmatched",
]
