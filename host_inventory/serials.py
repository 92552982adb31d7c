"""Loader for the local list of service tags to reconcile."""

from __future__ import annotations

import logging
from pathlib import Path

LOG = logging.getLogger("host_inventory.serials")


def normalize_serial(value: str) -> str:
    """Trim surrounding whitespace from one serial.

    Case is left untouched: service tags are matched case-sensitively.
    """

    return value.strip()


def parse_serials(text: str) -> list[str]:
    """Split file content into trimmed serials, one per line.

    Blank lines inside the content are kept as empty strings so the output
    stays aligned with the input file. A trailing newline does not add an
    extra entry.
    """

    return [normalize_serial(line) for line in text.splitlines()]


def load_serials(path: str | Path) -> list[str]:
    """Read serials from `path`.

    An unreadable file is logged and treated as an empty list so the run can
    still dump the remote inventory.
    """

    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        LOG.error("Could not read serial list %s: %s", source, exc)
        return []

    serials = parse_serials(text)
    blank = sum(1 for serial in serials if not serial)
    if blank:
        LOG.warning("%s contains %d blank line(s); they will be reported as not found", source, blank)
    LOG.info("Read %d serial(s) from %s", len(serials), source)
    return serials
