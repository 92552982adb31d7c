"""Environment-driven settings for an inventory reconciliation run."""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

LOG = logging.getLogger("host_inventory.config")

DEFAULT_BASE_URL = "https://secure.logmein.com/public-api"
DEFAULT_INPUT_PATH = Path("./hosts.csv")
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_PAGES = 1000
DEFAULT_REPORT_FIELDS = ("ServiceTag",)

INVENTORY_SNAPSHOT_FILENAME = "InventoryObtenido.csv"
MATCHED_FILENAME = "Inventory.csv"
UNMATCHED_FILENAME = "InventoryNotFound.csv"


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration for one run."""

    input_path: Path
    authorization: str
    base_url: str = DEFAULT_BASE_URL
    output_dir: Path = Path(".")
    timeout: float = DEFAULT_TIMEOUT
    max_pages: int | None = DEFAULT_MAX_PAGES
    report_fields: tuple[str, ...] = field(default=DEFAULT_REPORT_FIELDS)
    log_level: str = "INFO"

    @property
    def inventory_snapshot_path(self) -> Path:
        return self.output_dir / INVENTORY_SNAPSHOT_FILENAME

    @property
    def matched_path(self) -> Path:
        return self.output_dir / MATCHED_FILENAME

    @property
    def unmatched_path(self) -> Path:
        return self.output_dir / UNMATCHED_FILENAME


def encode_basic_auth(username: str, password: str) -> str:
    """Return the `Authorization` header value for HTTP Basic credentials."""

    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        LOG.warning("Ignoring invalid %s=%r; using %s", name, value, default)
        return default


def _env_max_pages(name: str, default: int) -> int | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        LOG.warning("Ignoring invalid %s=%r; using %s", name, value, default)
        return default
    # Zero or negative disables the page cap.
    return parsed if parsed > 0 else None


def _env_fields(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    fields = tuple(part.strip() for part in value.split(",") if part.strip())
    return fields or default


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Load settings from the process environment and an optional `.env` file.

    Values already present in the environment take precedence over the file.
    The Basic credential is encoded once here and handed to the API client.
    """

    load_dotenv(env_file if env_file is not None else find_dotenv(usecwd=True))

    username = os.getenv("USERNAME")
    password = os.getenv("PASSWORD")
    if not username or not password:
        LOG.warning("USERNAME and/or PASSWORD are not set; API calls will likely be rejected")

    return Settings(
        input_path=Path(_env_str("PATH_TO_CSV", str(DEFAULT_INPUT_PATH))),
        authorization=encode_basic_auth(username or "", password or ""),
        base_url=_env_str("LOGMEIN_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        output_dir=Path(_env_str("INVENTORY_OUTPUT_DIR", ".")),
        timeout=_env_float("INVENTORY_HTTP_TIMEOUT", DEFAULT_TIMEOUT),
        max_pages=_env_max_pages("INVENTORY_MAX_PAGES", DEFAULT_MAX_PAGES),
        report_fields=_env_fields("INVENTORY_REPORT_FIELDS", DEFAULT_REPORT_FIELDS),
        log_level=_env_str("INVENTORY_LOG_LEVEL", "INFO").upper(),
    )
