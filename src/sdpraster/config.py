"""Shared configuration helpers for sdpraster."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CRS = "EPSG:32613"
DEFAULT_DAILY_DAYS = 30
DEFAULT_HTTP_TIMEOUT = 60.0


def _resolve_path_from_env(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    if not value:
        return default
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = (Path.cwd() / candidate).resolve()
    return candidate


def get_catalog_location() -> str | None:
    """Return the path or URL of the catalog table, if one is configured."""

    value = os.environ.get("SDPRASTER_CATALOG", "").strip()
    return value or None


def get_crs() -> str:
    """Return the coordinate reference system assigned to catalog rasters."""

    return os.environ.get("SDPRASTER_CRS", "").strip() or DEFAULT_CRS


def get_download_dir() -> Path:
    """Return the default destination for locally materialized rasters."""

    return _resolve_path_from_env("SDPRASTER_DOWNLOAD_DIR", Path.cwd() / "sdp_data")


def get_daily_default_days() -> int:
    """Return how many days a Daily dataset yields when no dates are requested."""

    raw = os.environ.get("SDPRASTER_DAILY_DEFAULT_DAYS", "").strip()
    if not raw:
        return DEFAULT_DAILY_DAYS
    try:
        days = int(raw)
    except ValueError:
        return DEFAULT_DAILY_DAYS
    return days if days >= 1 else DEFAULT_DAILY_DAYS


def get_http_timeout() -> float:
    """Return the per-request timeout for downloads, in seconds."""

    raw = os.environ.get("SDPRASTER_HTTP_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists."""

    path.mkdir(parents=True, exist_ok=True)
    return path
