from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def generate_filename(now: datetime | None = None) -> str:
    """Build a `.dat` filename from a timestamp, e.g. `2026_10_19T08_15_00_250000.dat`."""
    moment = now or datetime.now()
    stamp = moment.replace(tzinfo=None).isoformat(timespec="microseconds")
    return stamp.replace("-", "_").replace(":", "_").replace(".", "_") + ".dat"


def is_safe_filename(filename: str) -> bool:
    """True if `filename` is a single path component that stays inside its directory."""
    if filename in ("", ".", ".."):
        return False
    return Path(filename).name == filename and "\\" not in filename
