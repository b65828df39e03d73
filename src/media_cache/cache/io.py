from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List

from media_cache.cache.models import MediaCategory, MediaEntry
from media_cache.cache.utils import format_timestamp, is_safe_filename, parse_timestamp

_CATEGORIES: tuple[MediaCategory, ...] = ("image", "video", "binary")


def atomic_write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp_path.replace(path)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(data)
    tmp_path.replace(path)


def encode_entry(entry: MediaEntry) -> dict:
    return {
        "url": entry.url,
        "name": entry.filename,
        "type": entry.category,
        "last_update": format_timestamp(entry.last_update),
    }


def _require_str(payload: dict, key: str) -> str:
    value = payload[key]
    if not isinstance(value, str):
        raise ValueError(f"Index field {key!r} must be a string, got: {type(value).__name__}")
    return value


def decode_entry(payload: dict) -> MediaEntry:
    category = payload["type"]
    if category not in _CATEGORIES:
        raise ValueError(f"Unknown media type: {category!r}")
    filename = _require_str(payload, "name")
    if not is_safe_filename(filename):
        raise ValueError(f"Index filename is not a plain file name: {filename!r}")
    return MediaEntry(
        url=_require_str(payload, "url"),
        filename=filename,
        category=category,
        last_update=parse_timestamp(_require_str(payload, "last_update")),
    )


def encode_entries(entries: Iterable[MediaEntry]) -> list[dict]:
    return [encode_entry(entry) for entry in entries]


def decode_entries(payload: Any) -> List[MediaEntry]:
    if not isinstance(payload, list):
        raise ValueError(f"Index document must be a JSON array, got: {type(payload).__name__}")
    entries: List[MediaEntry] = []
    for item in payload:
        if not isinstance(item, dict):
            raise ValueError(f"Index entry must be a JSON object, got: {type(item).__name__}")
        entries.append(decode_entry(item))
    return entries


def read_entries_file(path: Path) -> List[MediaEntry]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return decode_entries(payload)


def write_entries_file(path: Path, entries: Iterable[MediaEntry]) -> None:
    atomic_write_json(path, encode_entries(entries))
