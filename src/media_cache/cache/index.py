from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from media_cache.cache.errors import IndexLoadFailure, IndexPersistFailure
from media_cache.cache.io import encode_entry, read_entries_file, write_entries_file
from media_cache.cache.models import MediaEntry

logger = logging.getLogger(__name__)


class MediaIndex:
    """
    Ordered list of cached media entries, persisted as a single JSON document.

    Every mutation made through `insert` rewrites the whole document.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._entries: List[MediaEntry] = []
        self._persist_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def contains(self, url: str) -> bool:
        return any(entry.url == url for entry in self._entries)

    def get(self, url: str) -> Optional[MediaEntry]:
        for entry in self._entries:
            if entry.url == url:
                return entry
        return None

    def get_by_filename(self, filename: str) -> Optional[MediaEntry]:
        for entry in self._entries:
            if entry.filename == filename:
                return entry
        return None

    def remove_all(self, url: str) -> list[str]:
        """
        Remove every entry for `url` and return their filenames.

        Must run before the replacement entry is inserted, otherwise the new entry is removed too.
        """
        removed = [entry for entry in self._entries if entry.url == url]
        if not removed:
            return []
        self._entries = [entry for entry in self._entries if entry.url != url]
        return [entry.filename for entry in removed]

    async def insert(self, entry: MediaEntry) -> list[str]:
        """
        Add `entry` and persist the index.

        Entries already holding the same URL are replaced; their filenames are returned.
        Raises IndexPersistFailure if the document could not be written; the entry
        stays in memory in that case.
        """
        replaced = self.remove_all(entry.url)
        if replaced:
            logger.warning(
                "Replaced existing index entries on insert. url=%s filenames=%s",
                entry.url,
                replaced,
            )
        self._entries.append(entry)
        await self.persist()
        return replaced

    async def persist(self) -> None:
        snapshot = list(self._entries)
        async with self._persist_lock:
            try:
                await asyncio.to_thread(write_entries_file, self._path, snapshot)
            except (OSError, TypeError, ValueError) as e:
                raise IndexPersistFailure(f"Failed to write index document: {self._path}") from e
        logger.debug("Index persisted. path=%s entries=%d", self._path, len(snapshot))

    async def load(self, reload: bool = True) -> list[MediaEntry]:
        """
        Read the index document and replace the in-memory entries with its content.

        With `reload=False` the already loaded entries are returned without any IO.
        Raises IndexLoadFailure if the document is missing or corrupt.
        """
        if reload:
            try:
                entries = await asyncio.to_thread(read_entries_file, self._path)
            except FileNotFoundError as e:
                raise IndexLoadFailure(f"Index document not found: {self._path}") from e
            except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                raise IndexLoadFailure(f"Index document is corrupt: {self._path}") from e
            self._entries = entries
            logger.debug("Index loaded. path=%s entries=%d", self._path, len(entries))
        return list(self._entries)

    def list_all(self) -> list[dict]:
        return [encode_entry(entry) for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
