from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from media_cache.cache.classifier import classify
from media_cache.cache.errors import StorageReadFailure, StorageWriteFailure
from media_cache.cache.io import atomic_write_bytes
from media_cache.cache.utils import is_safe_filename

logger = logging.getLogger(__name__)


class MediaFileStore:
    """
    Byte-level IO for cached media files.

    Files live in `<base_dir>/<category>/<filename>`, where the category is derived
    from the filename's ending (see `classify`).
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def resolve_path(self, filename: str) -> Path:
        if not is_safe_filename(filename):
            raise ValueError(f"Media filename must be a plain file name: {filename!r}")
        return self._base_dir / classify(filename) / filename

    async def write(self, filename: str, data: bytes) -> Path:
        """
        Write `data` as the full content of `filename`, replacing any previous content.

        Raises StorageWriteFailure if the file could not be written.
        """
        path = self.resolve_path(filename)
        try:
            await asyncio.to_thread(atomic_write_bytes, path, data)
        except OSError as e:
            raise StorageWriteFailure(f"Failed to write media file: {path}") from e
        logger.debug("Media file written. path=%s size=%d", path, len(data))
        return path

    async def delete(self, filename: str) -> bool:
        """Delete `filename` if present. Returns False only if an existing file could not be removed."""
        path = self.resolve_path(filename)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete media file. path=%s error=%s", path, e)
            return False
        logger.debug("Media file deleted. path=%s", path)
        return True

    async def read_bytes(self, filename: str) -> bytes:
        path = self.resolve_path(filename)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise StorageReadFailure(f"Failed to read media file: {path}") from e

    def read_handle(self, filename: str) -> Path:
        """Return the file's location. No IO is performed, so the file may not exist."""
        return self.resolve_path(filename)
