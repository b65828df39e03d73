from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from media_cache.cache.classifier import classify
from media_cache.cache.errors import (
    IndexLoadFailure,
    IndexPersistFailure,
    StorageReadFailure,
    StorageWriteFailure,
    TransportFailure,
)
from media_cache.cache.file_store import MediaFileStore
from media_cache.cache.index import MediaIndex
from media_cache.cache.interfaces import BaseDirectoryProvider, MediaTransport
from media_cache.cache.locks import KeyedLock
from media_cache.cache.models import MediaEntry
from media_cache.cache.utils import generate_filename, is_safe_filename, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INDEX_FILENAME = "loaded_media.json"


class MediaStorage:
    """
    Local cache for remote media, keyed by URL.

    Keeps two stores consistent: the index (metadata for every downloaded URL,
    persisted as `<base>/loaded_media.json`) and the file store (the downloaded
    bytes under `<base>/<category>/<filename>`). A request for a URL that is
    already indexed is served from disk. Otherwise, or when an update is forced,
    the content is downloaded, written to disk, the previous entries and files
    for that URL are evicted and a fresh entry is recorded.

    Requests for the same URL are serialized, so concurrent lookups of a URL
    that is not cached yet result in a single download. A filename belongs to
    one URL at a time; downloads never overwrite a file another URL points to.
    """

    def __init__(
        self,
        *,
        transport: MediaTransport,
        base_directory: BaseDirectoryProvider,
        index_filename: str = DEFAULT_INDEX_FILENAME,
    ) -> None:
        base_dir = Path(base_directory.base_directory())
        self._transport = transport
        self._file_store = MediaFileStore(base_dir)
        self._index = MediaIndex(base_dir / index_filename)
        self._url_locks = KeyedLock()
        # Filenames of downloads in flight, mapped to the URL being downloaded.
        self._claimed_filenames: Dict[str, str] = {}

    @property
    def file_store(self) -> MediaFileStore:
        return self._file_store

    @property
    def index(self) -> MediaIndex:
        return self._index

    async def init(self) -> None:
        """Load the persisted index. Call this once on start."""
        try:
            entries = await self._index.load()
        except IndexLoadFailure as e:
            logger.warning("Starting with an empty media index. reason=%s", e)
            return
        logger.info("Media index loaded. entries=%d", len(entries))

    def list_loaded(self) -> list[dict]:
        """Return every indexed entry as `{url, name, type, last_update}`."""
        return self._index.list_all()

    async def get_file(
        self,
        url: str,
        *,
        filename: Optional[str] = None,
        force_update: bool = False,
    ) -> Optional[Path]:
        """
        Return the location of the cached content for `url`, or None if an error occurred.

        If `url` is indexed and `force_update` is not set, the existing file is returned
        without network access. Otherwise the content is downloaded and stored as
        `filename`; without a filename a timestamped `.dat` name is generated. A
        `filename` that contains a directory or is held by another URL yields None.
        """
        return await self._resolve(url, self._read_handle, filename=filename, force_update=force_update)

    async def get_bytes(
        self,
        url: str,
        *,
        filename: Optional[str] = None,
        force_update: bool = False,
    ) -> Optional[bytes]:
        """Same as `get_file`, but returns the content as bytes."""
        return await self._resolve(
            url, self._file_store.read_bytes, filename=filename, force_update=force_update
        )

    async def _read_handle(self, filename: str) -> Path:
        return self._file_store.read_handle(filename)

    async def _resolve(
        self,
        url: str,
        read: Callable[[str], Awaitable[T]],
        *,
        filename: Optional[str],
        force_update: bool,
    ) -> Optional[T]:
        async with self._url_locks.hold(url):
            entry = self._index.get(url)
            if entry is not None and not force_update:
                logger.debug(
                    "Serving media from disk. url=%s filename=%s last_update=%s",
                    url,
                    entry.filename,
                    entry.last_update,
                )
                return await self._read(read, entry.filename)
            return await self._download(url, read, filename=filename)

    async def _download(
        self,
        url: str,
        read: Callable[[str], Awaitable[T]],
        *,
        filename: Optional[str],
    ) -> Optional[T]:
        name = self._claim_filename(url, filename)
        if name is None:
            return None
        try:
            return await self._fetch_and_store(url, read, name)
        finally:
            del self._claimed_filenames[name]

    async def _fetch_and_store(
        self,
        url: str,
        read: Callable[[str], Awaitable[T]],
        name: str,
    ) -> Optional[T]:
        logger.info("Downloading media. url=%s filename=%s", url, name)
        try:
            data = await self._transport.fetch(url)
        except TransportFailure as e:
            logger.warning("Media download failed. url=%s error=%s", url, e)
            return None

        try:
            await self._file_store.write(name, data)
        except StorageWriteFailure as e:
            logger.warning("Failed to store downloaded media. url=%s error=%s", url, e.__cause__ or e)
            return None

        for stale in self._index.remove_all(url):
            # Keep files that are the new download or still referenced by another URL.
            if stale == name or self._index.get_by_filename(stale) is not None:
                continue
            await self._file_store.delete(stale)

        entry = MediaEntry(url=url, filename=name, category=classify(name), last_update=utc_now())
        try:
            await self._index.insert(entry)
        except IndexPersistFailure as e:
            logger.warning("Media index could not be persisted. url=%s error=%s", url, e.__cause__ or e)

        logger.info("Media downloaded and stored. url=%s filename=%s size=%d", url, name, len(data))
        return await self._read(read, name)

    def _claim_filename(self, url: str, filename: Optional[str]) -> Optional[str]:
        """
        Reserve the filename a download for `url` is stored under.

        Generated names get a numeric suffix until no other URL holds them. An explicit
        name that is not a plain file name, or that belongs to another URL, yields None.
        """
        if filename is None:
            base = generate_filename().removesuffix(".dat")
            name = f"{base}.dat"
            counter = 1
            while self._filename_taken(url, name):
                name = f"{base}_{counter}.dat"
                counter += 1
        else:
            if not is_safe_filename(filename):
                logger.warning("Rejected media filename. url=%s filename=%r", url, filename)
                return None
            if self._filename_taken(url, filename):
                logger.warning("Media filename already used by another URL. url=%s filename=%s", url, filename)
                return None
            name = filename
        self._claimed_filenames[name] = url
        return name

    def _filename_taken(self, url: str, filename: str) -> bool:
        claimed_by = self._claimed_filenames.get(filename)
        if claimed_by is not None and claimed_by != url:
            return True
        entry = self._index.get_by_filename(filename)
        return entry is not None and entry.url != url

    async def _read(self, read: Callable[[str], Awaitable[T]], filename: str) -> Optional[T]:
        try:
            return await read(filename)
        except StorageReadFailure as e:
            logger.warning("Failed to read cached media. filename=%s error=%s", filename, e.__cause__ or e)
            return None
