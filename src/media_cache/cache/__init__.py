"""URL-keyed media cache: index, file store and the coordinating MediaStorage."""

from media_cache.cache.classifier import classify
from media_cache.cache.errors import (
    IndexLoadFailure,
    IndexPersistFailure,
    MediaCacheError,
    StorageReadFailure,
    StorageWriteFailure,
    TransportFailure,
)
from media_cache.cache.file_store import MediaFileStore
from media_cache.cache.impl import MediaStorage
from media_cache.cache.index import MediaIndex
from media_cache.cache.interfaces import BaseDirectoryProvider, MediaTransport
from media_cache.cache.models import MediaCategory, MediaEntry

__all__ = [
    "BaseDirectoryProvider",
    "IndexLoadFailure",
    "IndexPersistFailure",
    "MediaCacheError",
    "MediaCategory",
    "MediaEntry",
    "MediaFileStore",
    "MediaIndex",
    "MediaStorage",
    "MediaTransport",
    "StorageReadFailure",
    "StorageWriteFailure",
    "TransportFailure",
    "classify",
]
