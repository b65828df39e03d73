from __future__ import annotations


class MediaCacheError(Exception):
    """Base class for failures raised inside the media cache."""


class TransportFailure(MediaCacheError):
    """The remote resource could not be retrieved."""


class StorageWriteFailure(MediaCacheError):
    """Downloaded content could not be written to disk."""


class StorageReadFailure(MediaCacheError):
    """Cached content could not be read back from disk."""


class IndexPersistFailure(MediaCacheError):
    """The index document could not be written."""


class IndexLoadFailure(MediaCacheError):
    """The index document is missing or corrupt."""
