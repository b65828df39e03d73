"""Local cache for remotely fetched media files."""

from media_cache.cache import MediaEntry, MediaStorage

__version__ = "0.1.0"

__all__ = ["MediaEntry", "MediaStorage", "__version__"]
