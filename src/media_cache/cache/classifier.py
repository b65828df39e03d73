from __future__ import annotations

from media_cache.cache.models import MediaCategory

BINARY_SUFFIX = ".dat"

# Image formats the consuming UI can render directly.
IMAGE_SUFFIXES = (
    ".jpg",
    ".jpeg",
    ".jfif",
    ".pjpeg",
    ".pjp",
    ".png",
    ".gif",
    ".webp",
    ".bmp",
    ".dib",
    ".wbmp",
)


def classify(filename: str) -> MediaCategory:
    """
    Return the storage category for a filename based on its ending.

    Anything that is neither `.dat` nor a known image ending is treated as video.
    """
    if filename.endswith(BINARY_SUFFIX):
        return "binary"
    if filename.endswith(IMAGE_SUFFIXES):
        return "image"
    return "video"
