from __future__ import annotations

from pathlib import Path
from typing import Protocol


class MediaTransport(Protocol):
    async def fetch(self, url: str) -> bytes:
        """
        Download the body of `url`.

        Raises TransportFailure for any unsuccessful response or connection problem.
        """
        ...


class BaseDirectoryProvider(Protocol):
    def base_directory(self) -> Path:
        """Return a writable directory that holds the cache."""
        ...
