from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from media_cache.cache.errors import TransportFailure
from media_cache.config.models import TransportSettings

logger = logging.getLogger(__name__)


class AiohttpTransport:
    """HTTP GET transport backed by a shared aiohttp session."""

    def __init__(self, config: TransportSettings) -> None:
        self._config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self._download_semaphore = asyncio.Semaphore(max(1, int(config.download_concurrency)))

    async def __aenter__(self) -> AiohttpTransport:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    async def start(self) -> None:
        """Open the HTTP session."""
        if self._session and not self._session.closed:
            return
        timeout = aiohttp.ClientTimeout(total=self._config.timeout_seconds)
        self._session = aiohttp.ClientSession(
            timeout=timeout,
            headers={"User-Agent": self._config.user_agent},
        )

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> bytes:
        if not self._session or self._session.closed:
            await self.start()
        assert self._session is not None

        async with self._download_semaphore:
            logger.debug("HTTP fetch started. url=%s", url)
            try:
                async with self._session.get(url) as response:
                    if response.status < 200 or response.status >= 300:
                        raise TransportFailure(f"Unexpected HTTP status {response.status} for {url}")
                    data = await self._read_body(response, url)
            except asyncio.TimeoutError as e:
                raise TransportFailure(f"Timed out fetching {url}") from e
            except aiohttp.ClientError as e:
                raise TransportFailure(f"HTTP request failed for {url}: {e}") from e
        logger.debug("HTTP fetch finished. url=%s size=%d", url, len(data))
        return data

    async def _read_body(self, response: aiohttp.ClientResponse, url: str) -> bytes:
        limit = self._config.max_download_bytes
        if not limit:
            return await response.read()
        if response.content_length is not None and response.content_length > limit:
            raise TransportFailure(f"Response too large for {url}: {response.content_length} bytes")
        chunks: list[bytes] = []
        received = 0
        async for chunk in response.content.iter_chunked(64 * 1024):
            received += len(chunk)
            if received > limit:
                raise TransportFailure(f"Response too large for {url}: more than {limit} bytes")
            chunks.append(chunk)
        return b"".join(chunks)
