import unittest

from aiohttp import web
from aiohttp.test_utils import TestServer

from media_cache.cache.errors import TransportFailure
from media_cache.config.models import TransportSettings
from media_cache.transport import AiohttpTransport


async def _image(request: web.Request) -> web.Response:
    return web.Response(body=b"\x89PNG-bytes", content_type="image/png")


async def _missing(request: web.Request) -> web.Response:
    return web.Response(status=404, text="not found")


async def _large(request: web.Request) -> web.Response:
    return web.Response(body=b"x" * 4096)


async def _agent(request: web.Request) -> web.Response:
    return web.Response(text=request.headers.get("User-Agent", ""))


class AiohttpTransportTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        app = web.Application()
        app.router.add_get("/image.png", _image)
        app.router.add_get("/missing", _missing)
        app.router.add_get("/large", _large)
        app.router.add_get("/agent", _agent)
        self.server = TestServer(app)
        await self.server.start_server()

    async def asyncTearDown(self) -> None:
        await self.server.close()

    async def test_fetch_returns_body(self) -> None:
        async with AiohttpTransport(TransportSettings()) as transport:
            data = await transport.fetch(str(self.server.make_url("/image.png")))

        self.assertEqual(data, b"\x89PNG-bytes")

    async def test_non_success_status_is_failure(self) -> None:
        async with AiohttpTransport(TransportSettings()) as transport:
            with self.assertRaises(TransportFailure):
                await transport.fetch(str(self.server.make_url("/missing")))

    async def test_connection_error_is_failure(self) -> None:
        url = str(self.server.make_url("/image.png"))
        await self.server.close()

        async with AiohttpTransport(TransportSettings(timeout_seconds=2)) as transport:
            with self.assertRaises(TransportFailure):
                await transport.fetch(url)

    async def test_size_limit(self) -> None:
        async with AiohttpTransport(TransportSettings(max_download_bytes=1024)) as transport:
            with self.assertRaises(TransportFailure):
                await transport.fetch(str(self.server.make_url("/large")))
            data = await transport.fetch(str(self.server.make_url("/image.png")))

        self.assertEqual(data, b"\x89PNG-bytes")

    async def test_sends_user_agent(self) -> None:
        async with AiohttpTransport(TransportSettings(user_agent="media-cache-tests")) as transport:
            data = await transport.fetch(str(self.server.make_url("/agent")))

        self.assertEqual(data, b"media-cache-tests")

    async def test_fetch_without_context_opens_session(self) -> None:
        transport = AiohttpTransport(TransportSettings())
        try:
            data = await transport.fetch(str(self.server.make_url("/image.png")))
        finally:
            await transport.stop()

        self.assertEqual(data, b"\x89PNG-bytes")


if __name__ == "__main__":
    unittest.main()
