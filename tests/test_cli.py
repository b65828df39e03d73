import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from aiohttp import web
from aiohttp.test_utils import TestServer

from media_cache.__main__ import _main_async
from media_cache.transport import AiohttpTransport


async def _image(request: web.Request) -> web.Response:
    return web.Response(body=b"gif-bytes", content_type="image/gif")


class CliTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.base_dir = self.root / "media"
        self.config_path = self.root / "config.yaml"
        self.config_path.write_text(f"storage:\n  base_dir: {self.base_dir}\n", encoding="utf-8")

        app = web.Application()
        app.router.add_get("/anim.gif", _image)
        self.server = TestServer(app)
        await self.server.start_server()
        self.url = str(self.server.make_url("/anim.gif"))

        patcher = mock.patch("media_cache.__main__.init_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    async def asyncTearDown(self) -> None:
        await self.server.close()
        self._tmp.cleanup()

    async def _run(self, *argv: str) -> tuple[int, str]:
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            code = await _main_async(["--config", str(self.config_path), *argv])
        return code, stdout.getvalue()

    async def test_fetch_prints_cached_path(self) -> None:
        code, out = await self._run("fetch", self.url, "--name", "anim.gif")

        self.assertEqual(code, 0)
        self.assertEqual(Path(out.strip()), self.base_dir / "image" / "anim.gif")
        self.assertEqual((self.base_dir / "image" / "anim.gif").read_bytes(), b"gif-bytes")

    async def test_fetch_writes_output_file(self) -> None:
        output = self.root / "out" / "copy.gif"

        code, _ = await self._run("fetch", self.url, "--name", "anim.gif", "--output", str(output))

        self.assertEqual(code, 0)
        self.assertEqual(output.read_bytes(), b"gif-bytes")

    async def test_fetch_failure_exits_with_error(self) -> None:
        code, out = await self._run("fetch", str(self.server.make_url("/missing")))

        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    async def test_list_prints_index(self) -> None:
        await self._run("fetch", self.url, "--name", "anim.gif")

        code, out = await self._run("list")

        self.assertEqual(code, 0)
        records = json.loads(out)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["url"], self.url)
        self.assertEqual(records[0]["type"], "image")


    async def test_list_does_not_open_http_session(self) -> None:
        with mock.patch.object(AiohttpTransport, "start") as start:
            code, out = await self._run("list")

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), [])
        start.assert_not_called()

    async def test_fetch_refuses_name_with_directories(self) -> None:
        code, out = await self._run("fetch", self.url, "--name", "../../escape.gif")

        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertFalse((self.root / "escape.gif").exists())


if __name__ == "__main__":
    unittest.main()
