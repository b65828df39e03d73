from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from media_cache.cache import MediaStorage
from media_cache.config import YamlConfigLoader
from media_cache.config.models import AppConfig, ConfigLoadRequest
from media_cache.logging import init_logging
from media_cache.paths import ConfiguredBaseDirectory
from media_cache.transport import AiohttpTransport

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="media-cache", description="Local cache for remote media files")
    parser.add_argument(
        "--config",
        default="data/config/config.yaml",
        help="Path to config.yaml (default: data/config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: fetch
    fetch_parser = subparsers.add_parser("fetch", help="Return a URL's content, downloading it if needed")
    fetch_parser.add_argument("url", help="URL of the media to fetch")
    fetch_parser.add_argument(
        "--name",
        default=None,
        help="Filename to store a new download under (default: timestamped .dat file)",
    )
    fetch_parser.add_argument(
        "--update",
        action="store_true",
        help="Download again even if the URL is already cached.",
    )
    fetch_parser.add_argument(
        "--output",
        default=None,
        help="Copy the content to this path instead of printing the cached file location.",
    )

    # Command: list
    subparsers.add_parser("list", help="Print all cached entries as JSON")

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
    )
    return await loader.load(request)


def _write_output(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def _build_storage(config: AppConfig, transport: AiohttpTransport) -> MediaStorage:
    return MediaStorage(
        transport=transport,
        base_directory=ConfiguredBaseDirectory(config.storage),
        index_filename=config.storage.index_filename,
    )


async def _fetch(args: argparse.Namespace) -> int:
    config = await _load_config(args)
    init_logging(config.logging)

    async with AiohttpTransport(config.transport) as transport:
        storage = _build_storage(config, transport)
        await storage.init()

        if args.output is None:
            path = await storage.get_file(args.url, filename=args.name, force_update=args.update)
            if path is None:
                logger.error("No content available. url=%s", args.url)
                return 1
            print(path)
            return 0

        data = await storage.get_bytes(args.url, filename=args.name, force_update=args.update)
    if data is None:
        logger.error("No content available. url=%s", args.url)
        return 1
    output = Path(args.output)
    await asyncio.to_thread(_write_output, output, data)
    logger.info("Content written. path=%s size=%d", output, len(data))
    return 0


async def _list(args: argparse.Namespace) -> int:
    config = await _load_config(args)
    init_logging(config.logging)

    # The HTTP session opens on the first fetch; listing never fetches.
    storage = _build_storage(config, AiohttpTransport(config.transport))
    await storage.init()
    print(json.dumps(storage.list_loaded(), indent=2))
    return 0


async def _main_async(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "fetch":
        return await _fetch(args)
    if args.command == "list":
        return await _list(args)
    return 2


def main() -> None:
    try:
        sys.exit(asyncio.run(_main_async()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


if __name__ == "__main__":
    main()
