from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from media_cache.config.models import FileLoggingSettings, LoggingSettings

LOG_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# aiohttp loggers only matter when debugging downloads.
_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.internal")


def _parse_level(name: str) -> int:
    level = logging.getLevelNamesMapping().get(name.strip().upper())
    if level is None:
        raise ValueError(f"Invalid logging level: {name}")
    return level


def _build_file_handler(settings: FileLoggingSettings, formatter: logging.Formatter) -> Optional[logging.Handler]:
    """Return a daily rotating handler for `settings.path`, or None when file logging is off."""
    file_path = settings.path.strip()
    if not file_path:
        return None

    log_path = Path(file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(log_path),
        when="midnight",
        interval=1,
        backupCount=settings.rotation.backup_count,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setFormatter(formatter)
    return handler


def init_logging(settings: LoggingSettings) -> None:
    """
    Configure the root logger for the media cache.

    Replaces any existing root handlers with a stderr handler and, when
    `settings.file.path` is set, a log file rotated at midnight. Cache modules
    log through `logging.getLogger(__name__)` and inherit this setup.
    """
    level = _parse_level(settings.level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    library_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    try:
        file_handler = _build_file_handler(settings.file, formatter)
    except OSError:
        root_logger.error(
            "Media cache log file could not be opened, logging to stderr only. path=%s",
            settings.file.path,
            exc_info=True,
        )
        return
    if file_handler is not None:
        root_logger.addHandler(file_handler)


__all__ = ["init_logging"]
