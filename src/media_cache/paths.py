from __future__ import annotations

from pathlib import Path

import appdirs

from media_cache.config.models import StorageSettings

APP_NAME = "media-cache"


class ConfiguredBaseDirectory:
    """
    Resolve the cache root from settings.

    An empty `base_dir` falls back to the per-user data directory of the platform.
    """

    def __init__(self, settings: StorageSettings) -> None:
        self._settings = settings

    def base_directory(self) -> Path:
        configured = self._settings.base_dir.strip()
        if configured:
            return Path(configured).expanduser()
        return Path(appdirs.user_data_dir(APP_NAME))
