from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

MediaCategory = Literal["image", "video", "binary"]


@dataclass(frozen=True, slots=True)
class MediaEntry:
    url: str
    filename: str
    category: MediaCategory
    last_update: datetime
