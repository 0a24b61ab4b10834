"""Picture pool for the picture-of-the-moment command."""

from __future__ import annotations

import os
import threading
from collections import deque
from typing import Any, Iterable, Mapping

DATA_DIR = "data/SetuTime/"
DB_PATH = DATA_DIR + "SetuTime.db"
CACHE_DIR = DATA_DIR + "cache/"

DEFAULT_CATEGORIES: tuple[str, ...] = ("涩图", "二次元", "风景", "车万")
DEFAULT_MAXIMUM = 10
# At most this many pictures are fetched for one request.
REFILL_BATCH = 2

HELP = (
    "涩图\n"
    "- 来份[涩图/二次元/风景/车万]\n"
    "- 添加[涩图/二次元/风景/车万][P站图片ID]\n"
    "- 删除[涩图/二次元/风景/车万][P站图片ID]\n"
    "- >setu status"
)

_EXTENSIONS = (".jpg", ".png", ".gif")


class ImagePool:
    """Per-category first-in first-out buffers of pictures ready to send."""

    def __init__(
        self,
        categories: Iterable[str] = DEFAULT_CATEGORIES,
        maximum: int = DEFAULT_MAXIMUM,
    ) -> None:
        self.categories = list(categories)
        self.maximum = maximum
        self._lock = threading.Lock()
        self._pool: dict[str, deque[Any]] = {}

    def size(self, category: str) -> int:
        """Return how many pictures of ``category`` are buffered."""
        return len(self._pool.get(category, ()))

    def push(self, category: str, item: Any) -> None:
        """Add a picture to the end of ``category``'s buffer."""
        with self._lock:
            self._pool.setdefault(category, deque()).append(item)

    def pop(self, category: str) -> Any:
        """Take the oldest picture of ``category``, or None when it is empty."""
        with self._lock:
            buffer = self._pool.get(category)
            if not buffer:
                return None
            return buffer.popleft()

    def __contains__(self, category: object) -> bool:
        return category in self.categories


def master_link(url: str) -> str:
    """Turn an original-size picture link into its 1200-pixel JPEG version."""
    return (
        url.replace("img-original", "img-master")
        .replace("_p0", "_p0_master1200")
        .replace(".png", ".jpg")
    )


def cached_file(directory: str | os.PathLike[str], pid: int) -> str:
    """Return a ``file:///`` URI for the cached picture ``pid``, or "".

    JPEG is preferred over PNG, and PNG over GIF.
    """
    base = os.path.join(os.fspath(directory), str(pid))
    for ext in _EXTENSIONS:
        path = base + ext
        if os.path.exists(path):
            return "file:///" + path
    return ""


def status_text(counts: Mapping[str, int | None]) -> str:
    """Render the number of stored pictures per category; None counts as 0."""
    lines = ["[SetuTime]"]
    lines.extend(f"{name}: {count or 0}" for name, count in counts.items())
    return "\n".join(lines)