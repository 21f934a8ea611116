"""
进程内过期缓存

每个条目以 (value, expires_at) 元组整体写入，读写各自原子；不加锁，
并发写同一个键时后写者生效。
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple


class ExpiringCache:
    """Key/value store whose entries expire after a per-entry lifetime."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
