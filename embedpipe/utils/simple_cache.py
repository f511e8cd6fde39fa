# =============================================================================
# File: simple_cache.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Optional


class SimpleCache:
    """Bounded LRU map from model name to a loaded encoder.

    ``on_evict(key, value)`` runs outside the lock for every entry dropped to
    make room, so callers can log or release what the entry held.
    """

    def __init__(
        self,
        max_size: int = 5,
        on_evict: Optional[Callable[[str, Any], None]] = None,
    ):
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self.max_size = max_size
        self.on_evict = on_evict
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                self._entries.move_to_end(key)
            return value

    def put(self, key: str, value: Any) -> None:
        evicted = []
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted.append(self._entries.popitem(last=False))
        if self.on_evict is not None:
            for old_key, old_value in evicted:
                self.on_evict(old_key, old_value)

    def size(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
