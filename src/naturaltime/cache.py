"""Bounded least-recently-used cache for year contexts and celestial events."""

import threading
from collections import OrderedDict
from collections.abc import Hashable

DEFAULT_MAX_SIZE = 4096


class LruCache:
    """Least-recently-used cache.

    Holds at most ``max_size`` entries, discarding the least recently
    used ones as needed. A ``max_size`` of ``None`` keeps every entry
    forever.

    Readers and writers share one lock. Two callers that miss on the
    same key at the same time both compute the value and the last
    ``put`` wins.
    """

    def __init__(self, max_size: int | None = DEFAULT_MAX_SIZE) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError(f"Cache max_size must be positive or None, got {max_size}")
        self._max_size = max_size
        self._entries: OrderedDict[Hashable, object] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int | None:
        return self._max_size

    def get(self, key: Hashable, default: object = None) -> object:
        with self._lock:
            try:
                value = self._entries[key]
            except KeyError:
                return default
            self._entries.move_to_end(key)
            return value

    def put(self, key: Hashable, value: object) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if self._max_size is not None:
                while len(self._entries) > self._max_size:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
