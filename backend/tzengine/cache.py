"""
cache.py: Process-lifetime store of decoded rings.

Entries are keyed by (timezone_id, ring_index) and never expire or get
evicted; the dataset is static and holds a few thousand rings at most.
A single lock guards the underlying dict so the cache can be shared by
coroutines and worker threads alike.
"""

from __future__ import annotations

import threading
from typing import Optional

RingKey = tuple[str, int]
PolygonRing = tuple[tuple[float, float], ...]


class PolygonCache:
    def __init__(self):
        self._store: dict[RingKey, PolygonRing] = {}
        self._lock = threading.Lock()

    def get(self, key: RingKey) -> Optional[PolygonRing]:
        with self._lock:
            return self._store.get(key)

    def put(self, key: RingKey, ring: PolygonRing) -> PolygonRing:
        """
        Insert a ring unless one is already cached, and return the cached one.

        Racing loaders decode identical bytes, so keeping the first value
        makes every reader observe the same object.
        """
        with self._lock:
            return self._store.setdefault(key, ring)

    def __contains__(self, key: RingKey) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
