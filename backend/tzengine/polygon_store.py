"""
polygon_store.py: Lazy loading of timezone rings from per-ring binary files.

Layout on disk:

    <rings_dir>/<uri-encoded timezone id>/<ring index>.bin

Each file is a flat run of little-endian float32 values read two at a time as
(longitude, latitude). There is no header; the vertex count is the file size
divided by 8, and the ring closes implicitly from the last vertex to the first.

A ring that cannot be read or decoded is reported as UNAVAILABLE instead of
raising, so one damaged file never prevents other candidates from matching.
"""

from __future__ import annotations

import asyncio
import logging
import math
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence
from urllib.parse import quote

from tzengine.cache import PolygonCache, PolygonRing, RingKey
from tzengine.errors import RingDecodeError

logger = logging.getLogger(__name__)

_VERTEX_BYTES = 8  # two float32


# ── Binary codec ──────────────────────────────────────────────────────────────

def encode_ring(points: Iterable[Sequence[float]]) -> bytes:
    """Serialize vertices into the float32-pair layout."""
    flat = [coord for point in points for coord in (point[0], point[1])]
    return struct.pack(f"<{len(flat)}f", *flat)


def decode_ring(data: bytes) -> PolygonRing:
    """
    Decode a ring file's bytes into (lon, lat) tuples.

    Raises:
        RingDecodeError: If the payload is empty, not a whole number of
            vertex pairs, or holds NaN or infinite coordinates.
    """
    if not data:
        raise RingDecodeError("ring file is empty")
    if len(data) % _VERTEX_BYTES:
        raise RingDecodeError(
            f"ring file size {len(data)} is not a multiple of {_VERTEX_BYTES} bytes"
        )
    values = struct.unpack(f"<{len(data) // 4}f", data)
    if not all(map(math.isfinite, values)):
        raise RingDecodeError("ring file holds non-finite coordinates")
    return tuple(zip(values[0::2], values[1::2]))


def ring_path(
    rings_dir: Path,
    timezone_id: str,
    ring_index: int,
    storage_key: Optional[str] = None,
) -> Path:
    """
    Path convention for a ring file.

    storage_key is the directory name exactly as the BVH artifact spells the
    id. Without one the id is URI-encoded into a single path segment.
    """
    segment = storage_key if storage_key is not None else quote(timezone_id, safe="")
    return Path(rings_dir) / segment / f"{ring_index}.bin"


# ── Load result ───────────────────────────────────────────────────────────────

class RingState(Enum):
    NOT_ATTEMPTED = "not_attempted"
    UNAVAILABLE = "unavailable"
    LOADED = "loaded"


@dataclass(frozen=True)
class RingLoad:
    """
    Outcome of PolygonStore.load.

    Attributes:
        state: LOADED or UNAVAILABLE (NOT_ATTEMPTED only comes from state_of).
        ring:  Decoded vertices when LOADED.
        error: Human-readable reason when UNAVAILABLE.
    """
    state: RingState
    ring: Optional[PolygonRing] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is RingState.LOADED


# ── Store ─────────────────────────────────────────────────────────────────────

class PolygonStore:
    """
    Loads rings on demand and memoizes them in a shared PolygonCache.

    Concurrent first requests for the same ring may each read the file; the
    cache keeps whichever decode lands first and all callers get that value.
    """

    def __init__(self, rings_dir: Path, cache: PolygonCache):
        self.rings_dir = Path(rings_dir)
        self.cache = cache
        self.io_count = 0
        self._failures: dict[RingKey, str] = {}

    def state_of(self, timezone_id: str, ring_index: int) -> RingState:
        key = (timezone_id, ring_index)
        if key in self.cache:
            return RingState.LOADED
        if key in self._failures:
            return RingState.UNAVAILABLE
        return RingState.NOT_ATTEMPTED

    async def load(
        self,
        timezone_id: str,
        ring_index: int,
        storage_key: Optional[str] = None,
    ) -> RingLoad:
        """
        Return the ring for (timezone_id, ring_index), reading it if needed.

        File reads run in a worker thread so the event loop stays free while
        other candidates are classified.

        Args:
            timezone_id: Decoded IANA identifier.
            ring_index:  Ring number within that timezone.
            storage_key: Encoded directory name from the BVH, if known.

        Returns:
            RingLoad in state LOADED with the ring, or UNAVAILABLE with the
            reason. Never raises for missing or malformed files.
        """
        key = (timezone_id, ring_index)
        cached = self.cache.get(key)
        if cached is not None:
            return RingLoad(RingState.LOADED, ring=cached)

        path = ring_path(self.rings_dir, timezone_id, ring_index, storage_key)
        logger.debug("Loading ring %d of %s from %s", ring_index, timezone_id, path)
        try:
            self.io_count += 1
            data = await asyncio.to_thread(path.read_bytes)
            ring = decode_ring(data)
        except (OSError, RingDecodeError) as exc:
            reason = f"{type(exc).__name__}: {exc}"
            logger.warning("Ring %d of %s unavailable: %s", ring_index, timezone_id, reason)
            self._failures[key] = reason
            return RingLoad(RingState.UNAVAILABLE, error=reason)

        self._failures.pop(key, None)
        return RingLoad(RingState.LOADED, ring=self.cache.put(key, ring))
