"""
services.py: Timezone resolution for a single (lon, lat) point.

Responsibilities:
    - Asking the BVH for every ring whose bounding box holds the point.
    - Loading those rings through the PolygonStore (unloadable rings drop out).
    - Classifying the point against each ring (delegated to containment.py).
    - Picking the winner: the first matching ring in BVH descent order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from tzengine.bvh import BvhIndex, PolygonRef
from tzengine.containment import classify
from tzengine.errors import ResolutionError
from tzengine.geometry import Point
from tzengine.polygon_store import PolygonStore, RingLoad

logger = logging.getLogger(__name__)


# ── Result type ───────────────────────────────────────────────────────────────

class ResolutionStatus(Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of TimezoneResolver.resolve.

    Attributes:
        status:      RESOLVED, NOT_FOUND (open ocean / unmapped) or FAILED.
        timezone_id: The winning IANA id; set only when RESOLVED.
        candidates:  Number of rings the BVH proposed.
        error:       Description of the internal failure when FAILED.
    """
    status: ResolutionStatus
    timezone_id: Optional[str] = None
    candidates: int = 0
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


# ── Resolver ──────────────────────────────────────────────────────────────────

class TimezoneResolver:
    """
    Orchestrates candidate gathering, ring loading and classification.

    The resolver holds no state of its own; the PolygonStore's cache is the
    only thing shared between concurrent resolutions.
    """

    def __init__(self, index: BvhIndex, store: PolygonStore):
        self.index = index
        self.store = store

    async def resolve(self, point: Sequence[float]) -> Resolution:
        """
        Find the timezone whose ring contains the point.

        Steps:
            1. Gather candidate refs from the BVH (descent order).
            2. Load all candidate rings concurrently; drop unavailable ones.
            3. Keep refs whose ring classifies the point inside or on the
               boundary.
            4. Return the first kept ref's timezone.

        Args:
            point: (lon, lat) in degrees, already validated by the caller.

        Returns:
            Resolution; NOT_FOUND is an ordinary outcome, not an error.
        """
        point = Point(float(point[0]), float(point[1]))
        try:
            candidates = self.index.candidates(point)
            if not candidates:
                logger.debug("No BVH candidates for (%.6f, %.6f)", point.lon, point.lat)
                return Resolution(ResolutionStatus.NOT_FOUND)

            loads = await asyncio.gather(*(
                self.store.load(ref.timezone_id, ref.ring_index, ref.storage_key)
                for ref in candidates
            ))
            winner = _first_match(point, candidates, loads)
        except Exception as exc:
            logger.exception("Resolution failed for (%.6f, %.6f)", point.lon, point.lat)
            return Resolution(ResolutionStatus.FAILED, error=f"{type(exc).__name__}: {exc}")

        if winner is None:
            logger.debug(
                "Point (%.6f, %.6f) matched none of %d candidates",
                point.lon, point.lat, len(candidates),
            )
            return Resolution(ResolutionStatus.NOT_FOUND, candidates=len(candidates))

        logger.debug("Point (%.6f, %.6f) -> %s", point.lon, point.lat, winner.timezone_id)
        return Resolution(
            ResolutionStatus.RESOLVED,
            timezone_id=winner.timezone_id,
            candidates=len(candidates),
        )

    async def timezone_at(self, lon: float, lat: float) -> Optional[str]:
        """
        Timezone id at (lon, lat), or None when no ring contains the point.

        Raises:
            ResolutionError: If the lookup failed internally, so a failure is
                never mistaken for open ocean.
        """
        resolution = await self.resolve((lon, lat))
        if resolution.status is ResolutionStatus.FAILED:
            raise ResolutionError(f"Lookup failed for ({lon}, {lat}): {resolution.error}")
        return resolution.timezone_id


# ── Helpers ───────────────────────────────────────────────────────────────────

def _first_match(
    point: Point,
    candidates: Sequence[PolygonRef],
    loads: Sequence[RingLoad],
) -> Optional[PolygonRef]:
    """
    Walk candidates in descent order and return the first one whose ring
    contains the point. gather() preserves argument order, so loads[k]
    always belongs to candidates[k].
    """
    for ref, load in zip(candidates, loads):
        if not load.ok:
            continue
        outcome = classify(load.ring, point)
        if outcome.is_match:
            logger.debug("Ring %d of %s: %s", ref.ring_index, ref.timezone_id, outcome.value)
            return ref
    return None
