"""
containment.py: Tri-state point-in-ring classification.

Uses even-odd crossing parity: walk every edge of the implicitly closed ring
and count crossings of the horizontal ray from the test point. Each edge is
half-open in latitude so a vertex on the ray is counted once, and each
crossing is decided by the exact orientation predicate from geometry.py, so
vertices shared between neighbouring timezones never produce an inconsistent
answer. Self-overlapping rings therefore enclose only the areas covered an
odd number of times.

A point lying on any edge or vertex is reported as BOUNDARY before any
crossing is counted.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from tzengine.geometry import Ring, on_segment, orientation


class Containment(Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    BOUNDARY = "boundary"

    @property
    def is_match(self) -> bool:
        """Inside-or-boundary counts as containment for timezone resolution."""
        return self is not Containment.OUTSIDE


def _crosses_odd(ring: Ring, x: float, y: float) -> bool | None:
    """
    Whether a ray from (x, y) crosses the ring an odd number of times.

    Args:
        ring: Vertex sequence; the closing edge (last -> first) is implied.
        x:    Longitude of the test point.
        y:    Latitude of the test point.

    Returns:
        The crossing parity, or None if the point lies on the ring.
    """
    point = (x, y)
    inside = False
    prev = ring[-1]

    for curr in ring:
        if on_segment(prev, curr, point):
            return None

        if prev[1] <= y:
            # upward edge with the point on its left
            if curr[1] > y and orientation(prev, curr, point) > 0:
                inside = not inside
        elif curr[1] <= y and orientation(prev, curr, point) < 0:
            inside = not inside

        prev = curr

    return inside


def classify(ring: Ring, point: Sequence[float]) -> Containment:
    """
    Classify a point against a single ring.

    Args:
        ring:  Ordered (lon, lat) vertices; need not repeat the first vertex.
        point: (lon, lat) of the query.

    Returns:
        INSIDE if a ray from the point crosses the ring an odd number of
        times (even-odd rule), BOUNDARY if the point is on an edge or
        vertex, OUTSIDE otherwise.
        Rings with fewer than three vertices enclose nothing but still
        report BOUNDARY for points lying on them.
    """
    if not ring:
        return Containment.OUTSIDE

    x, y = point[0], point[1]
    inside = _crosses_odd(ring, x, y)

    if inside is None:
        return Containment.BOUNDARY
    if len(ring) < 3 or not inside:
        return Containment.OUTSIDE
    return Containment.INSIDE
