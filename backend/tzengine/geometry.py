"""
geometry.py: Planar primitives shared by the BVH and the containment test.

Coordinates are (longitude, latitude) in degrees and are treated as plain
Cartesian x/y; no projection or spherical correction is applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import NamedTuple, Sequence

# Shewchuk's error bound for the 2D orientation determinant evaluated in
# IEEE-754 double precision: (3 + 16 * eps) * eps with eps = 2 ** -53.
_CCW_ERRBOUND = (3.0 + 16.0 * 2.0 ** -53) * 2.0 ** -53


class Point(NamedTuple):
    """A (longitude, latitude) pair in degrees."""
    lon: float
    lat: float


# An ordered, implicitly closed vertex sequence.
Ring = Sequence[Sequence[float]]


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box, inclusive on all four sides.

    Attributes:
        min_x: Westernmost longitude.
        min_y: Southernmost latitude.
        max_x: Easternmost longitude.
        max_y: Northernmost latitude.
    """
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(
                f"Inverted bounding box: ({self.min_x}, {self.min_y}) > "
                f"({self.max_x}, {self.max_y})"
            )

    @classmethod
    def from_corners(cls, corners: Sequence[Sequence[float]]) -> "BoundingBox":
        """Build from the serialized [[min_x, min_y], [max_x, max_y]] form."""
        (min_x, min_y), (max_x, max_y) = corners
        return cls(float(min_x), float(min_y), float(max_x), float(max_y))

    @classmethod
    def around(cls, ring: Ring) -> "BoundingBox":
        """Smallest box enclosing every vertex of a ring."""
        if not ring:
            raise ValueError("Cannot bound an empty ring")
        xs = [p[0] for p in ring]
        ys = [p[1] for p in ring]
        return cls(min(xs), min(ys), max(xs), max(ys))

    def contains(self, point: Sequence[float]) -> bool:
        x, y = point[0], point[1]
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def to_corners(self) -> list[list[float]]:
        return [[self.min_x, self.min_y], [self.max_x, self.max_y]]


def orientation(a: Sequence[float], b: Sequence[float], p: Sequence[float]) -> int:
    """
    Exact sign of the cross product (b - a) x (p - a).

    Returns:
        1 if p lies left of the directed line a -> b, -1 if right,
        0 if the three points are collinear.

    The double-precision result is trusted whenever it clears the rounding
    error bound; otherwise the determinant is recomputed with rationals,
    which is exact for any finite float input.
    """
    ax, ay = a[0], a[1]
    detleft = (b[0] - ax) * (p[1] - ay)
    detright = (b[1] - ay) * (p[0] - ax)
    det = detleft - detright

    if (detleft > 0.0) != (detright > 0.0) and detleft != 0.0 and detright != 0.0:
        return 1 if det > 0.0 else -1

    errbound = _CCW_ERRBOUND * (abs(detleft) + abs(detright))
    if det > errbound:
        return 1
    if -det > errbound:
        return -1

    fax, fay = Fraction(ax), Fraction(ay)
    exact = (Fraction(b[0]) - fax) * (Fraction(p[1]) - fay) - (Fraction(b[1]) - fay) * (Fraction(p[0]) - fax)
    return (exact > 0) - (exact < 0)


def on_segment(a: Sequence[float], b: Sequence[float], p: Sequence[float]) -> bool:
    """True if p lies on the closed segment a-b (endpoints included)."""
    if not (min(a[0], b[0]) <= p[0] <= max(a[0], b[0])):
        return False
    if not (min(a[1], b[1]) <= p[1] <= max(a[1], b[1])):
        return False
    return orientation(a, b, p) == 0
