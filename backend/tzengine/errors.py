"""
errors.py: Exception types raised by the timezone engine.

Only BvhLoadError ever reaches callers of the query path's owner: it is raised
at startup when the BVH artifact cannot be used. RingDecodeError is raised by
the binary decoder and absorbed by the PolygonStore.
"""

from __future__ import annotations


class TzEngineError(Exception):
    """Base class for all engine errors."""


class BvhLoadError(TzEngineError):
    """The BVH artifact is missing, unreadable or structurally malformed."""


class RingDecodeError(TzEngineError):
    """A ring file does not hold a valid sequence of float32 vertex pairs."""


class ResolutionError(TzEngineError):
    """A lookup failed internally rather than finding no timezone."""
