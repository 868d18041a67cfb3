"""Point to IANA timezone resolution over a precomputed BVH of boundary rings."""

from tzengine.astro import LocalTimeInfo, local_time_info
from tzengine.bvh import BvhIndex, BvhNode, PolygonRef, load_bvh
from tzengine.cache import PolygonCache
from tzengine.config import Settings, configure_logging
from tzengine.containment import Containment, classify
from tzengine.errors import BvhLoadError, ResolutionError, RingDecodeError, TzEngineError
from tzengine.geometry import BoundingBox, Point
from tzengine.loader import Engine, load_engine
from tzengine.polygon_store import PolygonStore, RingLoad, RingState, decode_ring, encode_ring
from tzengine.services import Resolution, ResolutionStatus, TimezoneResolver

__all__ = [
    "BoundingBox",
    "BvhIndex",
    "BvhLoadError",
    "BvhNode",
    "Containment",
    "Engine",
    "LocalTimeInfo",
    "Point",
    "PolygonCache",
    "PolygonRef",
    "PolygonStore",
    "Resolution",
    "ResolutionError",
    "ResolutionStatus",
    "RingDecodeError",
    "RingLoad",
    "RingState",
    "Settings",
    "TimezoneResolver",
    "TzEngineError",
    "classify",
    "configure_logging",
    "decode_ring",
    "encode_ring",
    "load_bvh",
    "load_engine",
    "local_time_info",
]
