"""
loader.py: Startup wiring for the timezone engine.

Responsible for:
    - Reading the BVH artifact once (fatal if it cannot be used).
    - Creating the process-wide PolygonCache and the PolygonStore over it.
    - Exposing a unified Engine dataclass handed to whatever serves queries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from tzengine.bvh import BvhIndex, load_bvh
from tzengine.cache import PolygonCache
from tzengine.config import Settings
from tzengine.polygon_store import PolygonStore
from tzengine.services import TimezoneResolver

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """
    Holds everything a timezone lookup needs.

    Attributes:
        settings: Where the artifacts were loaded from.
        index:    The immutable BVH.
        cache:    Ring cache shared by every query in this process.
        store:    Ring loader over the cache.
        resolver: Entry point for lookups.
    """
    settings: Settings
    index: BvhIndex
    cache: PolygonCache
    store: PolygonStore
    resolver: TimezoneResolver


def load_engine(settings: Optional[Settings] = None) -> Engine:
    """
    Build a ready Engine. Call once at process start.

    Args:
        settings: Artifact locations; defaults to Settings.from_env().

    Returns:
        Engine with the BVH loaded and an empty ring cache.

    Raises:
        BvhLoadError: If the BVH artifact is missing or malformed.
    """
    settings = settings or Settings.from_env()
    index = load_bvh(settings.bvh_path)

    if not settings.rings_dir.is_dir():
        logger.warning("Ring directory %s does not exist; every ring will be unavailable",
                       settings.rings_dir)

    cache = PolygonCache()
    store = PolygonStore(settings.rings_dir, cache)
    logger.info("Timezone engine ready: %d rings indexed, data dir %s",
                sum(1 for _ in index.refs()), settings.data_dir)
    return Engine(
        settings=settings,
        index=index,
        cache=cache,
        store=store,
        resolver=TimezoneResolver(index, store),
    )
