"""
astro.py: Local wall-clock time and sun/moon events for a resolved point.

The ephemeris itself comes from the `astral` library; this module only
resolves the timezone, picks the local calendar days (yesterday, today,
tomorrow) and shapes the results.

When no timezone can be resolved, or the resolved id is unknown to the tz
database, everything is expressed in UTC and the result says so through
`timezone_fallback`. The host's own timezone is never used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from astral import Observer
from astral import moon as astral_moon
from astral import sun as astral_sun

from tzengine.geometry import Point
from tzengine.services import Resolution, ResolutionStatus, TimezoneResolver

logger = logging.getLogger(__name__)

SUN_EVENTS: dict[str, Callable[..., datetime]] = {
    "dawn": astral_sun.dawn,
    "sunrise": astral_sun.sunrise,
    "noon": astral_sun.noon,
    "sunset": astral_sun.sunset,
    "dusk": astral_sun.dusk,
}

MOON_EVENTS: dict[str, Callable[..., Optional[datetime]]] = {
    "moonrise": astral_moon.moonrise,
    "moonset": astral_moon.moonset,
}

DAY_KEYS = ("previous_day", "current_day", "next_day")


@dataclass(frozen=True)
class LocalTimeInfo:
    """
    Everything derived for one point at one instant.

    Attributes:
        lon_lat:           The queried point.
        timezone:          Resolved IANA id, or None when it fell back to UTC.
        timezone_fallback: True when UTC was used instead of a resolved zone.
        status:            Status of the underlying timezone resolution.
        unix_timestamp:    The instant as seconds since the epoch.
        local_time:        The instant in the point's zone.
        sun:               Per-day solar events plus current elevation/azimuth.
        moon:              Per-day moonrise/moonset and phase.
    """
    lon_lat: Point
    timezone: Optional[str]
    timezone_fallback: bool
    status: ResolutionStatus
    unix_timestamp: float
    local_time: datetime
    sun: dict[str, Any] = field(default_factory=dict)
    moon: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; datetimes become ISO-8601 strings."""
        return {
            "lon_lat": [self.lon_lat.lon, self.lon_lat.lat],
            "timezone": self.timezone,
            "timezone_fallback": self.timezone_fallback,
            "status": self.status.value,
            "unix_timestamp": self.unix_timestamp,
            "local_time": self.local_time.isoformat(),
            "sun": _isoformat_values(self.sun),
            "moon": _isoformat_values(self.moon),
        }


# ── Public API ────────────────────────────────────────────────────────────────

async def local_time_info(
    resolver: TimezoneResolver,
    point: Sequence[float],
    instant: Optional[datetime] = None,
) -> LocalTimeInfo:
    """
    Resolve the point's timezone and compute local time and sun/moon events.

    Args:
        resolver: Resolver used to find the timezone.
        point:    (lon, lat) in degrees.
        instant:  Moment of interest; defaults to now. Naive datetimes are
                  taken as UTC.

    Returns:
        LocalTimeInfo for the instant and the surrounding three local days.
    """
    point = Point(float(point[0]), float(point[1]))
    if instant is None:
        instant = datetime.now(timezone.utc)
    elif instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)

    resolution = await resolver.resolve(point)
    tz, tz_name = _zone_for(resolution)

    local = instant.astimezone(tz)
    observer = Observer(latitude=point.lat, longitude=point.lon)
    days = (local.date() - timedelta(days=1), local.date(), local.date() + timedelta(days=1))

    sun: dict[str, Any] = {key: _sun_day(observer, day, tz) for key, day in zip(DAY_KEYS, days)}
    sun["elevation"] = astral_sun.elevation(observer, instant)
    sun["azimuth"] = astral_sun.azimuth(observer, instant)

    instants = (instant - timedelta(days=1), instant, instant + timedelta(days=1))
    moon = {
        key: _moon_day(observer, day, at, tz)
        for key, day, at in zip(DAY_KEYS, days, instants)
    }

    return LocalTimeInfo(
        lon_lat=point,
        timezone=tz_name,
        timezone_fallback=tz_name is None,
        status=resolution.status,
        unix_timestamp=instant.timestamp(),
        local_time=local,
        sun=sun,
        moon=moon,
    )


# ── Helpers ───────────────────────────────────────────────────────────────────

def _zone_for(resolution: Resolution) -> tuple[tzinfo, Optional[str]]:
    """Zone to format times in, and the id to report (None on UTC fallback)."""
    if not resolution.resolved:
        return timezone.utc, None
    try:
        return ZoneInfo(resolution.timezone_id), resolution.timezone_id
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Timezone %r is not in the tz database; using UTC", resolution.timezone_id)
        return timezone.utc, None


def _sun_day(observer: Observer, day: date, tz: tzinfo) -> dict[str, Optional[datetime]]:
    events: dict[str, Optional[datetime]] = {}
    for name, fn in SUN_EVENTS.items():
        try:
            events[name] = fn(observer, day, tzinfo=tz)
        except ValueError:
            # polar day or night: the sun never crosses this elevation
            events[name] = None
    return events


def _moon_day(observer: Observer, day: date, at: datetime, tz: tzinfo) -> dict[str, Any]:
    """Rise, set and phase for the local day; position at the same clock time that day."""
    events: dict[str, Any] = {}
    for name, fn in MOON_EVENTS.items():
        try:
            events[name] = fn(observer, day, tzinfo=tz)
        except ValueError:
            events[name] = None
    events["phase"] = astral_moon.phase(day)
    events["elevation"] = astral_moon.elevation(observer, at)
    events["azimuth"] = astral_moon.azimuth(observer, at)
    return events


def _isoformat_values(tree: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in tree.items():
        if isinstance(value, dict):
            out[key] = _isoformat_values(value)
        elif isinstance(value, datetime):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out
