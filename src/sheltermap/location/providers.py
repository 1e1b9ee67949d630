"""
Current-location providers.

Every provider exposes one coroutine, `acquire_current_location()`, which either
returns a `Coordinate` or raises a `LocationError`:
- `CapabilityUnsupported`: this host has no way to locate the user at all.
- `CapabilityDenied`: a locator exists but acquisition failed.
Callers serialize requests themselves (see `MapState.is_loading`).
"""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol

import httpx

from sheltermap.config.settings import Settings
from sheltermap.core.errors import CapabilityDenied, CapabilityUnsupported
from sheltermap.core.geo import Coordinate
from sheltermap.core.http import aget_json

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    async def acquire_current_location(self) -> Coordinate: ...


def _checked(lat: Any, lng: Any) -> Coordinate:
    """Build a Coordinate from device-reported values or raise `CapabilityDenied`."""
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError) as e:
        raise CapabilityDenied(f"Location reported non-numeric coordinates: {lat!r}, {lng!r}") from e
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        raise CapabilityDenied("Location reported non-finite coordinates.")
    if not (-90 <= lat_f <= 90 and -180 <= lng_f <= 180):
        raise CapabilityDenied(f"Location reported out-of-range coordinates: {lat_f}, {lng_f}")
    return Coordinate(lat=lat_f, lng=lng_f)


class StaticLocationProvider:
    """Coordinates supplied directly by the host (e.g. `--lat/--lng` or a GPS reading)."""

    def __init__(self, lat: float, lng: float):
        self._lat = lat
        self._lng = lng

    async def acquire_current_location(self) -> Coordinate:
        return _checked(self._lat, self._lng)


class IpLocationProvider:
    """Approximate location from an IP geolocation endpoint (ipapi.co-style JSON)."""

    def __init__(self, settings: Settings):
        self._settings = settings

    async def acquire_current_location(self) -> Coordinate:
        url = self._settings.location.ip_lookup_url
        try:
            payload = await aget_json(url, timeout_seconds=self._settings.app.http_timeout_seconds)
        except (httpx.HTTPError, ValueError) as e:
            raise CapabilityDenied(f"IP geolocation lookup failed: {e}") from e

        if not isinstance(payload, dict) or payload.get("error"):
            reason = payload.get("reason") if isinstance(payload, dict) else None
            raise CapabilityDenied(f"IP geolocation lookup was refused: {reason or 'unexpected response'}")

        # ipapi.co uses latitude/longitude, ip-api.com uses lat/lon.
        lat = payload.get("latitude", payload.get("lat"))
        lng = payload.get("longitude", payload.get("lon"))
        coordinate = _checked(lat, lng)
        logger.info("Acquired approximate location lat=%.4f lng=%.4f", coordinate.lat, coordinate.lng)
        return coordinate


class UnsupportedLocationProvider:
    """Used when the host offers no location capability."""

    async def acquire_current_location(self) -> Coordinate:
        raise CapabilityUnsupported()


def build_location_provider(
    settings: Settings,
    *,
    lat: float | None = None,
    lng: float | None = None,
) -> LocationProvider:
    """Pick a provider: explicit coordinates win, then `location.provider`."""
    if lat is not None and lng is not None:
        return StaticLocationProvider(lat, lng)
    if settings.location.provider == "ip":
        return IpLocationProvider(settings)
    return UnsupportedLocationProvider()
