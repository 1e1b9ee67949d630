"""
Static-map rendering service client (Google Static Maps API).

This module is responsible only for:
- turning a `MapRequest` into the service's GET locator,
- downloading the rendered raster payload.

It does not decode or re-encode images; see `sheltermap.imaging.compositor`.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx

from sheltermap.config.settings import Settings
from sheltermap.core.errors import ConfigError, FetchError
from sheltermap.core.http import aget_bytes
from sheltermap.domain.models import MapRequest
from sheltermap.maps.request_builder import format_latlng, marker_param

logger = logging.getLogger(__name__)


class StaticMapClient:
    """Builds static-map URLs and fetches the rendered image bytes."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _require_api_key(self) -> str:
        api_key = self._settings.static_map.api_key
        if not api_key or not api_key.strip():
            raise ConfigError("Static map API key is not configured. Set GOOGLE_MAPS_API_KEY.")
        return api_key

    def build_params(self, request: MapRequest) -> list[tuple[str, str]]:
        """Query parameters in service order; one `markers` entry per marker."""
        params = [
            ("center", format_latlng(request.origin)),
            ("zoom", str(request.zoom)),
            ("size", request.size_param),
            ("format", request.format),
            ("key", self._require_api_key()),
        ]
        params.extend(("markers", marker_param(m)) for m in request.markers)
        return params

    def build_url(self, request: MapRequest) -> str:
        """Return the full GET locator for `request`.

        Raises:
            ConfigError: If no API key is configured.
        """
        query = urlencode(self.build_params(request), safe=":|,")
        return f"{self._settings.static_map.base_url}?{query}"

    async def fetch_raster(self, request: MapRequest) -> bytes:
        """Download the rendered raster for `request`.

        Raises:
            ConfigError: If no API key is configured.
            FetchError: On transport errors, non-2xx responses or an empty payload.
        """
        url = self.build_url(request)
        logger.info(
            "Fetching static map center=%s zoom=%d markers=%d",
            format_latlng(request.origin),
            request.zoom,
            len(request.markers),
        )
        try:
            payload = await aget_bytes(url, timeout_seconds=self._settings.app.http_timeout_seconds)
        except httpx.HTTPStatusError as e:
            raise FetchError(f"Static map service returned HTTP {e.response.status_code}.") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Static map request failed: {e}") from e
        if not payload:
            raise FetchError("Static map service returned an empty payload.")
        return payload
