"""
Static-map request builder.

Turns an origin plus the filtered shelters into a `MapRequest`: base-map parameters
and an ordered marker list (origin first, then shelters in catalog order). This is a
pure transform with no I/O, so the same inputs always give an equal request.
"""

from __future__ import annotations

from typing import Sequence

from sheltermap.catalog.loader import ShelterRecord
from sheltermap.core.geo import Coordinate
from sheltermap.domain.models import (
    MAP_UNAVAILABLE,
    MapRequest,
    MapRequestOptions,
    MapUnavailable,
    MarkerRole,
    MarkerSpec,
)


def build_map_request(
    origin: Coordinate,
    shelters: Sequence[ShelterRecord],
    options: MapRequestOptions | None = None,
    *,
    api_key: str | None,
) -> MapRequest | MapUnavailable:
    """Build the overlay description, or `MAP_UNAVAILABLE` when no API key is set."""
    if not api_key or not api_key.strip():
        return MAP_UNAVAILABLE

    opts = options or MapRequestOptions()
    origin_marker = MarkerSpec(
        coordinate=origin,
        role=MarkerRole.ORIGIN,
        color=opts.origin_marker.color,
        label=opts.origin_marker.label,
    )
    shelter_markers = [
        MarkerSpec(
            coordinate=s.coordinate,
            role=MarkerRole.SHELTER,
            color=opts.shelter_marker.color,
            label=opts.shelter_marker.label,
        )
        for s in shelters
    ]
    return MapRequest(
        origin=origin,
        zoom=opts.zoom,
        size=(opts.width, opts.height),
        markers=(origin_marker, *shelter_markers),
        format=opts.format,
    )


def format_latlng(c: Coordinate) -> str:
    return f"{c.lat},{c.lng}"


def marker_param(marker: MarkerSpec) -> str:
    """Render one `markers=` value: `color:C|label:L|lat,lng`."""
    return f"color:{marker.color}|label:{marker.label}|{format_latlng(marker.coordinate)}"
