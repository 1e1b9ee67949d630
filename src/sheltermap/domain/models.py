"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- the radius query built per download (`RadiusQuery`)
- the static-map overlay description (`MarkerSpec`, `MapRequest`)
- the downloadable output (`FileBlob`)

All of them are immutable value objects: two instances built from the same fields
compare equal, so they are safe to rebuild on every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from sheltermap.config.settings import MapFormat, MarkerStyle, StaticMapSettings
from sheltermap.core.geo import Coordinate


class RadiusQuery(BaseModel):
    """Shelters within `radius_km` of `origin`."""

    model_config = {"frozen": True}

    origin: Coordinate
    radius_km: float = Field(..., gt=0)


class MarkerRole(str, Enum):
    ORIGIN = "origin"
    SHELTER = "shelter"


class MarkerSpec(BaseModel):
    """One labeled, colored point overlay on the rendered map."""

    model_config = {"frozen": True}

    coordinate: Coordinate
    role: MarkerRole
    color: str
    label: str


class MapRequestOptions(BaseModel):
    """Base-map parameters and marker styles; defaults match `defaults.yaml`."""

    model_config = {"frozen": True}

    zoom: int = Field(15, ge=0, le=21)
    width: int = Field(500, ge=1, le=640)
    height: int = Field(500, ge=1, le=640)
    format: MapFormat = "jpg"
    origin_marker: MarkerStyle = MarkerStyle(color="black", label="C")
    shelter_marker: MarkerStyle = MarkerStyle(color="red", label="S")

    @classmethod
    def from_settings(cls, settings: StaticMapSettings) -> "MapRequestOptions":
        return cls(
            zoom=settings.zoom,
            width=settings.width,
            height=settings.height,
            format=settings.format,
            origin_marker=settings.origin_marker,
            shelter_marker=settings.shelter_marker,
        )


class MapRequest(BaseModel):
    """Everything the rendering service needs to produce one raster."""

    model_config = {"frozen": True}

    origin: Coordinate
    zoom: int
    size: tuple[int, int]
    markers: tuple[MarkerSpec, ...]
    format: MapFormat

    @property
    def size_param(self) -> str:
        return f"{self.size[0]}x{self.size[1]}"


class MapUnavailable(Enum):
    """Sentinel returned instead of a `MapRequest` when no API key is configured."""

    MAP_UNAVAILABLE = "map_unavailable"


MAP_UNAVAILABLE = MapUnavailable.MAP_UNAVAILABLE


@dataclass(frozen=True)
class FileBlob:
    """An encoded image ready to be saved as a download."""

    data: bytes
    width: int
    height: int
    filename: str = "map.jpg"
    media_type: str = "image/jpeg"
