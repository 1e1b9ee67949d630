"""
Locate → filter → build → render → save.

The presentation layer owns a `MapState` and passes it through these coroutines; each
one returns a new state instead of mutating shared globals. Runs are strictly
sequential and share nothing but the read-only `ShelterCatalog`. Any
`SheltermapError` ends the run and is reported through `error_code`/`error_message`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path

from sheltermap.catalog.shelters import ShelterCatalog
from sheltermap.config.settings import Settings
from sheltermap.core.errors import ConfigError, SheltermapError
from sheltermap.core.geo import Coordinate
from sheltermap.domain.models import MAP_UNAVAILABLE, MapRequestOptions, RadiusQuery
from sheltermap.imaging.compositor import ImageCompositor
from sheltermap.imaging.download import save_download
from sheltermap.location.providers import LocationProvider
from sheltermap.maps.request_builder import build_map_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapState:
    """What the user currently sees: location, busy flag, last error, last download."""

    location: Coordinate | None = None
    is_loading: bool = False
    error_code: str | None = None
    error_message: str | None = None
    error_detail: str | None = None
    download_path: Path | None = None
    shelter_count: int | None = None

    @property
    def ok(self) -> bool:
        return self.error_code is None


def _failed(state: MapState, err: SheltermapError) -> MapState:
    logger.warning("Pipeline step failed (%s): %s", err.code, err.message)
    return replace(
        state,
        is_loading=False,
        error_code=err.code,
        error_message=err.user_message,
        error_detail=err.message,
    )


async def acquire_location(state: MapState, provider: LocationProvider) -> MapState:
    """Ask `provider` for the current coordinate and store it in the state."""
    if state.is_loading:
        return state
    try:
        location = await provider.acquire_current_location()
    except SheltermapError as e:
        return _failed(state, e)
    return replace(
        state,
        location=location,
        is_loading=False,
        error_code=None,
        error_message=None,
        error_detail=None,
    )


async def download_map(
    state: MapState,
    *,
    catalog: ShelterCatalog,
    settings: Settings,
    compositor: ImageCompositor,
    output_dir: str | Path | None = None,
    radius_km: float | None = None,
) -> MapState:
    """Render the shelter map around `state.location` and save it as `map.jpg`."""
    if state.is_loading:
        return state
    if state.location is None:
        raise ValueError("download_map requires a state with a location; call acquire_location first")

    query = RadiusQuery(
        origin=state.location,
        radius_km=radius_km if radius_km is not None else settings.search.radius_km,
    )
    shelters = catalog.within_radius(query)
    logger.info("Found %d shelters within %.3f km", len(shelters), query.radius_km)

    request = build_map_request(
        query.origin,
        shelters,
        MapRequestOptions.from_settings(settings.static_map),
        api_key=settings.static_map.api_key,
    )
    if request is MAP_UNAVAILABLE:
        return _failed(state, ConfigError())

    try:
        blob = await compositor.render(request)
        path = save_download(blob, output_dir if output_dir is not None else settings.output.dir)
    except SheltermapError as e:
        return _failed(state, e)

    return replace(
        state,
        is_loading=False,
        error_code=None,
        error_message=None,
        error_detail=None,
        download_path=path,
        shelter_count=len(shelters),
    )


async def run_pipeline(
    state: MapState,
    *,
    provider: LocationProvider,
    catalog: ShelterCatalog,
    settings: Settings,
    compositor: ImageCompositor,
    output_dir: str | Path | None = None,
    radius_km: float | None = None,
) -> MapState:
    """Acquire a location, then download the map; stops at the first failure."""
    state = await acquire_location(state, provider)
    if not state.ok or state.location is None:
        return state
    return await download_map(
        state,
        catalog=catalog,
        settings=settings,
        compositor=compositor,
        output_dir=output_dir,
        radius_km=radius_km,
    )
