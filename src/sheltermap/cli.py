"""
Sheltermap CLI entrypoint.

Find evacuation shelters near your current location and download a map of them.
Location comes from `--lat/--lng` when given, otherwise from the configured provider.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from sheltermap.catalog.shelters import ShelterCatalog
from sheltermap.config.settings import Settings, get_settings
from sheltermap.core.errors import ConfigError, SheltermapError
from sheltermap.core.logging import configure_logging
from sheltermap.domain.models import MAP_UNAVAILABLE, MapRequestOptions, RadiusQuery
from sheltermap.imaging.compositor import ImageCompositor
from sheltermap.ingestion.static_map_client import StaticMapClient
from sheltermap.location.providers import build_location_provider
from sheltermap.maps.request_builder import build_map_request
from sheltermap.pipeline import MapState, acquire_location, run_pipeline
from sheltermap.quality.report import build_quality_report


def _report_error(code: str | None, message: str | None, detail: str | None = None) -> int:
    print(f"{message} Please try again. [{code}]", file=sys.stderr)
    if detail and detail != message:
        print(f"  {detail}", file=sys.stderr)
    return 1


def _load_catalog(settings: Settings) -> ShelterCatalog:
    return ShelterCatalog.from_source(
        settings.catalog.source,
        timeout_seconds=settings.app.http_timeout_seconds,
    )


def _locate(args: argparse.Namespace, settings: Settings) -> MapState:
    provider = build_location_provider(settings, lat=args.lat, lng=args.lng)
    return asyncio.run(acquire_location(MapState(), provider))


def _cmd_locate(args: argparse.Namespace) -> int:
    settings = get_settings()
    state = _locate(args, settings)
    if not state.ok or state.location is None:
        return _report_error(state.error_code, state.error_message, state.error_detail)
    print(f"{state.location.lat},{state.location.lng}")
    return 0


def _cmd_shelters(args: argparse.Namespace) -> int:
    """Handle the `shelters` subcommand (no map service involved)."""
    settings = get_settings()
    state = _locate(args, settings)
    if not state.ok or state.location is None:
        return _report_error(state.error_code, state.error_message, state.error_detail)

    catalog = _load_catalog(settings)
    radius_km = args.radius_km if args.radius_km is not None else settings.search.radius_km
    shelters = catalog.within_radius(RadiusQuery(origin=state.location, radius_km=radius_km))

    if args.json:
        payload = {
            "origin": {"lat": state.location.lat, "lng": state.location.lng},
            "radius_km": radius_km,
            "shelters": [
                {"lat": s.lat, "lng": s.lng, "name": s.name, "row_number": s.row_number} for s in shelters
            ],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print(f"{len(shelters)} shelters within {radius_km} km of {state.location.lat},{state.location.lng}:")
    for i, s in enumerate(shelters, start=1):
        label = f"  {s.name}" if s.name else ""
        print(f"{i:>3}. {s.lat},{s.lng}{label}")
    return 0


def _cmd_download(args: argparse.Namespace) -> int:
    """Handle the `download` subcommand: locate, filter, render, save `map.jpg`."""
    settings = get_settings()
    catalog = _load_catalog(settings)
    provider = build_location_provider(settings, lat=args.lat, lng=args.lng)
    client = StaticMapClient(settings)

    if args.print_url:
        state = asyncio.run(acquire_location(MapState(), provider))
        if not state.ok or state.location is None:
            return _report_error(state.error_code, state.error_message, state.error_detail)
        radius_km = args.radius_km if args.radius_km is not None else settings.search.radius_km
        shelters = catalog.within_radius(RadiusQuery(origin=state.location, radius_km=radius_km))
        request = build_map_request(
            state.location,
            shelters,
            MapRequestOptions.from_settings(settings.static_map),
            api_key=settings.static_map.api_key,
        )
        if request is MAP_UNAVAILABLE:
            err = ConfigError()
            return _report_error(err.code, err.user_message)
        try:
            print(client.build_url(request))
        except SheltermapError as e:
            return _report_error(e.code, e.user_message, e.message)
        return 0

    compositor = ImageCompositor(client, jpeg_quality=settings.output.jpeg_quality)
    state = asyncio.run(
        run_pipeline(
            MapState(),
            provider=provider,
            catalog=catalog,
            settings=settings,
            compositor=compositor,
            output_dir=args.out,
            radius_km=args.radius_km,
        )
    )
    if not state.ok:
        return _report_error(state.error_code, state.error_message, state.error_detail)
    print(f"Saved {state.download_path} ({state.shelter_count} shelters)")
    return 0


def _cmd_quality_report(_: argparse.Namespace) -> int:
    settings = get_settings()
    report = build_quality_report(settings)
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def _add_location_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--lat", type=float, default=None, help="Current latitude (skips the location provider)")
    p.add_argument("--lng", type=float, default=None, help="Current longitude (skips the location provider)")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the Sheltermap CLI."""
    parser = argparse.ArgumentParser(prog="sheltermap")
    sub = parser.add_subparsers(dest="command", required=True)

    loc = sub.add_parser("locate", help="Print the current location.")
    _add_location_args(loc)
    loc.set_defaults(func=_cmd_locate)

    sh = sub.add_parser("shelters", help="List shelters within the search radius.")
    _add_location_args(sh)
    sh.add_argument("--radius-km", type=float, default=None, help="Defaults to search.radius_km (0.5)")
    sh.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    sh.set_defaults(func=_cmd_shelters)

    dl = sub.add_parser("download", help="Download a map of nearby shelters as map.jpg.")
    _add_location_args(dl)
    dl.add_argument("--radius-km", type=float, default=None, help="Defaults to search.radius_km (0.5)")
    dl.add_argument("--out", type=str, default=None, help="Output directory (defaults to output.dir)")
    dl.add_argument("--print-url", action="store_true", help="Print the static map URL instead of downloading")
    dl.set_defaults(func=_cmd_download)

    q = sub.add_parser("quality-report", help="Shelter catalog data quality report.")
    q.set_defaults(func=_cmd_quality_report)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m sheltermap.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    if (getattr(args, "lat", None) is None) != (getattr(args, "lng", None) is None):
        parser.error("--lat and --lng must be given together")
    if getattr(args, "radius_km", None) is not None and args.radius_km <= 0:
        parser.error("--radius-km must be > 0")
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
