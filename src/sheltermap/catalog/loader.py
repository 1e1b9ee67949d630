"""
Shelter catalog loader.

The catalog is a CSV file (default: `data/catalogs/shelters.csv`) or an http(s) URL
serving one, with at least `lat` and `lng` columns. Every data row is parsed into
either a `ShelterRecord` or an `InvalidRow`; a bad row never stops the rest of the
file from loading, and an unreadable source yields an empty result instead of raising.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import httpx

from sheltermap.core.env import is_remote_source, resolve_project_path
from sheltermap.core.errors import DataParseError
from sheltermap.core.geo import Coordinate
from sheltermap.core.http import get_text

logger = logging.getLogger(__name__)

LAT_COLUMNS = ("lat", "latitude", "緯度")
LNG_COLUMNS = ("lng", "lon", "longitude", "経度")
NAME_COLUMNS = ("name", "施設名", "避難所名")


@dataclass(frozen=True)
class ShelterRecord:
    """One shelter from the static catalog."""

    lat: float
    lng: float
    row_number: int
    name: str | None = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


@dataclass(frozen=True)
class InvalidRow:
    """A catalog row that could not be turned into a `ShelterRecord`."""

    row_number: int
    raw: dict[str, Any]
    reason: str

    def to_error(self) -> DataParseError:
        return DataParseError(
            f"Catalog row {self.row_number}: {self.reason}",
            row_number=self.row_number,
            raw=self.raw,
        )


@dataclass(frozen=True)
class CatalogLoadResult:
    records: tuple[ShelterRecord, ...] = ()
    invalid_rows: tuple[InvalidRow, ...] = ()
    source_error: str | None = None
    source: str | None = None


def _pick(row: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    # Header names are matched case-insensitively and ignoring surrounding spaces.
    normalized = {str(k).strip().lower(): v for k, v in row.items() if k is not None}
    for name in names:
        if name in normalized:
            return normalized[name]
    return None


def _parse_float(value: Any) -> float | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        out = float(text)
    except ValueError:
        return None
    return out if math.isfinite(out) else None


def parse_shelter_row(row: Mapping[str, Any], row_number: int) -> ShelterRecord | InvalidRow:
    """Parse one CSV row; never raises."""
    raw = {str(k): v for k, v in row.items() if k is not None}
    lat_raw = _pick(row, LAT_COLUMNS)
    lng_raw = _pick(row, LNG_COLUMNS)
    if lat_raw is None or lng_raw is None:
        return InvalidRow(row_number=row_number, raw=raw, reason="missing lat/lng column")

    lat = _parse_float(lat_raw)
    lng = _parse_float(lng_raw)
    if lat is None or lng is None:
        return InvalidRow(
            row_number=row_number,
            raw=raw,
            reason=f"non-numeric coordinates lat={lat_raw!r} lng={lng_raw!r}",
        )
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return InvalidRow(
            row_number=row_number,
            raw=raw,
            reason=f"out-of-range coordinates lat={lat} lng={lng}",
        )

    name = _pick(row, NAME_COLUMNS)
    name = str(name).strip() if name is not None and str(name).strip() else None
    return ShelterRecord(lat=lat, lng=lng, row_number=row_number, name=name)


def read_catalog_text(source: str | Path, *, timeout_seconds: float | None = 15) -> str:
    """Return the raw CSV text of a local path or remote URL.

    Raises:
        OSError: If a local file cannot be read.
        httpx.HTTPError: If a remote source cannot be downloaded.
    """
    if is_remote_source(source):
        return get_text(str(source), timeout_seconds=timeout_seconds)
    resolved = resolve_project_path(source)
    # `utf-8-sig` strips the BOM that spreadsheet exports tend to add.
    return resolved.read_text(encoding="utf-8-sig")


def parse_catalog_text(text: str) -> tuple[list[ShelterRecord], list[InvalidRow]]:
    """Parse CSV text into valid records and invalid rows, both in file order."""
    records: list[ShelterRecord] = []
    invalid: list[InvalidRow] = []
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    for row_number, row in enumerate(reader, start=1):
        # Blank trailing lines show up as all-empty rows.
        if not any(str(v).strip() for v in row.values() if v is not None):
            continue
        parsed = parse_shelter_row(row, row_number)
        if isinstance(parsed, ShelterRecord):
            records.append(parsed)
        else:
            invalid.append(parsed)
    return records, invalid


def load_catalog(source: str | Path, *, timeout_seconds: float | None = 15) -> CatalogLoadResult:
    """Load a shelter catalog, reporting problems instead of raising them."""
    try:
        text = read_catalog_text(source, timeout_seconds=timeout_seconds)
        records, invalid = parse_catalog_text(text)
    except (OSError, UnicodeDecodeError, csv.Error, httpx.HTTPError) as e:
        logger.error("Failed to load shelter catalog from %s: %s", source, e)
        return CatalogLoadResult(source_error=str(e), source=str(source))

    logger.info(
        "Loaded shelter catalog from %s: %d records, %d invalid rows",
        source,
        len(records),
        len(invalid),
    )
    return CatalogLoadResult(records=tuple(records), invalid_rows=tuple(invalid), source=str(source))
