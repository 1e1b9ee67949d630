"""
In-memory shelter catalog.

The catalog is loaded once and then only read. `within_radius` is a stable filter:
results keep catalog order so map markers come out in a deterministic sequence.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from sheltermap.catalog.loader import ShelterRecord, load_catalog
from sheltermap.core.errors import DataParseError
from sheltermap.core.geo import is_within_radius
from sheltermap.domain.models import RadiusQuery

logger = logging.getLogger(__name__)


class ShelterCatalog:
    """Read-only, ordered collection of `ShelterRecord`s."""

    def __init__(self, records: Iterable[ShelterRecord] = ()):
        self._records: tuple[ShelterRecord, ...] = ()
        self._parse_errors: tuple[DataParseError, ...] = ()
        self._source_error: str | None = None
        self.load(records)

    @classmethod
    def from_source(
        cls,
        source: str | Path,
        *,
        timeout_seconds: float | None = 15,
    ) -> "ShelterCatalog":
        """Load a catalog from CSV.

        Invalid rows are dropped and kept as `parse_errors`; an unreadable source gives
        an empty catalog with `source_error` set.
        """
        result = load_catalog(source, timeout_seconds=timeout_seconds)
        catalog = cls(result.records)
        catalog._source_error = result.source_error
        catalog._parse_errors = tuple(r.to_error() for r in result.invalid_rows)
        for row in result.invalid_rows:
            logger.warning("Dropped catalog row %d: %s", row.row_number, row.reason)
        return catalog

    def load(self, records: Iterable[ShelterRecord]) -> None:
        """Replace the whole record set, clearing diagnostics from any earlier load."""
        self._records = tuple(records)
        self._parse_errors = ()
        self._source_error = None

    @property
    def records(self) -> tuple[ShelterRecord, ...]:
        return self._records

    @property
    def parse_errors(self) -> tuple[DataParseError, ...]:
        return self._parse_errors

    @property
    def source_error(self) -> str | None:
        return self._source_error

    def __len__(self) -> int:
        return len(self._records)

    def within_radius(self, query: RadiusQuery) -> tuple[ShelterRecord, ...]:
        """Return all records at most `query.radius_km` from `query.origin`, in catalog order."""
        return tuple(r for r in self._records if is_within_radius(query.origin, r.coordinate, query.radius_km))
