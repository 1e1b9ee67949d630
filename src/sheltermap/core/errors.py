"""
Error taxonomy.

Every failure the pipeline can report has its own exception type with a stable
`code` (used in logs, CLI exit messages and `MapState.error_code`) and a short
user-facing message. None of them are retried: each one ends the current run.
"""

from __future__ import annotations

from typing import Any, Mapping


class SheltermapError(Exception):
    """Base class for all reportable pipeline failures."""

    code = "SHELTERMAP_ERROR"
    user_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class LocationError(SheltermapError):
    """The current location could not be acquired."""

    code = "LOCATION_ERROR"


class CapabilityUnsupported(LocationError):
    code = "CAPABILITY_UNSUPPORTED"
    user_message = "Location services are not supported on this device."


class CapabilityDenied(LocationError):
    code = "CAPABILITY_DENIED"
    user_message = "Could not read your current location."


class RenderError(SheltermapError):
    """The map image could not be produced."""

    code = "RENDER_ERROR"


class ConfigError(RenderError):
    code = "CONFIG_ERROR"
    user_message = "The map service API key is not configured."


class FetchError(RenderError):
    code = "FETCH_ERROR"
    user_message = "Failed to load the map image."


class SurfaceError(RenderError):
    code = "SURFACE_ERROR"
    user_message = "Could not prepare a drawing surface for the map image."


class EncodeError(RenderError):
    code = "ENCODE_ERROR"
    user_message = "Failed to encode the map image."


class SaveError(RenderError):
    code = "SAVE_ERROR"
    user_message = "Could not save the map image."


class DataParseError(SheltermapError):
    """A catalog row could not be turned into a shelter record."""

    code = "DATA_PARSE_ERROR"
    user_message = "A shelter catalog row could not be parsed."

    def __init__(self, message: str | None = None, *, row_number: int, raw: Mapping[str, Any]):
        super().__init__(message)
        self.row_number = row_number
        self.raw = dict(raw)
