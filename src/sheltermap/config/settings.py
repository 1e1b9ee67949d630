# src/sheltermap/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/sheltermap/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `GOOGLE_MAPS_API_KEY`)
- an external YAML file via `SHELTERMAP_CONFIG_PATH`

Design rule:
- Tuning knobs (radius, zoom, marker styles) live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from sheltermap.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `sheltermap.config`."""
    text = resources.files("sheltermap.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "Sheltermap"
    # None disables the client-side timeout; the platform then decides.
    http_timeout_seconds: float | None = 30
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    source: str = "data/catalogs/shelters.csv"


class SearchSettings(BaseModel):
    radius_km: float = Field(0.5, gt=0)


class MarkerStyle(BaseModel):
    model_config = {"frozen": True}

    color: str = Field(..., min_length=1)
    label: str = Field(..., pattern=r"^[A-Z0-9]$")


MapFormat = Literal["jpg", "jpg-baseline", "png", "png8", "png32", "gif"]


class StaticMapSettings(BaseModel):
    base_url: str = "https://maps.googleapis.com/maps/api/staticmap"
    api_key: str | None = None
    zoom: int = Field(15, ge=0, le=21)
    width: int = Field(500, ge=1, le=640)
    height: int = Field(500, ge=1, le=640)
    format: MapFormat = "jpg"
    origin_marker: MarkerStyle = Field(default_factory=lambda: MarkerStyle(color="black", label="C"))
    shelter_marker: MarkerStyle = Field(default_factory=lambda: MarkerStyle(color="red", label="S"))


class LocationSettings(BaseModel):
    provider: Literal["ip", "none"] = "ip"
    ip_lookup_url: str = "https://ipapi.co/json/"


class OutputSettings(BaseModel):
    dir: str = "."
    jpeg_quality: int = Field(90, ge=1, le=95)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    static_map: StaticMapSettings = Field(default_factory=StaticMapSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("SHELTERMAP_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    output_dir = os.getenv("SHELTERMAP_OUTPUT_DIR")
    if output_dir:
        data.setdefault("output", {})["dir"] = output_dir

    # The Next.js-style name is accepted so existing `.env` files keep working.
    api_key = os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv("NEXT_PUBLIC_GOOGLE_MAPS_API_KEY")
    if api_key:
        data.setdefault("static_map", {})["api_key"] = api_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("SHELTERMAP_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
