import asyncio
from urllib.parse import parse_qsl, urlsplit

import httpx
import pytest

from sheltermap.catalog.loader import ShelterRecord
from sheltermap.core.errors import ConfigError, FetchError
from sheltermap.core.geo import Coordinate
from sheltermap.ingestion.static_map_client import StaticMapClient
from sheltermap.maps.request_builder import build_map_request


def _request():
    shelters = [
        ShelterRecord(lat=35.001, lng=139.001, row_number=1),
        ShelterRecord(lat=35.002, lng=139.0, row_number=2),
    ]
    return build_map_request(Coordinate(35.0, 139.0), shelters, api_key="any")


def test_build_url_encodes_all_parameters_in_order(settings):
    url = StaticMapClient(settings).build_url(_request())

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == settings.static_map.base_url
    assert parse_qsl(parts.query) == [
        ("center", "35.0,139.0"),
        ("zoom", "15"),
        ("size", "500x500"),
        ("format", "jpg"),
        ("key", "test-key"),
        ("markers", "color:black|label:C|35.0,139.0"),
        ("markers", "color:red|label:S|35.001,139.001"),
        ("markers", "color:red|label:S|35.002,139.0"),
    ]
    assert "markers=color:black|label:C|35.0,139.0" in url


def test_build_url_without_key_raises_config_error(settings):
    static_map = settings.static_map.model_copy(update={"api_key": None})
    no_key = settings.model_copy(update={"static_map": static_map})
    with pytest.raises(ConfigError):
        StaticMapClient(no_key).build_url(_request())


def test_fetch_raster_returns_payload(monkeypatch, settings):
    seen = {}

    async def fake_aget_bytes(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        seen["url"] = url
        seen["timeout"] = timeout_seconds
        return b"image-bytes"

    monkeypatch.setattr("sheltermap.ingestion.static_map_client.aget_bytes", fake_aget_bytes)
    payload = asyncio.run(StaticMapClient(settings).fetch_raster(_request()))

    assert payload == b"image-bytes"
    assert seen["url"].startswith(settings.static_map.base_url + "?center=")
    assert seen["timeout"] == settings.app.http_timeout_seconds


def test_fetch_raster_maps_http_status_to_fetch_error(monkeypatch, settings):
    async def fake_aget_bytes(url, **_kwargs):
        request = httpx.Request("GET", url)
        response = httpx.Response(403, request=request)
        raise httpx.HTTPStatusError("403", request=request, response=response)

    monkeypatch.setattr("sheltermap.ingestion.static_map_client.aget_bytes", fake_aget_bytes)
    with pytest.raises(FetchError, match="HTTP 403"):
        asyncio.run(StaticMapClient(settings).fetch_raster(_request()))


def test_fetch_raster_maps_transport_error_and_empty_body(monkeypatch, settings):
    async def failing(url, **_kwargs):
        raise httpx.ConnectError("no route", request=httpx.Request("GET", url))

    monkeypatch.setattr("sheltermap.ingestion.static_map_client.aget_bytes", failing)
    with pytest.raises(FetchError):
        asyncio.run(StaticMapClient(settings).fetch_raster(_request()))

    async def empty(url, **_kwargs):  # noqa: ARG001
        return b""

    monkeypatch.setattr("sheltermap.ingestion.static_map_client.aget_bytes", empty)
    with pytest.raises(FetchError, match="empty"):
        asyncio.run(StaticMapClient(settings).fetch_raster(_request()))
