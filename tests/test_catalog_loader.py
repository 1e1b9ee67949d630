import httpx

from sheltermap.catalog.loader import (
    InvalidRow,
    ShelterRecord,
    load_catalog,
    parse_catalog_text,
    parse_shelter_row,
)
from sheltermap.core.errors import DataParseError


def test_parse_shelter_row_ok_with_whitespace_and_name():
    parsed = parse_shelter_row({"name": " 日比谷公園 ", "lat": " 35.67362", "lng": "139.75590 "}, 3)
    assert parsed == ShelterRecord(lat=35.67362, lng=139.75590, row_number=3, name="日比谷公園")


def test_parse_shelter_row_accepts_japanese_headers():
    parsed = parse_shelter_row({"施設名": "A", "緯度": "35.1", "経度": "139.2"}, 1)
    assert isinstance(parsed, ShelterRecord)
    assert (parsed.lat, parsed.lng, parsed.name) == (35.1, 139.2, "A")


def test_parse_shelter_row_rejects_non_numeric_values_instead_of_nan():
    parsed = parse_shelter_row({"lat": "abc", "lng": "139.0"}, 7)
    assert isinstance(parsed, InvalidRow)
    assert parsed.row_number == 7
    assert "non-numeric" in parsed.reason

    err = parsed.to_error()
    assert isinstance(err, DataParseError)
    assert err.code == "DATA_PARSE_ERROR"
    assert err.row_number == 7
    assert err.raw == {"lat": "abc", "lng": "139.0"}


def test_parse_shelter_row_rejects_nan_and_out_of_range():
    assert isinstance(parse_shelter_row({"lat": "nan", "lng": "139.0"}, 1), InvalidRow)
    assert isinstance(parse_shelter_row({"lat": "91", "lng": "139.0"}, 1), InvalidRow)
    assert isinstance(parse_shelter_row({"lat": "35", "lng": "-181"}, 1), InvalidRow)


def test_parse_shelter_row_missing_column():
    parsed = parse_shelter_row({"lat": "35.0"}, 2)
    assert isinstance(parsed, InvalidRow)
    assert parsed.reason == "missing lat/lng column"


def test_parse_catalog_text_keeps_order_and_continues_past_bad_rows():
    text = "\ufefflat,lng\n35.0,139.0\nbad,139.1\n35.2,139.2\n,\n"
    records, invalid = parse_catalog_text(text)
    assert [(r.lat, r.lng) for r in records] == [(35.0, 139.0), (35.2, 139.2)]
    assert [r.row_number for r in records] == [1, 3]
    assert [r.row_number for r in invalid] == [2]


def test_load_catalog_from_file(tmp_path):
    path = tmp_path / "shelters.csv"
    path.write_text("lat,lng\n35.0,139.0\n35.1,139.1\n", encoding="utf-8")
    result = load_catalog(path)
    assert result.source_error is None
    assert len(result.records) == 2
    assert result.invalid_rows == ()


def test_load_catalog_missing_file_is_loaded_but_empty(tmp_path):
    result = load_catalog(tmp_path / "missing.csv")
    assert result.records == ()
    assert result.source_error


def test_load_catalog_from_url(monkeypatch):
    seen = {}

    def fake_get_text(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        seen["url"] = url
        return "lat,lng\n35.0,139.0\n"

    monkeypatch.setattr("sheltermap.catalog.loader.get_text", fake_get_text)
    result = load_catalog("https://example.test/TokyoSheet.csv")
    assert seen["url"] == "https://example.test/TokyoSheet.csv"
    assert [(r.lat, r.lng) for r in result.records] == [(35.0, 139.0)]


def test_load_catalog_url_failure_is_loaded_but_empty(monkeypatch):
    def fake_get_text(url, **_kwargs):
        request = httpx.Request("GET", url)
        raise httpx.ConnectError("down", request=request)

    monkeypatch.setattr("sheltermap.catalog.loader.get_text", fake_get_text)
    result = load_catalog("https://example.test/TokyoSheet.csv")
    assert result.records == ()
    assert "down" in (result.source_error or "")
