import asyncio
import io

import pytest
from PIL import Image

from sheltermap.core.errors import ConfigError, EncodeError, FetchError, SaveError, SurfaceError
from sheltermap.core.geo import Coordinate
from sheltermap.domain.models import FileBlob
from sheltermap.imaging.compositor import ImageCompositor, draw_on_surface, encode_jpeg
from sheltermap.imaging.download import save_download
from sheltermap.maps.request_builder import build_map_request


class _StubClient:
    def __init__(self, payload: bytes | None = None, exc: Exception | None = None):
        self._payload = payload
        self._exc = exc
        self.calls = 0

    async def fetch_raster(self, request):  # noqa: ARG002
        self.calls += 1
        if self._exc:
            raise self._exc
        return self._payload


def _request():
    return build_map_request(Coordinate(35.0, 139.0), [], api_key="k")


def test_render_produces_jpeg_of_natural_size(png_bytes):
    blob = asyncio.run(ImageCompositor(_StubClient(png_bytes)).render(_request()))

    assert blob.filename == "map.jpg"
    assert blob.media_type == "image/jpeg"
    assert (blob.width, blob.height) == (8, 6)
    assert blob.data[:2] == b"\xff\xd8"
    with Image.open(io.BytesIO(blob.data)) as img:
        assert img.format == "JPEG"
        assert img.size == (8, 6)


def test_render_flattens_transparent_png():
    buf = io.BytesIO()
    Image.new("RGBA", (4, 4), (255, 0, 0, 0)).save(buf, format="PNG")
    blob = asyncio.run(ImageCompositor(_StubClient(buf.getvalue())).render(_request()))
    with Image.open(io.BytesIO(blob.data)) as img:
        assert img.mode == "RGB"


def test_render_propagates_client_errors_unchanged():
    for exc in (ConfigError(), FetchError("boom")):
        client = _StubClient(exc=exc)
        with pytest.raises(type(exc)):
            asyncio.run(ImageCompositor(client).render(_request()))
        assert client.calls == 1


def test_undecodable_payload_is_a_fetch_error():
    with pytest.raises(FetchError):
        asyncio.run(ImageCompositor(_StubClient(b"<html>quota exceeded</html>")).render(_request()))


def test_zero_sized_raster_is_a_surface_error():
    with pytest.raises(SurfaceError):
        draw_on_surface(Image.new("RGB", (0, 0)))


def test_surface_allocation_failure_is_a_surface_error(monkeypatch):
    raster = Image.new("RGB", (4, 4))

    def no_memory(*_args, **_kwargs):
        raise MemoryError()

    monkeypatch.setattr("sheltermap.imaging.compositor.Image.new", no_memory)
    with pytest.raises(SurfaceError):
        draw_on_surface(raster)


def test_encode_failure_is_an_encode_error():
    # JPEG cannot store an alpha channel.
    with pytest.raises(EncodeError):
        encode_jpeg(Image.new("RGBA", (4, 4)))


def test_save_download_writes_and_overwrites(tmp_path):
    first = save_download(FileBlob(data=b"one", width=1, height=1), tmp_path)
    second = save_download(FileBlob(data=b"two", width=1, height=1), tmp_path)

    assert first == second == tmp_path / "map.jpg"
    assert second.read_bytes() == b"two"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["map.jpg"]


def test_save_download_failure_removes_temp_file(tmp_path):
    # A directory squatting on the target name makes the final replace fail.
    (tmp_path / "map.jpg").mkdir()
    (tmp_path / "map.jpg" / "keep").write_bytes(b"")

    with pytest.raises(SaveError):
        save_download(FileBlob(data=b"one", width=1, height=1), tmp_path)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["map.jpg"]
    assert (tmp_path / "map.jpg").is_dir()
