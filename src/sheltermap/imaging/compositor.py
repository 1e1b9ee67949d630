"""
Map image compositor.

Fetches the rendered static map, draws it onto a fresh RGB surface of the raster's
natural size and encodes that surface as JPEG. Every step has its own failure type
(`ConfigError`, `FetchError`, `SurfaceError`, `EncodeError`) and nothing is retried.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, UnidentifiedImageError

from sheltermap.core.errors import EncodeError, FetchError, SurfaceError
from sheltermap.domain.models import FileBlob, MapRequest
from sheltermap.ingestion.static_map_client import StaticMapClient

logger = logging.getLogger(__name__)

DOWNLOAD_FILENAME = "map.jpg"
DOWNLOAD_MEDIA_TYPE = "image/jpeg"


def decode_raster(payload: bytes) -> Image.Image:
    """Decode an encoded image payload into a loaded Pillow image.

    Raises:
        FetchError: If the payload is not a decodable image.
    """
    try:
        img = Image.open(io.BytesIO(payload))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise FetchError(f"Static map payload is not a decodable image: {e}") from e
    return img


def draw_on_surface(raster: Image.Image) -> Image.Image:
    """Paste `raster` onto a new RGB surface of the same size.

    Raises:
        SurfaceError: If a surface of that size cannot be allocated.
    """
    width, height = raster.size
    if width <= 0 or height <= 0:
        raise SurfaceError(f"Cannot create a {width}x{height} drawing surface.")
    try:
        surface = Image.new("RGB", (width, height), "white")
    except (ValueError, MemoryError) as e:
        raise SurfaceError(f"Cannot create a {width}x{height} drawing surface: {e}") from e

    # Palette and alpha rasters (png8/png32/gif) are flattened onto white.
    if raster.mode in ("RGBA", "LA") or (raster.mode == "P" and "transparency" in raster.info):
        rgba = raster.convert("RGBA")
        surface.paste(rgba, (0, 0), rgba)
    else:
        surface.paste(raster.convert("RGB"), (0, 0))
    return surface


def encode_jpeg(surface: Image.Image, *, quality: int = 90) -> bytes:
    """Encode `surface` as JPEG bytes.

    Raises:
        EncodeError: If encoding fails or produces no data.
    """
    buf = io.BytesIO()
    try:
        surface.save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise EncodeError(f"JPEG encoding failed: {e}") from e
    data = buf.getvalue()
    if not data:
        raise EncodeError("JPEG encoding produced no data.")
    return data


class ImageCompositor:
    """Turns a `MapRequest` into a downloadable JPEG `FileBlob`."""

    def __init__(self, client: StaticMapClient, *, jpeg_quality: int = 90):
        self._client = client
        self._jpeg_quality = jpeg_quality

    async def render(self, request: MapRequest) -> FileBlob:
        """Fetch, composite and encode the map for `request`.

        Raises:
            ConfigError: If the service locator cannot be built.
            FetchError: If the raster cannot be fetched or decoded.
            SurfaceError: If the drawing surface cannot be created.
            EncodeError: If JPEG encoding yields no data.
        """
        payload = await self._client.fetch_raster(request)
        raster = decode_raster(payload)
        surface = draw_on_surface(raster)
        data = encode_jpeg(surface, quality=self._jpeg_quality)
        logger.info("Composited %dx%d map image (%d bytes)", surface.width, surface.height, len(data))
        return FileBlob(
            data=data,
            width=surface.width,
            height=surface.height,
            filename=DOWNLOAD_FILENAME,
            media_type=DOWNLOAD_MEDIA_TYPE,
        )
