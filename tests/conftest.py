from __future__ import annotations

import io

import pytest
from PIL import Image

from sheltermap.config.settings import Settings, get_settings


@pytest.fixture
def settings() -> Settings:
    s = Settings()
    static_map = s.static_map.model_copy(update={"api_key": "test-key"})
    return s.model_copy(update={"static_map": static_map})


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 6), "blue").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def fresh_settings_cache():
    # `get_settings()` is cached; env-driven tests need a clean load on both sides.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
