"""
HTTP helpers.

This module centralizes the HTTP client logic used by the catalog loader, the location
provider and the static-map client.

Design goals:
- Small surface area (GET text, GET JSON, GET bytes).
- Deterministic defaults (User-Agent, timeout taken from settings).
- Raise on non-2xx so callers can map failures onto their own error types.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx


DEFAULT_USER_AGENT = "sheltermap/0.1.0 (+https://local)"

QueryParams = dict[str, Any] | Sequence[tuple[str, Any]]


def _headers(extra: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if extra:
        request_headers.update(extra)
    return request_headers


def get_text(
    url: str,
    *,
    params: QueryParams | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float | None = 15,
) -> str:
    """GET `url` and return the decoded response body.

    Used once at startup to download a remote shelter catalog.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
    """
    with httpx.Client(timeout=timeout_seconds, follow_redirects=True) as client:
        resp = client.get(url, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return resp.text


async def aget_json(
    url: str,
    *,
    params: QueryParams | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float | None = 15,
) -> Any:
    """Async GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    async with httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True) as client:
        resp = await client.get(url, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return resp.json()


async def aget_bytes(
    url: str,
    *,
    params: QueryParams | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float | None = 15,
) -> bytes:
    """Async GET `url` and return the raw response payload (e.g. an image).

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
    """
    async with httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True) as client:
        resp = await client.get(url, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return resp.content
