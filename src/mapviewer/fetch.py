"""Dataset retrieval over HTTP (httpx) or from the local data directory."""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Callable

import httpx
from loguru import logger

from mapviewer.errors import FormatError, TransportError


def with_cache_bust(url: str, token: int | None = None) -> str:
    """Append a ``v=<ms>`` query parameter so proxies never serve stale data."""
    if token is None:
        token = int(time.time() * 1000)
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}v={token}"


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class DataFetcher:
    """Fetches JSON documents.

    Args:
        client_factory: Returns a fresh ``httpx.AsyncClient``; tests inject
            one built on ``httpx.MockTransport``.
        data_dir: Base directory for local (non-http) sources.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
        data_dir: str | Path = ".",
        timeout: float = 30.0,
    ) -> None:
        self._client_factory = client_factory or httpx.AsyncClient
        self.data_dir = Path(data_dir)
        self.timeout = timeout

    async def fetch_json(self, source: str) -> dict:
        if is_remote(source):
            return await self._fetch_remote(source)
        return await asyncio.to_thread(self._read_local, source)

    async def _fetch_remote(self, url: str) -> dict:
        async with self._client_factory() as client:
            try:
                resp = await client.get(
                    with_cache_bust(url),
                    headers={"Cache-Control": "no-store"},
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                logger.warning(f"Fetch failed: {url}: {e}")
                raise TransportError(url, reason=str(e)) from e

        if not resp.is_success:
            raise TransportError(url, status=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise FormatError(f"Invalid JSON document at {url}") from e

    def _read_local(self, source: str) -> dict:
        path = Path(source)
        if not path.is_absolute():
            path = self.data_dir / path
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise TransportError(source, reason=str(e)) from e
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise FormatError(f"Invalid JSON document at {source}") from e
