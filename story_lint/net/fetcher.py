# story_lint/net/fetcher.py
"""
Fetcher module: every outbound HTTP request goes through the shared FetchPool.

Transport failures (aiohttp.ClientError, timeouts) surface as NetworkError;
there is deliberately no retry loop, one failed request yields one verdict.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Mapping, Optional

from aiohttp import ClientError, ClientResponse, ClientSession

from story_lint.errors import HttpStatusError, NetworkError
from story_lint.net.pool import FetchPool

__all__ = ["FetchedResponse", "Fetcher", "fetch_to_curl"]

logger = logging.getLogger("StoryLint")


@dataclass(frozen=True, slots=True)
class FetchedResponse:
    """Fully read response; header names are lower-cased."""

    url: str
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    @property
    def content_type(self) -> str:
        """Media type without parameters, e.g. ``application/json``."""
        return self.header("content-type").split(";", 1)[0].strip().lower()

    def text(self) -> str:
        charset = "utf-8"
        for param in self.header("content-type").split(";")[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "charset" and value.strip():
                charset = value.strip().strip('"')
        try:
            return self.body.decode(charset, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")


class Fetcher:
    """HTTP access for checks: aiohttp session + bounded pool."""

    def __init__(self, session: ClientSession, pool: FetchPool) -> None:
        self.session = session
        self.pool = pool

    @asynccontextmanager
    async def _request(
        self, url: str, method: str, headers: Optional[Mapping[str, str]]
    ) -> AsyncIterator[ClientResponse]:
        # callers hold a pool slot
        logger.debug("%s %s", method, url)
        try:
            async with self.session.request(
                method, url, headers=dict(headers or {}), allow_redirects=True
            ) as resp:
                yield resp
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"{method} {url} timed out") from exc
        except ClientError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

    @asynccontextmanager
    async def open(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> AsyncIterator[ClientResponse]:
        """Yield a streaming response while holding one pool slot.

        The slot is released when the ``async with`` block exits, whatever
        the outcome, so streaming readers (image probing) stay within the
        concurrency budget.
        """
        async with self.pool.slot():
            async with self._request(url, method, headers) as resp:
                yield resp

    async def _read(
        self, url: str, method: str, headers: Optional[Mapping[str, str]]
    ) -> FetchedResponse:
        async with self._request(url, method, headers) as resp:
            body = b"" if method.upper() == "HEAD" else await resp.read()
            return FetchedResponse(
                url=str(resp.url),
                status=resp.status,
                headers={k.lower(): v for k, v in resp.headers.items()},
                body=body,
            )

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchedResponse:
        """Perform the request and read the whole body (none for HEAD)."""
        return await self.pool.run(self._read, url, method, headers)

    async def final_url(self, url: str, headers: Optional[Mapping[str, str]] = None) -> str:
        """URL that ``url`` ends up at after redirects."""
        res = await self.fetch(url, headers=headers)
        return res.url

    async def content_length(self, url: str, headers: Optional[Mapping[str, str]] = None) -> int:
        """Размер ресурса по HEAD-запросу; 0, если сервер не сообщил Content-Length."""
        res = await self.fetch(url, method="HEAD", headers=headers)
        if not res.ok:
            raise HttpStatusError(res.status, url)
        try:
            return int(res.header("content-length", "0") or 0)
        except ValueError:
            return 0


def fetch_to_curl(url: str, headers: Optional[Mapping[str, str]] = None) -> str:
    """Equivalent ``curl`` command line, used in FAIL diagnostics."""
    parts: Dict[str, str] = dict(headers or {})
    h = " ".join(f"-H '{k}: {v}'" for k, v in parts.items())
    return f"curl -i {h} '{url}'" if h else f"curl -i '{url}'"
