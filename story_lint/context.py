# File: story_lint/context.py
"""story_lint.context: Неизменяемый контекст проверяемой страницы и его сборка.

A :class:`DocumentContext` is built once per run and shared by reference
between all concurrently running checks. Checks only read from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from story_lint.errors import NetworkError, PageLoadError
from story_lint.logger import logger
from story_lint.net.fetcher import Fetcher

__all__ = ("DocumentContext", "build_context", "fetch_context", "absolute_url")


@dataclass(frozen=True, slots=True)
class DocumentContext:
    """Page under test: source URL, parsed DOM and the caller's request headers."""

    url: str
    document: BeautifulSoup
    headers: Mapping[str, str]

    def absolute(self, href: Optional[str]) -> Optional[str]:
        """Resolve ``href`` against the page URL."""
        return absolute_url(href, self.url)

    def html(self) -> str:
        return str(self.document)


def absolute_url(href: Optional[str], base: Optional[str]) -> Optional[str]:
    if not isinstance(href, str) or not isinstance(base, str):
        return None
    return urljoin(base, href.strip())


def build_context(
    url: str, html: str, headers: Optional[Mapping[str, str]] = None
) -> DocumentContext:
    """Разбирает HTML и возвращает готовый контекст (заголовки копируются в read-only mapping)."""
    if not url:
        raise ValueError("no target URL provided")
    soup = BeautifulSoup(html, "html.parser")
    return DocumentContext(
        url=url,
        document=soup,
        headers=MappingProxyType({k.lower(): v for k, v in (headers or {}).items()}),
    )


async def fetch_context(
    fetcher: Fetcher, url: str, headers: Optional[Mapping[str, str]] = None
) -> DocumentContext:
    """Загружает страницу (идентичность краулера задаётся сессией) и строит контекст.

    Raises :class:`PageLoadError` when the page is unreachable or the status
    is not 2xx; that is a caller error and happens before any check runs.
    """
    if not url:
        raise ValueError("no target URL provided")
    try:
        res = await fetcher.fetch(url, headers=headers)
    except NetworkError as exc:
        logger.error("Page %s could not be fetched: %s", url, exc)
        raise PageLoadError(url, str(exc)) from exc
    if not res.ok:
        logger.error("Page %s returned HTTP %s", url, res.status)
        raise PageLoadError(url, f"HTTP {res.status}")
    return build_context(url, res.text(), headers)
