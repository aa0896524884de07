# File: tests/conftest.py
from __future__ import annotations

import io
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import List, Optional

import pytest
import pytest_asyncio
from aiohttp import ClientSession, ClientTimeout, web
from PIL import Image

from story_lint.checks.base import Services
from story_lint.config import LinterConfig
from story_lint.context import DocumentContext, build_context
from story_lint.net.fetcher import Fetcher
from story_lint.net.pool import FetchPool
from story_lint.probe import ImageProber
from story_lint.validator import ValidationIssue, ValidationResult

PAGE_URL = "https://example.com/story.html"


@dataclass
class FakeValidator:
    """Markup validator stand-in with a fixed answer."""

    status: str = "PASS"
    errors: List[ValidationIssue] = field(default_factory=list)
    calls: int = 0

    async def validate(self, html: str) -> ValidationResult:
        self.calls += 1
        return ValidationResult(status=self.status, errors=list(self.errors))


def png_bytes(width: int, height: int) -> bytes:
    """Small PNG of the requested size."""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(buf, "PNG")
    return buf.getvalue()


def story_html(body: str = "", head: str = "", story_attrs: str = "standalone") -> str:
    """Minimal story page; ``head`` goes after the charset meta."""
    return (
        "<!doctype html><html amp><head>"
        '<meta charset="utf-8">'
        f"{head}"
        "</head><body>"
        f"<amp-story {story_attrs}>{body}</amp-story>"
        "</body></html>"
    )


@pytest.fixture()
def make_context() -> Callable[..., DocumentContext]:
    """Factory: HTML -> DocumentContext (page URL defaults to PAGE_URL)."""

    def factory(html: str, url: str = PAGE_URL, headers: Optional[dict] = None) -> DocumentContext:
        return build_context(url, html, headers)

    return factory


@pytest.fixture()
def config() -> LinterConfig:
    """Return a basic LinterConfig for network tests."""
    return LinterConfig(timeout=5.0, user_agent="TestAgent/1.0")


@pytest.fixture()
def validator() -> FakeValidator:
    return FakeValidator()


@pytest_asyncio.fixture
async def fetcher(config: LinterConfig) -> AsyncIterator[Fetcher]:
    async with ClientSession(
        timeout=ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent},
    ) as session:
        yield Fetcher(session, FetchPool(config.concurrency))


@pytest.fixture()
def services(fetcher: Fetcher, validator: FakeValidator, config: LinterConfig) -> Services:
    return Services(
        fetcher=fetcher,
        validator=validator,
        prober=ImageProber(fetcher),
        config=config,
    )


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Start aiohttp apps on free ports; yields ``start(app) -> base URL``."""
    runners: List[web.AppRunner] = []

    async def start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    try:
        yield start
    finally:
        for runner in runners:
            await runner.cleanup()
