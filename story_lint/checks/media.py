# File: story_lint/checks/media.py
"""story_lint.checks.media: Видео в истории: форма объявления и размер файлов."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

from story_lint.checks.base import Services, check
from story_lint.context import DocumentContext
from story_lint.errors import LintError
from story_lint.verdict import FAIL, PASS, Verdict

VIDEO_SOURCES = 'amp-video source[type="video/mp4"][src], amp-video[src]'


def _resolve(ctx: DocumentContext, src: Optional[str]) -> Optional[str]:
    try:
        return ctx.absolute(src)
    except ValueError:
        # left as written; the HEAD request reports it
        return src


def video_urls(ctx: DocumentContext) -> List[str]:
    """Absolute, de-duplicated mp4 sources in document order."""
    urls = (_resolve(ctx, tag.get("src")) for tag in ctx.document.select(VIDEO_SOURCES))
    return list(dict.fromkeys(u for u in urls if u))


@check
async def check_video_source(ctx: DocumentContext, services: Services) -> Verdict:
    if ctx.document.select("amp-video[src]"):
        return FAIL("<amp-video src> used instead of <amp-video><source/></amp-video>")
    return PASS()


@check
async def check_video_size(ctx: DocumentContext, services: Services) -> Verdict:
    """Every mp4 is below the configured size limit (HEAD content-length)."""
    limit = services.config.video_size_limit

    async def measure(url: str) -> Tuple[str, Optional[int], Optional[str]]:
        try:
            return url, await services.fetcher.content_length(url, ctx.headers), None
        except LintError as exc:
            return url, None, str(exc)

    sizes = await asyncio.gather(*(measure(u) for u in video_urls(ctx)))
    large = [url for url, length, _ in sizes if length is not None and length > limit]
    broken = [f"{url} ({error})" for url, _, error in sizes if error is not None]
    problems = []
    if large:
        problems.append(f"videos over {limit / 1_000_000:g}MB: [{','.join(large)}]")
    if broken:
        problems.append(f"couldn't determine size of videos: [{', '.join(broken)}]")
    return FAIL("; ".join(problems)) if problems else PASS()
