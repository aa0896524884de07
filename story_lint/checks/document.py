# File: story_lint/checks/document.py
"""story_lint.checks.document: Проверки, которым достаточно самого DOM (без сети)."""

from __future__ import annotations

from story_lint.checks.base import Services, check
from story_lint.context import DocumentContext
from story_lint.verdict import FAIL, PASS, WARN, Verdict

AMP_STORY_V1_SCRIPT = "https://cdn.ampproject.org/v0/amp-story-1.0.js"
AMP_RUNTIME = "https://cdn.ampproject.org/v0.js"
V1_MANDATORY_ATTRIBUTES = ("title", "publisher", "publisher-logo-src", "poster-portrait-src")


def is_story_v1(ctx: DocumentContext) -> bool:
    return ctx.document.select_one(f'script[src="{AMP_STORY_V1_SCRIPT}"]') is not None


@check
async def check_amp_story(ctx: DocumentContext, services: Services) -> Verdict:
    """Exactly one standalone <amp-story> in the body."""
    if len(ctx.document.select("body amp-story[standalone]")) == 1:
        return PASS()
    return FAIL("couldn't find <amp-story standalone> component")


@check
async def check_amp_story_v1(ctx: DocumentContext, services: Services) -> Verdict:
    """amp-story 1.0 extension is loaded."""
    if is_story_v1(ctx):
        return PASS()
    return WARN("amp-story-1.0.js not used (probably 0.1?)")


@check
async def check_amp_story_v1_metadata(ctx: DocumentContext, services: Services) -> Verdict:
    """v1 stories declare the soon-mandatory metadata attributes."""
    if not is_story_v1(ctx):
        return PASS()
    missing = [a for a in V1_MANDATORY_ATTRIBUTES if not ctx.document.select(f"amp-story[{a}]")]
    if missing:
        return WARN(
            f"<amp-story> is missing attribute(s) that will soon be mandatory: [{', '.join(missing)}]"
        )
    return PASS()


@check
async def check_mostly_text(ctx: DocumentContext, services: Services) -> Verdict:
    text = "".join(tag.get_text() for tag in ctx.document.select("amp-story"))
    if len(text) > services.config.min_text_length:
        return PASS()
    return WARN(f"minimal text in the story [{text}]")


@check
async def check_runtime_preloaded(ctx: DocumentContext, services: Services) -> Verdict:
    selector = f'link[href="{AMP_RUNTIME}"][rel="preload"][as="script"]'
    if ctx.document.select_one(selector) is not None:
        return PASS()
    return WARN(f"<link href={AMP_RUNTIME} rel=preload> is missing")


@check
async def check_meta_charset_first(ctx: DocumentContext, services: Services) -> Verdict:
    first = ctx.document.select_one("head > :first-child")
    if first is None or not first.get("charset"):
        return FAIL("<meta charset> not the first <meta> tag")
    return PASS()
