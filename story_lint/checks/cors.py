# File: story_lint/checks/cors.py
"""story_lint.checks.cors: Доступность CORS-эндпоинтов страницы.

Two policies are verified for every endpoint the story fetches at runtime
(``amp-list[src]`` and the bookend configuration):

* same-origin: the request carries ``__amp_source_origin`` and
  ``amp-same-origin: true``; the answer must be 2xx JSON;
* cache: for every configured cache the request carries the cache's
  ``origin``; the answer must be 2xx JSON that allows that origin.

The cache policy expands to ``len(endpoints) * len(caches)`` requests,
issued endpoints-outer, caches-inner through the shared fetch pool.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from bs4 import BeautifulSoup

from story_lint.cache_url import cache_url, origin_of
from story_lint.checks.base import Services, check
from story_lint.config import CacheDomain
from story_lint.context import DocumentContext
from story_lint.errors import (
    AccessControlError,
    ContentTypeError,
    HttpStatusError,
    LintError,
    ParseError,
)
from story_lint.net.fetcher import FetchedResponse, fetch_to_curl
from story_lint.verdict import FAIL, PASS, WARN, Verdict, only_issues

SOURCE_ORIGIN_PARAM = "__amp_source_origin"
JSON_TYPE = "application/json"
BOOKEND_CACHE = CacheDomain(id="google", domain_suffix="cdn.ampproject.org")


def bookend_endpoint(doc: BeautifulSoup) -> Optional[str]:
    bookend = doc.select_one("amp-story amp-story-bookend")
    story = doc.select_one("amp-story")
    return (bookend.get("src") if bookend is not None else None) or (
        story.get("bookend-config-src") if story is not None else None
    )


def cors_endpoints(doc: BeautifulSoup) -> List[str]:
    """Endpoints in document order: amp-list sources, bookend src, bookend-config-src."""
    found = [tag.get("src") for tag in doc.select("amp-list[src]")]
    bookend = doc.select_one("amp-story amp-story-bookend")
    story = doc.select_one("amp-story")
    found.append(bookend.get("src") if bookend is not None else None)
    found.append(story.get("bookend-config-src") if story is not None else None)
    return [s for s in found if s]


def add_source_origin(url: str, source_origin: str) -> str:
    """Set (or replace) the ``__amp_source_origin`` query parameter."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != SOURCE_ORIGIN_PARAM]
    query.append((SOURCE_ORIGIN_PARAM, source_origin))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def _require_ok(res: FetchedResponse) -> None:
    if not res.ok:
        raise HttpStatusError(res.status, res.url)


def _require_json(res: FetchedResponse) -> None:
    if res.content_type != JSON_TYPE:
        raise ContentTypeError(JSON_TYPE, res.content_type)
    text = res.text()
    try:
        json.loads(text)
    except ValueError as exc:
        raise ParseError(f"couldn't parse body as JSON: {text[:100]}") from exc


def _require_allow_origin(res: FetchedResponse, origin: str) -> None:
    allowed = res.header("access-control-allow-origin")
    if allowed not in (origin, "*"):
        raise AccessControlError(allowed, origin)


def _merge(defaults: Dict[str, str], ctx: DocumentContext) -> Dict[str, str]:
    # caller-supplied headers win over the policy headers
    merged = dict(defaults)
    merged.update(ctx.headers)
    return merged


def _xhr_target(ctx: DocumentContext, xhr_url: str) -> Tuple[str, str]:
    """(absolute endpoint, request URL with the source origin marker); ValueError on a malformed URL."""
    endpoint = ctx.absolute(xhr_url) or xhr_url
    return endpoint, add_source_origin(endpoint, origin_of(ctx.url))


async def can_xhr_same_origin(ctx: DocumentContext, services: Services, xhr_url: str) -> Verdict:
    """Policy (a) for one endpoint."""
    try:
        endpoint, target = _xhr_target(ctx, xhr_url)
    except ValueError as exc:
        return FAIL(f"can't XHR [{xhr_url}]: invalid URL ({exc})")
    headers = _merge({"amp-same-origin": "true"}, ctx)
    curl = fetch_to_curl(target, headers)
    try:
        res = await services.fetcher.fetch(target, headers=headers)
        _require_ok(res)
        _require_json(res)
    except LintError as exc:
        return FAIL(f"can't XHR [{endpoint}]: {exc} [debug: {curl}]")
    return PASS()


async def can_xhr_cache(
    ctx: DocumentContext, services: Services, xhr_url: str, cache: CacheDomain
) -> Verdict:
    """Policy (b) for one endpoint x cache combination."""
    try:
        endpoint, target = _xhr_target(ctx, xhr_url)
    except ValueError as exc:
        return FAIL(f"can't XHR [{xhr_url}] via cache [{cache.id}]: invalid URL ({exc})")
    # the origin the page itself is served from on this cache
    origin = origin_of(cache_url(cache.domain_suffix, ctx.url))
    headers = _merge({"origin": origin}, ctx)
    curl = fetch_to_curl(target, headers)
    try:
        res = await services.fetcher.fetch(target, headers=headers)
        _require_ok(res)
        _require_allow_origin(res, origin)
        _require_json(res)
    except LintError as exc:
        return FAIL(f"can't XHR [{endpoint}] via cache [{cache.id}]: {exc} [debug: {curl}]")
    return PASS()


@check
async def check_bookend_same_origin(ctx: DocumentContext, services: Services) -> Verdict:
    src = bookend_endpoint(ctx.document)
    if not src:
        return WARN("amp-story-bookend missing")
    return await can_xhr_same_origin(ctx, services, src)


@check
async def check_bookend_cache(ctx: DocumentContext, services: Services) -> Verdict:
    src = bookend_endpoint(ctx.document)
    if not src:
        return WARN("amp-story-bookend missing")
    cache = next(
        (c for c in services.caches if c.domain_suffix == BOOKEND_CACHE.domain_suffix),
        BOOKEND_CACHE,
    )
    return await can_xhr_cache(ctx, services, src, cache)


@check(multi=True)
async def check_cors_same_origin(ctx: DocumentContext, services: Services) -> List[Verdict]:
    endpoints = cors_endpoints(ctx.document)
    if not endpoints:
        return [WARN("no CORS endpoints (amp-list, amp-story-bookend) declared")]
    return only_issues(
        await asyncio.gather(*(can_xhr_same_origin(ctx, services, e) for e in endpoints))
    )


@check(multi=True)
async def check_cors_cache(ctx: DocumentContext, services: Services) -> List[Verdict]:
    endpoints = cors_endpoints(ctx.document)
    if not endpoints:
        return [WARN("no CORS endpoints (amp-list, amp-story-bookend) declared")]
    combinations = itertools.product(endpoints, services.caches)
    return only_issues(
        await asyncio.gather(*(can_xhr_cache(ctx, services, e, c) for e, c in combinations))
    )
