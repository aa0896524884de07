# File: story_lint/checks/metadata.py
"""story_lint.checks.metadata: Структурированные данные (ld+json) и атрибуты <amp-story>."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from story_lint.checks.base import Services, check
from story_lint.context import DocumentContext
from story_lint.errors import ParseError
from story_lint.verdict import FAIL, PASS, WARN, Verdict

ARTICLE_TYPES = ("Article", "NewsArticle", "ReportageNewsArticle")
INLINE_ATTRIBUTES = (
    "title",
    "publisher",
    "publisher-logo-src",
    "poster-portrait-src",
    "poster-square-src",
    "poster-landscape-src",
)


def get_schema_metadata(doc: BeautifulSoup) -> Dict[str, Any]:
    """First ``application/ld+json`` block as a dict; ``{}`` when there is none."""
    tag = doc.select_one('script[type="application/ld+json"]')
    if tag is None:
        return {}
    raw = (tag.string or "").strip()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"couldn't parse application/ld+json: {exc}") from exc
    return data if isinstance(data, dict) else {}


def get_inline_metadata(doc: BeautifulSoup) -> Dict[str, Optional[str]]:
    """Poster/publisher attributes of the first ``<amp-story>`` (``None`` when absent)."""
    story = doc.select_one("amp-story")
    return {k: (story.get(k) if story is not None else None) for k in INLINE_ATTRIBUTES}


def parse_date(value: Any) -> Optional[datetime]:
    """ISO 8601 or RFC 2822 date; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@check
async def check_schema_metadata_type(ctx: DocumentContext, services: Services) -> Verdict:
    """@type of the structured data is an article type."""
    kind = get_schema_metadata(ctx.document).get("@type")
    if kind not in ARTICLE_TYPES:
        quoted = " or ".join(f"'{t}'" for t in ARTICLE_TYPES)
        return WARN(f"@type is not {quoted}")
    return PASS()


@check
async def check_schema_metadata_recent(ctx: DocumentContext, services: Services) -> Verdict:
    """datePublished/dateModified exist, are ordered and recent."""
    metadata = get_schema_metadata(ctx.document)
    published_raw = metadata.get("datePublished")
    modified_raw = metadata.get("dateModified")
    if not published_raw or not modified_raw:
        return FAIL("datePublished or dateModified not found")
    published = parse_date(published_raw)
    modified = parse_date(modified_raw)
    if published is None or modified is None:
        return FAIL(
            f"couldn't parse datePublished [{published_raw}] or dateModified [{modified_raw}]"
        )
    if modified < published:
        return FAIL(
            f"dateModified [{modified_raw}] is earlier than datePublished [{published_raw}]"
        )
    now = datetime.now(timezone.utc)
    window_start = now - timedelta(days=services.config.freshness_days)

    def in_window(moment: datetime) -> bool:
        return window_start < moment < now

    if in_window(published) and in_window(modified):
        return PASS()
    return WARN(
        f"datePublished [{published_raw}] or dateModified [{modified_raw}] is old or in the future"
    )
