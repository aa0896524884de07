# File: story_lint/checks/__init__.py
"""story_lint.checks: Реестр проверок по умолчанию (порядок определяет порядок отчёта)."""

from __future__ import annotations

from story_lint.checks.base import Check, CheckRegistry, Outcome, Services, check, check_id
from story_lint.checks.cors import (
    check_bookend_cache,
    check_bookend_same_origin,
    check_cors_cache,
    check_cors_same_origin,
)
from story_lint.checks.document import (
    check_amp_story,
    check_amp_story_v1,
    check_amp_story_v1_metadata,
    check_meta_charset_first,
    check_mostly_text,
    check_runtime_preloaded,
)
from story_lint.checks.images import check_amp_img, check_thumbnails
from story_lint.checks.markup import check_canonical, check_validity
from story_lint.checks.media import check_video_size, check_video_source
from story_lint.checks.metadata import check_schema_metadata_recent, check_schema_metadata_type

DEFAULT_CHECKS = (
    check_validity,
    check_canonical,
    check_amp_story,
    check_amp_story_v1,
    check_amp_story_v1_metadata,
    check_schema_metadata_recent,
    check_schema_metadata_type,
    check_bookend_same_origin,
    check_bookend_cache,
    check_video_source,
    check_video_size,
    check_mostly_text,
    check_runtime_preloaded,
    check_thumbnails,
    check_meta_charset_first,
    check_amp_img,
    check_cors_same_origin,
    check_cors_cache,
)


def default_registry() -> CheckRegistry:
    return CheckRegistry(DEFAULT_CHECKS)


__all__ = [
    "Check",
    "CheckRegistry",
    "Outcome",
    "Services",
    "check",
    "check_id",
    "DEFAULT_CHECKS",
    "default_registry",
]
