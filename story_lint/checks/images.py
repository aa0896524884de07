# File: story_lint/checks/images.py
"""story_lint.checks.images: Сравнение объявленной и реальной геометрии изображений.

``ampimg`` compares every ``<amp-img>`` with numeric ``width``/``height``
against the measured image (aspect ratio and pixel volume rules);
``thumbnails`` checks that poster/publisher images fit their role
(square, portrait 3:4, landscape 4:3).
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Dict, List, Optional, Tuple

from story_lint.checks.base import Services, check
from story_lint.checks.metadata import get_inline_metadata
from story_lint.context import DocumentContext
from story_lint.errors import GeometryMismatchError, HttpStatusError, LintError
from story_lint.probe import ImageSize
from story_lint.verdict import FAIL, PASS, WARN, Verdict, only_issues

RATIO_TOLERANCE = 0.015
#: declared volume above this share of the actual one is "much larger"
VOLUME_UPPER = 1.5
#: declared volume below this share of the actual one is "much smaller"
VOLUME_LOWER = 0.25
#: width/height band of a 3:4 portrait (reciprocal for landscape)
PORTRAIT_BAND = (0.74, 0.76)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_dimension(value: Optional[str]) -> Optional[int]:
    """Leading integer of an attribute value (``"100px"`` -> 100), positive only."""
    if not isinstance(value, str):
        return None
    match = _LEADING_INT.match(value)
    if match is None:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def floor_ratio(width: int, height: int) -> float:
    """Width/height truncated to two decimals."""
    return (width * 100 // height) / 100


def assess_geometry(
    src: str, actual: ImageSize, expected_width: int, expected_height: int
) -> List[Verdict]:
    """Ratio (FAIL) and volume (WARN) rules; both can fire for one image."""
    aw, ah = actual.width, actual.height
    if aw <= 0 or ah <= 0:
        return [FAIL(f"[{src}]: image reports empty dimensions [{aw}x{ah}]")]
    issues: List[Verdict] = []

    actual_ratio = floor_ratio(aw, ah)
    expected_ratio = floor_ratio(expected_width, expected_height)
    if abs(actual_ratio - expected_ratio) > RATIO_TOLERANCE:
        issues.append(
            FAIL(
                f"[{src}]: actual ratio [{aw}/{ah} = {actual_ratio}] does not match "
                f"specified [{expected_width}/{expected_height} = {expected_ratio}]"
            )
        )

    actual_volume = aw * ah
    expected_volume = expected_width * expected_height
    declared = f"{expected_width}x{expected_height}"
    measured = f"{aw}x{ah}"
    if expected_volume > VOLUME_UPPER * actual_volume:
        issues.append(
            WARN(f"[{src}]: declared dimensions [{declared}] are much larger than actual [{measured}]")
        )
    elif expected_volume < VOLUME_LOWER * actual_volume:
        issues.append(
            WARN(f"[{src}]: declared dimensions [{declared}] are much smaller than actual [{measured}]")
        )
    return issues


def is_square(size: ImageSize) -> bool:
    return size.width == size.height


def is_portrait(size: ImageSize) -> bool:
    low, high = PORTRAIT_BAND
    return low * size.height < size.width < high * size.height


def is_landscape(size: ImageSize) -> bool:
    low, high = PORTRAIT_BAND
    return low * size.width < size.height < high * size.width


ROLES: Dict[str, Tuple[Callable[[ImageSize], bool], str]] = {
    "square": (is_square, "square (1:1)"),
    "portrait": (is_portrait, "portrait (3:4)"),
    "landscape": (is_landscape, "landscape (4:3)"),
}

#: (attribute, role, required)
THUMBNAILS: Tuple[Tuple[str, str, bool], ...] = (
    ("publisher-logo-src", "square", True),
    ("poster-portrait-src", "portrait", True),
    ("poster-square-src", "square", False),
    ("poster-landscape-src", "landscape", False),
)


def require_role(role: str, size: ImageSize) -> None:
    predicate, label = ROLES[role]
    if not predicate(size):
        raise GeometryMismatchError(f"is not {label}: actual {size.width}x{size.height}")


async def _measure_amp_img(
    ctx: DocumentContext, services: Services, src: str, width: int, height: int
) -> List[Verdict]:
    try:
        url = ctx.absolute(src) or src
        size = await services.prober.probe(url, ctx.headers)
    except HttpStatusError as exc:
        return [FAIL(f"[{src}] returned status {exc.status}")]
    except LintError as exc:
        return [FAIL(f"[{src}] {exc}")]
    except ValueError as exc:
        return [FAIL(f"[{src}] invalid URL ({exc})")]
    return assess_geometry(src, size, width, height)


async def _measure_thumbnail(
    ctx: DocumentContext, services: Services, attr: str, value: str, role: str
) -> Verdict:
    try:
        url = ctx.absolute(value) or value
        size = await services.prober.probe(url, ctx.headers)
        require_role(role, size)
    except HttpStatusError as exc:
        return FAIL(f"[{attr}] ({value}) returned status {exc.status}")
    except GeometryMismatchError as exc:
        return FAIL(f"[{attr}] ({value}) {exc}")
    except LintError as exc:
        return FAIL(f"[{attr}] ({value}) couldn't be measured: {exc}")
    except ValueError as exc:
        return FAIL(f"[{attr}] ({value}) invalid URL ({exc})")
    return PASS()


@check(multi=True)
async def check_amp_img(ctx: DocumentContext, services: Services) -> List[Verdict]:
    """Declared amp-img dimensions agree with the served images."""
    jobs = []
    for tag in ctx.document.select("amp-img[src]"):
        width = parse_dimension(tag.get("width"))
        height = parse_dimension(tag.get("height"))
        if width is None or height is None:
            continue
        jobs.append(_measure_amp_img(ctx, services, tag.get("src"), width, height))
    results = await asyncio.gather(*jobs)
    return only_issues(v for verdicts in results for v in verdicts)


@check(multi=True)
async def check_thumbnails(ctx: DocumentContext, services: Services) -> List[Verdict]:
    """Publisher logo and posters have the shape their role requires."""
    metadata = get_inline_metadata(ctx.document)
    verdicts: List[Verdict] = []
    jobs = []
    for attr, role, required in THUMBNAILS:
        value = metadata.get(attr)
        if not value:
            if required:
                verdicts.append(FAIL(f"[{attr}] is missing"))
            continue
        jobs.append(_measure_thumbnail(ctx, services, attr, value, role))
    verdicts.extend(await asyncio.gather(*jobs))
    return only_issues(verdicts)
