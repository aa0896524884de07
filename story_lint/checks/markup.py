# File: story_lint/checks/markup.py
"""story_lint.checks.markup: Валидность разметки и canonical-ссылка."""

from __future__ import annotations

from story_lint.checks.base import Services, check
from story_lint.context import DocumentContext
from story_lint.errors import LintError, MissingElementError, ValidationRuleError
from story_lint.verdict import FAIL, PASS, ActualExpected, Verdict


@check
async def check_validity(ctx: DocumentContext, services: Services) -> Verdict:
    """Markup conforms according to the injected markup validator."""
    result = await services.validator.validate(ctx.html())
    if result.passed:
        return PASS()
    raise ValidationRuleError([str(e) for e in result.errors])


@check
async def check_canonical(ctx: DocumentContext, services: Services) -> Verdict:
    """<link rel=canonical> points at the page itself and does not redirect."""
    link = ctx.document.select_one('link[rel="canonical"]')
    href = link.get("href") if link is not None else None
    if not href:
        raise MissingElementError("<link rel=canonical> not specified")
    try:
        canonical = ctx.absolute(href)
    except ValueError as exc:
        return FAIL(f"invalid canonical URL [{href}]: {exc}")
    if canonical != ctx.url:
        return FAIL(ActualExpected(actual=canonical, expected=ctx.url))
    try:
        final = await services.fetcher.final_url(canonical, ctx.headers)
    except LintError:
        return FAIL(f"couldn't retrieve canonical {canonical}")
    if final != canonical:
        return FAIL(ActualExpected(actual=final, expected=canonical))
    return PASS()
