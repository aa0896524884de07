# File: story_lint/checks/base.py
"""story_lint.checks.base: Базовые сущности проверок.

A check is an ``async def check_<name>(ctx, services)`` function wrapped by
the :func:`check` decorator. The wrapper is the error boundary: whatever
the function raises becomes a FAIL verdict for that check only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Awaitable,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from story_lint.config import CacheDomain, LinterConfig
from story_lint.context import DocumentContext
from story_lint.errors import LintError
from story_lint.net.fetcher import Fetcher
from story_lint.probe import ImageProbe
from story_lint.validator import MarkupValidator
from story_lint.verdict import FAIL, Verdict, only_issues

__all__ = (
    "Services",
    "Outcome",
    "Check",
    "CheckRegistry",
    "check",
    "check_id",
)

logger = logging.getLogger("StoryLint")

Outcome = Union[Verdict, List[Verdict]]
CheckFn = Callable[["DocumentContext", "Services"], Awaitable[Outcome]]

CHECK_PREFIX = "check_"


@dataclass(frozen=True, slots=True)
class Services:
    """Per-run capabilities shared by all checks (one fetch pool for the whole run)."""

    fetcher: Fetcher
    validator: MarkupValidator
    prober: ImageProbe
    config: LinterConfig

    @property
    def caches(self) -> Sequence[CacheDomain]:
        return self.config.caches


def check_id(name: str) -> str:
    """``check_amp_story_v1`` -> ``ampstoryv1``."""
    return name.removeprefix(CHECK_PREFIX).replace("_", "").lower()


class Check:
    """Named async validation unit producing one verdict, or a list for ``multi`` checks."""

    def __init__(self, fn: CheckFn, *, multi: bool = False, name: Optional[str] = None) -> None:
        self.fn = fn
        self.multi = multi
        self.name = name or fn.__name__
        self.id = check_id(self.name)
        self.__doc__ = fn.__doc__

    async def __call__(self, ctx: DocumentContext, services: Services) -> Outcome:
        try:
            return self._normalize(await self.fn(ctx, services))
        except LintError as exc:
            logger.debug("Check %s failed: %s", self.id, exc)
            return self.failure(str(exc))
        except Exception as exc:
            logger.exception("Check %s crashed", self.id)
            return self.failure(f"{self.id} crashed: {type(exc).__name__}: {exc}")

    def failure(self, message: str) -> Outcome:
        verdict = FAIL(message)
        return [verdict] if self.multi else verdict

    def _normalize(self, result: object) -> Outcome:
        if self.multi:
            if isinstance(result, Verdict):
                result = [result]
            if not isinstance(result, list) or not all(isinstance(v, Verdict) for v in result):
                raise TypeError(f"expected list of Verdict, got {type(result).__name__}")
            # PASS entries never leave a multi check: [] means everything passed
            return only_issues(result)
        if not isinstance(result, Verdict):
            raise TypeError(f"expected Verdict, got {type(result).__name__}")
        return result

    def __repr__(self) -> str:
        return f"<Check {self.id}{' (multi)' if self.multi else ''}>"


def check(fn: Optional[CheckFn] = None, *, multi: bool = False):
    """Decorator: ``@check`` or ``@check(multi=True)``."""

    def wrap(f: CheckFn) -> Check:
        return Check(f, multi=multi)

    return wrap(fn) if fn is not None else wrap


class CheckRegistry:
    """Ordered collection of checks with unique identifiers."""

    def __init__(self, checks: Iterable[Check] = ()) -> None:
        self._checks: Dict[str, Check] = {}
        for c in checks:
            self.add(c)

    def add(self, item: Check) -> Check:
        if item.id in self._checks:
            raise ValueError(f"duplicate check id: {item.id}")
        self._checks[item.id] = item
        return item

    def register(self, fn: Optional[CheckFn] = None, *, multi: bool = False):
        """Decorator form of :meth:`add`."""

        def wrap(f: CheckFn) -> Check:
            return self.add(Check(f, multi=multi))

        return wrap(fn) if fn is not None else wrap

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._checks)

    def get(self, check_id_: str) -> Check:
        return self._checks[check_id_]

    def select(self, ids: Iterable[str]) -> "CheckRegistry":
        """Subset in registry order; unknown ids raise KeyError."""
        wanted = set(ids)
        unknown = wanted - set(self._checks)
        if unknown:
            raise KeyError(f"unknown check id(s): {', '.join(sorted(unknown))}")
        return CheckRegistry(c for c in self._checks.values() if c.id in wanted)

    def __iter__(self) -> Iterator[Check]:
        return iter(self._checks.values())

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, check_id_: object) -> bool:
        return check_id_ in self._checks
