# File: story_lint/runner.py
"""story_lint.runner: Параллельный запуск проверок и сборка отчёта.

All checks start at once against one shared context; the only
synchronisation point is the final ``gather``. Network concurrency is
capped by the fetch pool inside ``services``, not here.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping

from story_lint.checks.base import Check, Outcome, Services
from story_lint.context import DocumentContext
from story_lint.logger import logger
from story_lint.verdict import Verdict, is_pass

__all__ = ["Report", "run_checks", "summarize", "is_passing"]


def is_passing(outcome: Outcome) -> bool:
    """PASS verdict, or an empty issue list."""
    if isinstance(outcome, Verdict):
        return is_pass(outcome)
    return len(outcome) == 0


def _outcome_to_json(outcome: Outcome) -> Any:
    if isinstance(outcome, Verdict):
        return outcome.to_dict()
    return [v.to_dict() for v in outcome]


@dataclass(frozen=True, slots=True)
class Report:
    """Итог одного прогона: по записи на каждую зарегистрированную проверку."""

    url: str
    entries: Mapping[str, Outcome] = field(default_factory=dict)
    duration: float = 0.0

    def __post_init__(self) -> None:
        frozen = {
            k: (v if isinstance(v, Verdict) else tuple(v)) for k, v in self.entries.items()
        }
        object.__setattr__(self, "entries", MappingProxyType(frozen))

    def __getitem__(self, check_id: str) -> Outcome:
        value = self.entries[check_id]
        return value if isinstance(value, Verdict) else list(value)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, check_id: object) -> bool:
        return check_id in self.entries

    def failing(self) -> List[str]:
        """Identifiers whose verdict(s) are not PASS, in report order."""
        return [k for k, v in self.entries.items() if not is_passing(v)]

    def summary(self) -> str:
        return summarize(self)

    def to_dict(self) -> Dict[str, Any]:
        return {k: _outcome_to_json(v) for k, v in self.entries.items()}

    def json(self, *, pretty: bool = False) -> str:
        """JSON-представление отчёта (только записи проверок)."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def summarize(report: Report) -> str:
    """Comma-joined identifiers of non-passing checks."""
    return ",".join(report.failing())


async def run_checks(
    ctx: DocumentContext, services: Services, checks: Iterable[Check]
) -> Report:
    """Запускает все проверки одновременно и ждёт завершения каждой.

    A check that raises despite its own error boundary still gets a FAIL
    entry, so the report always has one entry per check.
    """
    checks = list(checks)
    ids = [c.id for c in checks]
    if len(set(ids)) != len(ids):
        raise ValueError(f"duplicate check ids: {sorted({i for i in ids if ids.count(i) > 1})}")

    logger.info("Running %d checks against %s", len(checks), ctx.url)
    start = time.monotonic()
    results = await asyncio.gather(*(c(ctx, services) for c in checks), return_exceptions=True)

    entries: Dict[str, Outcome] = {}
    for item, result in zip(checks, results):
        if isinstance(result, Exception):
            logger.error("Check %s escaped its boundary: %r", item.id, result)
            entries[item.id] = item.failure(f"{item.id} crashed: {type(result).__name__}: {result}")
        elif isinstance(result, BaseException):
            raise result
        else:
            entries[item.id] = result

    duration = time.monotonic() - start
    report = Report(url=ctx.url, entries=entries, duration=duration)
    logger.info(
        "Finished %d checks in %.2f s, not passing: %s",
        len(report),
        duration,
        report.summary() or "none",
    )
    return report
