# File: story_lint/validator.py
"""story_lint.validator: Внешний валидатор разметки (непрозрачный вызов).

The rule catalogue lives entirely in the validator; this module only
defines the call contract and an implementation that drives the
``amphtml-validator`` command line tool. Instances are constructed
explicitly and injected into the engine.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from story_lint.errors import LintError, ParseError
from story_lint.logger import logger

__all__ = ("ValidationIssue", "ValidationResult", "MarkupValidator", "AmpValidatorCli")


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    line: int
    col: int
    message: str
    severity: str = "ERROR"
    code: Optional[str] = None

    def __str__(self) -> str:
        return f"line {self.line}:{self.col} {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    status: str
    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == "PASS"


@runtime_checkable
class MarkupValidator(Protocol):
    async def validate(self, html: str) -> ValidationResult: ...


def _issue(raw: dict[str, Any]) -> ValidationIssue:
    return ValidationIssue(
        line=int(raw.get("line", 0) or 0),
        col=int(raw.get("col", 0) or 0),
        message=str(raw.get("message", "")),
        severity=str(raw.get("severity", "ERROR")),
        code=raw.get("code"),
    )


def parse_cli_output(stdout: str) -> ValidationResult:
    """Разбирает вывод ``amphtml-validator --format=json`` (ключ: имя входа, ``-`` для stdin)."""
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ParseError(f"validator produced non-JSON output: {stdout[:100]}") from exc
    if isinstance(data, dict) and "status" not in data and data:
        data = next(iter(data.values()))
    if not isinstance(data, dict) or "status" not in data:
        raise ParseError(f"unexpected validator output: {stdout[:100]}")
    errors = [_issue(e) for e in data.get("errors", []) if isinstance(e, dict)]
    return ValidationResult(status=str(data["status"]).upper(), errors=errors)


class AmpValidatorCli:
    """Runs ``<command> --format=json -`` with the document on stdin."""

    def __init__(self, command: Sequence[str] = ("amphtml-validator",)) -> None:
        self.command = list(command)

    async def validate(self, html: str) -> ValidationResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                "--format=json",
                "-",
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.warning("Markup validator %s unavailable: %s", self.command[0], exc)
            raise LintError(f"markup validator unavailable: {exc}") from exc
        stdout, stderr = await proc.communicate(html.encode("utf-8"))
        # exit status is non-zero for invalid documents, the JSON tells the rest
        if not stdout.strip():
            raise LintError(
                f"markup validator exited with {proc.returncode}: "
                f"{stderr.decode('utf-8', errors='replace').strip()[:200]}"
            )
        return parse_cli_output(stdout.decode("utf-8", errors="replace"))
