# File: story_lint/verdict.py
"""story_lint.verdict: Результат одной проверки (статус + необязательное сообщение).

Multi-issue checks return a list of verdicts that never contains a PASS
entry, so an empty list is the canonical "everything passed" value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

__all__ = (
    "Status",
    "ActualExpected",
    "Verdict",
    "Message",
    "PASS",
    "FAIL",
    "WARN",
    "INFO",
    "is_pass",
    "not_pass",
    "only_issues",
)


class Status(str, Enum):
    """Четыре статуса; порядок объявления соответствует серьёзности для отображения."""

    PASS = "PASS"
    INFO = "INFO"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True, slots=True)
class ActualExpected:
    """Structured message intended for diff-style presentation."""

    actual: Optional[str]
    expected: str

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"actual": self.actual, "expected": self.expected}


Message = Union[str, ActualExpected]


@dataclass(frozen=True, slots=True)
class Verdict:
    """Immutable outcome of one check."""

    status: Status
    message: Optional[Message] = None

    @property
    def passed(self) -> bool:
        return self.status is Status.PASS

    def to_dict(self) -> Dict[str, Any]:
        """Сериализует вердикт в JSON-совместимый словарь (без ключа message у PASS)."""
        data: Dict[str, Any] = {"status": self.status.value}
        if self.message is not None:
            data["message"] = (
                self.message.to_dict() if isinstance(self.message, ActualExpected) else self.message
            )
        return data


_PASS = Verdict(Status.PASS)


def PASS() -> Verdict:
    return _PASS


def FAIL(message: Message) -> Verdict:
    return Verdict(Status.FAIL, message)


def WARN(message: Message) -> Verdict:
    return Verdict(Status.WARN, message)


def INFO(message: Message) -> Verdict:
    return Verdict(Status.INFO, message)


def is_pass(verdict: Verdict) -> bool:
    return verdict.status is Status.PASS


def not_pass(verdict: Verdict) -> bool:
    return verdict.status is not Status.PASS


def only_issues(verdicts: Iterable[Verdict]) -> List[Verdict]:
    """Отбрасывает PASS-вердикты, сохраняя порядок остальных."""
    return [v for v in verdicts if not_pass(v)]
