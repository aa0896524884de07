# File: story_lint/errors.py
"""story_lint.errors: Иерархия ошибок, которые проверки превращают в FAIL."""

from __future__ import annotations

from typing import Optional, Sequence

__all__ = (
    "LintError",
    "NetworkError",
    "HttpStatusError",
    "ContentTypeError",
    "AccessControlError",
    "ParseError",
    "ValidationRuleError",
    "GeometryMismatchError",
    "MissingElementError",
    "PageLoadError",
)


class LintError(Exception):
    """Base class; ``str(error)`` is used verbatim as the FAIL message."""


class NetworkError(LintError):
    """Connection, DNS or timeout failure of an outbound request."""


class HttpStatusError(LintError):
    def __init__(self, status: int, url: str = "", expected: str = "2xx") -> None:
        self.status = status
        self.url = url
        self.expected = expected
        super().__init__(f"expected status code: [{expected}], actual [{status}]")


class ContentTypeError(LintError):
    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected content-type: [{expected}]; actual: [{actual}]")


class AccessControlError(LintError):
    def __init__(self, actual: str, expected: str) -> None:
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"access-control-allow-origin header is [{actual}], expected [{expected}]"
        )


class ParseError(LintError):
    """Malformed JSON body, structured data or image stream."""


class ValidationRuleError(LintError):
    """Markup reported as non-conforming by the markup validator."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        details = "; ".join(self.errors) if self.errors else "no details reported"
        super().__init__(f"{len(self.errors)} validation error(s): {details}")


class GeometryMismatchError(LintError):
    """Measured image geometry is outside the declared tolerance."""


class MissingElementError(LintError):
    """A required document feature is absent."""


class PageLoadError(LintError):
    """Страница для проверки не загрузилась (ошибка вызывающей стороны, до запуска проверок)."""

    def __init__(self, url: str, reason: Optional[str] = None) -> None:
        self.url = url
        super().__init__(f"couldn't load [{url}]" + (f": {reason}" if reason else ""))
