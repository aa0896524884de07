# File: story_lint/engine.py
"""story_lint.engine: сессия, пул, контекст и прогон проверок."""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable, Mapping, Optional

from aiohttp import ClientSession, ClientTimeout

from story_lint.checks import DEFAULT_CHECKS, Check, Services, default_registry
from story_lint.config import LinterConfig, load_config
from story_lint.context import build_context, fetch_context
from story_lint.logger import logger
from story_lint.net.fetcher import Fetcher
from story_lint.net.pool import FetchPool
from story_lint.probe import ImageProbe, ImageProber
from story_lint.runner import Report, run_checks
from story_lint.validator import AmpValidatorCli, MarkupValidator

__all__ = ["Engine", "lint_url"]


class Engine:
    """Фасад для CLI и тестов: один вызов lint() даёт один полный отчёт."""

    @staticmethod
    def load_config(path: Optional[str]) -> LinterConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(
        self,
        config: LinterConfig,
        *,
        validator: Optional[MarkupValidator] = None,
        prober_factory: Callable[[Fetcher], ImageProbe] = ImageProber,
        checks: Iterable[Check] = DEFAULT_CHECKS,
    ) -> None:
        self.config = config
        self.validator = validator or AmpValidatorCli(config.validator_command)
        self.prober_factory = prober_factory
        self.checks = tuple(checks)

    def _session(self) -> ClientSession:
        return ClientSession(
            timeout=ClientTimeout(total=self.config.timeout),
            headers={"User-Agent": self.config.user_agent},
        )

    def _services(self, fetcher: Fetcher) -> Services:
        return Services(
            fetcher=fetcher,
            validator=self.validator,
            prober=self.prober_factory(fetcher),
            config=self.config,
        )

    async def lint(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Report:
        """Загружает страницу и прогоняет все проверки."""
        if not url:
            raise ValueError("no target URL provided")
        logger.info("Linting %s", url)
        async with self._session() as session:
            fetcher = Fetcher(session, FetchPool(self.config.concurrency))
            ctx = await fetch_context(fetcher, url, headers)
            return await run_checks(ctx, self._services(fetcher), self.checks)

    async def lint_html(
        self, url: str, html: str, headers: Optional[Mapping[str, str]] = None
    ) -> Report:
        """Проверяет уже полученный HTML; ``url`` задаёт базу для относительных ссылок."""
        ctx = build_context(url, html, headers)
        logger.info("Linting supplied document for %s", url)
        async with self._session() as session:
            fetcher = Fetcher(session, FetchPool(self.config.concurrency))
            return await run_checks(ctx, self._services(fetcher), self.checks)

    def start_lint(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Report:
        """Синхронная обёртка над :meth:`lint`."""
        try:
            return asyncio.run(self.lint(url, headers))
        except Exception as exc:
            logger.error("Linting failed: %s", exc)
            raise


async def lint_url(
    cfg: LinterConfig,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    *,
    html: Optional[str] = None,
    only: Iterable[str] = (),
    validator: Optional[MarkupValidator] = None,
) -> Report:
    """
    Запускает линтер для одной страницы и возвращает отчёт.

    Parameters
    ----------
    cfg : LinterConfig
        Конфигурация запуска.
    url : str
        Адрес страницы (база для относительных ссылок, если передан ``html``).
    html : str, optional
        Готовая разметка; тогда страница не загружается.
    only : Iterable[str]
        Идентификаторы проверок, которыми ограничить прогон.
    """
    only = tuple(only)
    checks = default_registry().select(only) if only else DEFAULT_CHECKS
    engine = Engine(cfg, validator=validator, checks=checks)
    if html is not None:
        return await engine.lint_html(url, html, headers)
    return await engine.lint(url, headers)
