# === FILE: story_lint/config.py ===
"""
Модуль для загрузки и валидации конфигурации линтера StoryLint.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from importlib import resources
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from story_lint.logger import logger

UA_GOOGLEBOT_MOBILE = " ".join(
    [
        "Mozilla/5.0 (Linux; Android 6.0.1; Nexus 5X Build/MMB29P) AppleWebKit/537.36",
        "(KHTML, like Gecko) Chrome/41.0.2272.96 Mobile Safari/537.36",
        "(compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    ]
)


class CacheDomain(BaseModel):
    """Зеркало (AMP-кэш), от имени которого проверяются CORS-эндпоинты."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)
    domain_suffix: str = Field(..., alias="cacheDomain", min_length=1)

    @field_validator("domain_suffix", mode="before")
    def _strip_dots(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().strip(".").lower()
        return v


def load_caches(path: Union[str, Path, None] = None) -> List[CacheDomain]:
    """Читает список зеркал: из файла или из встроенного ``story_lint/data/caches.yaml``."""
    if path is None:
        text = resources.files("story_lint").joinpath("data/caches.yaml").read_text(encoding="utf-8")
        source = "bundled caches.yaml"
    else:
        path_obj = Path(path)
        text = path_obj.read_text(encoding="utf-8")
        source = str(path_obj)
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {source}: {exc}") from exc
    caches = data.get("caches", []) if isinstance(data, dict) else data
    if not isinstance(caches, list):
        raise TypeError(f"caches должен быть списком, получено {type(caches).__name__}")
    return [CacheDomain.model_validate(c) for c in caches]


class LinterConfig(BaseModel):
    """Конфигурация одного запуска линтера."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    concurrency: int = Field(8, ge=1, description="Размер пула исходящих запросов.")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field(UA_GOOGLEBOT_MOBILE, min_length=1, description="Заголовок User-Agent.")
    caches: List[CacheDomain] = Field(
        default_factory=load_caches, description="Зеркала для CORS-проверок."
    )
    validator_command: List[str] = Field(
        default_factory=lambda: ["amphtml-validator"],
        min_length=1,
        description="Команда валидатора разметки.",
    )
    video_size_limit: int = Field(4_000_000, gt=0, description="Лимит размера видео (байт).")
    min_text_length: int = Field(100, ge=0, description="Минимум текста внутри <amp-story>.")
    freshness_days: int = Field(30, gt=0, description="Окно свежести datePublished/dateModified.")

    @field_validator("caches")
    def _unique_cache_ids(cls, v: List[CacheDomain]) -> List[CacheDomain]:
        ids = [c.id for c in v]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate cache ids: {', '.join(dupes)}")
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> LinterConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект LinterConfig.
    Без пути использует configs/default.yaml, а если его нет, значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            logger.debug("%s not found, using built-in defaults", _DEFAULT_CFG)
            return LinterConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return LinterConfig(**data)
    except ValidationError:
        logger.error("Invalid configuration in %s", path_obj)
        raise
