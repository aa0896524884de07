# story_lint/report/json_report.py
"""
Сохранение отчёта StoryLint в JSON-файл.

Формат файла совпадает с выводом ``story-lint lint`` в stdout:
объект ``{id проверки: вердикт | [вердикты]}`` в порядке реестра.
"""
from pathlib import Path

from story_lint.logger import logger
from story_lint.runner import Report


def render_json(report: Report, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Записывает report в output_path (каталоги создаются при необходимости).

    :param report: объект Report с результатами проверок
    :param output_path: путь к JSON-файлу
    :param pretty: отступ 2 пробела
    :return: Path сохранённого файла
    """
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(report.json(pretty=pretty) + "\n", encoding="utf-8")
    logger.info("JSON report for %s written to %s", report.url, target)
    return target
