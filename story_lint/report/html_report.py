# File: story_lint/report/html_report.py
"""story_lint.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import BaseLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from story_lint.runner import Report, is_passing
from story_lint.verdict import ActualExpected, Verdict

TEMPLATE_NAME = "report.html.j2"


def _rows(report: Report) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for check_id in report:
        outcome = report[check_id]
        verdicts = [outcome] if isinstance(outcome, Verdict) else outcome
        rows.append(
            {
                "id": check_id,
                "passed": is_passing(outcome),
                "verdicts": [
                    {
                        "status": v.status.value,
                        "message": v.message,
                        "diff": isinstance(v.message, ActualExpected),
                    }
                    for v in verdicts
                ],
            }
        )
    return rows


def render_html(
    report: Report,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        report: объект Report.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория с шаблоном ``report.html.j2``;
            по умолчанию используется шаблон из пакета.

    Returns:
        Path до сохранённого HTML-файла.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    loader: BaseLoader
    if template_dir is None:
        loader = PackageLoader("story_lint", "templates")
    else:
        loader = FileSystemLoader(str(template_dir))
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml", "j2"]))
    template = env.get_template(TEMPLATE_NAME)

    html_content = template.render(
        url=report.url,
        duration=report.duration,
        summary=report.summary(),
        rows=_rows(report),
    )
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
