# File: story_lint/report/__init__.py
"""story_lint.report: Сохранение отчёта в JSON и HTML (используется CLI и тестами)."""

from story_lint.report.html_report import render_html
from story_lint.report.json_report import render_json

__all__ = ["render_json", "render_html"]
