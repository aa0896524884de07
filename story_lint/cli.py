#!/usr/bin/env python3
# === FILE: story_lint/cli.py ===
"""
Точка входа для запуска линтера StoryLint через командную строку.

Команды:
  lint      Проверить страницу и вывести/сохранить отчёт
  checks    Показать список проверок
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда lint опции:
  -H, --header 'K: V' Заголовок запроса (можно повторять, как в curl)
  --base-url URL      URL страницы, если HTML читается из stdin (URL = -)
  --check ID          Запустить только указанные проверки (можно повторять)
  --summary           Вывести только список непройденных проверок через запятую
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблоном report.html.j2
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --lint-timeout SEC  Таймаут всего прогона (секунд)

Пример:
  story-lint lint https://example.com/story.html --pretty
  curl -s https://example.com/story.html | story-lint lint - --base-url https://example.com/story.html
"""
import asyncio
import sys
from pathlib import Path

import click

from story_lint import __version__
from story_lint.checks import DEFAULT_CHECKS
from story_lint.config import load_config
from story_lint.engine import lint_url
from story_lint.errors import PageLoadError
from story_lint.logger import init_logging
from story_lint.report.html_report import render_html
from story_lint.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def parse_headers(raw: tuple) -> dict:
    """'Name: value' -> {'name': 'value'}; значение может содержать ': '."""
    headers = {}
    for item in raw:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"ожидается 'Name: value', получено {item!r}", param_hint="--header")
        headers[name.strip().lower()] = value.strip()
    return headers


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='StoryLint, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд StoryLint CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('lint', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--header', '-H', 'headers', multiple=True, help="Заголовок запроса 'Name: value'")
@click.option('--base-url', 'base_url', default=None, help='URL страницы при чтении HTML из stdin')
@click.option('--check', 'only', multiple=True, help='Запустить только указанную проверку')
@click.option('--summary', is_flag=True, help='Только список непройденных проверок')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблоном (по умолчанию встроенный)'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--lint-timeout', 'lint_timeout', type=float, default=None,
              help='Таймаут всего прогона (секунд)')
@click.pass_context
def lint(ctx, url, headers, base_url, only, summary, json_output, html_output,
         template_dir, pretty, lint_timeout):
    """Проверить страницу URL (или HTML из stdin, если URL = -)."""
    cfg = ctx.obj['config']
    request_headers = parse_headers(headers)

    html = None
    page_url = url
    if url == '-':
        if not base_url:
            print_error('Для чтения из stdin нужен --base-url')
        html = click.get_text_stream('stdin').read()
        page_url = base_url

    job = lint_url(cfg, page_url, request_headers, html=html, only=only)
    try:
        if lint_timeout:
            report = asyncio.run(asyncio.wait_for(job, timeout=lint_timeout))
        else:
            report = asyncio.run(job)
    except asyncio.TimeoutError:
        print_error(f'Проверка не завершена за {lint_timeout} секунд')
    except PageLoadError as e:
        print_error(str(e))
    except Exception as e:
        print_error(f'Ошибка при проверке: {e}')

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=True)
            click.echo(f'JSON report: {saved_json}', err=True)
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, html_output, template_dir)
            click.echo(f'HTML report: {saved_html}', err=True)
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')

    if summary:
        click.echo(report.summary())
    elif not json_output and not html_output:
        click.echo(report.json(pretty=pretty))


@cli.command('checks', context_settings=CONTEXT_SETTINGS)
def list_checks():
    """Показать идентификаторы проверок в порядке отчёта."""
    for item in DEFAULT_CHECKS:
        doc = (item.__doc__ or '').strip().splitlines()
        kind = 'list' if item.multi else 'single'
        click.echo(f'{item.id:<22} {kind:<6} {doc[0] if doc else ""}'.rstrip())


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
