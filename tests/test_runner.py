# File: tests/test_runner.py
"""Тесты параллельного прогона проверок и сборки отчёта."""
from __future__ import annotations

import asyncio
import json

import pytest

from story_lint.checks import DEFAULT_CHECKS, default_registry
from story_lint.checks.base import Check, CheckRegistry, check, check_id
from story_lint.errors import MissingElementError
from story_lint.runner import Report, run_checks, summarize
from story_lint.verdict import FAIL, PASS, WARN, Status

from conftest import story_html


def build_registry() -> CheckRegistry:
    registry = CheckRegistry()

    @registry.register
    async def check_always_passes(ctx, services):
        return PASS()

    @registry.register(multi=True)
    async def check_two_issues(ctx, services):
        return [PASS(), WARN("first"), FAIL("second")]

    @registry.register
    async def check_crashes(ctx, services):
        raise RuntimeError("kaboom")

    @registry.register
    async def check_missing_element(ctx, services):
        raise MissingElementError("<thing> not specified")

    @registry.register(multi=True)
    async def check_clean_list(ctx, services):
        return [PASS()]

    @registry.register
    async def check_wrong_type(ctx, services):
        return "PASS"

    return registry


def test_check_ids():
    assert check_id("check_amp_story_v1") == "ampstoryv1"
    assert check_id("check_cors_cache") == "corscache"
    assert [c.id for c in DEFAULT_CHECKS] == [
        "validity",
        "canonical",
        "ampstory",
        "ampstoryv1",
        "ampstoryv1metadata",
        "schemametadatarecent",
        "schemametadatatype",
        "bookendsameorigin",
        "bookendcache",
        "videosource",
        "videosize",
        "mostlytext",
        "runtimepreloaded",
        "thumbnails",
        "metacharsetfirst",
        "ampimg",
        "corssameorigin",
        "corscache",
    ]


def test_registry_rejects_duplicates_and_unknown_ids():
    registry = default_registry()
    with pytest.raises(ValueError):
        registry.add(DEFAULT_CHECKS[0])
    with pytest.raises(KeyError):
        registry.select(["ampstory", "nosuchcheck"])
    subset = registry.select(["corscache", "ampstory"])
    # registry order, not request order
    assert [c.id for c in subset] == ["ampstory", "corscache"]


def test_check_decorator_forms():
    @check
    async def check_plain(ctx, services):
        return PASS()

    @check(multi=True)
    async def check_many(ctx, services):
        return []

    assert isinstance(check_plain, Check) and not check_plain.multi
    assert check_many.multi and check_many.id == "many"


@pytest.mark.asyncio()
async def test_report_has_entry_per_check_despite_failures(make_context):
    registry = build_registry()
    report = await run_checks(make_context(story_html()), None, registry)

    assert list(report) == list(registry.ids())
    assert len(report) == len(registry)
    assert report["alwayspasses"] == PASS()
    assert report["twoissues"] == [WARN("first"), FAIL("second")]
    assert report["crashes"].status is Status.FAIL
    assert "RuntimeError" in report["crashes"].message
    assert report["missingelement"] == FAIL("<thing> not specified")
    assert report["cleanlist"] == []
    assert report["wrongtype"].status is Status.FAIL


@pytest.mark.asyncio()
async def test_summary_lists_non_passing_in_order(make_context):
    report = await run_checks(make_context(story_html()), None, build_registry())
    assert summarize(report) == "twoissues,crashes,missingelement,wrongtype"
    assert report.summary() == ",".join(report.failing())


@pytest.mark.asyncio()
async def test_checks_run_concurrently(make_context):
    first_started = asyncio.Event()
    second_started = asyncio.Event()

    async def check_first(ctx, services):
        first_started.set()
        await asyncio.wait_for(second_started.wait(), timeout=2)
        return PASS()

    async def check_second(ctx, services):
        second_started.set()
        await asyncio.wait_for(first_started.wait(), timeout=2)
        return PASS()

    report = await run_checks(
        make_context(story_html()), None, [Check(check_first), Check(check_second)]
    )
    assert report.failing() == []


@pytest.mark.asyncio()
async def test_exception_escaping_the_boundary_becomes_fail(make_context):
    class Exploding(Check):
        async def __call__(self, ctx, services):
            raise ValueError("escaped")

    async def check_exploding(ctx, services):
        return PASS()

    async def check_exploding_list(ctx, services):
        return []

    report = await run_checks(
        make_context(story_html()),
        None,
        [Exploding(check_exploding), Exploding(check_exploding_list, multi=True)],
    )
    assert report["exploding"].status is Status.FAIL
    assert len(report["explodinglist"]) == 1
    assert report["explodinglist"][0].status is Status.FAIL


@pytest.mark.asyncio()
async def test_duplicate_ids_rejected(make_context):
    async def check_same(ctx, services):
        return PASS()

    with pytest.raises(ValueError):
        await run_checks(make_context(story_html()), None, [Check(check_same), Check(check_same)])


@pytest.mark.asyncio()
async def test_runs_are_repeatable(make_context):
    ctx = make_context(story_html())
    first = await run_checks(ctx, None, build_registry())
    second = await run_checks(ctx, None, build_registry())
    assert first.to_dict() == second.to_dict()


def test_report_serialization_and_immutability():
    report = Report(
        url="https://example.com/",
        entries={"ampstory": PASS(), "ampimg": [WARN("w")], "corscache": []},
    )
    assert json.loads(report.json()) == {
        "ampstory": {"status": "PASS"},
        "ampimg": [{"status": "WARN", "message": "w"}],
        "corscache": [],
    }
    assert "\n" in report.json(pretty=True)
    with pytest.raises(TypeError):
        report.entries["ampstory"] = FAIL("x")
    listing = report["ampimg"]
    listing.append(FAIL("mutated copy"))
    assert report["ampimg"] == [WARN("w")]
