# File: tests/test_images.py
"""Тесты геометрии изображений: правила пропорций/объёма, роли миниатюр, сетевой замер."""
from __future__ import annotations

import pytest
from aiohttp import web

from story_lint.checks.images import (
    assess_geometry,
    check_amp_img,
    check_thumbnails,
    floor_ratio,
    is_landscape,
    is_portrait,
    is_square,
    parse_dimension,
)
from story_lint.errors import HttpStatusError, ParseError
from story_lint.probe import ImageSize, svg_size
from story_lint.verdict import Status

from conftest import png_bytes, story_html


SQUARE_SVG = b'<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100"><rect/></svg>'
BANNER_SVG = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 160 90"><rect/></svg>'
)


def size(w, h):
    return ImageSize(w, h, "image/png")


# --------------------------------------------------------------------------- #
#                              Pure geometry rules                             #
# --------------------------------------------------------------------------- #


def test_floor_ratio_truncates():
    assert floor_ratio(100, 103) == 0.97
    assert floor_ratio(100, 101) == 0.99
    assert floor_ratio(4, 3) == 1.33


def test_ratio_outside_tolerance_fails():
    issues = assess_geometry("a.png", size(100, 100), 100, 103)
    assert len(issues) == 1
    assert issues[0].status is Status.FAIL
    assert "does not match" in issues[0].message


def test_ratio_within_tolerance_passes():
    assert assess_geometry("a.png", size(100, 100), 100, 101) == []


@pytest.mark.parametrize(
    "declared,expected",
    [
        (400, "much smaller"),
        (1300, "much larger"),
        (900, None),
    ],
)
def test_volume_rule(declared, expected):
    issues = assess_geometry("a.png", size(1000, 1000), declared, declared)
    if expected is None:
        assert issues == []
    else:
        assert len(issues) == 1
        assert issues[0].status is Status.WARN
        assert expected in issues[0].message


def test_ratio_and_volume_rules_both_fire():
    issues = assess_geometry("a.png", size(1000, 1000), 100, 300)
    assert [v.status for v in issues] == [Status.FAIL, Status.WARN]


def test_empty_image_dimensions_fail():
    issues = assess_geometry("a.png", size(0, 10), 10, 10)
    assert issues[0].status is Status.FAIL


@pytest.mark.parametrize(
    "value,expected",
    [("100", 100), ("100px", 100), (" 42 ", 42), ("0", None), ("-5", None), ("auto", None), (None, None)],
)
def test_parse_dimension(value, expected):
    assert parse_dimension(value) == expected


def test_roles():
    assert is_square(size(500, 500))
    assert not is_square(size(500, 501))
    assert is_portrait(size(720, 960))
    assert not is_portrait(size(800, 1000))
    assert is_landscape(size(960, 720))
    assert not is_landscape(size(720, 960))


# --------------------------------------------------------------------------- #
#                               Network probing                                #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def image_app():
    """App serving images of fixed sizes; records Accept-Encoding of each request."""
    seen = []
    images = {
        "square.png": (png_bytes(100, 100), "image/png"),
        "portrait.png": (png_bytes(72, 96), "image/png"),
        "wide.png": (png_bytes(160, 90), "image/png"),
        "logo.svg": (SQUARE_SVG, "image/svg+xml"),
        # no SVG content type; recognised by the XML prolog
        "banner.svg": (BANNER_SVG, "application/octet-stream"),
    }

    async def handle(request):
        seen.append(request.headers.get("Accept-Encoding"))
        entry = images.get(request.match_info["name"])
        if entry is None:
            raise web.HTTPNotFound()
        body, content_type = entry
        return web.Response(body=body, content_type=content_type)

    async def not_an_image(_):
        return web.Response(text="<html>nope</html>" * 10, content_type="text/html")

    app = web.Application()
    app.router.add_get("/img/{name}", handle)
    app.router.add_get("/page.html", not_an_image)
    return app, seen


@pytest.mark.asyncio()
async def test_prober_reads_size_without_compression(serve, services, image_app):
    app, seen = image_app
    base = await serve(app)

    result = await services.prober.probe(f"{base}/img/portrait.png", {"accept-encoding": "gzip"})

    assert (result.width, result.height) == (72, 96)
    assert result.mime == "image/png"
    assert seen == ["identity"]
    assert services.fetcher.pool.in_flight == 0


@pytest.mark.asyncio()
async def test_prober_errors(serve, services, image_app):
    app, _ = image_app
    base = await serve(app)

    with pytest.raises(HttpStatusError) as exc_info:
        await services.prober.probe(f"{base}/img/missing.png")
    assert exc_info.value.status == 404

    with pytest.raises(ParseError):
        await services.prober.probe(f"{base}/page.html")


@pytest.mark.asyncio()
async def test_check_amp_img(serve, services, image_app, make_context):
    app, _ = image_app
    base = await serve(app)
    body = (
        '<amp-story-page id="p1">'
        '<amp-img src="/img/square.png" width="100" height="100"></amp-img>'
        '<amp-img src="/img/square.png" width="100" height="103"></amp-img>'
        '<amp-img src="/img/missing.png" width="10" height="10"></amp-img>'
        '<amp-img src="/img/wide.png" layout="fill"></amp-img>'
        "</amp-story-page>"
    )
    ctx = make_context(story_html(body), url=f"{base}/story.html")

    verdicts = await check_amp_img(ctx, services)

    assert len(verdicts) == 2
    assert all(v.status is Status.FAIL for v in verdicts)
    assert any("does not match" in v.message for v in verdicts)
    assert any("[/img/missing.png] returned status 404" == v.message for v in verdicts)


@pytest.mark.asyncio()
async def test_check_thumbnails(serve, services, image_app, make_context):
    app, _ = image_app
    base = await serve(app)

    good = make_context(
        story_html(story_attrs='standalone publisher-logo-src="/img/square.png" '
                   'poster-portrait-src="/img/portrait.png"'),
        url=f"{base}/story.html",
    )
    assert await check_thumbnails(good, services) == []

    bad = make_context(
        story_html(story_attrs='standalone publisher-logo-src="/img/wide.png" '
                   'poster-landscape-src="/img/portrait.png"'),
        url=f"{base}/story.html",
    )
    messages = [v.message for v in await check_thumbnails(bad, services)]

    assert "[poster-portrait-src] is missing" in messages
    assert any(m.startswith("[publisher-logo-src]") and "square" in m for m in messages)
    assert any(m.startswith("[poster-landscape-src]") and "landscape" in m for m in messages)
    assert len(messages) == 3


# --------------------------------------------------------------------------- #
#                                    SVG                                       #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    "markup,expected",
    [
        ('<svg width="100" height="100"></svg>', (100, 100)),
        ('<svg width="100px" height="50.4px"></svg>', (100, 50)),
        ('<svg viewBox="0 0 160 90"></svg>', (160, 90)),
        ('<svg width="80" viewBox="0 0 160 90"></svg>', (80, 45)),
        ('<svg width="100%" height="100%" viewBox="0,0,30,40"></svg>', (30, 40)),
    ],
)
def test_svg_size(markup, expected):
    result = svg_size(markup)
    assert (result.width, result.height) == expected
    assert result.mime == "image/svg+xml"


@pytest.mark.parametrize(
    "markup",
    ['<svg width="100%"></svg>', '<svg viewBox="0 0 0 0"></svg>', "<html><p>no svg</p></html>"],
)
def test_svg_size_unknown(markup):
    with pytest.raises(ParseError):
        svg_size(markup, "x.svg")


@pytest.mark.asyncio()
async def test_served_svg_sizes(serve, services, image_app):
    app, _ = image_app
    base = await serve(app)

    logo = await services.prober.probe(f"{base}/img/logo.svg")
    banner = await services.prober.probe(f"{base}/img/banner.svg")

    assert (logo.width, logo.height, logo.mime) == (100, 100, "image/svg+xml")
    assert (banner.width, banner.height) == (160, 90)
    assert services.fetcher.pool.in_flight == 0


@pytest.mark.asyncio()
async def test_check_amp_img_accepts_svg(serve, services, image_app, make_context):
    app, _ = image_app
    base = await serve(app)
    body = '<amp-img src="/img/logo.svg" width="100" height="100"></amp-img>'
    ctx = make_context(story_html(body), url=f"{base}/story.html")

    assert await check_amp_img(ctx, services) == []


# --------------------------------------------------------------------------- #
#                              Malformed sources                               #
# --------------------------------------------------------------------------- #

BROKEN_IPV6 = "http://[::1/x.png"


@pytest.mark.asyncio()
async def test_malformed_src_fails_only_its_own_image(serve, services, image_app, make_context):
    app, _ = image_app
    base = await serve(app)
    body = (
        f'<amp-img src="{BROKEN_IPV6}" width="10" height="10"></amp-img>'
        '<amp-img src="/img/missing.png" width="10" height="10"></amp-img>'
        '<amp-img src="/img/square.png" width="100" height="100"></amp-img>'
    )
    ctx = make_context(story_html(body), url=f"{base}/story.html")

    verdicts = await check_amp_img(ctx, services)

    messages = [v.message for v in verdicts]
    assert len(messages) == 2
    assert all(v.status is Status.FAIL for v in verdicts)
    assert f"[{BROKEN_IPV6}] invalid URL (Invalid IPv6 URL)" in messages
    assert "[/img/missing.png] returned status 404" in messages
    assert not any("crashed" in m for m in messages)


@pytest.mark.asyncio()
async def test_malformed_thumbnail_fails_only_its_own_role(serve, services, image_app, make_context):
    app, _ = image_app
    base = await serve(app)
    ctx = make_context(
        story_html(story_attrs=f'standalone publisher-logo-src="{BROKEN_IPV6}" '
                   'poster-portrait-src="/img/portrait.png"'),
        url=f"{base}/story.html",
    )

    verdicts = await check_thumbnails(ctx, services)

    assert len(verdicts) == 1
    assert verdicts[0].message.startswith(f"[publisher-logo-src] ({BROKEN_IPV6}) invalid URL")
