# File: story_lint/probe.py
"""
Image probing: reads just enough of an image stream to learn its pixel size.

Raster formats go through Pillow's incremental parser. SVG has no pixel
header, so its size comes from the root element's ``width``/``height``
attributes, or from ``viewBox`` when those are missing or relative.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import AsyncIterator, Mapping, Optional, Protocol, Tuple

from bs4 import BeautifulSoup
from PIL import Image, ImageFile

from story_lint.errors import HttpStatusError, ParseError
from story_lint.net.fetcher import Fetcher

__all__ = ["ImageSize", "ImageProbe", "ImageProber", "svg_size"]

CHUNK_SIZE = 4096
#: give up when this many bytes did not reveal the image header
MAX_PROBE_BYTES = 2 * 1024 * 1024
SVG_MIME = "image/svg+xml"

_SVG_OPEN = re.compile(rb"<svg\b[^>]*>", re.IGNORECASE)
_LENGTH = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:px)?\s*$")


@dataclass(frozen=True, slots=True)
class ImageSize:
    width: int
    height: int
    mime: Optional[str] = None


class ImageProbe(Protocol):
    async def probe(self, url: str, headers: Optional[Mapping[str, str]] = None) -> ImageSize: ...


def _without_encoding(headers: Optional[Mapping[str, str]]) -> dict[str, str]:
    # compressed transfer encodings defeat incremental header parsing
    clean = {k: v for k, v in (headers or {}).items() if k.lower() != "accept-encoding"}
    clean["Accept-Encoding"] = "identity"
    return clean


def _looks_like_svg(chunk: bytes) -> bool:
    head = chunk.lstrip(b"\xef\xbb\xbf").lstrip().lower()
    return head.startswith(b"<svg") or head.startswith(b"<?xml")


def _svg_length(value: Optional[str]) -> Optional[float]:
    """Absolute length in user units; None for percentages, ems and garbage."""
    match = _LENGTH.match(value or "")
    if not match:
        return None
    length = float(match.group(1))
    return length if length > 0 else None


def _view_box(value: Optional[str]) -> Optional[Tuple[float, float]]:
    parts = (value or "").replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        width, height = float(parts[2]), float(parts[3])
    except ValueError:
        return None
    return (width, height) if width > 0 and height > 0 else None


def svg_size(markup: bytes | str, url: str = "") -> ImageSize:
    """Size of an SVG document taken from its root ``<svg>`` element.

    A missing dimension is derived from the ``viewBox`` aspect ratio; with
    neither dimension given, the ``viewBox`` size itself is used.
    """
    root = BeautifulSoup(markup, "html.parser").find("svg")
    if root is None:
        raise ParseError(f"[{url}] is not an SVG document")
    width = _svg_length(root.get("width"))
    height = _svg_length(root.get("height"))
    # html.parser lower-cases attribute names
    box = _view_box(root.get("viewbox"))
    if box is not None and (width is None or height is None):
        box_w, box_h = box
        if width is not None:
            height = width * box_h / box_w
        elif height is not None:
            width = height * box_w / box_h
        else:
            width, height = box_w, box_h
    if width is None or height is None:
        raise ParseError(f"couldn't determine SVG size of [{url}]: no width/height or viewBox")
    return ImageSize(round(width), round(height), SVG_MIME)


class ImageProber:
    """Streams the resource through the fetch pool and feeds Pillow's incremental parser."""

    def __init__(self, fetcher: Fetcher, max_bytes: int = MAX_PROBE_BYTES) -> None:
        self.fetcher = fetcher
        self.max_bytes = max_bytes

    async def probe(self, url: str, headers: Optional[Mapping[str, str]] = None) -> ImageSize:
        async with self.fetcher.open(url, headers=_without_encoding(headers)) as resp:
            if not 200 <= resp.status < 300:
                raise HttpStatusError(resp.status, url)
            chunks = resp.content.iter_chunked(CHUNK_SIZE)
            if resp.content_type == SVG_MIME:
                return await self._svg(url, b"", chunks)
            parser = ImageFile.Parser()
            seen = 0
            async for chunk in chunks:
                if seen == 0 and _looks_like_svg(chunk):
                    return await self._svg(url, chunk, chunks)
                try:
                    parser.feed(chunk)
                except (Image.DecompressionBombError, ValueError) as exc:
                    raise ParseError(f"[{url}] is not a usable image: {exc}") from exc
                seen += len(chunk)
                if parser.image is not None:
                    width, height = parser.image.size
                    return ImageSize(width, height, Image.MIME.get(parser.image.format or ""))
                if seen >= self.max_bytes:
                    break
        raise ParseError(f"couldn't determine image size of [{url}] after {seen} bytes")

    async def _svg(self, url: str, first: bytes, chunks: AsyncIterator[bytes]) -> ImageSize:
        # the root tag is all that matters; stop reading once it is complete
        buf = bytearray(first)
        while not _SVG_OPEN.search(buf) and len(buf) < self.max_bytes:
            chunk = await anext(chunks, b"")
            if not chunk:
                break
            buf.extend(chunk)
        return svg_size(bytes(buf), url)
