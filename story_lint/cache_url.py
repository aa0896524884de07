# File: story_lint/cache_url.py
"""story_lint.cache_url: Преобразование адреса страницы в адрес/origin на AMP-кэше.

The cache serves ``https://example.com/a`` as
``https://example-com.<suffix>/c/s/example.com/a``; the subdomain is a
reversible, human-readable encoding of the host, or a base32 SHA-256
digest when that encoding is not possible.
"""

from __future__ import annotations

import base64
import hashlib
import unicodedata
from urllib.parse import urlsplit

__all__ = ("cache_subdomain", "cache_origin", "cache_url", "origin_of")

MAX_DOMAIN_LABEL_LENGTH = 63

_RTL = {"R", "AL"}
_LTR = {"L"}


def origin_of(url: str) -> str:
    """``scheme://host[:port]`` of ``url``."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def _to_unicode(domain: str) -> str:
    labels = []
    for label in domain.split("."):
        if label.startswith("xn--"):
            try:
                label = label.encode("ascii").decode("idna")
            except UnicodeError:
                pass
        labels.append(label)
    return ".".join(labels)


def _to_ascii(label: str) -> str:
    if label.isascii():
        return label
    return "xn--" + label.encode("punycode").decode("ascii")


def _mixes_directions(text: str) -> bool:
    kinds = {unicodedata.bidirectional(ch) for ch in text}
    return bool(kinds & _RTL) and bool(kinds & _LTR)


def _is_human_readable_eligible(domain: str) -> bool:
    return (
        len(domain) <= MAX_DOMAIN_LABEL_LENGTH
        and "." in domain
        and not _mixes_directions(_to_unicode(domain))
    )


def _human_readable(domain: str) -> str:
    encoded = _to_unicode(domain).replace("-", "--").replace(".", "-")
    if encoded[2:4] == "--":
        encoded = f"0-{encoded}-0"
    return _to_ascii(encoded).lower()


def _fallback(domain: str) -> str:
    digest = hashlib.sha256(domain.encode("utf-8")).digest()
    return base64.b32encode(digest).decode("ascii").lower().rstrip("=")


def cache_subdomain(host: str) -> str:
    """Cache subdomain label for ``host`` (without port)."""
    host = host.lower()
    if _is_human_readable_eligible(host):
        encoded = _human_readable(host)
        if len(encoded) <= MAX_DOMAIN_LABEL_LENGTH:
            return encoded
    return _fallback(host)


def cache_origin(domain_suffix: str, page_url: str) -> str:
    """Origin a cache at ``domain_suffix`` serves ``page_url`` from."""
    host = urlsplit(page_url).hostname or ""
    return f"https://{cache_subdomain(host)}.{domain_suffix}"


def cache_url(domain_suffix: str, page_url: str) -> str:
    """Full cache URL of ``page_url`` (``/c/s/`` prefix for https sources)."""
    parts = urlsplit(page_url)
    prefix = "/c/s/" if parts.scheme == "https" else "/c/"
    rest = parts.netloc + (parts.path or "/")
    if parts.query:
        rest += "?" + parts.query
    return cache_origin(domain_suffix, page_url) + prefix + rest
