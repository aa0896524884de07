# File: story_lint/net/__init__.py
"""story_lint.net: Ограниченный пул запросов и HTTP-обёртка над aiohttp."""

from story_lint.net.fetcher import FetchedResponse, Fetcher, fetch_to_curl
from story_lint.net.pool import DEFAULT_POOL_SIZE, FetchPool

__all__ = ["FetchPool", "DEFAULT_POOL_SIZE", "Fetcher", "FetchedResponse", "fetch_to_curl"]
