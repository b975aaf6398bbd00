"""
menuquarry crawler module.

A small aiohttp client used by discovery and extraction:
- Per-host concurrency limits
- Exponential backoff with jitter on 429/502/503/504
- Non-2xx statuses and network failures surfaced as ``FetchError``
"""

from .http_client import FetchResponse, HttpClient

__all__ = ["FetchResponse", "HttpClient"]
