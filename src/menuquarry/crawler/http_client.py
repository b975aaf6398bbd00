"""
HTTP client for menu discovery and extraction, with per-host concurrency limits,
retries on transient statuses, and observability.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import aiohttp
import structlog

from menuquarry.config.config import FetchConfig
from menuquarry.errors import FetchError
from menuquarry.observability.metrics import METRICS

logger = structlog.get_logger(__name__)

RETRYABLE_STATUSES = frozenset({429, 502, 503, 504})


@dataclass
class FetchResponse:
    """Response from an HTTP fetch with timing and attempt information."""

    status: int
    headers: Dict[str, str]
    body: bytes
    start_ts: float
    end_ts: float
    attempts: int
    url: str
    final_url: str
    method: str = field(default="GET")

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        """Lower-cased media type without parameters (``text/html``)."""
        raw = self.headers.get("content-type", "")
        return raw.split(";", 1)[0].strip().lower()

    @property
    def charset(self) -> Optional[str]:
        raw = self.headers.get("content-type", "")
        for part in raw.split(";")[1:]:
            key, _, value = part.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip("\"' ")
        return None

    def text(self) -> str:
        """Decode the body using the declared charset, falling back to UTF-8."""
        encoding = self.charset or "utf-8"
        try:
            return self.body.decode(encoding, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")


class HttpClient:
    """aiohttp-backed fetch collaborator.

    Failures (timeout, DNS, connection, non-2xx) are raised as ``FetchError``.
    """

    def __init__(self, config: FetchConfig):
        self.config = config
        self._domain_semaphores: Dict[str, asyncio.Semaphore] = {}
        self._semaphore_lock = asyncio.Lock()
        self.session: Optional[aiohttp.ClientSession] = None
        self._is_initialized = False
        self._in_flight_requests = 0

        logger.debug(
            "HTTP client created",
            max_concurrency_per_domain=self.config.max_concurrency_per_domain,
            max_retries=self.config.max_retries,
            user_agent=self.config.user_agent,
        )

    async def initialize(self) -> None:
        """Initialize the HTTP client session."""
        if self.session is None:
            connector = aiohttp.TCPConnector(limit=0, ttl_dns_cache=30, enable_cleanup_closed=True)
            self.session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": self.config.user_agent, "Accept-Language": "en,fr;q=0.8,*;q=0.5"},
            )
            self._is_initialized = True
            logger.debug("HTTP client session initialized")

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
        self._domain_semaphores.clear()
        self._is_initialized = False
        logger.debug("HTTP client closed")

    async def __aenter__(self) -> HttpClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_domain_semaphore(self, domain: str) -> asyncio.Semaphore:
        """Get or create semaphore for domain."""
        async with self._semaphore_lock:
            if domain not in self._domain_semaphores:
                self._domain_semaphores[domain] = asyncio.Semaphore(self.config.max_concurrency_per_domain)
            return self._domain_semaphores[domain]

    async def _calculate_backoff_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay with jitter."""
        base_delay = 0.5 * 2 ** (attempt - 1)  # 0.5s, 1s, 2s
        jitter = random.uniform(0.8, 1.2)
        return base_delay * jitter

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> FetchResponse:
        """
        Fetch a URL.

        Args:
            url: Absolute http(s) URL
            method: ``GET`` or ``HEAD``
            timeout: Per-attempt timeout in seconds (defaults to ``page_timeout``)
            max_retries: Retry budget for transient statuses (defaults to config)

        Returns:
            FetchResponse with a 2xx status

        Raises:
            FetchError: on malformed URL, network failure, timeout, or non-2xx status
        """
        if not self._is_initialized or self.session is None:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise FetchError("Malformed URL", url=url)

        timeout = timeout if timeout is not None else self.config.page_timeout
        if max_retries is None:
            max_retries = self.config.max_retries

        domain = parsed.hostname
        semaphore = await self._get_domain_semaphore(domain)
        start_time = time.time()
        attempt = 0
        last_error: Optional[BaseException] = None
        last_status: Optional[int] = None

        async with semaphore:
            self._in_flight_requests += 1
            try:
                while attempt < max_retries + 1:
                    attempt += 1
                    try:
                        async with asyncio.timeout(timeout):
                            async with self.session.request(method, url, allow_redirects=True) as response:
                                status = response.status
                                if status in RETRYABLE_STATUSES and attempt <= max_retries:
                                    logger.debug("Retrying request", url=url, status=status, attempt=attempt)
                                    last_status = status
                                    await asyncio.sleep(await self._calculate_backoff_delay(attempt))
                                    continue

                                body = b"" if method == "HEAD" else await response.read()
                                headers = {k.lower(): v for k, v in response.headers.items()}
                                final_url = str(response.url)
                    except asyncio.TimeoutError as e:
                        last_error = e
                        logger.debug("Request timed out", url=url, attempt=attempt, timeout=timeout)
                        continue
                    except aiohttp.ClientError as e:
                        last_error = e
                        logger.debug("Request failed", url=url, attempt=attempt, error=str(e))
                        continue

                    end_time = time.time()
                    self._observe(status, end_time - start_time)
                    if not 200 <= status < 300:
                        raise FetchError(
                            f"HTTP {status}",
                            url=url,
                            status=status,
                            detail=f"{method} {url} returned {status}",
                        )
                    return FetchResponse(
                        status=status,
                        headers=headers,
                        body=body,
                        start_ts=start_time,
                        end_ts=end_time,
                        attempts=attempt,
                        url=url,
                        final_url=final_url,
                        method=method,
                    )
            finally:
                self._in_flight_requests -= 1

        self._observe(last_status or 0, time.time() - start_time)
        if last_status is not None and last_error is None:
            raise FetchError(f"HTTP {last_status}", url=url, status=last_status)
        if isinstance(last_error, asyncio.TimeoutError):
            raise FetchError(f"Request timed out after {timeout}s", url=url) from last_error
        raise FetchError(
            "Request failed",
            url=url,
            detail=str(last_error) if last_error else None,
        ) from last_error

    async def head(self, url: str, *, timeout: Optional[float] = None) -> FetchResponse:
        """Lightweight existence check."""
        return await self.fetch(
            url,
            method="HEAD",
            timeout=timeout if timeout is not None else self.config.head_timeout,
            max_retries=0,
        )

    def _observe(self, status: int, latency: float) -> None:
        status_class = f"{status // 100}xx" if status else "error"
        METRICS["fetch_responses_total"].labels(status_class=status_class).inc()
        METRICS["fetch_latency_seconds"].observe(latency)

    def get_stats(self) -> Dict[str, Any]:
        """Get current client statistics."""
        return {
            "in_flight_requests": self._in_flight_requests,
            "domain_semaphores": len(self._domain_semaphores),
        }
