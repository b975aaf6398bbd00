"""
Menu extraction orchestration for menuquarry.

Two strategies race for every request:

- ``direct``: render the base URL in a headless browser, then fall back to a
  static fetch of it.
- ``discovery``: enumerate and rank candidate URLs, then try them in small
  concurrent batches.

The first validated menu wins and everything still running is cancelled and
awaited. Per-candidate failures are tallied by kind; only exhaustion reaches the
caller, as ``MenuNotFoundError``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Dict, List, Optional, Set, Tuple
from uuid import uuid4

import structlog

from menuquarry.config.config import Config
from menuquarry.discovery.discoverer import CandidateDiscoverer
from menuquarry.errors import ErrorKind, ExtractionError, MenuNotFoundError, ValidationFailed
from menuquarry.extractor.manager import ExtractorManager
from menuquarry.observability import increment
from menuquarry.protocols import Candidate, ExtractionResult, Fetcher, Menu, Renderer, SourceType, Structurer
from menuquarry.quality.validator import MenuValidator
from menuquarry.utils.racing import first_success
from menuquarry.utils.urls import canonical_url

logger = structlog.get_logger(__name__)

INTERNAL_FAILURE = "internal_error"


class OrchestratorState(Enum):
    """Lifecycle of one extraction request."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class ExtractionRun:
    """Per-request state. Nothing here outlives the request."""

    base_url: str
    request_id: str = field(default_factory=lambda: uuid4().hex[:12])
    state: OrchestratorState = OrchestratorState.IDLE
    attempts: int = 0
    failures: Dict[str, int] = field(default_factory=dict)
    # canonical URLs, see ``canonical_url``
    attempted: Set[str] = field(default_factory=set)
    candidates: List[Candidate] = field(default_factory=list)
    result: Optional[ExtractionResult] = None
    strategy: Optional[str] = None
    started_at: float = field(default_factory=time.time)

    def record_failure(self, error: BaseException) -> str:
        kind = error.kind.value if isinstance(error, ExtractionError) else INTERNAL_FAILURE
        self.failures[kind] = self.failures.get(kind, 0) + 1
        return kind

    def summary(self) -> str:
        if not self.failures:
            return f"{self.attempts} attempts"
        parts = ", ".join(f"{kind}={count}" for kind, count in sorted(self.failures.items()))
        return f"{self.attempts} attempts ({parts})"


def normalize_base_url(url: str) -> str:
    """Add a scheme to bare hostnames (``example.com:8080`` -> ``https://example.com:8080``)."""
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    return url


def batched(candidates: List[Candidate], size: int) -> List[List[Candidate]]:
    return [candidates[i : i + size] for i in range(0, len(candidates), size)]


class MenuOrchestrator:
    """
    Drives discovery, extraction, structuring and validation for one base URL
    at a time. Safe to share across concurrent requests.
    """

    def __init__(
        self,
        config: Config,
        fetcher: Fetcher,
        discoverer: CandidateDiscoverer,
        extractor: ExtractorManager,
        structurer: Structurer,
        validator: MenuValidator,
        renderer: Optional[Renderer] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.discoverer = discoverer
        self.extractor = extractor
        self.structurer = structurer
        self.validator = validator
        self.renderer = renderer
        self.logger = structlog.get_logger(self.__class__.__name__)

    async def extract_menu(self, url: str) -> ExtractionResult:
        """
        Find and structure the menu reachable from ``url``.

        Raises:
            MenuNotFoundError: every strategy and candidate was exhausted
        """
        run = await self.run(url)
        if run.result is None:
            raise MenuNotFoundError(
                url=run.base_url,
                detail=run.summary(),
                attempts=run.attempts,
                failures=run.failures,
            )
        return run.result

    async def run(self, url: str) -> ExtractionRun:
        """Execute one request and return its run record (with or without a result)."""
        run = ExtractionRun(base_url=normalize_base_url(url))

        with structlog.contextvars.bound_contextvars(request_id=run.request_id, base_url=run.base_url):
            run.state = OrchestratorState.RUNNING
            self.logger.info("Starting menu extraction")

            outcome = await first_success(
                [
                    self._strategy("direct", self._direct_strategy(run)),
                    self._strategy("discovery", self._discovery_strategy(run)),
                ]
            )
            for error in outcome.errors:
                kind = run.record_failure(error)
                self.logger.error("Strategy crashed", error=str(error), error_type=type(error).__name__, kind=kind)

            duration = time.time() - run.started_at
            if outcome.value is None:
                run.state = OrchestratorState.EXHAUSTED
                increment("extractions_total", labels={"result": "not_found"})
                self.logger.warning(
                    "No valid menu found",
                    attempts=run.attempts,
                    failures=run.failures,
                    duration=round(duration, 2),
                )
                return run

            run.strategy, run.result = outcome.value
            run.state = OrchestratorState.SUCCEEDED
            increment("extractions_total", labels={"result": "success"})
            increment("strategy_wins_total", labels={"strategy": run.strategy})
            self.logger.info(
                "Menu extraction succeeded",
                strategy=run.strategy,
                source=run.result.source.value,
                source_url=run.result.source_url,
                items=len(run.result.menu),
                attempts=run.attempts,
                duration=round(duration, 2),
            )
            return run

    async def _strategy(
        self, name: str, body: Awaitable[Optional[ExtractionResult]]
    ) -> Optional[Tuple[str, ExtractionResult]]:
        result = await body
        if result is None:
            self.logger.info("Strategy exhausted", strategy=name)
            return None
        return name, result

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _direct_strategy(self, run: ExtractionRun) -> Optional[ExtractionResult]:
        if self.renderer is not None:
            try:
                result = await self._try_rendered(run, self.renderer, run.base_url)
            except Exception as e:
                kind = run.record_failure(e)
                self.logger.error("Rendered attempt crashed", error=str(e), error_type=type(e).__name__, kind=kind)
                result = None
            if result is not None:
                return result
        return await self._try_candidate(run, run.base_url)

    async def _discovery_strategy(self, run: ExtractionRun) -> Optional[ExtractionResult]:
        ranked = await self.discoverer.ranked_candidates(run.base_url)
        run.candidates = ranked.value
        for error in ranked.errors:
            self.logger.debug("Discovery error", error=str(error), error_type=type(error).__name__)

        self.logger.info(
            "Candidates ranked",
            count=len(ranked.value),
            top=[candidate.url for candidate in ranked.value[:5]],
        )

        for batch in batched(ranked.value, self.config.discovery.batch_size):
            outcome = await first_success([self._try_candidate(run, candidate.url) for candidate in batch])
            for error in outcome.errors:
                kind = run.record_failure(error)
                self.logger.error("Candidate crashed", error=str(error), error_type=type(error).__name__, kind=kind)
            if outcome.value is not None:
                return outcome.value
        return None

    # ------------------------------------------------------------------
    # Single attempts
    # ------------------------------------------------------------------

    async def _try_rendered(self, run: ExtractionRun, renderer: Renderer, url: str) -> Optional[ExtractionResult]:
        text = await renderer.render_and_extract(url)
        if not text or len(text.strip()) < self.config.extraction.min_text_length:
            self.logger.debug("Rendered text too short, falling back to static fetch", url=url)
            return None

        run.attempts += 1
        try:
            menu = await self._structure_and_validate(text, url)
        except ExtractionError as e:
            self._record_attempt_failure(run, url, e)
            return None
        increment("candidate_attempts_total", labels={"outcome": "success"})
        return ExtractionResult(source=SourceType.JS, menu=menu, source_url=url)

    async def _try_candidate(self, run: ExtractionRun, url: str) -> Optional[ExtractionResult]:
        """Fetch, extract, structure and validate one URL. Each URL is tried at most once per run."""
        key = canonical_url(url)
        if key in run.attempted:
            return None
        run.attempted.add(key)
        run.attempts += 1
        self.logger.debug("Attempting candidate", url=url)

        try:
            response = await self.fetcher.fetch(url, timeout=self.config.fetch.page_timeout)
            extracted = await self.extractor.extract(response)
            menu = await self._structure_and_validate(extracted.text, url)
        except ExtractionError as e:
            self._record_attempt_failure(run, url, e)
            return None

        increment("candidate_attempts_total", labels={"outcome": "success"})
        self.logger.info("Valid menu found", url=url, source=extracted.source.value, method=extracted.method)
        return ExtractionResult(source=extracted.source, menu=menu, source_url=url)

    async def _structure_and_validate(self, text: str, url: str) -> Menu:
        menu = await self.structurer.structure(text)
        reason = self.validator.explain(menu)
        if reason is not None:
            raise ValidationFailed("Structured menu rejected", detail=reason, url=url)
        return menu

    def _record_attempt_failure(self, run: ExtractionRun, url: str, error: ExtractionError) -> None:
        kind = run.record_failure(error)
        increment("candidate_attempts_total", labels={"outcome": kind})
        if error.kind == ErrorKind.STRUCTURING_UNREACHABLE:
            self.logger.warning("Candidate failed", url=url, kind=kind, error=str(error), detail=error.detail)
        else:
            self.logger.info("Candidate failed", url=url, kind=kind, error=str(error), detail=error.detail)


async def extract_menu(url: str, config: Optional[Config] = None) -> ExtractionResult:
    """
    Extract a menu with collaborators built from ``config`` (defaults if None).

    All network sessions are closed before returning.
    """
    from menuquarry.container import DependencyContainer

    container = DependencyContainer(config=config or Config())
    async with container.lifecycle():
        orchestrator = await container.get_orchestrator()
        return await orchestrator.extract_menu(url)
