"""
Defines and manages Prometheus metrics for the application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

import structlog
from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram
from prometheus_client import start_http_server

if TYPE_CHECKING:
    from menuquarry.config.config import MonitoringConfig

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Re-importing this module (test reloads, multiple entry points) must not
# register the same collector twice.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race, fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "fetch_latency_seconds": Histogram(
            "menuquarry_fetch_latency_seconds",
            "Time taken to fetch a URL including retries",
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0],
        ),
        "fetch_responses_total": Counter(
            "menuquarry_fetch_responses_total",
            "Total number of HTTP responses by status class",
            ["status_class"],
        ),
        "candidates_discovered_total": Counter(
            "menuquarry_candidates_discovered_total",
            "Candidate URLs produced by each discovery source",
            ["discovery_source"],
        ),
        "candidate_attempts_total": Counter(
            "menuquarry_candidate_attempts_total",
            "Extraction attempts by outcome",
            ["outcome"],
        ),
        "strategy_wins_total": Counter(
            "menuquarry_strategy_wins_total",
            "Extractions won by each top-level strategy",
            ["strategy"],
        ),
        "extractions_total": Counter(
            "menuquarry_extractions_total",
            "Completed extraction requests by result",
            ["result"],
        ),
        "structuring_latency_seconds": Histogram(
            "menuquarry_structuring_latency_seconds",
            "Round-trip time of structuring service calls",
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 45.0],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


class MetricsManager:
    """Manages the lifecycle of the metrics exporter."""

    def __init__(self, config: MonitoringConfig) -> None:
        self.config = config
        self._started = False

    def start(self) -> None:
        """Starts the Prometheus server if a port is configured."""
        if self.config.prometheus_port and not self._started:
            logger.info("Starting Prometheus metrics server", port=self.config.prometheus_port)
            start_http_server(self.config.prometheus_port)
            self._started = True
