"""Test helpers."""

from .metric_delta import histogram_observes, label_delta, metric_delta, metric_increases

__all__ = ["histogram_observes", "label_delta", "metric_delta", "metric_increases"]
