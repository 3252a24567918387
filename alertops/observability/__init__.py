# Observability Package
"""Prometheus metrics for the parsing pipeline."""

from alertops.observability.metrics import PipelineMetrics, get_metrics

__all__ = ["PipelineMetrics", "get_metrics"]
