"""
Observability Metrics - Prometheus Counters for the Parsing Pipeline

Tracks how alerts are parsed (policy vs model), how each model attempt in
the cascade ends, which decisions are produced and how often action
options fail to render. Metrics live in a dedicated CollectorRegistry so
the process embedding alertops decides whether and how to expose them.
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)


class PipelineMetrics:
    """Prometheus metrics owned by the alertops pipeline."""

    def __init__(self, namespace: str = "alertops", registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics.

        Args:
            namespace: Metric name prefix.
            registry: Registry to register into (a private one by default).
        """
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()

        self.parse_results = Counter(
            f"{namespace}_parse_results_total",
            "Parse attempts by method and outcome",
            ["method", "outcome"],
            registry=self.registry,
        )
        self.model_attempts = Counter(
            f"{namespace}_model_attempts_total",
            "Model cascade attempts by model and status",
            ["model", "status"],
            registry=self.registry,
        )
        self.model_latency = Histogram(
            f"{namespace}_model_call_seconds",
            "Latency of a single model chat call",
            ["model"],
            registry=self.registry,
        )
        self.decisions = Counter(
            f"{namespace}_decisions_total",
            "Decisions produced by the decision engine",
            ["decision"],
            registry=self.registry,
        )
        self.action_render_failures = Counter(
            f"{namespace}_action_render_failures_total",
            "Action options that failed to render",
            ["tool"],
            registry=self.registry,
        )

    def record_parse(self, method: str, outcome: str) -> None:
        self.parse_results.labels(method=method, outcome=outcome).inc()

    def record_model_attempt(self, model: str, status: str, seconds: float) -> None:
        self.model_attempts.labels(model=model, status=status).inc()
        self.model_latency.labels(model=model).observe(seconds)

    def record_decision(self, decision: str) -> None:
        self.decisions.labels(decision=decision).inc()

    def record_render_failure(self, tool: Optional[str]) -> None:
        self.action_render_failures.labels(tool=tool or "template").inc()

    def export(self) -> bytes:
        """Prometheus text exposition of all pipeline metrics."""
        return generate_latest(self.registry)


# Global instance
_metrics: Optional[PipelineMetrics] = None


def get_metrics() -> PipelineMetrics:
    global _metrics
    if _metrics is None:
        _metrics = PipelineMetrics()
    return _metrics
