"""
Shared metrics configuration for the Lead Scoring engine.
"""

from typing import Dict, Any, Optional
import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, start_http_server


class MetricsCollector:
    """Centralized metrics collector for the scoring service."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # A private registry keeps repeated collectors (tests, embedding) from colliding.
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up scoring metrics."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._metrics["score_evaluations_total"] = Counter(
            "score_evaluations_total",
            "Total lead score evaluations",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["score_evaluation_duration_seconds"] = Histogram(
            "score_evaluation_duration_seconds",
            "Lead score evaluation duration in seconds",
            registry=self.registry
        )

        self._metrics["rule_tests_total"] = Counter(
            "rule_tests_total",
            "Total scoring rule tests",
            ["matched"],
            registry=self.registry
        )

        self._metrics["bulk_records_total"] = Counter(
            "bulk_records_total",
            "Records processed by bulk recompute",
            ["status"],
            registry=self.registry
        )

        self._metrics["bulk_runs_total"] = Counter(
            "bulk_runs_total",
            "Bulk recompute runs",
            ["outcome"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def get_sample_value(self, name: str, **labels) -> Optional[float]:
        """Read the current value of a sample from this collector's registry."""
        return self.registry.get_sample_value(name, labels)

    def start_metrics_server(self, port: int = 9090):
        """Start the Prometheus metrics server."""
        start_http_server(port, registry=self.registry)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_evaluation(self, outcome: str):
        self._metrics["score_evaluations_total"].labels(outcome=outcome).inc()

    def record_rule_test(self, matched: bool):
        self._metrics["rule_tests_total"].labels(matched=str(matched).lower()).inc()

    def record_bulk_record(self, status: str):
        self._metrics["bulk_records_total"].labels(status=status).inc()

    def record_bulk_run(self, outcome: str):
        self._metrics["bulk_runs_total"].labels(outcome=outcome).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                metric = self._metrics[operation_name]
                if labels:
                    metric = metric.labels(**labels)
                metric.observe(duration)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
