"""
Shared metrics configuration for the ReBAC authorization core.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, generate_latest


class MetricsCollector:
    """Centralized metrics collector for services."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Private registry per collector so several services can coexist in one process.
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

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

        self._setup_rebac_metrics()

    def _setup_rebac_metrics(self):
        """Set up tuple store and permission check metrics."""
        self._metrics["rebac_backend_requests_total"] = Counter(
            "rebac_backend_requests_total",
            "Total tuple store requests",
            ["operation", "outcome"],
            registry=self.registry
        )

        self._metrics["rebac_backend_request_duration_seconds"] = Histogram(
            "rebac_backend_request_duration_seconds",
            "Tuple store request duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["rebac_permission_checks_total"] = Counter(
            "rebac_permission_checks_total",
            "Total permission decisions",
            ["decision", "reason"],
            registry=self.registry
        )

        self._metrics["rebac_tuple_mutations_total"] = Counter(
            "rebac_tuple_mutations_total",
            "Total tuples written or deleted",
            ["kind"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def render(self) -> bytes:
        """Render the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)

    def record_backend_request(self, operation: str, outcome: str, duration: float):
        """Record a single tuple store round trip."""
        self._metrics["rebac_backend_requests_total"].labels(
            operation=operation,
            outcome=outcome
        ).inc()

        self._metrics["rebac_backend_request_duration_seconds"].labels(
            operation=operation
        ).observe(duration)

    def record_permission_check(self, decision: str, reason: str):
        """Record a permission decision."""
        self._metrics["rebac_permission_checks_total"].labels(decision=decision, reason=reason).inc()

    def record_tuple_mutations(self, writes: int, deletes: int):
        """Record how many tuples a write call carried."""
        if writes:
            self._metrics["rebac_tuple_mutations_total"].labels(kind="write").inc(writes)
        if deletes:
            self._metrics["rebac_tuple_mutations_total"].labels(kind="delete").inc(deletes)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
