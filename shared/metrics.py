"""
Shared metrics configuration for the Design Gateway.
"""

from typing import Dict, Any, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for gateway components."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # Upstream metrics
        self._metrics["upstream_requests_total"] = Counter(
            "upstream_requests_total",
            "Total outbound requests to the design API",
            ["endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["upstream_request_duration_seconds"] = Histogram(
            "upstream_request_duration_seconds",
            "Outbound request duration in seconds",
            ["endpoint"],
            registry=self.registry
        )

        self._metrics["throttle_retries_total"] = Counter(
            "throttle_retries_total",
            "Total upstream throttling responses that were retried",
            registry=self.registry
        )

        self._setup_gateway_metrics()

    def _setup_gateway_metrics(self):
        """Set up admission, cache and pagination metrics."""
        self._metrics["rate_limit_waits_total"] = Counter(
            "rate_limit_waits_total",
            "Total admissions that had to wait for a slot",
            ["tier"],
            registry=self.registry
        )

        self._metrics["rate_limit_wait_seconds"] = Histogram(
            "rate_limit_wait_seconds",
            "Time spent waiting for an admission slot",
            ["tier"],
            registry=self.registry
        )

        self._metrics["cache_hits_total"] = Counter(
            "cache_hits_total",
            "Total response cache hits",
            registry=self.registry
        )

        self._metrics["cache_misses_total"] = Counter(
            "cache_misses_total",
            "Total response cache misses",
            registry=self.registry
        )

        self._metrics["pagination_pages_served_total"] = Counter(
            "pagination_pages_served_total",
            "Total continuation pages handed back to callers",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def get_sample_value(self, name: str, **labels) -> Optional[float]:
        """Read the current value of a sample from this collector's registry."""
        return self.registry.get_sample_value(name, labels or None)

    def record_upstream_request(self, endpoint: str, status_code: int, duration: float):
        """Record outbound request metrics."""
        self._metrics["upstream_requests_total"].labels(
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["upstream_request_duration_seconds"].labels(
            endpoint=endpoint
        ).observe(duration)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            return
        (metric.labels(**labels) if labels else metric).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            return
        (metric.labels(**labels) if labels else metric).observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)

