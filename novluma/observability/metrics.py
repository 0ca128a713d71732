"""
Metrics Collection with Prometheus.

Exposes generation, quota and system metrics for monitoring.
"""

from enum import Enum

from prometheus_client import Counter, Gauge, Histogram, Info

from novluma.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    OUTCOME = "outcome"
    MODEL = "model"
    ERROR_TYPE = "error_type"


class GenerationMetrics:
    """
    Centralized metrics for the Novluma generation API.

    Covers:
    - HTTP requests (rate, duration, in flight)
    - Gateway outcomes (admitted, rejected, relayed upstream errors)
    - Word consumption and cycle resets
    - Upstream latency by model
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        self.service_info = Info(
            "novluma_service",
            "Service information",
        )
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "novluma_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "novluma_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )

        self.http_requests_in_progress = Gauge(
            "novluma_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
        )

        # ====================================================================
        # Gateway Metrics
        # ====================================================================
        self.generation_requests_total = Counter(
            "novluma_generation_requests_total",
            "Generation requests by outcome",
            [MetricLabels.OUTCOME],
        )

        self.words_debited_total = Counter(
            "novluma_words_debited_total",
            "Words debited from user quotas",
        )

        self.words_per_generation = Histogram(
            "novluma_words_per_generation",
            "Words produced per successful generation",
            buckets=(0, 50, 100, 250, 500, 1000, 2000, 5000),
        )

        self.cycle_resets_total = Counter(
            "novluma_cycle_resets_total",
            "Billing cycle resets applied at admission",
        )

        # ====================================================================
        # Upstream Metrics
        # ====================================================================
        self.upstream_responses_total = Counter(
            "novluma_upstream_responses_total",
            "Upstream generation responses by status code",
            [MetricLabels.MODEL, MetricLabels.STATUS_CODE],
        )

        self.upstream_duration_seconds = Histogram(
            "novluma_upstream_duration_seconds",
            "Upstream generation latency in seconds",
            [MetricLabels.MODEL],
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0),
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.errors_total = Counter(
            "novluma_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_generation(self, outcome: str) -> None:
        """Record the outcome of one gateway invocation."""
        self.generation_requests_total.labels(outcome=outcome).inc()

    def record_output(self, words: int) -> None:
        """Record words produced by a successful generation."""
        self.words_per_generation.observe(words)

    def record_debit(self, words: int) -> None:
        """Record words written to a user's usage counter."""
        self.words_debited_total.inc(words)

    def record_cycle_reset(self) -> None:
        """Record a lazily applied cycle reset."""
        self.cycle_resets_total.inc()

    def record_upstream(self, model: str, status_code: int, duration: float) -> None:
        """Record an upstream round trip."""
        self.upstream_responses_total.labels(model=model, status_code=status_code).inc()
        self.upstream_duration_seconds.labels(model=model).observe(duration)

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = GenerationMetrics()
