"""
Prometheus metrics collection.

Each collector owns its registry so several app instances can coexist in
one process.
"""

from typing import Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Histogram, Info

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for the contact relay.

    Keep metrics simple,
    use in-memory counters, let Prometheus handle storage.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()

        # Service info
        self.service_info = Info(
            "contact_relay_service",
            "Contact relay service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": "0.1.0",
            "service": "contact-relay",
        })

        # Submission outcomes
        self.submissions_total = Counter(
            "contact_submissions_total",
            "Contact submissions by final outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.validation_failures_total = Counter(
            "contact_validation_failures_total",
            "Validation reasons reported to callers",
            ["reason"],
            registry=self.registry,
        )

        # Webhook metrics
        self.webhook_requests_total = Counter(
            "webhook_requests_total",
            "Delivery attempts to the webhook by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.webhook_request_duration = Histogram(
            "webhook_request_duration_seconds",
            "Webhook delivery duration in seconds",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )

    def record_submission(self, outcome: str) -> None:
        """Record the terminal outcome of one POST /contact."""
        self.submissions_total.labels(outcome=outcome).inc()

    def record_validation_failure(self, reasons) -> None:
        for reason in reasons:
            self.validation_failures_total.labels(reason=reason).inc()

    def record_webhook_request(self, outcome: str, duration_seconds: float) -> None:
        """Record one webhook delivery attempt."""
        self.webhook_requests_total.labels(outcome=outcome).inc()
        self.webhook_request_duration.observe(duration_seconds)
