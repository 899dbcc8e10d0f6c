"""
Prometheus metrics collection.

Stateless service with in-memory metrics. Each collector owns its
registry so several app instances can coexist in one process.
"""

import time
from typing import Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for the forwarder.

    Keep metrics simple,
    use in-memory counters, let Prometheus handle storage.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()

        # Service info
        self.service_info = Info(
            "cloudwatch_forwarder_service",
            "CloudWatch forwarder service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": "0.1.0",
            "service": "cloudwatch-forwarder",
        })

        # Inbound payloads
        self.payloads_total = Counter(
            "cloudwatch_payloads_total",
            "Subscription payloads received, by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.log_events_total = Counter(
            "cloudwatch_log_events_total",
            "Log events seen, by disposition",
            ["disposition"],
            registry=self.registry,
        )

        self.batch_size_entries = Histogram(
            "ingestion_batch_size_entries",
            "Number of records per outbound batch",
            buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 5000],
            registry=self.registry,
        )

        # Outbound requests
        self.ingestion_requests_total = Counter(
            "ingestion_requests_total",
            "Total requests to the ingestion endpoint",
            ["status_code"],
            registry=self.registry,
        )

        self.ingestion_request_duration = Histogram(
            "ingestion_request_duration_seconds",
            "Ingestion request duration in seconds",
            buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=self.registry,
        )

        self.uptime_seconds = Gauge(
            "uptime_seconds",
            "Service uptime in seconds",
            registry=self.registry,
        )

        self._start_time = time.time()

    def record_payload(self, outcome: str) -> None:
        """Record one inbound payload (delivered, failed, or a skip reason)."""
        self.payloads_total.labels(outcome=outcome).inc()

    def record_events(self, forwarded: int, skipped: int) -> None:
        """Record per-event dispositions for one payload."""
        if forwarded:
            self.log_events_total.labels(disposition="forwarded").inc(forwarded)
        if skipped:
            self.log_events_total.labels(disposition="skipped").inc(skipped)

    def record_ingestion_request(
        self,
        status_code: Optional[int],
        duration_seconds: float,
        entries_count: int,
    ) -> None:
        """Record one outbound batch request; status None means no response."""
        self.ingestion_requests_total.labels(
            status_code=str(status_code) if status_code is not None else "error"
        ).inc()
        self.ingestion_request_duration.observe(duration_seconds)
        self.batch_size_entries.observe(entries_count)

    def update_system_metrics(self) -> None:
        """Update system-level metrics."""
        self.uptime_seconds.set(time.time() - self._start_time)
