"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    start_http_server,
)

from wordfreq.constants import (
    METRIC_DELETE_FAILURES,
    METRIC_JOB_DURATION,
    METRIC_JOBS_COMPLETED,
    METRIC_LEASE_EXTENDED,
    METRIC_MESSAGES_RECEIVED,
    METRIC_NOTIFY_FAILURES,
    METRIC_POISON_MESSAGES,
    METRIC_RECEIVE_ERRORS,
    METRIC_RECORD_FAILURES,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the worker.

    Collects metrics for:
    - Queue receives, receive errors and discarded poison messages
    - Lease extensions
    - Job completions and duration
    - Record, delete and notify failures in the result collector
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.messages_received = Counter(
            METRIC_MESSAGES_RECEIVED,
            "Total number of job messages received",
            registry=self._registry,
        )

        self.poison_messages = Counter(
            METRIC_POISON_MESSAGES,
            "Total number of undecodable job messages discarded",
            registry=self._registry,
        )

        self.receive_errors = Counter(
            METRIC_RECEIVE_ERRORS,
            "Total number of failed queue receives",
            registry=self._registry,
        )

        self.lease_extended = Counter(
            METRIC_LEASE_EXTENDED,
            "Total number of job lease extensions",
            registry=self._registry,
        )

        self.jobs_completed = Counter(
            METRIC_JOBS_COMPLETED,
            "Total number of jobs completed",
            ["status"],
            registry=self._registry,
        )

        self.job_duration = Histogram(
            METRIC_JOB_DURATION,
            "Job processing duration in seconds",
            ["status"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
            registry=self._registry,
        )

        self.record_failures = Counter(
            METRIC_RECORD_FAILURES,
            "Total number of results that could not be recorded",
            registry=self._registry,
        )

        self.delete_failures = Counter(
            METRIC_DELETE_FAILURES,
            "Total number of job messages that could not be deleted",
            registry=self._registry,
        )

        self.notify_failures = Counter(
            METRIC_NOTIFY_FAILURES,
            "Total number of status notifications that could not be sent",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_messages_received(self, count: int) -> None:
        self.messages_received.inc(count)

    def record_poison_message(self) -> None:
        self.poison_messages.inc()

    def record_receive_error(self) -> None:
        self.receive_errors.inc()

    def record_lease_extended(self) -> None:
        self.lease_extended.inc()

    def record_job_completed(self, status: str, duration_seconds: float) -> None:
        """Record a job completion."""
        self.jobs_completed.labels(status=status).inc()
        self.job_duration.labels(status=status).observe(duration_seconds)

    def record_record_failure(self) -> None:
        self.record_failures.inc()

    def record_delete_failure(self) -> None:
        self.delete_failures.inc()

    def record_notify_failure(self) -> None:
        self.notify_failures.inc()


def setup_metrics(port: int = 0) -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Args:
        port: Port to serve /metrics on. 0 does not start a server.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    collector = get_metrics()
    if port:
        start_http_server(port, registry=collector.registry)
    return collector


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
