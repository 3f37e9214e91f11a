"""Prometheus metrics definitions and helpers"""
import logging
import time
from contextlib import contextmanager
from ruang_tenang.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """Container for all Prometheus metrics"""

    def __init__(self):
        if not ENABLE_PROMETHEUS:
            logger.info("Prometheus metrics disabled")
            self._enabled = False
            return

        from prometheus_client import Counter, Histogram

        # HTTP Request Metrics
        self.http_requests_total = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status']
        )

        self.http_request_duration_seconds = Histogram(
            'http_request_duration_seconds',
            'HTTP request latency',
            ['method', 'endpoint'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
        )

        # Gamification Metrics
        self.exp_awards_total = Counter(
            'exp_awards_total',
            'EXP award attempts by outcome',
            ['activity_type', 'outcome']  # awarded / capped / failed
        )

        self.exp_points_awarded_total = Counter(
            'exp_points_awarded_total',
            'EXP points granted',
            ['activity_type']
        )

        self.exp_award_duration_seconds = Histogram(
            'exp_award_duration_seconds',
            'Award transaction latency',
            ['activity_type'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
        )

        self.exp_award_retries_total = Counter(
            'exp_award_retries_total',
            'Out-of-band award retries after transient errors',
            ['activity_type']
        )

        self.level_default_fallbacks_total = Counter(
            'level_default_fallbacks_total',
            'Level resolutions that fell back to the default level'
        )

        self._enabled = True
        logger.info("Prometheus metrics initialized")

    @property
    def enabled(self) -> bool:
        """Check if metrics are enabled"""
        return self._enabled


# Global metrics instance
metrics = PrometheusMetrics()


def record_request(method: str, endpoint: str, status_code: int, duration: float) -> None:
    """Record one HTTP request against its route template"""
    if not metrics.enabled:
        return

    metrics.http_request_duration_seconds.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration)

    metrics.http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status_code
    ).inc()


@contextmanager
def track_award(activity_type: str):
    """Track award transaction latency"""
    if not metrics.enabled:
        yield
        return

    start_time = time.time()
    try:
        yield
    finally:
        metrics.exp_award_duration_seconds.labels(
            activity_type=activity_type
        ).observe(time.time() - start_time)


def record_award_outcome(activity_type: str, outcome: str, points: int = 0) -> None:
    """Count an award attempt: outcome is awarded, capped or failed"""
    if not metrics.enabled:
        return

    metrics.exp_awards_total.labels(activity_type=activity_type, outcome=outcome).inc()
    if points:
        metrics.exp_points_awarded_total.labels(activity_type=activity_type).inc(points)


def record_award_retry(activity_type: str) -> None:
    if not metrics.enabled:
        return
    metrics.exp_award_retries_total.labels(activity_type=activity_type).inc()


def record_level_fallback() -> None:
    if not metrics.enabled:
        return
    metrics.level_default_fallbacks_total.inc()
