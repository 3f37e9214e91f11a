"""Monitoring infrastructure for ruang-tenang"""
from ruang_tenang.monitoring.prometheus_metrics import (
    metrics,
    record_request,
    track_award,
    record_award_outcome,
    record_award_retry,
    record_level_fallback,
)

__all__ = [
    "metrics",
    "record_request",
    "track_award",
    "record_award_outcome",
    "record_award_retry",
    "record_level_fallback",
]
