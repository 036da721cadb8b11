"""
UCCA Temporal Utilities Module

Provides logging, metrics collection and helper functions.
"""

from .helpers import format_duration_ms, hash_trace, parse_timebound
from .logging import (
    JSONFormatter,
    LogLevel,
    configure_logging,
    get_logger,
    log_evaluation_result,
)
from .metrics import (
    EvaluationMetrics,
    GenerationMetrics,
    MetricsCollector,
    get_metrics_collector,
)

__all__ = [
    # Logging
    "LogLevel",
    "JSONFormatter",
    "get_logger",
    "configure_logging",
    "log_evaluation_result",
    # Metrics
    "MetricsCollector",
    "GenerationMetrics",
    "EvaluationMetrics",
    "get_metrics_collector",
    # Helpers
    "parse_timebound",
    "format_duration_ms",
    "hash_trace",
]
