"""
Metrics collection

In-process counters and latency histograms for:
- Generation (formulas produced per constraint)
- Evaluation (results, violations by severity and constraint, latency)
- Rejections (formulas left out of batch evaluations)
"""

import json
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from statistics import mean, median, stdev
from typing import Any


def _bump(counter: dict[str, int], key: str, amount: int = 1) -> None:
    counter[key] = counter.get(key, 0) + amount


@dataclass
class GenerationMetrics:
    """Generation-related metrics."""

    requests_total: int = 0
    empty_requests: int = 0
    formulas_generated: int = 0
    formulas_by_constraint: dict[str, int] = field(default_factory=dict)


@dataclass
class EvaluationMetrics:
    """Evaluation-related metrics."""

    evaluations_total: int = 0
    evaluations_satisfied: int = 0
    evaluations_vacuous: int = 0
    rejections_total: int = 0

    violations_total: int = 0
    violations_by_severity: dict[str, int] = field(default_factory=dict)
    violations_by_constraint: dict[str, int] = field(default_factory=dict)
    rejections_by_error: dict[str, int] = field(default_factory=dict)

    latency_ms: list[float] = field(default_factory=list)

    @property
    def satisfaction_rate(self) -> float:
        if self.evaluations_total == 0:
            return 0.0
        return self.evaluations_satisfied / self.evaluations_total

    def latency_statistics(self) -> dict[str, float]:
        values = self.latency_ms
        if not values:
            return {"count": 0, "mean": 0, "std": 0, "min": 0, "max": 0, "median": 0}
        return {
            "count": len(values),
            "mean": mean(values),
            "std": stdev(values) if len(values) > 1 else 0,
            "min": min(values),
            "max": max(values),
            "median": median(values),
        }


class MetricsCollector:
    """
    Thread-safe metrics collector.

    The engine owns one instance; ``get_metrics_collector`` returns a
    process-wide instance for callers that want shared totals.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self.generation = GenerationMetrics()
        self.evaluation = EvaluationMetrics()
        self._start_time = datetime.now()

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self.generation = GenerationMetrics()
            self.evaluation = EvaluationMetrics()
            self._start_time = datetime.now()

    def record_generation(self, constraint: str, count: int) -> None:
        """Record one generate() call and the number of formulas it produced."""
        with self._lock:
            self.generation.requests_total += 1
            if count == 0:
                self.generation.empty_requests += 1
            self.generation.formulas_generated += count
            _bump(self.generation.formulas_by_constraint, constraint, count)

    def record_evaluation(
        self,
        constraint: str,
        satisfied: bool,
        vacuous: bool,
        severities: list[str],
        latency_ms: float,
    ) -> None:
        """Record the outcome of one evaluate() call."""
        with self._lock:
            self.evaluation.evaluations_total += 1
            if satisfied:
                self.evaluation.evaluations_satisfied += 1
            if vacuous:
                self.evaluation.evaluations_vacuous += 1
            self.evaluation.violations_total += len(severities)
            for severity in severities:
                _bump(self.evaluation.violations_by_severity, severity)
            if severities:
                _bump(self.evaluation.violations_by_constraint, constraint, len(severities))
            self.evaluation.latency_ms.append(latency_ms)

    def record_rejection(self, error_type: str) -> None:
        """Record a formula rejected from a batch."""
        with self._lock:
            self.evaluation.rejections_total += 1
            _bump(self.evaluation.rejections_by_error, error_type)

    def time_operation(self) -> "_TimerContext":
        """Context manager measuring elapsed milliseconds."""
        return _TimerContext()

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "uptime_seconds": (datetime.now() - self._start_time).total_seconds(),
                "generation": {
                    "requests": self.generation.requests_total,
                    "formulas": self.generation.formulas_generated,
                    "by_constraint": dict(self.generation.formulas_by_constraint),
                },
                "evaluation": {
                    "total": self.evaluation.evaluations_total,
                    "satisfaction_rate": self.evaluation.satisfaction_rate,
                    "vacuous": self.evaluation.evaluations_vacuous,
                    "violations": self.evaluation.violations_total,
                    "by_severity": dict(self.evaluation.violations_by_severity),
                    "rejections": self.evaluation.rejections_total,
                    "latency": self.evaluation.latency_statistics(),
                },
            }

    def export_json(self, filepath: str) -> None:
        """Export all metrics to a JSON file."""
        with self._lock:
            data = {
                "collected_at": datetime.now().isoformat(),
                "generation": asdict(self.generation),
                "evaluation": asdict(self.evaluation),
            }

        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)


class _TimerContext:
    """Context manager for timing operations."""

    def __init__(self):
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        return False


_global_collector: MetricsCollector | None = None
_global_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide metrics collector."""
    global _global_collector
    if _global_collector is None:
        with _global_lock:
            if _global_collector is None:
                _global_collector = MetricsCollector()
    return _global_collector
