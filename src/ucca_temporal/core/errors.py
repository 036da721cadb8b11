"""
Exception taxonomy for the UCCA temporal engine.

Errors are raised at the boundary where they are detected:
- MalformedTimeboundError: when a TimeBound is constructed
- InvalidTraceOrderError: on entry to evaluation

Neither derives from ValueError, so pydantic validators let them
propagate unchanged instead of folding them into a ValidationError.
"""

from __future__ import annotations

from typing import Any


class TemporalEngineError(Exception):
    """Base class for all engine errors."""


class MalformedTimeboundError(TemporalEngineError):
    """A timing bound with min > max or a negative endpoint."""

    def __init__(self, min_ms: int | None, max_ms: int | None, message: str | None = None):
        self.min = min_ms
        self.max = max_ms
        super().__init__(message or f"Invalid timebound: min ({min_ms}) > max ({max_ms})")


class InvalidTraceOrderError(TemporalEngineError):
    """
    A trace that is not non-decreasing in timestamp.

    Attributes:
        index: Position of the first out-of-order event
        previous: Timestamp of the event before it
        current: Timestamp of the offending event
    """

    def __init__(self, index: int, previous: int, current: int):
        self.index = index
        self.previous = previous
        self.current = current
        super().__init__(
            f"Trace is not sorted by timestamp: event {index} at t={current} "
            f"follows t={previous}"
        )


class InvalidFormulaError(TemporalEngineError):
    """A formula whose shape cannot be evaluated (e.g. missing second subject)."""

    def __init__(self, formula_id: str, reason: str):
        self.formula_id = formula_id
        self.reason = reason
        super().__init__(f"Formula {formula_id!r} cannot be evaluated: {reason}")


def describe_error(exc: BaseException) -> dict[str, Any]:
    """Flatten an exception into log-friendly key/value pairs."""
    info: dict[str, Any] = {"error_type": type(exc).__name__, "error": str(exc)}
    if isinstance(exc, InvalidTraceOrderError):
        info.update(index=exc.index, previous=exc.previous, current=exc.current)
    elif isinstance(exc, MalformedTimeboundError):
        info.update(min=exc.min, max=exc.max)
    elif isinstance(exc, InvalidFormulaError):
        info.update(formula_id=exc.formula_id)
    return info
