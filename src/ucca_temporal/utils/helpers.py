"""
Helper utilities

Provides utility functions for:
- Timing bound parsing
- Duration formatting
- Trace hashing
"""

import hashlib
import json
import re
from collections.abc import Iterable
from typing import Any

from ucca_temporal.core.types import TimeBound, TimedEvent

_UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
}

_DURATION_RE = re.compile(r"^(\d+)\s*(ms|s|m|h)$")
_INTERVAL_RE = re.compile(r"^\[\s*(\d+)?\s*,\s*(\d+|∞|inf)?\s*\]$")


def parse_timebound(text: str) -> TimeBound:
    """
    Parse a timing bound string into a TimeBound.

    Supported formats:
    - [0,500] - closed window in milliseconds
    - [100,] or [100,∞] - lower bound only
    - [,500] - upper bound only
    - 500ms, 2s, 5m, 1h - duration shortcuts, returned as [0, duration]

    Raises:
        ValueError: if the string matches no supported format
        MalformedTimeboundError: if the lower bound exceeds the upper
    """
    text = text.strip()

    duration_match = _DURATION_RE.match(text)
    if duration_match:
        value = int(duration_match.group(1)) * _UNIT_MS[duration_match.group(2)]
        return TimeBound(max=value)

    match = _INTERVAL_RE.match(text)
    if not match:
        raise ValueError(f"Invalid timebound format: {text}")

    lower_str, upper_str = match.group(1), match.group(2)
    lower = int(lower_str) if lower_str else None
    upper = None if upper_str in (None, "∞", "inf") else int(upper_str)
    return TimeBound(min=lower, max=upper)


def format_duration_ms(ms: int) -> str:
    """
    Format a millisecond duration for display.

    Whole seconds, minutes and hours are shown in that unit; anything
    else stays in milliseconds so no precision is lost.
    """
    if ms < 0:
        return f"-{format_duration_ms(-ms)}"
    if ms and ms % 3_600_000 == 0:
        return f"{ms // 3_600_000}h"
    if ms and ms % 60_000 == 0:
        return f"{ms // 60_000}m"
    if ms and ms % 1000 == 0:
        return f"{ms // 1000}s"
    return f"{ms}ms"


def hash_trace(
    events: Iterable[TimedEvent | dict[str, Any]],
    include_timestamps: bool = True,
    algorithm: str = "sha256",
) -> str:
    """
    Compute a hash of a trace for comparison and caching.

    Args:
        events: Timed events or their dict form
        include_timestamps: Whether timestamps take part in the hash
        algorithm: Hash algorithm to use

    Returns:
        Hexadecimal hash string
    """

    def normalize_event(event: TimedEvent | dict[str, Any]) -> dict[str, Any]:
        data = event.model_dump() if isinstance(event, TimedEvent) else dict(event)
        normalized = {
            "controller_id": data.get("controller_id", data.get("controllerId", "")),
            "action_id": data.get("action_id", data.get("actionId", "")),
            "provided": bool(data.get("provided", True)),
        }
        if include_timestamps:
            normalized["timestamp"] = data.get("timestamp")
        return normalized

    serialized = json.dumps([normalize_event(e) for e in events], sort_keys=True)
    hasher = hashlib.new(algorithm)
    hasher.update(serialized.encode("utf-8"))
    return hasher.hexdigest()
