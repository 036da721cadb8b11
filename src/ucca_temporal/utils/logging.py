"""
Logging utilities

Structured logging for generation and evaluation. Modules log through
structlog; this module wires structlog into the standard library logging
tree, registers the EVALUATION level and provides a JSON formatter for
file output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import structlog


class LogLevel(Enum):
    """Log levels used by the engine."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    # Between INFO and WARNING, for per-formula evaluation outcomes
    EVALUATION = 25


logging.addLevelName(LogLevel.EVALUATION.value, "EVALUATION")

# Engine context lifted to the top level of JSON records, in this order
CONTEXT_FIELDS: tuple[str, ...] = (
    "formula_id",
    "trace_id",
    "constraint",
    "operator",
    "satisfied",
    "vacuous",
    "violation_count",
    "evaluation_time_ms",
    "error_type",
)

_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record, keyed for evaluation log analysis.

    Engine context attached through ``extra`` (see CONTEXT_FIELDS) is lifted
    to the top level. Any other extra attribute is nested under ``"extra"``
    when ``include_extra`` is set and dropped otherwise. Values that are not
    JSON scalars are stringified; enums are written as their value.
    """

    def __init__(self, include_timestamp: bool = True, include_extra: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_data["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(timespec="milliseconds")

        for name in CONTEXT_FIELDS:
            if name in record.__dict__:
                log_data[name] = _jsonable(record.__dict__[name])

        if self.include_extra:
            extra = {
                key: _jsonable(value)
                for key, value in record.__dict__.items()
                if key not in _STANDARD_ATTRS and key not in CONTEXT_FIELDS
            }
            if extra:
                log_data["extra"] = extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _level_value(level: LogLevel | int | str) -> int:
    if isinstance(level, LogLevel):
        return level.value
    if isinstance(level, str):
        return LogLevel[level.upper()].value
    return level


def configure_logging(
    level: LogLevel | int | str = LogLevel.INFO,
    json_output: bool = False,
    log_file: Path | None = None,
) -> None:
    """
    Configure structlog and the ``ucca_temporal`` stdlib logger.

    Args:
        level: Minimum level to emit
        json_output: Render console output as JSON instead of the dev console
        log_file: Optional file that always receives JSON records
    """
    renderer: Any = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger("ucca_temporal")
    root.setLevel(_level_value(level))
    root.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger under the ``ucca_temporal`` namespace."""
    if name and not name.startswith("ucca_temporal"):
        name = f"ucca_temporal.{name}"
    return structlog.get_logger(name or "ucca_temporal")


def log_evaluation_result(
    formula_id: str,
    satisfied: bool,
    violation_count: int,
    evaluation_time_ms: float,
    vacuous: bool = False,
    trace_id: str | None = None,
    constraint: str | None = None,
) -> None:
    """Emit one EVALUATION-level record for a formula outcome."""
    context: dict[str, Any] = {
        "formula_id": formula_id,
        "satisfied": satisfied,
        "vacuous": vacuous,
        "violation_count": violation_count,
        "evaluation_time_ms": round(evaluation_time_ms, 3),
    }
    if trace_id is not None:
        context["trace_id"] = trace_id
    if constraint is not None:
        context["constraint"] = constraint

    logging.getLogger("ucca_temporal.evaluation").log(
        LogLevel.EVALUATION.value,
        "Evaluation result: %s for %s (%.2fms)",
        "satisfied" if satisfied else "violated",
        formula_id,
        evaluation_time_ms,
        extra=context,
    )
