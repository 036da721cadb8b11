"""
Core type definitions for the UCCA temporal engine.

This module defines the fundamental data structures used across all components:
- Catalog records (controllers and control actions) consumed from the editor
- Timed events and ordered event traces
- Temporal formulas, their subjects and timing bounds
- Violation scenarios and evaluation results
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ucca_temporal.core.errors import InvalidTraceOrderError, MalformedTimeboundError

# =============================================================================
# Enumerations
# =============================================================================


class TimingConstraint(str, Enum):
    """Category of timing hazard a formula guards against."""

    TOO_EARLY = "too_early"
    """Constrained action provided before its trigger."""

    TOO_LATE = "too_late"
    """Constrained action not provided within a deadline after its trigger."""

    TOO_LONG = "too_long"
    """Action applied for longer than a maximum duration."""

    TOO_SHORT = "too_short"
    """Action stopped before a minimum duration elapsed."""

    WRONG_ORDER = "wrong_order"
    """Two actions occur out of their required sequence."""

    @property
    def is_duration(self) -> bool:
        return self in (TimingConstraint.TOO_LONG, TimingConstraint.TOO_SHORT)


class TemporalOperator(str, Enum):
    """LTL operators understood by the evaluator."""

    NEXT = "X"
    EVENTUALLY = "F"
    ALWAYS = "G"
    UNTIL = "U"
    WEAK_UNTIL = "W"
    RELEASE = "R"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def is_binary(self) -> bool:
        """Whether the operator relates two subjects."""
        return self in BINARY_OPERATORS


BINARY_OPERATORS = frozenset(
    {
        TemporalOperator.NEXT,
        TemporalOperator.UNTIL,
        TemporalOperator.WEAK_UNTIL,
        TemporalOperator.RELEASE,
    }
)


class Severity(str, Enum):
    """Severity attached to a violation scenario."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class _EngineModel(BaseModel):
    """Frozen base model accepting both snake_case names and camelCase aliases."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# =============================================================================
# Catalog Records
# =============================================================================


class Controller(_EngineModel):
    """
    A controller from the STPA control structure.

    Attributes:
        id: Catalog identifier
        name: Display name
        type: Controller category (human, software, team, ...)
    """

    id: str = Field(..., description="Controller identifier")
    name: str = Field(..., description="Display name")
    type: str = Field("software", description="Controller category")


class ControlAction(_EngineModel):
    """
    A control action issued by a controller.

    Attributes:
        id: Catalog identifier
        controller_id: Issuing controller
        verb: Action verb ("apply", "arm", ...)
        object: Action object ("brakes", "thrusters", ...)
        description: Optional free text
    """

    id: str = Field(..., description="Action identifier")
    controller_id: str = Field(..., description="Issuing controller ID")
    verb: str = Field(..., description="Action verb")
    object: str = Field("", description="Action object")
    description: str = Field("", description="Free-text description")

    @property
    def label(self) -> str:
        return f"{self.verb} {self.object}".strip()


@dataclass
class EntityCatalog:
    """Read-only id lookups over controllers and control actions."""

    controllers: dict[str, Controller] = field(default_factory=dict)
    actions: dict[str, ControlAction] = field(default_factory=dict)

    @classmethod
    def from_entities(
        cls, controllers: Iterable[Controller], actions: Iterable[ControlAction]
    ) -> EntityCatalog:
        return cls(
            controllers={c.id: c for c in controllers},
            actions={a.id: a for a in actions},
        )

    def controller(self, controller_id: str) -> Controller | None:
        return self.controllers.get(controller_id)

    def action(self, action_id: str) -> ControlAction | None:
        return self.actions.get(action_id)

    def controller_name(self, controller_id: str) -> str:
        controller = self.controllers.get(controller_id)
        return controller.name if controller else controller_id

    def action_label(self, action_id: str) -> str:
        action = self.actions.get(action_id)
        return action.label if action else action_id


# =============================================================================
# Events and Traces
# =============================================================================


class TimedEvent(_EngineModel):
    """
    A single timestamped occurrence in a trace.

    Attributes:
        timestamp: Integer time in milliseconds (or ticks)
        controller_id: Controller that provided or withheld the action
        action_id: The control action
        provided: True when the action was issued, False when withheld
    """

    timestamp: int = Field(..., description="Event timestamp in milliseconds")
    controller_id: str = Field(..., description="Controller ID")
    action_id: str = Field(..., description="Control action ID")
    provided: bool = Field(True, description="Action issued (True) or withheld (False)")

    @property
    def subject(self) -> tuple[str, str]:
        return (self.controller_id, self.action_id)

    def __str__(self) -> str:
        state = "provided" if self.provided else "withheld"
        return f"@{self.timestamp} {self.controller_id}.{self.action_id} {state}"


class EventTrace(BaseModel):
    """
    An immutable, ordered sequence of timed events.

    The constructor keeps events in the order given; use ``from_unordered``
    to sort caller-assembled events (ties keep insertion order).

    Attributes:
        trace_id: Unique identifier for this trace
        events: Events in timestamp order
        metadata: Additional trace metadata
    """

    model_config = ConfigDict(frozen=True)

    trace_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Trace ID")
    events: tuple[TimedEvent, ...] = Field(default_factory=tuple, description="Ordered events")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Trace metadata")

    @classmethod
    def from_unordered(cls, events: Iterable[TimedEvent], **kwargs: Any) -> EventTrace:
        """Build a trace from events in arbitrary order (stable sort by timestamp)."""
        return cls(events=tuple(sorted(events, key=lambda e: e.timestamp)), **kwargs)

    def __len__(self) -> int:
        return len(self.events)

    def __getitem__(self, idx: int) -> TimedEvent:
        return self.events[idx]

    @property
    def start_time(self) -> int | None:
        return self.events[0].timestamp if self.events else None

    @property
    def end_time(self) -> int | None:
        return self.events[-1].timestamp if self.events else None

    def first_disorder(self) -> int | None:
        """Index of the first event whose timestamp is below its predecessor."""
        for idx in range(1, len(self.events)):
            if self.events[idx].timestamp < self.events[idx - 1].timestamp:
                return idx
        return None

    def is_ordered(self) -> bool:
        return self.first_disorder() is None

    def ensure_ordered(self) -> None:
        """Raise InvalidTraceOrderError if the trace is not sorted."""
        idx = self.first_disorder()
        if idx is not None:
            raise InvalidTraceOrderError(
                idx, self.events[idx - 1].timestamp, self.events[idx].timestamp
            )

    def window(self, start_ts: int, end_ts: int) -> list[TimedEvent]:
        """Get events within a time window."""
        return [e for e in self.events if start_ts <= e.timestamp <= end_ts]

    def for_subjects(self, subjects: Iterable[ActionRef]) -> list[TimedEvent]:
        """Events whose controller/action pair matches one of the subjects."""
        keys = {s.key for s in subjects}
        return [e for e in self.events if e.subject in keys]

    def fingerprint(self) -> str:
        """Content hash of the events, independent of trace_id."""
        from ucca_temporal.utils.helpers import hash_trace

        return hash_trace(self.events)


# =============================================================================
# Formulas
# =============================================================================


class ActionRef(_EngineModel):
    """A formula subject: one control action of one controller."""

    controller_id: str = Field(..., description="Controller ID")
    action_id: str = Field(..., description="Control action ID")

    @classmethod
    def of(cls, action: ControlAction) -> ActionRef:
        return cls(controller_id=action.controller_id, action_id=action.id)

    @property
    def key(self) -> tuple[str, str]:
        return (self.controller_id, self.action_id)

    def matches(self, event: TimedEvent) -> bool:
        return event.subject == self.key

    def __str__(self) -> str:
        return f"{self.controller_id}.{self.action_id}"


class TimeBound(_EngineModel):
    """
    Optional timing window in milliseconds.

    Attributes:
        min: Lower bound (None = unbounded)
        max: Upper bound (None = unbounded)
    """

    min: int | None = Field(None, description="Lower bound in milliseconds")
    max: int | None = Field(None, description="Upper bound in milliseconds")

    @model_validator(mode="after")
    def _check_bounds(self) -> TimeBound:
        if self.min is not None and self.min < 0:
            raise MalformedTimeboundError(self.min, self.max, f"Negative min bound: {self.min}")
        if self.max is not None and self.max < 0:
            raise MalformedTimeboundError(self.min, self.max, f"Negative max bound: {self.max}")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise MalformedTimeboundError(self.min, self.max)
        return self

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None

    def contains(self, offset: int) -> bool:
        """Check whether an offset falls inside [min, max]."""
        lower = self.min if self.min is not None else 0
        if offset < lower:
            return False
        return self.max is None or offset <= self.max

    def __str__(self) -> str:
        lower = self.min if self.min is not None else 0
        upper = "∞" if self.max is None else str(self.max)
        return f"[{lower},{upper}]"


class TemporalFormula(_EngineModel):
    """
    A temporal assertion over one or two control-action subjects.

    With two subjects the first is the trigger and the second the
    constrained action; with one subject the formula is an invariant or
    duration property of that action.

    Attributes:
        id: Deterministic identifier
        operator: LTL operator applied over the trace
        constraint: Timing hazard category
        subjects: Ordered (controller, action) pairs, one or two entries
        timebound: Optional timing window
        description: Human-readable statement of the assertion
    """

    id: str = Field(..., description="Formula identifier")
    operator: TemporalOperator = Field(..., description="Temporal operator")
    constraint: TimingConstraint = Field(..., description="Timing constraint category")
    subjects: tuple[ActionRef, ...] = Field(..., min_length=1, max_length=2)
    timebound: TimeBound | None = Field(None, description="Timing window")
    description: str = Field("", description="Human-readable description")

    @property
    def trigger(self) -> ActionRef:
        return self.subjects[0]

    @property
    def constrained(self) -> ActionRef:
        return self.subjects[-1]

    def __str__(self) -> str:
        bound = str(self.timebound) if self.timebound and not self.timebound.is_empty else ""
        if len(self.subjects) == 1:
            return f"{self.operator.symbol}{bound} {self.subjects[0]}"
        return f"({self.subjects[0]} {self.operator.symbol}{bound} {self.subjects[1]})"


# =============================================================================
# Evaluation Results
# =============================================================================


class ViolationScenario(_EngineModel):
    """
    One point in a trace where a formula is breached.

    Attributes:
        violation_id: Deterministic identifier within one evaluation
        formula_id: Violated formula
        at_timestamp: Where in time the breach is located
        description: Diagnosis of what went wrong
        severity: Info, Warning or Critical
        subject_index: Formula subject the violation is attributed to
        event_index: Position of the offending event in the trace
            (None for deadline or end-of-trace points)
        events: The events that make up the scenario
    """

    violation_id: str = Field("", description="Violation identifier")
    formula_id: str = Field(..., description="Violated formula ID")
    at_timestamp: int = Field(..., description="Timestamp of the violation")
    description: str = Field(..., description="Human-diagnosable description")
    severity: Severity = Field(Severity.WARNING, description="Severity level")
    subject_index: int = Field(0, ge=0, description="Attributed subject index")
    event_index: int | None = Field(None, description="Offending event position")
    events: tuple[TimedEvent, ...] = Field(default_factory=tuple, description="Scenario events")


class EvaluationResult(_EngineModel):
    """
    Outcome of evaluating one formula over one trace.

    Attributes:
        formula_id: Evaluated formula
        satisfied: True iff no violations were found
        violations: Violations in ascending timestamp order
        vacuous: No subject event appeared in the trace
        events_considered: Number of subject events scanned
    """

    formula_id: str = Field("", description="Evaluated formula ID")
    satisfied: bool = Field(..., description="Whether the formula held")
    violations: tuple[ViolationScenario, ...] = Field(default_factory=tuple)
    vacuous: bool = Field(False, description="Satisfied only because subjects never occurred")
    events_considered: int = Field(0, ge=0, description="Subject events scanned")

    @model_validator(mode="after")
    def _check_consistency(self) -> EvaluationResult:
        if self.satisfied == bool(self.violations):
            raise ValueError("satisfied must be True exactly when there are no violations")
        return self

    @classmethod
    def from_violations(
        cls,
        formula_id: str,
        violations: Sequence[ViolationScenario],
        events_considered: int = 0,
    ) -> EvaluationResult:
        return cls(
            formula_id=formula_id,
            satisfied=not violations,
            violations=tuple(violations),
            vacuous=events_considered == 0,
            events_considered=events_considered,
        )

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    def max_severity(self) -> Severity | None:
        order = list(Severity)
        if not self.violations:
            return None
        return max((v.severity for v in self.violations), key=order.index)


class FormulaRejection(_EngineModel):
    """Diagnostic for a formula that was left out of a batch evaluation."""

    formula_id: str = Field(..., description="Rejected formula ID")
    reason: str = Field(..., description="Why the formula was rejected")
    error_type: str = Field(..., description="Exception class name")


class BatchEvaluation(_EngineModel):
    """Results for a formula set over one trace, with rejection diagnostics."""

    results: tuple[EvaluationResult, ...] = Field(default_factory=tuple)
    rejections: tuple[FormulaRejection, ...] = Field(default_factory=tuple)

    @property
    def satisfied(self) -> bool:
        return all(r.satisfied for r in self.results)

    @property
    def violations(self) -> list[ViolationScenario]:
        return [v for r in self.results for v in r.violations]

    def by_formula(self) -> dict[str, EvaluationResult]:
        return {r.formula_id: r for r in self.results}
