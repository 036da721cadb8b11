"""
Formula Evaluator - finite-trace semantics for timing-related UCCAs.

This module evaluates a TemporalFormula over a finite, timestamp-ordered
event trace and reports every distinct point where the formula is
breached, not only whether it held.

Only events whose (controller, action) pair matches a formula subject
are scanned. Subjects are interned into an index table once per call so
each event is matched with a single dict lookup.

Operator semantics (subjects: [trigger, constrained]):
    G φ       every episode of the subject respects the duration bound
    F[a,b]    each trigger is answered by the constrained action within [a,b]
    A U B     B is never provided before A first occurs; A must occur
    A W B     as U, but A need not occur before the trace ends
    A R B     B is never withheld up to and including A's first occurrence
    X         sequence check: B never precedes the first A, and A is not
              repeated before B follows it

Events with identical timestamps are simultaneous: they are never in the
wrong order relative to each other.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

import structlog

from ucca_temporal.core.errors import InvalidFormulaError, InvalidTraceOrderError
from ucca_temporal.core.types import (
    EvaluationResult,
    EventTrace,
    Severity,
    TemporalFormula,
    TemporalOperator,
    TimeBound,
    TimedEvent,
    TimingConstraint,
    ViolationScenario,
)

logger = structlog.get_logger(__name__)


DEFAULT_SEVERITIES: dict[TimingConstraint, Severity] = {
    TimingConstraint.TOO_EARLY: Severity.CRITICAL,
    TimingConstraint.TOO_LATE: Severity.CRITICAL,
    TimingConstraint.TOO_LONG: Severity.CRITICAL,
    TimingConstraint.TOO_SHORT: Severity.CRITICAL,
    TimingConstraint.WRONG_ORDER: Severity.WARNING,
}


@dataclass(frozen=True)
class SeverityPolicy:
    """
    Maps formulas to the severity of their violations.

    Attributes:
        by_constraint: Severity for breaches of each timing constraint
        obligation: Severity for a strong-until obligation still open
            when the trace ends
    """

    by_constraint: dict[TimingConstraint, Severity] = field(
        default_factory=lambda: dict(DEFAULT_SEVERITIES)
    )
    obligation: Severity = Severity.INFO

    def for_formula(self, formula: TemporalFormula) -> Severity:
        return self.by_constraint.get(formula.constraint, Severity.WARNING)


class _SubjectEvent(NamedTuple):
    """A trace event matched to a formula subject."""

    index: int  # position in the full trace
    subject: int  # index into formula.subjects
    event: TimedEvent

    @property
    def timestamp(self) -> int:
        return self.event.timestamp


@dataclass
class _Breach:
    """A violation before ordering and numbering."""

    at: int
    subject: int
    description: str
    severity: Severity
    event_index: int | None = None
    events: tuple[TimedEvent, ...] = ()


class FormulaEvaluator:
    """
    Evaluates temporal formulas against finite event traces.

    Evaluation is a pure function of (formula, trace): no state is kept
    between calls, so one evaluator may be shared across threads.

    Example:
        >>> evaluator = FormulaEvaluator()
        >>> result = evaluator.evaluate(formula, trace)
        >>> result.satisfied
        True
    """

    def __init__(self, severity_policy: SeverityPolicy | None = None):
        self.severity_policy = severity_policy or SeverityPolicy()

    def evaluate(
        self, formula: TemporalFormula, trace: EventTrace | Sequence[TimedEvent]
    ) -> EvaluationResult:
        """
        Evaluate one formula over one trace.

        Args:
            formula: The formula to check
            trace: Events sorted by non-decreasing timestamp

        Returns:
            EvaluationResult with violations in ascending timestamp order

        Raises:
            InvalidTraceOrderError: if the trace is not sorted by timestamp
            InvalidFormulaError: if the formula's subjects do not fit its operator
        """
        events = tuple(trace.events if isinstance(trace, EventTrace) else trace)
        self._check_order(events)
        self._check_shape(formula)

        table = {subject.key: idx for idx, subject in enumerate(formula.subjects)}
        matched = [
            _SubjectEvent(pos, table[event.subject], event)
            for pos, event in enumerate(events)
            if event.subject in table
        ]
        if not matched:
            logger.debug("Vacuous evaluation", formula_id=formula.id, trace_events=len(events))
            return EvaluationResult.from_violations(formula.id, [], 0)

        severity = self.severity_policy.for_formula(formula)
        breaches = self._dispatch(formula, events, matched, severity)

        breaches.sort(key=lambda b: (b.at, b.subject))
        violations = [
            ViolationScenario(
                violation_id=f"violation-{formula.id}-{n}",
                formula_id=formula.id,
                at_timestamp=b.at,
                description=b.description,
                severity=b.severity,
                subject_index=b.subject,
                event_index=b.event_index,
                events=b.events,
            )
            for n, b in enumerate(breaches)
        ]

        logger.debug(
            "Formula evaluated",
            formula_id=formula.id,
            operator=formula.operator.value,
            events_considered=len(matched),
            violations=len(violations),
        )
        return EvaluationResult.from_violations(formula.id, violations, len(matched))

    # -------------------------------------------------------------------------
    # Entry checks
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_order(events: Sequence[TimedEvent]) -> None:
        for idx in range(1, len(events)):
            previous, current = events[idx - 1].timestamp, events[idx].timestamp
            if current < previous:
                logger.warning(
                    "Rejected unsorted trace", index=idx, previous=previous, current=current
                )
                raise InvalidTraceOrderError(idx, previous, current)

    @staticmethod
    def _check_shape(formula: TemporalFormula) -> None:
        count = len(formula.subjects)
        if formula.operator.is_binary and count != 2:
            raise InvalidFormulaError(
                formula.id, f"operator {formula.operator.name} needs two subjects, got {count}"
            )
        if count == 2 and formula.subjects[0].key == formula.subjects[1].key:
            raise InvalidFormulaError(formula.id, "subjects must be distinct")

    def _dispatch(
        self,
        formula: TemporalFormula,
        events: Sequence[TimedEvent],
        matched: list[_SubjectEvent],
        severity: Severity,
    ) -> list[_Breach]:
        operator = formula.operator

        if operator == TemporalOperator.ALWAYS:
            return self._evaluate_always(formula, matched, severity)

        elif operator == TemporalOperator.EVENTUALLY:
            return self._evaluate_eventually(formula, events, matched, severity)

        elif operator == TemporalOperator.UNTIL:
            return self._evaluate_until(formula, events, matched, severity, weak=False)

        elif operator == TemporalOperator.WEAK_UNTIL:
            return self._evaluate_until(formula, events, matched, severity, weak=True)

        elif operator == TemporalOperator.RELEASE:
            return self._evaluate_release(formula, matched, severity)

        elif operator == TemporalOperator.NEXT:
            return self._evaluate_next(formula, matched, severity)

        raise InvalidFormulaError(formula.id, f"unhandled operator {operator!r}")

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def _evaluate_always(
        self, formula: TemporalFormula, matched: list[_SubjectEvent], severity: Severity
    ) -> list[_Breach]:
        """Evaluate G φ: per-episode duration bounds, or no withheld events."""
        bound = formula.timebound
        if not formula.constraint.is_duration and (bound is None or bound.is_empty):
            return [
                _Breach(
                    at=se.timestamp,
                    subject=se.subject,
                    description=(
                        f"{formula.subjects[se.subject]} was withheld at t={se.timestamp} "
                        "but must always be provided"
                    ),
                    severity=severity,
                    event_index=se.index,
                    events=(se.event,),
                )
                for se in matched
                if not se.event.provided
            ]

        bound = bound or TimeBound()
        breaches: list[_Breach] = []
        open_episodes: dict[int, list[_SubjectEvent]] = {}

        for se in matched:
            if se.event.provided:
                open_episodes.setdefault(se.subject, []).append(se)
            elif se.subject in open_episodes:
                episode = open_episodes.pop(se.subject)
                breaches.extend(self._close_episode(formula, episode, se, bound, severity))

        for subject in sorted(open_episodes):
            episode = open_episodes[subject]
            breaches.extend(self._close_episode(formula, episode, None, bound, severity))

        return breaches

    @staticmethod
    def _close_episode(
        formula: TemporalFormula,
        episode: list[_SubjectEvent],
        closing: _SubjectEvent | None,
        bound: TimeBound,
        severity: Severity,
    ) -> list[_Breach]:
        first = episode[0]
        last = closing or episode[-1]
        duration = last.timestamp - first.timestamp
        subject = formula.subjects[first.subject]
        scenario = tuple(se.event for se in episode) + ((closing.event,) if closing else ())

        breaches = []
        if bound.max is not None and duration > bound.max:
            breaches.append(
                _Breach(
                    at=last.timestamp,
                    subject=first.subject,
                    description=(
                        f"{subject} was applied for {duration}ms from t={first.timestamp} "
                        f"to t={last.timestamp}, exceeding the maximum of {bound.max}ms"
                    ),
                    severity=severity,
                    event_index=last.index,
                    events=scenario,
                )
            )
        if closing is not None and bound.min is not None and duration < bound.min:
            breaches.append(
                _Breach(
                    at=closing.timestamp,
                    subject=first.subject,
                    description=(
                        f"{subject} was stopped at t={closing.timestamp} after {duration}ms, "
                        f"short of the minimum of {bound.min}ms"
                    ),
                    severity=severity,
                    event_index=closing.index,
                    events=scenario,
                )
            )
        return breaches

    def _evaluate_eventually(
        self,
        formula: TemporalFormula,
        events: Sequence[TimedEvent],
        matched: list[_SubjectEvent],
        severity: Severity,
    ) -> list[_Breach]:
        """Evaluate F[a,b]: every trigger must be answered inside its window."""
        bound = formula.timebound or TimeBound()
        lower = bound.min if bound.min is not None else 0
        end_time = events[-1].timestamp
        target = len(formula.subjects) - 1
        constrained = formula.subjects[target]

        responses = [se for se in matched if se.subject == target and se.event.provided]
        response_times = [se.timestamp for se in responses]

        if len(formula.subjects) == 2:
            trigger_name = str(formula.subjects[0])
            triggers = [
                (se.timestamp, (se.event,))
                for se in matched
                if se.subject == 0 and se.event.provided
            ]
        else:
            # Single-subject deadlines run from the start of the trace
            trigger_name = "trace start"
            triggers = [(events[0].timestamp, ())]

        breaches = []
        for t0, trigger_events in triggers:
            k = bisect_left(response_times, t0 + lower)
            if k < len(responses) and (bound.max is None or response_times[k] <= t0 + bound.max):
                continue

            deadline = t0 + bound.max if bound.max is not None else end_time
            if k < len(responses):
                late = responses[k]
                description = (
                    f"{constrained} occurred at t={late.timestamp}, "
                    f"{late.timestamp - t0}ms after {trigger_name} at t={t0}; "
                    f"deadline t={deadline} was missed"
                )
                scenario = trigger_events + (late.event,)
            elif bound.max is not None:
                description = (
                    f"{constrained} was not provided within {bound.max}ms of "
                    f"{trigger_name} at t={t0}; deadline t={deadline} was missed"
                )
                scenario = trigger_events
            else:
                description = (
                    f"{constrained} was never provided after {trigger_name} at t={t0} "
                    f"before the trace ended at t={end_time}"
                )
                scenario = trigger_events
            first_after = bisect_left(response_times, t0)
            if first_after < k:
                description += (
                    f" (it occurred at t={response_times[first_after]}, earlier than the "
                    f"minimum delay of {lower}ms)"
                )

            breaches.append(
                _Breach(
                    at=deadline,
                    subject=target,
                    description=description,
                    severity=severity,
                    events=scenario,
                )
            )
        return breaches

    def _evaluate_until(
        self,
        formula: TemporalFormula,
        events: Sequence[TimedEvent],
        matched: list[_SubjectEvent],
        severity: Severity,
        weak: bool,
    ) -> list[_Breach]:
        """Evaluate A U B / A W B: B is not provided before A first occurs."""
        trigger, constrained = formula.subjects
        release = _first_provided(matched, 0)
        limit = release.timestamp if release else None

        breaches = []
        for se in matched:
            if se.subject != 1 or not se.event.provided:
                continue
            if limit is not None and se.timestamp >= limit:
                break
            when = f"first occurred at t={limit}" if limit is not None else "had occurred"
            breaches.append(
                _Breach(
                    at=se.timestamp,
                    subject=1,
                    description=(
                        f"{constrained} was provided at t={se.timestamp} before {trigger} {when}"
                    ),
                    severity=severity,
                    event_index=se.index,
                    events=(se.event,),
                )
            )

        if release is None and not weak:
            end_time = events[-1].timestamp
            breaches.append(
                _Breach(
                    at=end_time,
                    subject=0,
                    description=(
                        f"{trigger} never occurred before the trace ended at t={end_time}; "
                        f"the obligation on {constrained} was never discharged"
                    ),
                    severity=self.severity_policy.obligation,
                )
            )
        return breaches

    def _evaluate_release(
        self, formula: TemporalFormula, matched: list[_SubjectEvent], severity: Severity
    ) -> list[_Breach]:
        """Evaluate A R B: B is not withheld up to and including A's first occurrence."""
        trigger, constrained = formula.subjects
        release = _first_provided(matched, 0)
        limit = release.timestamp if release else None

        return [
            _Breach(
                at=se.timestamp,
                subject=1,
                description=(
                    f"{constrained} was withheld at t={se.timestamp} "
                    f"before being released by {trigger}"
                ),
                severity=severity,
                event_index=se.index,
                events=(se.event,),
            )
            for se in matched
            if se.subject == 1
            and not se.event.provided
            and (limit is None or se.timestamp <= limit)
        ]

    def _evaluate_next(
        self, formula: TemporalFormula, matched: list[_SubjectEvent], severity: Severity
    ) -> list[_Breach]:
        """Evaluate the X-chained sequence check for WRONG_ORDER."""
        first, second = formula.subjects
        occurrences = [se for se in matched if se.event.provided]
        opening = _first_provided(occurrences, 0)
        first_time = opening.timestamp if opening else None

        breaches = []
        for se in occurrences:
            if se.subject != 1:
                continue
            if first_time is not None and se.timestamp >= first_time:
                continue
            when = f"first occurred at t={first_time}" if first_time is not None else "occurred"
            breaches.append(
                _Breach(
                    at=se.timestamp,
                    subject=1,
                    description=f"{second} occurred at t={se.timestamp} before {first} {when}",
                    severity=severity,
                    event_index=se.index,
                    events=(se.event,),
                )
            )

        # One occurrence per distinct timestamp; a repeat is discharged by any
        # second-subject occurrence in (current, following].
        openings: dict[int, _SubjectEvent] = {}
        for se in occurrences:
            if se.subject == 0:
                openings.setdefault(se.timestamp, se)
        answers = [se.timestamp for se in occurrences if se.subject == 1]

        starts = list(openings.values())
        for current, following in zip(starts, starts[1:]):
            pos = bisect_right(answers, current.timestamp)
            if pos < len(answers) and answers[pos] <= following.timestamp:
                continue
            breaches.append(
                _Breach(
                    at=following.timestamp,
                    subject=0,
                    description=(
                        f"{first} was repeated at t={following.timestamp} without {second} "
                        f"following its occurrence at t={current.timestamp}"
                    ),
                    severity=severity,
                    event_index=following.index,
                    events=(current.event, following.event),
                )
            )
        return breaches


def _first_provided(matched: Sequence[_SubjectEvent], subject: int) -> _SubjectEvent | None:
    return next((se for se in matched if se.subject == subject and se.event.provided), None)


_default_evaluator = FormulaEvaluator()


def evaluate(
    formula: TemporalFormula, trace: EventTrace | Sequence[TimedEvent]
) -> EvaluationResult:
    """Evaluate a formula with the default severity policy."""
    return _default_evaluator.evaluate(formula, trace)
