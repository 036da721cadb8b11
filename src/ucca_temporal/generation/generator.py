"""
Formula Generator

Generates candidate temporal formulas for Type 3-4 UCCAs from a set of
controllers, their control actions and a requested timing constraint.

Formula shapes per constraint:
1. Too early:   (trigger U constrained)       - every ordered pair
2. Too late:    F[0,deadline] after trigger   - every ordered pair
3. Wrong order: X-chained sequence check      - every ordered pair
4. Too long:    G with a maximum duration     - every single action
5. Too short:   G with a minimum duration     - every single action

Timing bounds are chosen from keyword heuristics on the action verb and
can be replaced through GenerationConfig. The same keyword sets can narrow
each constraint to the actions that carry that kind of timing requirement
(see GenerationConfig.selective).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

import structlog

from ucca_temporal.core.types import (
    ActionRef,
    ControlAction,
    Controller,
    TemporalFormula,
    TemporalOperator,
    TimeBound,
    TimingConstraint,
)
from ucca_temporal.utils.helpers import format_duration_ms

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FormulaTemplate:
    """Template for generating formulas of one timing constraint."""

    constraint: TimingConstraint
    operator: TemporalOperator
    id_prefix: str
    description_template: str
    pairwise: bool


FORMULA_TEMPLATES: dict[TimingConstraint, FormulaTemplate] = {
    TimingConstraint.TOO_EARLY: FormulaTemplate(
        constraint=TimingConstraint.TOO_EARLY,
        operator=TemporalOperator.UNTIL,
        id_prefix="too-early",
        description_template=(
            "{constrained_controller} must not {constrained_action} "
            "until {trigger_controller} has provided {trigger_action}"
        ),
        pairwise=True,
    ),
    TimingConstraint.TOO_LATE: FormulaTemplate(
        constraint=TimingConstraint.TOO_LATE,
        operator=TemporalOperator.EVENTUALLY,
        id_prefix="too-late",
        description_template=(
            "{constrained_controller} must {constrained_action} within {max} "
            "after {trigger_controller} provides {trigger_action}"
        ),
        pairwise=True,
    ),
    TimingConstraint.WRONG_ORDER: FormulaTemplate(
        constraint=TimingConstraint.WRONG_ORDER,
        operator=TemporalOperator.NEXT,
        id_prefix="wrong-order",
        description_template=(
            "{constrained_controller} {constrained_action} must follow "
            "{trigger_controller} {trigger_action} before it is repeated"
        ),
        pairwise=True,
    ),
    TimingConstraint.TOO_LONG: FormulaTemplate(
        constraint=TimingConstraint.TOO_LONG,
        operator=TemporalOperator.ALWAYS,
        id_prefix="too-long",
        description_template=(
            "{trigger_controller} must not {trigger_action} for more than {max}"
        ),
        pairwise=False,
    ),
    TimingConstraint.TOO_SHORT: FormulaTemplate(
        constraint=TimingConstraint.TOO_SHORT,
        operator=TemporalOperator.ALWAYS,
        id_prefix="too-short",
        description_template="{trigger_controller} must {trigger_action} for at least {min}",
        pairwise=False,
    ),
}


@dataclass(frozen=True)
class PrecedenceRule:
    """Verb keywords for an action that conventionally precedes another."""

    first: str
    second: str

    def matches(self, trigger: ControlAction, constrained: ControlAction) -> bool:
        return (
            self.first in trigger.verb.lower() and self.second in constrained.verb.lower()
        )


DEFAULT_PRECEDENCE_RULES: tuple[PrecedenceRule, ...] = (
    PrecedenceRule("arm", "launch"),
    PrecedenceRule("check", "proceed"),
    PrecedenceRule("request", "approve"),
    PrecedenceRule("initialize", "operate"),
)


@dataclass(frozen=True)
class SequenceRule:
    """
    Keywords for actions that must occur as an ordered chain.

    Attributes:
        stages: Keywords in chain order
        by_stage: Order members by their first matching stage; otherwise
            keep action input order
        reverse: Reverse the chain after ordering
        match_object: Also match keywords against the action object
    """

    stages: tuple[str, ...]
    by_stage: bool = True
    reverse: bool = False
    match_object: bool = False

    def _stage(self, action: ControlAction) -> int | None:
        verb = action.verb.lower()
        obj = action.object.lower()
        for idx, keyword in enumerate(self.stages):
            if keyword in verb or (self.match_object and keyword in obj):
                return idx
        return None

    def chain(self, actions: Sequence[ControlAction]) -> list[ControlAction]:
        """Members of the chain in order; empty unless at least two actions match."""
        staged = []
        for action in actions:
            stage = self._stage(action)
            if stage is not None:
                staged.append((stage, action))
        if len(staged) < 2:
            return []
        if self.by_stage:
            staged.sort(key=lambda item: item[0])
        members = [a for _, a in staged]
        if self.reverse:
            members.reverse()
        return members


DEFAULT_SEQUENCE_RULES: tuple[SequenceRule, ...] = (
    # startup
    SequenceRule(("power", "initialize", "configure", "start")),
    # shutdown, unwound in reverse of declaration
    SequenceRule(
        ("stop", "shutdown", "power off"), by_stage=False, reverse=True, match_object=True
    ),
)


def _keyword_bound(
    action: ControlAction, rules: Sequence[tuple[str, int]], default: int
) -> int:
    verb = action.verb.lower()
    for keyword, value in rules:
        if keyword in verb:
            return value
    return default


@dataclass(frozen=True)
class TimingProfile:
    """
    Default timing bounds in milliseconds, keyed on action verb keywords.

    The first matching keyword wins; otherwise the default applies. The
    keyword sets decide which actions carry a timing requirement at all
    when GenerationConfig asks for selective generation.
    """

    deadline_rules: tuple[tuple[str, int], ...] = (("emergency", 1000), ("abort", 2000))
    default_deadline_ms: int = 5000
    max_duration_rules: tuple[tuple[str, int], ...] = (("hold", 10000), ("press", 5000))
    default_max_duration_ms: int = 30000
    min_duration_rules: tuple[tuple[str, int], ...] = (("warm", 30000), ("stabilize", 10000))
    default_min_duration_ms: int = 5000

    # matched against verb and object
    critical_keywords: tuple[str, ...] = ("emergency", "abort", "stop", "brake", "eject")
    # matched against the verb
    max_duration_keywords: tuple[str, ...] = ("hold", "press", "maintain", "apply")
    min_duration_keywords: tuple[str, ...] = ("warm", "stabilize", "charge", "initialize")

    def deadline_for(self, action: ControlAction) -> int:
        return _keyword_bound(action, self.deadline_rules, self.default_deadline_ms)

    def max_duration_for(self, action: ControlAction) -> int:
        return _keyword_bound(action, self.max_duration_rules, self.default_max_duration_ms)

    def min_duration_for(self, action: ControlAction) -> int:
        return _keyword_bound(action, self.min_duration_rules, self.default_min_duration_ms)

    def is_critical(self, action: ControlAction) -> bool:
        verb, obj = action.verb.lower(), action.object.lower()
        return any(k in verb or k in obj for k in self.critical_keywords)

    def has_max_duration(self, action: ControlAction) -> bool:
        return any(k in action.verb.lower() for k in self.max_duration_keywords)

    def has_min_duration(self, action: ControlAction) -> bool:
        return any(k in action.verb.lower() for k in self.min_duration_keywords)


@dataclass
class GenerationConfig:
    """
    Configuration for formula generation.

    Every filter is off by default, so each constraint covers every
    eligible subject or ordered pair. Each filter narrows one constraint:

    - precedence_only: TOO_EARLY pairs must match a precedence rule
    - critical_only: TOO_LATE pairs need a time-critical constrained action
    - sequences_only: WRONG_ORDER pairs must be adjacent in a sequence rule chain
    - duration_keywords_only: TOO_LONG / TOO_SHORT actions need a duration keyword
    """

    timing: TimingProfile = field(default_factory=TimingProfile)
    precedence_only: bool = False
    precedence_rules: tuple[PrecedenceRule, ...] = DEFAULT_PRECEDENCE_RULES
    critical_only: bool = False
    sequences_only: bool = False
    sequence_rules: tuple[SequenceRule, ...] = DEFAULT_SEQUENCE_RULES
    duration_keywords_only: bool = False

    @classmethod
    def selective(cls, **kwargs) -> GenerationConfig:
        """Config with every keyword filter switched on."""
        options = dict(
            precedence_only=True,
            critical_only=True,
            sequences_only=True,
            duration_keywords_only=True,
        )
        options.update(kwargs)
        return cls(**options)


def _unique_by_id(items):
    """Drop entries whose id was already seen; the first occurrence wins."""
    seen: dict[str, object] = {}
    for item in items:
        seen.setdefault(item.id, item)
    return list(seen.values())


class _Subject(NamedTuple):
    controller: Controller
    action: ControlAction


class FormulaGenerator:
    """
    Generates temporal formulas for timing-related UCCAs.

    Output is deterministic: subjects are enumerated controller by
    controller, and within a controller in action input order.

    Example:
        >>> generator = FormulaGenerator()
        >>> formulas = generator.generate(controllers, actions, TimingConstraint.TOO_LATE)
    """

    def __init__(self, config: GenerationConfig | None = None):
        self.config = config or GenerationConfig()

    def generate(
        self,
        controllers: Sequence[Controller],
        actions: Sequence[ControlAction],
        constraint: TimingConstraint,
    ) -> list[TemporalFormula]:
        """
        Generate candidate formulas for one timing constraint.

        Args:
            controllers: Controllers from the catalog
            actions: Control actions, each referencing a listed controller
            constraint: Requested timing-constraint category

        Returns:
            Formulas in deterministic order; empty when no subjects apply
        """
        constraint = TimingConstraint(constraint)
        subjects = self._collect_subjects(controllers, actions)
        if not subjects:
            return []

        template = FORMULA_TEMPLATES[constraint]
        if template.pairwise:
            allowed = self._pair_filter(constraint, [s.action for s in subjects])
            formulas = [
                self._build_pair(template, trigger, constrained)
                for i, trigger in enumerate(subjects)
                for j, constrained in enumerate(subjects)
                if i != j and allowed(trigger.action, constrained.action)
            ]
        else:
            formulas = [
                self._build_single(template, subject)
                for subject in subjects
                if self._single_allowed(constraint, subject.action)
            ]

        logger.debug(
            "Formulas generated",
            constraint=constraint.value,
            subjects=len(subjects),
            count=len(formulas),
        )
        return formulas

    def generate_all(
        self, controllers: Sequence[Controller], actions: Sequence[ControlAction]
    ) -> list[TemporalFormula]:
        """Generate formulas for every timing constraint, in declaration order."""
        formulas: list[TemporalFormula] = []
        for constraint in TimingConstraint:
            formulas.extend(self.generate(controllers, actions, constraint))
        return formulas

    def _collect_subjects(
        self, controllers: Sequence[Controller], actions: Sequence[ControlAction]
    ) -> list[_Subject]:
        if not controllers or not actions:
            logger.debug(
                "No subjects to generate from",
                controllers=len(controllers),
                actions=len(actions),
            )
            return []

        known = {c.id for c in controllers}
        orphans = [a.id for a in actions if a.controller_id not in known]
        if orphans:
            logger.debug("Actions reference unknown controllers", actions=orphans)
            return []

        unique_controllers = _unique_by_id(controllers)
        unique_actions = _unique_by_id(actions)
        if len(unique_controllers) < len(controllers) or len(unique_actions) < len(actions):
            logger.debug(
                "Dropped repeated catalog entries",
                controllers=len(controllers) - len(unique_controllers),
                actions=len(actions) - len(unique_actions),
            )

        return [
            _Subject(controller, action)
            for controller in unique_controllers
            for action in unique_actions
            if action.controller_id == controller.id
        ]

    def _pair_filter(
        self, constraint: TimingConstraint, actions: Sequence[ControlAction]
    ) -> Callable[[ControlAction, ControlAction], bool]:
        config = self.config

        if constraint == TimingConstraint.TOO_EARLY and config.precedence_only:
            return lambda trigger, constrained: any(
                rule.matches(trigger, constrained) for rule in config.precedence_rules
            )

        if constraint == TimingConstraint.TOO_LATE and config.critical_only:
            return lambda trigger, constrained: config.timing.is_critical(constrained)

        if constraint == TimingConstraint.WRONG_ORDER and config.sequences_only:
            adjacent = set()
            for rule in config.sequence_rules:
                chain = rule.chain(actions)
                adjacent.update((a.id, b.id) for a, b in zip(chain, chain[1:]))
            return lambda trigger, constrained: (trigger.id, constrained.id) in adjacent

        return lambda trigger, constrained: True

    def _single_allowed(self, constraint: TimingConstraint, action: ControlAction) -> bool:
        if not self.config.duration_keywords_only:
            return True
        if constraint == TimingConstraint.TOO_LONG:
            return self.config.timing.has_max_duration(action)
        return self.config.timing.has_min_duration(action)

    def _build_pair(
        self, template: FormulaTemplate, trigger: _Subject, constrained: _Subject
    ) -> TemporalFormula:
        timebound = None
        if template.constraint == TimingConstraint.TOO_LATE:
            timebound = TimeBound(max=self.config.timing.deadline_for(constrained.action))

        return TemporalFormula(
            id=f"{template.id_prefix}-{trigger.action.id}-{constrained.action.id}",
            operator=template.operator,
            constraint=template.constraint,
            subjects=(ActionRef.of(trigger.action), ActionRef.of(constrained.action)),
            timebound=timebound,
            description=self._render(template, trigger, constrained, timebound),
        )

    def _build_single(self, template: FormulaTemplate, subject: _Subject) -> TemporalFormula:
        timing = self.config.timing
        if template.constraint == TimingConstraint.TOO_LONG:
            timebound = TimeBound(max=timing.max_duration_for(subject.action))
        else:
            timebound = TimeBound(min=timing.min_duration_for(subject.action))

        return TemporalFormula(
            id=f"{template.id_prefix}-{subject.action.id}",
            operator=template.operator,
            constraint=template.constraint,
            subjects=(ActionRef.of(subject.action),),
            timebound=timebound,
            description=self._render(template, subject, None, timebound),
        )

    @staticmethod
    def _render(
        template: FormulaTemplate,
        trigger: _Subject,
        constrained: _Subject | None,
        timebound: TimeBound | None,
    ) -> str:
        values = {
            "trigger_controller": trigger.controller.name,
            "trigger_action": trigger.action.label,
            "constrained_controller": constrained.controller.name if constrained else "",
            "constrained_action": constrained.action.label if constrained else "",
            "min": "",
            "max": "",
        }
        if timebound is not None:
            if timebound.min is not None:
                values["min"] = format_duration_ms(timebound.min)
            if timebound.max is not None:
                values["max"] = format_duration_ms(timebound.max)
        return template.description_template.format(**values)


_default_generator = FormulaGenerator()


def generate(
    controllers: Sequence[Controller],
    actions: Sequence[ControlAction],
    constraint: TimingConstraint,
) -> list[TemporalFormula]:
    """Generate formulas with the default configuration."""
    return _default_generator.generate(controllers, actions, constraint)
