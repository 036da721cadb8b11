"""
Formula Describer - natural-language rendering of temporal formulas.
"""

from __future__ import annotations

from collections.abc import Callable

from ucca_temporal.core.types import (
    ActionRef,
    EntityCatalog,
    TemporalFormula,
    TemporalOperator,
    TimingConstraint,
)
from ucca_temporal.utils.helpers import format_duration_ms

_Render = Callable[[TemporalFormula, Callable[[ActionRef], str]], str | None]


def _window(formula: TemporalFormula) -> str | None:
    bound = formula.timebound
    if bound is None or bound.max is None:
        return None
    if bound.min:
        return f"between {format_duration_ms(bound.min)} and {format_duration_ms(bound.max)}"
    return f"within {format_duration_ms(bound.max)}"


def _too_early(f: TemporalFormula, name: Callable[[ActionRef], str]) -> str | None:
    return f"{name(f.constrained)} must not occur before {name(f.trigger)}"


def _too_late(f: TemporalFormula, name: Callable[[ActionRef], str]) -> str | None:
    window = _window(f)
    if window is None:
        return None
    if len(f.subjects) == 1:
        return f"{name(f.trigger)} must occur {window}"
    return f"{name(f.constrained)} must occur {window} after {name(f.trigger)}"


def _too_long(f: TemporalFormula, name: Callable[[ActionRef], str]) -> str | None:
    if f.timebound is None or f.timebound.max is None:
        return None
    return f"{name(f.trigger)} must not last longer than {format_duration_ms(f.timebound.max)}"


def _too_short(f: TemporalFormula, name: Callable[[ActionRef], str]) -> str | None:
    if f.timebound is None or f.timebound.min is None:
        return None
    return f"{name(f.trigger)} must last at least {format_duration_ms(f.timebound.min)}"


def _wrong_order(f: TemporalFormula, name: Callable[[ActionRef], str]) -> str | None:
    return f"{name(f.constrained)} must immediately follow {name(f.trigger)}"


def _weak_until(f: TemporalFormula, name: Callable[[ActionRef], str]) -> str | None:
    return (
        f"{name(f.constrained)} must not occur before {name(f.trigger)}, "
        "even if the session ends first"
    )


def _release(f: TemporalFormula, name: Callable[[ActionRef], str]) -> str | None:
    return f"{name(f.constrained)} must be maintained until {name(f.trigger)} occurs"


CONSTRAINT_DESCRIPTIONS: dict[TimingConstraint, _Render] = {
    TimingConstraint.TOO_EARLY: _too_early,
    TimingConstraint.TOO_LATE: _too_late,
    TimingConstraint.TOO_LONG: _too_long,
    TimingConstraint.TOO_SHORT: _too_short,
    TimingConstraint.WRONG_ORDER: _wrong_order,
}

OPERATOR_DESCRIPTIONS: dict[TemporalOperator, _Render] = {
    TemporalOperator.WEAK_UNTIL: _weak_until,
    TemporalOperator.RELEASE: _release,
}


class FormulaDescriber:
    """
    Renders formulas as sentences for display.

    With a catalog, subjects are named "<controller>: <verb object>";
    without one, by their controller and action ids.
    """

    def __init__(self, catalog: EntityCatalog | None = None):
        self.catalog = catalog

    def subject_name(self, ref: ActionRef) -> str:
        if self.catalog is None:
            return f"Action {ref.action_id} of {ref.controller_id}"
        return (
            f"{self.catalog.controller_name(ref.controller_id)}: "
            f"{self.catalog.action_label(ref.action_id)}"
        )

    def describe(self, formula: TemporalFormula) -> str:
        render = OPERATOR_DESCRIPTIONS.get(formula.operator) or CONSTRAINT_DESCRIPTIONS.get(
            formula.constraint
        )
        sentence = render(formula, self.subject_name) if render else None
        return sentence or formula.description


_default_describer = FormulaDescriber()


def describe(formula: TemporalFormula, catalog: EntityCatalog | None = None) -> str:
    """Describe a formula, naming subjects from the catalog when given."""
    if catalog is None:
        return _default_describer.describe(formula)
    return FormulaDescriber(catalog).describe(formula)
