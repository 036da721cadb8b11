"""
UCCA Temporal: timed-formula engine for Unsafe Control Action analysis

Generates, evaluates and describes temporal-logic formulas for Type 3-4
Unsafe Combinations of Control Actions (UCCAs) in STPA:
- Generation: candidate formulas from controllers, actions and a timing constraint
- Monitoring: evaluation of formulas over timed event traces
- Description: natural-language rendering of formulas

Example:
    >>> from ucca_temporal import TimingConstraint, generate, evaluate
    >>>
    >>> formulas = generate(controllers, actions, TimingConstraint.TOO_LATE)
    >>> result = evaluate(formulas[0], trace)
    >>> result.satisfied
"""

__version__ = "0.1.0"

from ucca_temporal.core.errors import (
    InvalidFormulaError,
    InvalidTraceOrderError,
    MalformedTimeboundError,
    TemporalEngineError,
)
from ucca_temporal.core.types import (
    ActionRef,
    BatchEvaluation,
    ControlAction,
    Controller,
    EntityCatalog,
    EvaluationResult,
    EventTrace,
    FormulaRejection,
    # Enums
    Severity,
    TemporalFormula,
    TemporalOperator,
    TimeBound,
    TimedEvent,
    TimingConstraint,
    ViolationScenario,
)
from ucca_temporal.core.engine import EngineConfig, TemporalLogicEngine
from ucca_temporal.generation import FormulaGenerator, GenerationConfig, TimingProfile, generate
from ucca_temporal.monitoring import (
    FormulaDescriber,
    FormulaEvaluator,
    SeverityPolicy,
    describe,
    evaluate,
)

__all__ = [
    # Enums
    "TimingConstraint",
    "TemporalOperator",
    "Severity",
    # Data models
    "Controller",
    "ControlAction",
    "EntityCatalog",
    "TimedEvent",
    "EventTrace",
    "ActionRef",
    "TimeBound",
    "TemporalFormula",
    "ViolationScenario",
    "EvaluationResult",
    "FormulaRejection",
    "BatchEvaluation",
    # Errors
    "TemporalEngineError",
    "MalformedTimeboundError",
    "InvalidTraceOrderError",
    "InvalidFormulaError",
    # Components
    "FormulaGenerator",
    "GenerationConfig",
    "TimingProfile",
    "FormulaEvaluator",
    "SeverityPolicy",
    "FormulaDescriber",
    "TemporalLogicEngine",
    "EngineConfig",
    # Operations
    "generate",
    "evaluate",
    "describe",
]
