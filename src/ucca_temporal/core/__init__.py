"""
UCCA Temporal Core Module

Core types, errors and the engine facade.
"""

from ucca_temporal.core.errors import (
    InvalidFormulaError,
    InvalidTraceOrderError,
    MalformedTimeboundError,
    TemporalEngineError,
    describe_error,
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
    Severity,
    TemporalFormula,
    TemporalOperator,
    TimeBound,
    TimedEvent,
    TimingConstraint,
    ViolationScenario,
)
from ucca_temporal.core.engine import EngineConfig, TemporalLogicEngine

__all__ = [
    # Engine
    "TemporalLogicEngine",
    "EngineConfig",
    # Errors
    "TemporalEngineError",
    "MalformedTimeboundError",
    "InvalidTraceOrderError",
    "InvalidFormulaError",
    "describe_error",
    # Types
    "TimingConstraint",
    "TemporalOperator",
    "Severity",
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
]
