"""
Temporal Logic Engine

The main integration point for the engine components:
- Formula Generator
- Formula Evaluator
- Formula Describer

This module provides the high-level TemporalLogicEngine class that the
presentation layer calls to generate candidate UCCA formulas, evaluate
them against an operator-built trace and render them for display.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from ucca_temporal.core.errors import (
    InvalidFormulaError,
    MalformedTimeboundError,
    describe_error,
)
from ucca_temporal.core.types import (
    BatchEvaluation,
    ControlAction,
    Controller,
    EntityCatalog,
    EvaluationResult,
    EventTrace,
    FormulaRejection,
    TemporalFormula,
    TimedEvent,
    TimingConstraint,
)
from ucca_temporal.generation.generator import GenerationConfig
from ucca_temporal.monitoring.evaluator import SeverityPolicy
from ucca_temporal.utils.logging import configure_logging, log_evaluation_result
from ucca_temporal.utils.metrics import MetricsCollector

if TYPE_CHECKING:
    from ucca_temporal.generation.generator import FormulaGenerator
    from ucca_temporal.monitoring.describer import FormulaDescriber
    from ucca_temporal.monitoring.evaluator import FormulaEvaluator

logger = structlog.get_logger(__name__)


@dataclass
class EngineConfig:
    """Configuration for the temporal logic engine."""

    # Generation
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    # Evaluation
    severity_policy: SeverityPolicy = field(default_factory=SeverityPolicy)
    max_workers: int = 1

    # Metrics
    collect_metrics: bool = True

    # Logging
    setup_logging: bool = True
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: Path | None = None


class TemporalLogicEngine:
    """
    Timed-formula engine for Type 3-4 UCCA analysis.

    Example:
        >>> engine = TemporalLogicEngine()
        >>> engine.load_catalog(controllers, actions)
        >>> formulas = engine.generate(controllers, actions, TimingConstraint.TOO_LATE)
        >>> batch = engine.evaluate_all(formulas, trace)

    Attributes:
        config: Engine configuration
        catalog: Controllers and actions used to name subjects
        metrics: Collected generation and evaluation metrics
    """

    def __init__(self, config: EngineConfig | None = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration. Uses defaults if not provided.
        """
        self.config = config or EngineConfig()
        if self.config.setup_logging:
            configure_logging(
                level=self.config.log_level,
                json_output=self.config.json_logs,
                log_file=self.config.log_file,
            )

        self._generator: FormulaGenerator | None = None
        self._evaluator: FormulaEvaluator | None = None
        self._describer: FormulaDescriber | None = None

        self.catalog: EntityCatalog | None = None
        self.metrics = MetricsCollector()

        logger.info(
            "Temporal logic engine initialized",
            max_workers=self.config.max_workers,
            precedence_only=self.config.generation.precedence_only,
        )

    @property
    def generator(self) -> FormulaGenerator:
        """Lazy initialization of the formula generator."""
        if self._generator is None:
            from ucca_temporal.generation.generator import FormulaGenerator

            self._generator = FormulaGenerator(self.config.generation)
        return self._generator

    @property
    def evaluator(self) -> FormulaEvaluator:
        """Lazy initialization of the formula evaluator."""
        if self._evaluator is None:
            from ucca_temporal.monitoring.evaluator import FormulaEvaluator

            self._evaluator = FormulaEvaluator(self.config.severity_policy)
        return self._evaluator

    @property
    def describer(self) -> FormulaDescriber:
        """Lazy initialization of the describer, bound to the current catalog."""
        if self._describer is None:
            from ucca_temporal.monitoring.describer import FormulaDescriber

            self._describer = FormulaDescriber(self.catalog)
        return self._describer

    def load_catalog(
        self, controllers: Sequence[Controller], actions: Sequence[ControlAction]
    ) -> None:
        """
        Load the controllers and actions used to name formula subjects.

        Args:
            controllers: Controllers from the analysis
            actions: Their control actions
        """
        self.catalog = EntityCatalog.from_entities(controllers, actions)
        self._describer = None
        logger.info(
            "Catalog loaded", controllers=len(self.catalog.controllers), actions=len(actions)
        )

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(
        self,
        controllers: Sequence[Controller],
        actions: Sequence[ControlAction],
        constraint: TimingConstraint,
    ) -> list[TemporalFormula]:
        """Generate candidate formulas for one timing constraint."""
        formulas = self.generator.generate(controllers, actions, constraint)
        if self.config.collect_metrics:
            self.metrics.record_generation(TimingConstraint(constraint).value, len(formulas))
        logger.info(
            "Generation complete",
            constraint=TimingConstraint(constraint).value,
            formulas=len(formulas),
        )
        return formulas

    def generate_all(
        self, controllers: Sequence[Controller], actions: Sequence[ControlAction]
    ) -> list[TemporalFormula]:
        """Generate candidate formulas for every timing constraint."""
        formulas: list[TemporalFormula] = []
        for constraint in TimingConstraint:
            formulas.extend(self.generate(controllers, actions, constraint))
        return formulas

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def evaluate(
        self, formula: TemporalFormula, trace: EventTrace | Sequence[TimedEvent]
    ) -> EvaluationResult:
        """
        Evaluate one formula over one trace.

        Raises:
            InvalidTraceOrderError: if the trace is not sorted by timestamp
            InvalidFormulaError: if the formula cannot be evaluated
        """
        with self.metrics.time_operation() as timer:
            result = self.evaluator.evaluate(formula, trace)

        if self.config.collect_metrics:
            self.metrics.record_evaluation(
                constraint=formula.constraint.value,
                satisfied=result.satisfied,
                vacuous=result.vacuous,
                severities=[v.severity.value for v in result.violations],
                latency_ms=timer.elapsed_ms,
            )
        log_evaluation_result(
            formula.id,
            result.satisfied,
            result.violation_count,
            timer.elapsed_ms,
            vacuous=result.vacuous,
            trace_id=trace.trace_id if isinstance(trace, EventTrace) else None,
            constraint=formula.constraint.value,
        )
        return result

    def evaluate_all(
        self,
        formulas: Sequence[TemporalFormula | Mapping[str, Any]],
        trace: EventTrace | Sequence[TimedEvent],
    ) -> BatchEvaluation:
        """
        Evaluate a formula set over one trace.

        Formulas may be given as models or as raw mappings; a mapping that
        fails validation (e.g. a malformed timebound) or a formula the
        evaluator cannot handle is left out of the results and reported
        as a FormulaRejection. An unsorted trace rejects the whole batch.

        Args:
            formulas: Formulas to evaluate
            trace: Events sorted by non-decreasing timestamp

        Returns:
            BatchEvaluation with results in input order and rejections

        Raises:
            InvalidTraceOrderError: if the trace is not sorted by timestamp
        """
        if not isinstance(trace, EventTrace):
            trace = EventTrace(events=tuple(trace))
        trace.ensure_ordered()

        logger.info(
            "Starting batch evaluation",
            trace_id=trace.trace_id,
            num_events=len(trace),
            num_formulas=len(formulas),
        )

        rejections: list[FormulaRejection] = []
        accepted: list[TemporalFormula] = []
        for raw in formulas:
            formula = self._coerce_formula(raw, rejections)
            if formula is not None:
                accepted.append(formula)

        def run(formula: TemporalFormula) -> EvaluationResult | FormulaRejection:
            try:
                return self.evaluate(formula, trace)
            except InvalidFormulaError as exc:
                return self._reject(formula.id, exc)

        if self.config.max_workers > 1 and len(accepted) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                outcomes = list(pool.map(run, accepted))
        else:
            outcomes = [run(formula) for formula in accepted]

        results = [o for o in outcomes if isinstance(o, EvaluationResult)]
        rejections.extend(o for o in outcomes if isinstance(o, FormulaRejection))

        batch = BatchEvaluation(results=tuple(results), rejections=tuple(rejections))
        logger.info(
            "Batch evaluation complete",
            trace_id=trace.trace_id,
            evaluated=len(results),
            rejected=len(rejections),
            violations=len(batch.violations),
        )
        return batch

    def _coerce_formula(
        self, raw: TemporalFormula | Mapping[str, Any], rejections: list[FormulaRejection]
    ) -> TemporalFormula | None:
        if isinstance(raw, TemporalFormula):
            return raw
        formula_id = str(raw.get("id", "<unnamed>"))
        try:
            return TemporalFormula.model_validate(raw)
        except (MalformedTimeboundError, ValidationError) as exc:
            rejections.append(self._reject(formula_id, exc))
            return None

    def _reject(self, formula_id: str, exc: Exception) -> FormulaRejection:
        info = describe_error(exc)
        logger.warning("Formula rejected", **{**info, "formula_id": formula_id})
        if self.config.collect_metrics:
            self.metrics.record_rejection(info["error_type"])
        return FormulaRejection(
            formula_id=formula_id, reason=info["error"], error_type=info["error_type"]
        )

    # -------------------------------------------------------------------------
    # Description
    # -------------------------------------------------------------------------

    def describe(self, formula: TemporalFormula) -> str:
        """Render a formula as a sentence using the loaded catalog."""
        return self.describer.describe(formula)

    def get_statistics(self) -> dict[str, Any]:
        """Get engine statistics."""
        return self.metrics.get_summary()
