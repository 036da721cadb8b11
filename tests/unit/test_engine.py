"""
Unit tests for the TemporalLogicEngine facade.
"""

import pytest

from ucca_temporal.core.engine import EngineConfig, TemporalLogicEngine
from ucca_temporal.core.errors import InvalidTraceOrderError
from ucca_temporal.core.types import (
    ActionRef,
    BatchEvaluation,
    TemporalFormula,
    TemporalOperator,
    TimingConstraint,
)
from ucca_temporal.generation import FormulaGenerator, GenerationConfig
from ucca_temporal.monitoring import FormulaDescriber, FormulaEvaluator


@pytest.fixture
def engine() -> TemporalLogicEngine:
    return TemporalLogicEngine(EngineConfig(setup_logging=False))


class TestEngineSetup:
    """Tests for engine construction and lazy components."""

    def test_default_config(self):
        config = EngineConfig()
        assert config.max_workers == 1
        assert config.collect_metrics
        assert not config.generation.precedence_only

    def test_lazy_components(self, engine):
        assert engine._generator is None
        assert isinstance(engine.generator, FormulaGenerator)
        assert isinstance(engine.evaluator, FormulaEvaluator)
        assert isinstance(engine.describer, FormulaDescriber)
        assert engine.generator is engine.generator

    def test_generation_config_passed_through(self):
        config = EngineConfig(
            setup_logging=False, generation=GenerationConfig(precedence_only=True)
        )
        assert TemporalLogicEngine(config).generator.config.precedence_only


class TestEngineGeneration:
    """Tests for generate and generate_all."""

    def test_generate(self, engine, controllers, actions):
        formulas = engine.generate(controllers, actions, TimingConstraint.TOO_EARLY)
        assert len(formulas) == 2
        assert engine.get_statistics()["generation"]["by_constraint"] == {"too_early": 2}

    def test_generate_all(self, engine, controllers, actions):
        formulas = engine.generate_all(controllers, actions)
        assert len(formulas) == 10
        assert engine.metrics.generation.requests_total == len(TimingConstraint)

    def test_metrics_disabled(self, controllers, actions):
        engine = TemporalLogicEngine(EngineConfig(setup_logging=False, collect_metrics=False))
        engine.generate(controllers, actions, TimingConstraint.TOO_LATE)
        assert engine.metrics.generation.requests_total == 0


class TestEngineEvaluation:
    """Tests for evaluate and evaluate_all."""

    def test_evaluate_records_metrics(self, engine, too_late_formula, late_trace):
        result = engine.evaluate(too_late_formula, late_trace)
        assert not result.satisfied
        stats = engine.get_statistics()["evaluation"]
        assert stats["total"] == 1
        assert stats["by_severity"] == {"critical": 1}

    def test_evaluate_all_preserves_order(
        self, engine, too_late_formula, too_early_formula, late_trace
    ):
        batch = engine.evaluate_all([too_early_formula, too_late_formula], late_trace)
        assert isinstance(batch, BatchEvaluation)
        assert [r.formula_id for r in batch.results] == ["too-early-A1-A2", "too-late-A1-A2"]
        assert batch.rejections == ()
        assert not batch.satisfied

    def test_evaluate_all_accepts_event_list(self, engine, too_late_formula, event):
        batch = engine.evaluate_all([too_late_formula], [event(0, "C1", "A1")])
        assert batch.results[0].violations[0].at_timestamp == 500

    def test_malformed_timebound_rejected(self, engine, too_late_formula, late_trace):
        raw = {
            "id": "bad-window",
            "operator": "F",
            "constraint": "too_late",
            "subjects": [{"controllerId": "C1", "actionId": "A1"}],
            "timebound": {"min": 900, "max": 100},
        }
        batch = engine.evaluate_all([raw, too_late_formula], late_trace)
        assert [r.formula_id for r in batch.results] == ["too-late-A1-A2"]
        assert len(batch.rejections) == 1
        rejection = batch.rejections[0]
        assert rejection.formula_id == "bad-window"
        assert rejection.error_type == "MalformedTimeboundError"
        assert engine.metrics.evaluation.rejections_total == 1

    def test_invalid_mapping_rejected(self, engine, late_trace):
        batch = engine.evaluate_all([{"id": "no-operator", "subjects": []}], late_trace)
        assert batch.results == ()
        assert batch.rejections[0].error_type == "ValidationError"

    def test_unevaluable_formula_rejected(self, engine, late_trace, a1):
        formula = TemporalFormula(
            id="lonely-until",
            operator=TemporalOperator.UNTIL,
            constraint=TimingConstraint.TOO_EARLY,
            subjects=(a1,),
        )
        batch = engine.evaluate_all([formula], late_trace)
        assert batch.rejections[0].formula_id == "lonely-until"
        assert batch.rejections[0].error_type == "InvalidFormulaError"

    def test_unsorted_trace_rejects_batch(self, engine, too_late_formula, event):
        with pytest.raises(InvalidTraceOrderError):
            engine.evaluate_all(
                [too_late_formula], [event(10, "C1", "A1"), event(5, "C1", "A1")]
            )

    def test_parallel_matches_sequential(self, controllers, actions, event):
        trace = [
            event(0, "C2", "A2"),
            event(100, "C1", "A1"),
            event(9000, "C1", "A1", False),
            event(12000, "C2", "A2"),
        ]
        sequential = TemporalLogicEngine(EngineConfig(setup_logging=False))
        parallel = TemporalLogicEngine(EngineConfig(setup_logging=False, max_workers=4))
        formulas = sequential.generate_all(controllers, actions)

        assert sequential.evaluate_all(formulas, trace) == parallel.evaluate_all(formulas, trace)
        assert parallel.metrics.evaluation.evaluations_total == len(formulas)


class TestEngineDescription:
    """Tests for describe with and without a catalog."""

    def test_describe_without_catalog(self, engine, too_early_formula):
        assert engine.describe(too_early_formula).startswith("Action A2 of C2")

    def test_load_catalog_refreshes_describer(self, engine, controllers, actions):
        formula = TemporalFormula(
            id="f",
            operator=TemporalOperator.NEXT,
            constraint=TimingConstraint.WRONG_ORDER,
            subjects=(
                ActionRef(controller_id="C1", action_id="A1"),
                ActionRef(controller_id="C2", action_id="A2"),
            ),
        )
        before = engine.describe(formula)
        engine.load_catalog(controllers, actions)
        after = engine.describe(formula)
        assert before != after
        assert after == (
            "Brake Controller: apply brakes must immediately follow Driver: press pedal"
        )
