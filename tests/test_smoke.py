"""
Smoke tests for UCCA Temporal core functionality.

These tests verify that the package imports and the three public
operations work end to end on the smallest useful inputs.
"""

import pytest


class TestCoreImports:
    """Test that core modules can be imported."""

    def test_package_import(self):
        """Test top-level package exports."""
        import ucca_temporal

        assert ucca_temporal.__version__ == "0.1.0"
        assert "generate" in ucca_temporal.__all__
        assert "evaluate" in ucca_temporal.__all__
        assert "describe" in ucca_temporal.__all__

    def test_core_types_import(self):
        """Test core types import."""
        from ucca_temporal.core.types import Severity, TemporalOperator

        assert Severity.CRITICAL.value == "critical"
        assert TemporalOperator.UNTIL.symbol == "U"

    def test_monitoring_import(self):
        """Test evaluator and describer import."""
        from ucca_temporal.monitoring import FormulaDescriber, FormulaEvaluator

        assert FormulaEvaluator().severity_policy is not None
        assert FormulaDescriber().catalog is None

    def test_utils_import(self):
        """Test utility module import."""
        from ucca_temporal.utils import format_duration_ms, get_metrics_collector

        assert format_duration_ms(1000) == "1s"
        assert get_metrics_collector() is get_metrics_collector()


class TestEndToEnd:
    """Generate, evaluate and describe on a two-action catalog."""

    def test_generate_evaluate_describe(self, controllers, actions, late_trace):
        """Test the three public operations chained together."""
        from ucca_temporal import TimingConstraint, describe, evaluate, generate

        formulas = generate(controllers, actions, TimingConstraint.TOO_LATE)
        assert [f.id for f in formulas] == ["too-late-A1-A2", "too-late-A2-A1"]

        # Default deadline for "apply" is 5s, so an 800ms response holds
        result = evaluate(formulas[0], late_trace)
        assert result.satisfied
        assert not result.vacuous

        sentence = describe(formulas[0])
        assert "Action A2 of C2" in sentence

    def test_empty_trace_is_vacuous(self, too_early_formula):
        """Test that every formula holds vacuously on an empty trace."""
        from ucca_temporal import evaluate

        result = evaluate(too_early_formula, [])
        assert result.satisfied
        assert result.vacuous
        assert result.violations == ()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
