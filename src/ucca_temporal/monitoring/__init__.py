"""
Trace monitoring: formula evaluation and natural-language description.
"""

from .describer import FormulaDescriber, describe
from .evaluator import DEFAULT_SEVERITIES, FormulaEvaluator, SeverityPolicy, evaluate

__all__ = [
    "FormulaEvaluator",
    "SeverityPolicy",
    "DEFAULT_SEVERITIES",
    "evaluate",
    "FormulaDescriber",
    "describe",
]
