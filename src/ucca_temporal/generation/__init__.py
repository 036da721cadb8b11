"""
Formula generation for timing-related UCCAs.
"""

from .generator import (
    DEFAULT_PRECEDENCE_RULES,
    DEFAULT_SEQUENCE_RULES,
    FORMULA_TEMPLATES,
    FormulaGenerator,
    FormulaTemplate,
    GenerationConfig,
    PrecedenceRule,
    SequenceRule,
    TimingProfile,
    generate,
)

__all__ = [
    "FormulaGenerator",
    "GenerationConfig",
    "TimingProfile",
    "PrecedenceRule",
    "SequenceRule",
    "FormulaTemplate",
    "FORMULA_TEMPLATES",
    "DEFAULT_PRECEDENCE_RULES",
    "DEFAULT_SEQUENCE_RULES",
    "generate",
]
