"""
Deterministic evaluation engines.
"""

from .base import Evaluator, EvalResult, ResultKind, format_number
from .arithmetic import ArithmeticEvaluator, extract_math_expression, parse_expression
from .logic import KnowledgeBase, RuleBasedLogicEvaluator, DEFAULT_PROGRAM
from .deterministic import DeterministicEvaluator, evaluate, get_default_evaluator

__all__ = [
    'Evaluator',
    'EvalResult',
    'ResultKind',
    'format_number',
    'ArithmeticEvaluator',
    'extract_math_expression',
    'parse_expression',
    'KnowledgeBase',
    'RuleBasedLogicEvaluator',
    'DEFAULT_PROGRAM',
    'DeterministicEvaluator',
    'evaluate',
    'get_default_evaluator',
]
