"""
Composite deterministic evaluator: the single oracle used for direct answers
and for claim verification.
"""

from typing import Optional, Sequence

from orchestrator.constants import ConfigDefaults
from orchestrator.error_handler import EvalError, EvalErrorKind
from .arithmetic import ArithmeticEvaluator
from .base import Evaluator, EvalResult
from .logic import RuleBasedLogicEvaluator


class DeterministicEvaluator(Evaluator):
    """Dispatches to the first variant that recognizes the text (logic, then arithmetic)."""

    name = "deterministic"

    def __init__(self, evaluators: Optional[Sequence[Evaluator]] = None,
                 max_proof_depth: int = ConfigDefaults.MAX_PROOF_DEPTH):
        if evaluators is None:
            evaluators = (
                RuleBasedLogicEvaluator(max_depth=max_proof_depth),
                ArithmeticEvaluator(),
            )
        self.evaluators = tuple(evaluators)

    def select(self, text: str) -> Optional[Evaluator]:
        for evaluator in self.evaluators:
            if evaluator.can_evaluate(text):
                return evaluator
        return None

    def can_evaluate(self, text: str) -> bool:
        return self.select(text) is not None

    def evaluate(self, text: str) -> EvalResult:
        evaluator = self.select(text)
        if evaluator is None:
            raise EvalError(f"Nothing to evaluate in {text!r}", EvalErrorKind.PARSE_ERROR)
        return evaluator.evaluate(text)


_default_evaluator: Optional[DeterministicEvaluator] = None


def get_default_evaluator() -> DeterministicEvaluator:
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = DeterministicEvaluator()
    return _default_evaluator


def evaluate(text: str) -> EvalResult:
    """
    Evaluate arithmetic or a logic goal with the default evaluator.

    >>> evaluate("2 + 2").value
    4

    Raises:
        EvalError: DIVISION_BY_ZERO, PARSE_ERROR, PROOF_DEPTH_EXCEEDED, OVERFLOW or UNDEFINED
    """
    return get_default_evaluator().evaluate(text)
