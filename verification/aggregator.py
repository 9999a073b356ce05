"""
Verification aggregation functionality.
Checks every extracted claim against the deterministic evaluator and combines
the verdicts into one summary.
"""

from typing import Iterable, Optional

from evaluator import DeterministicEvaluator, Evaluator
from orchestrator.constants import ConfigDefaults
from orchestrator.error_handler import EvalError
from utils.logging_config import get_logger
from .core.models import Claim, Number, VerificationSummary, VerificationVerdict

logger = get_logger(__name__)


def values_match(actual: Number, asserted: Number, epsilon: float = ConfigDefaults.FLOAT_EPSILON) -> bool:
    """Exact comparison for two integers, absolute tolerance otherwise."""
    if isinstance(actual, bool) or isinstance(asserted, bool):
        return False
    if isinstance(actual, int) and isinstance(asserted, int):
        return actual == asserted
    try:
        return abs(actual - asserted) < epsilon
    except OverflowError:
        return False


class VerificationAggregator:
    """
    Produces one verdict per claim, in order.

    A claim that cannot be evaluated is a failed verdict carrying its
    EvalError; it never stops the remaining claims from being checked.
    """

    def __init__(self, evaluator: Optional[Evaluator] = None,
                 epsilon: float = ConfigDefaults.FLOAT_EPSILON):
        self.evaluator = evaluator or DeterministicEvaluator()
        self.epsilon = epsilon

    def verify_claim(self, claim: Claim) -> VerificationVerdict:
        """Evaluate a claim's expression and compare it with the asserted value."""
        try:
            result = self.evaluator.evaluate(claim.expression)
        except EvalError as e:
            logger.debug(f"Claim {claim.source_text!r} is unevaluable: {e}")
            return VerificationVerdict(claim=claim, matched=False, error=e)

        matched = values_match(result.value, claim.asserted_value, self.epsilon)
        return VerificationVerdict(claim=claim, matched=matched, actual_value=result.value)

    def verify(self, claims: Iterable[Claim]) -> VerificationSummary:
        """
        Verify all claims.

        Args:
            claims: Claims in order of appearance

        Returns:
            VerificationSummary with verified + failed == number of claims
        """
        summary = VerificationSummary.from_verdicts(self.verify_claim(claim) for claim in claims)
        logger.debug(f"Verified {summary.verified}/{summary.total} claims ({summary.errored} unevaluable)")
        return summary
