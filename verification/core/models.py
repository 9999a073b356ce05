"""
Data structures for extracted claims and their verification results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

from orchestrator.error_handler import EvalError

Number = Union[int, float]


class VerdictStatus(Enum):
    """Possible outcomes for a single claim."""
    VERIFIED = "verified"        # Evaluator agrees with the asserted value
    MISMATCH = "mismatch"        # Evaluated fine, asserted value is wrong
    UNEVALUABLE = "unevaluable"  # Evaluator could not produce a value


@dataclass(frozen=True)
class Claim:
    """An arithmetic assertion found in generated text, e.g. `10 * 5 = 50`."""
    expression: str       # Left-hand side, operators normalized, whitespace collapsed
    left_operand: str
    operator: str
    right_operand: str
    relation: str         # '=', '==', '→', '->' or '=>'
    asserted_value: Number
    source_text: str      # The exact span as it appeared
    start: int = 0
    end: int = 0

    @property
    def left(self) -> str:
        return self.expression

    def __str__(self) -> str:
        return self.source_text

    def to_dict(self) -> Dict:
        return {
            'expression': self.expression,
            'left_operand': self.left_operand,
            'operator': self.operator,
            'right_operand': self.right_operand,
            'relation': self.relation,
            'asserted_value': self.asserted_value,
            'source_text': self.source_text,
            'start': self.start,
            'end': self.end,
        }


@dataclass(frozen=True)
class VerificationVerdict:
    """Result of checking one claim against the deterministic evaluator."""
    claim: Claim
    matched: bool
    actual_value: Optional[Number] = None
    error: Optional[EvalError] = None

    @property
    def status(self) -> VerdictStatus:
        if self.matched:
            return VerdictStatus.VERIFIED
        if self.error is not None:
            return VerdictStatus.UNEVALUABLE
        return VerdictStatus.MISMATCH

    def to_dict(self) -> Dict:
        return {
            'claim': self.claim.to_dict(),
            'matched': self.matched,
            'status': self.status.value,
            'actual_value': self.actual_value,
            'error': str(self.error) if self.error else None,
            'error_kind': self.error.kind.value if self.error else None,
        }


@dataclass(frozen=True)
class VerificationSummary:
    """
    Ordered verdicts for every claim of one draft.

    `verified + failed == len(verdicts)` always holds, including for an empty
    draft (0/0). `errored` counts the failed verdicts that could not be evaluated.
    """
    verdicts: Tuple[VerificationVerdict, ...] = ()
    verified: int = 0
    failed: int = 0

    def __post_init__(self):
        if self.verified + self.failed != len(self.verdicts):
            raise ValueError(
                f"verified ({self.verified}) + failed ({self.failed}) "
                f"must equal the number of verdicts ({len(self.verdicts)})"
            )

    @classmethod
    def from_verdicts(cls, verdicts: Iterable[VerificationVerdict]) -> 'VerificationSummary':
        verdicts = tuple(verdicts)
        verified = sum(1 for verdict in verdicts if verdict.matched)
        return cls(verdicts=verdicts, verified=verified, failed=len(verdicts) - verified)

    @property
    def total(self) -> int:
        return len(self.verdicts)

    @property
    def errored(self) -> int:
        return sum(1 for verdict in self.verdicts if verdict.status == VerdictStatus.UNEVALUABLE)

    @property
    def all_verified(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'total': self.total,
            'verified': self.verified,
            'failed': self.failed,
            'errored': self.errored,
            'verdicts': [verdict.to_dict() for verdict in self.verdicts],
        }
