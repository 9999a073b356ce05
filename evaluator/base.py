"""
Evaluator capability shared by every deterministic engine.

Concrete evaluators (arithmetic, rule-based logic, or a fuller logic backend
later on) implement `Evaluator`; the orchestrator and the verification
aggregator only ever see this interface.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

Number = Union[int, float]
Value = Union[int, float, bool]


class ResultKind(Enum):
    """What an evaluation produced."""
    NUMERIC = "numeric"
    LOGIC = "logic"


def format_number(value: Value) -> str:
    """Render a value the way users expect to read it (4, not 4.0)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return f"{value:.15g}"


@dataclass(frozen=True)
class EvalResult:
    """Outcome of a successful deterministic evaluation."""
    value: Value
    kind: ResultKind
    expression: str
    proof: Tuple[str, ...] = ()
    evaluator: str = ""

    def render(self) -> str:
        """Human-readable answer: the number, or the proof chain for logic goals."""
        if self.kind == ResultKind.LOGIC:
            if self.value and self.proof:
                return "\n".join(self.proof)
            return f"false: {self.expression} is not provable from the knowledge base"
        return format_number(self.value)

    def to_dict(self) -> dict:
        return {
            'value': self.value,
            'kind': self.kind.value,
            'expression': self.expression,
            'proof': list(self.proof),
            'evaluator': self.evaluator,
        }


class Evaluator(ABC):
    """
    A deterministic, side-effect-free evaluation engine.

    Implementations must be reentrant: no call may mutate state another
    call can observe.
    """

    name: str = "evaluator"

    @abstractmethod
    def can_evaluate(self, text: str) -> bool:
        """Whether this engine recognizes something it can evaluate in `text`."""

    @abstractmethod
    def evaluate(self, text: str) -> EvalResult:
        """
        Evaluate `text`.

        Raises:
            EvalError: when the text cannot be evaluated
        """
