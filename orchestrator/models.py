"""
Data models for the orchestrator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Dict, FrozenSet, Optional, Tuple

from evaluator.base import EvalResult
from verification.core.models import VerificationSummary
from .constants import MergeStrategies, ModuleNames
from .error_handler import AxiomError
from .sanitizer import Query


class Intent(Enum):
    """How a query is routed."""
    CREATIVE = "creative"
    LOGICAL = "logical"
    HYBRID = "hybrid"


class PipelineState(Enum):
    """Lifecycle of a single query."""
    RECEIVED = "received"
    SANITIZED = "sanitized"
    CLASSIFIED = "classified"
    DIRECT_LOGICAL = "direct_logical"
    DIRECT_CREATIVE = "direct_creative"
    HYBRID_DRAFTING = "hybrid_drafting"
    HYBRID_VERIFYING = "hybrid_verifying"
    COMPLETED = "completed"
    FAILED = "failed"


# FAILED is only reachable before classification
TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    PipelineState.RECEIVED: frozenset({PipelineState.SANITIZED, PipelineState.FAILED}),
    PipelineState.SANITIZED: frozenset({PipelineState.CLASSIFIED, PipelineState.FAILED}),
    PipelineState.CLASSIFIED: frozenset({
        PipelineState.DIRECT_LOGICAL,
        PipelineState.DIRECT_CREATIVE,
        PipelineState.HYBRID_DRAFTING,
    }),
    PipelineState.DIRECT_LOGICAL: frozenset({PipelineState.COMPLETED}),
    PipelineState.DIRECT_CREATIVE: frozenset({PipelineState.COMPLETED}),
    PipelineState.HYBRID_DRAFTING: frozenset({PipelineState.HYBRID_VERIFYING}),
    PipelineState.HYBRID_VERIFYING: frozenset({PipelineState.COMPLETED}),
    PipelineState.COMPLETED: frozenset(),
    PipelineState.FAILED: frozenset(),
}


def can_transition(source: PipelineState, target: PipelineState) -> bool:
    return target in TRANSITIONS[source]


@dataclass(frozen=True)
class ClassificationResult:
    """Intent plus the signals that produced it."""
    intent: Intent
    computable_signals: Tuple[str, ...] = ()
    creative_signals: Tuple[str, ...] = ()
    expression: Optional[str] = None

    @property
    def is_computable(self) -> bool:
        return bool(self.computable_signals)

    @property
    def is_creative(self) -> bool:
        return bool(self.creative_signals)


@dataclass(frozen=True)
class RoutingDecision:
    """Which modules serve a query and how their outputs are merged."""
    intent: Intent
    modules: Tuple[ModuleNames, ...]
    merge_strategy: MergeStrategies

    @classmethod
    def for_intent(cls, intent: Intent) -> 'RoutingDecision':
        if intent == Intent.LOGICAL:
            return cls(intent, (ModuleNames.DETERMINISTIC,), MergeStrategies.DIRECT)
        if intent == Intent.HYBRID:
            return cls(
                intent,
                (ModuleNames.PROBABILISTIC, ModuleNames.VERIFICATION, ModuleNames.DETERMINISTIC),
                MergeStrategies.STREAM_THEN_VERIFY
            )
        return cls(intent, (ModuleNames.PROBABILISTIC,), MergeStrategies.STREAM)

    def to_dict(self) -> Dict:
        return {
            'intent': self.intent.value,
            'modules': [module.value for module in self.modules],
            'merge_strategy': self.merge_strategy.value,
        }


@dataclass
class QueryResult:
    """
    Outcome of one processed query.

    Logical results are complete on return. Creative and Hybrid results carry
    a `stream` of text chunks; `content`, `verification`, `error`, `state` and
    `duration` are filled in as the stream is consumed.
    """
    query: Query
    intent: Intent
    routing: RoutingDecision
    query_id: str = ""
    state: PipelineState = PipelineState.CLASSIFIED
    content: str = ""
    stream: Optional[AsyncIterator[str]] = None
    verification: Optional[VerificationSummary] = None
    evaluation: Optional[EvalResult] = None
    error: Optional[AxiomError] = None
    duration: float = 0.0

    @property
    def kind(self) -> Intent:
        return self.intent

    @property
    def is_streaming(self) -> bool:
        return self.stream is not None

    @property
    def completed(self) -> bool:
        return self.state == PipelineState.COMPLETED

    async def iter_chunks(self) -> AsyncIterator[str]:
        """Yield the answer chunk by chunk, streamed or not."""
        if self.stream is None:
            if self.content:
                yield self.content
            return
        async for chunk in self.stream:
            yield chunk

    async def collect(self) -> str:
        """Consume the whole answer and return the visible text."""
        return ''.join([chunk async for chunk in self.iter_chunks()])

    async def aclose(self):
        """Stop consuming early; the producer stream is closed and nothing is counted."""
        if self.stream is not None:
            await self.stream.aclose()

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'query_id': self.query_id,
            'query': self.query.sanitized,
            'intent': self.intent.value,
            'routing': self.routing.to_dict(),
            'state': self.state.value,
            'content': self.content,
            'verification': self.verification.to_dict() if self.verification else None,
            'evaluation': self.evaluation.to_dict() if self.evaluation else None,
            'error': str(self.error) if self.error else None,
            'duration': self.duration,
        }
