"""
Query Flow Manager - orchestrates the hybrid answering pipeline.

Received -> Sanitized -> Classified, then one of:
  Logical:  deterministic evaluation, answered at once
  Creative: text producer stream, passed through chunk by chunk
  Hybrid:   text producer stream, then claim extraction and verification
and finally Completed. Only validation failures end in Failed.
"""

import itertools
import time
from typing import AsyncIterator, Optional

from evaluator import DeterministicEvaluator, Evaluator
from utils.logging_config import get_logger
from utils.text_utils import truncate
from verification import ClaimExtractor, VerificationAggregator, format_verification_report
from .config import OrchestratorConfig
from .constants import ErrorMessages, LogMessages
from .error_handler import (
    EvalError,
    ProducerError,
    ProducerUnavailable,
    ValidationError,
    ValidationErrorKind,
    classify_error,
)
from .intent_classifier import IntentClassifier
from .models import Intent, PipelineState, QueryResult, RoutingDecision, can_transition
from .producer import ProducerAdapter, create_producer
from .sanitizer import Query
from .statistics import StatisticsRecorder, StatsSnapshot

logger = get_logger(__name__)


class QueryOrchestrator:
    """
    Single entry point for answering queries.

    All collaborators can be injected; anything not given is built from the
    configuration. The statistics recorder is the only state shared between
    queries.
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        producer: Optional[ProducerAdapter] = None,
        evaluator: Optional[Evaluator] = None,
        classifier: Optional[IntentClassifier] = None,
        extractor: Optional[ClaimExtractor] = None,
        aggregator: Optional[VerificationAggregator] = None,
        statistics: Optional[StatisticsRecorder] = None
    ):
        """
        Initialize the orchestrator and its collaborators.

        Args:
            config: Orchestrator configuration (defaults if omitted)
            producer: Text producer for Creative and Hybrid queries
            evaluator: Deterministic evaluator for Logical queries and claim checks
            classifier: Intent classifier
            extractor: Claim extractor for Hybrid drafts
            aggregator: Verification aggregator (shares `evaluator` by default)
            statistics: Statistics recorder
        """
        self.config = config or OrchestratorConfig()
        self.producer = producer or create_producer(self.config)
        self.evaluator = evaluator or DeterministicEvaluator(max_proof_depth=self.config.max_proof_depth)
        self.classifier = classifier or IntentClassifier()
        self.extractor = extractor or ClaimExtractor()
        self.aggregator = aggregator or VerificationAggregator(self.evaluator, epsilon=self.config.float_epsilon)
        self.statistics = statistics or StatisticsRecorder()
        self._query_ids = itertools.count(1)

        if self.config.verbose:
            logger.info(f"🔄 QueryOrchestrator initialized (producer: {self.producer.name})")

    async def process(self, raw_query: str) -> QueryResult:
        """
        Process one raw query.

        Logical results are complete on return. Creative and Hybrid results
        carry a stream that must be consumed for the query to complete.

        Args:
            raw_query: Query text exactly as received

        Returns:
            QueryResult

        Raises:
            ValidationError: when the query is empty, too long or not text
        """
        query_id = f"q{next(self._query_ids)}"
        started = time.monotonic()

        try:
            query = Query.from_raw(raw_query, self.config.max_query_length)
        except ValidationError as e:
            # An empty result means sanitization itself ran
            if e.kind == ValidationErrorKind.EMPTY_QUERY:
                self._log_transition(query_id, PipelineState.RECEIVED, PipelineState.SANITIZED)
                self._log_transition(query_id, PipelineState.SANITIZED, PipelineState.FAILED)
            else:
                self._log_transition(query_id, PipelineState.RECEIVED, PipelineState.FAILED)
            logger.info(LogMessages.QUERY_REJECTED.format(query_id=query_id, error=e))
            raise

        self._log_transition(query_id, PipelineState.RECEIVED, PipelineState.SANITIZED)
        if self.config.verbose:
            logger.info(f"📝 Query {query_id}: {truncate(query.sanitized)}")

        classification = self.classifier.analyze(query.sanitized)
        intent = classification.intent
        self._log_transition(query_id, PipelineState.SANITIZED, PipelineState.CLASSIFIED)
        logger.info(LogMessages.QUERY_CLASSIFIED.format(
            query_id=query_id,
            intent=intent.value,
            signals=", ".join(classification.computable_signals + classification.creative_signals) or "no signals"
        ))

        result = QueryResult(
            query=query,
            intent=intent,
            routing=RoutingDecision.for_intent(intent),
            query_id=query_id,
            state=PipelineState.CLASSIFIED
        )

        if intent == Intent.LOGICAL:
            self._answer_logical(result, started)
        elif intent == Intent.CREATIVE:
            self._advance(result, PipelineState.DIRECT_CREATIVE)
            result.stream = self._stream_creative(result, started)
        else:
            self._advance(result, PipelineState.HYBRID_DRAFTING)
            result.stream = self._stream_hybrid(result, started)

        return result

    async def process_to_completion(self, raw_query: str) -> QueryResult:
        """Process a query and consume its stream, if any, to the end."""
        result = await self.process(raw_query)
        async for _ in result.iter_chunks():
            pass
        return result

    def snapshot(self) -> StatsSnapshot:
        """Current statistics."""
        return self.statistics.snapshot()

    def _answer_logical(self, result: QueryResult, started: float):
        self._advance(result, PipelineState.DIRECT_LOGICAL)

        try:
            evaluation = self.evaluator.evaluate(result.query.sanitized)
            result.evaluation = evaluation
            result.content = evaluation.render()
        except EvalError as e:
            result.error = e
            result.content = ErrorMessages.EVALUATION_FAILED.format(error=e)

        self._complete(result, started)

    async def _stream_creative(self, result: QueryResult, started: float) -> AsyncIterator[str]:
        stream = self.producer.generate(result.query.sanitized)
        parts = []
        finished = False

        try:
            try:
                async for chunk in stream:
                    parts.append(chunk)
                    yield chunk
            except Exception as e:
                message = self._producer_failed(result, e, produced=bool(parts))
                parts.append(message)
                yield message
            finished = True
        finally:
            await stream.aclose()
            result.content = ''.join(parts)
            if not finished:
                self._abandoned(result, len(parts))

        self._complete(result, started)

    async def _stream_hybrid(self, result: QueryResult, started: float) -> AsyncIterator[str]:
        stream = self.producer.generate(result.query.sanitized)
        parts = []
        finished = False

        try:
            try:
                async for chunk in stream:
                    parts.append(chunk)
                    yield chunk
            except Exception as e:
                message = self._producer_failed(result, e, produced=bool(parts))
                draft = ''.join(parts)
                parts.append(message)
                yield message
            else:
                draft = ''.join(parts)

            # Claims may span chunk boundaries, so verification waits for the whole draft
            self._advance(result, PipelineState.HYBRID_VERIFYING)
            if result.error is None:
                claims = self.extractor.extract_claims(draft)
                summary = self.aggregator.verify(claims)
                result.verification = summary
                logger.info(LogMessages.VERIFICATION_DONE.format(
                    query_id=result.query_id, verified=summary.verified, total=summary.total
                ))

                if self.config.append_verification_report:
                    report = format_verification_report(summary)
                    if report:
                        yield report
            finished = True
        finally:
            await stream.aclose()
            result.content = ''.join(parts)
            if not finished:
                self._abandoned(result, len(parts))

        self._complete(result, started)

    def _producer_failed(self, result: QueryResult, error: Exception, produced: bool) -> str:
        producer_error: ProducerError = classify_error(
            error, f"{self.producer.name} producer", before_first_chunk=not produced
        )
        result.error = producer_error
        logger.warning(LogMessages.PRODUCER_FAILED.format(query_id=result.query_id, error=producer_error))

        template = ErrorMessages.PRODUCER_UNAVAILABLE if isinstance(producer_error, ProducerUnavailable) \
            else ErrorMessages.PRODUCER_FAILED
        message = template.format(error=producer_error.message)
        return f"\n{message}" if produced else message

    def _abandoned(self, result: QueryResult, chunks: int):
        logger.warning(LogMessages.STREAM_ABANDONED.format(query_id=result.query_id, chunks=chunks))

    def _complete(self, result: QueryResult, started: float):
        self._advance(result, PipelineState.COMPLETED)
        result.duration = time.monotonic() - started
        self.statistics.record(result.intent, result.duration)
        logger.info(LogMessages.QUERY_COMPLETED.format(
            query_id=result.query_id, intent=result.intent.value, duration=result.duration
        ))

    def _advance(self, result: QueryResult, target: PipelineState):
        self._log_transition(result.query_id, result.state, target)
        result.state = target

    def _log_transition(self, query_id: str, source: PipelineState, target: PipelineState):
        if not can_transition(source, target):
            raise RuntimeError(f"Illegal pipeline transition {source.value} -> {target.value}")
        logger.debug(LogMessages.STATE_TRANSITION.format(query_id=query_id, source=source.value, target=target.value))
