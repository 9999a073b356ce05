"""
Unit tests for QueryOrchestrator.
Tests routing, streaming, verification and statistics across the pipeline.
"""

import asyncio

import pytest

from evaluator.base import ResultKind
from orchestrator.constants import MergeStrategies, ModuleNames
from orchestrator.error_handler import (
    EvalError,
    EvalErrorKind,
    ProducerError,
    ProducerUnavailable,
    ValidationError,
    ValidationErrorKind,
)
from orchestrator.models import TRANSITIONS, Intent, PipelineState, can_transition


class TestLogicalQueries:
    """Logical queries are answered deterministically on return."""

    @pytest.mark.asyncio
    async def test_arithmetic_query_completes_immediately(self, make_orchestrator, scripted_producer, statistics):
        """Test that an arithmetic query is evaluated without the producer."""
        producer = scripted_producer(["should not be used"])
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process("calculate 2 + 2")

        assert result.intent == Intent.LOGICAL
        assert result.completed
        assert not result.is_streaming
        assert result.content == "4"
        assert result.evaluation.value == 4
        assert result.evaluation.kind == ResultKind.NUMERIC
        assert result.error is None
        assert producer.prompts == []
        assert statistics.snapshot().count(Intent.LOGICAL) == 1

    @pytest.mark.asyncio
    async def test_logic_query_returns_proof(self, make_orchestrator):
        """Test that a logic goal is answered with its proof."""
        orchestrator = make_orchestrator()

        result = await orchestrator.process("prove ancestor(zeus, hercules)")

        assert result.intent == Intent.LOGICAL
        assert result.evaluation.value is True
        assert result.content == (
            "ancestor(zeus, hercules) :- parent(zeus, hercules).\n"
            "parent(zeus, hercules).\n"
            "Therefore ancestor(zeus, hercules)."
        )

    @pytest.mark.asyncio
    async def test_evaluation_error_is_reported_as_data(self, make_orchestrator, statistics):
        """Test that division by zero completes with an error instead of failing."""
        orchestrator = make_orchestrator()

        result = await orchestrator.process("calculate 1 / 0")

        assert result.completed
        assert isinstance(result.error, EvalError)
        assert result.error.kind == EvalErrorKind.DIVISION_BY_ZERO
        assert result.content.startswith("[Evaluation error]")
        assert statistics.snapshot().total == 1

    @pytest.mark.asyncio
    async def test_oversized_result_is_reported_as_overflow(self, make_orchestrator, statistics):
        """Test that a result too large to print completes with an overflow error."""
        orchestrator = make_orchestrator()

        result = await orchestrator.process("calculate 9 ^ 9999")

        assert result.completed
        assert result.error.kind == EvalErrorKind.OVERFLOW
        assert result.content.startswith("[Evaluation error]")
        assert statistics.snapshot().count(Intent.LOGICAL) == 1

    @pytest.mark.asyncio
    async def test_logical_iter_chunks_yields_content_once(self, make_orchestrator):
        """Test that a logical answer is exposed as a single chunk."""
        orchestrator = make_orchestrator()

        result = await orchestrator.process("compute (2 + 3) * 4")
        chunks = [chunk async for chunk in result.iter_chunks()]

        assert chunks == ["20"]


class TestCreativeQueries:
    """Creative queries pass the producer stream through unchanged."""

    @pytest.mark.asyncio
    async def test_chunks_pass_through_in_order(self, make_orchestrator, scripted_producer, statistics):
        """Test that producer chunks reach the caller unchanged and in order."""
        producer = scripted_producer(["Waves ", "fold ", "into ", "foam."])
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process("write a poem about the sea")
        assert result.intent == Intent.CREATIVE
        assert result.state == PipelineState.DIRECT_CREATIVE
        assert statistics.snapshot().total == 0

        chunks = [chunk async for chunk in result.iter_chunks()]

        assert chunks == ["Waves ", "fold ", "into ", "foam."]
        assert result.content == "Waves fold into foam."
        assert result.completed
        assert result.verification is None
        assert producer.prompts == ["write a poem about the sea"]
        assert statistics.snapshot().count(Intent.CREATIVE) == 1

    @pytest.mark.asyncio
    async def test_unavailable_producer_yields_failure_message(self, make_orchestrator, unavailable_producer, statistics):
        """Test that an unavailable producer becomes a visible message."""
        orchestrator = make_orchestrator(unavailable_producer)

        result = await orchestrator.process("tell me a story")
        text = await result.collect()

        assert text == "[Producer unavailable] backend offline"
        assert isinstance(result.error, ProducerUnavailable)
        assert result.completed
        assert statistics.snapshot().count(Intent.CREATIVE) == 1

    @pytest.mark.asyncio
    async def test_mid_stream_failure_keeps_partial_output(self, make_orchestrator, scripted_producer):
        """Test that a failure after some chunks keeps them and appends the error."""
        producer = scripted_producer(["Once ", "upon "], fail_after=1)
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process("write a story")
        chunks = [chunk async for chunk in result.iter_chunks()]

        assert chunks == ["Once ", "\n[Producer error] stream broke"]
        assert isinstance(result.error, ProducerError)
        assert not isinstance(result.error, ProducerUnavailable)
        assert result.completed

    @pytest.mark.asyncio
    async def test_raw_backend_exception_is_classified(self, make_orchestrator, scripted_producer):
        """Test that a non-producer exception is wrapped before reaching the caller."""
        producer = scripted_producer(["x"], fail_after=0, error=ConnectionError("connection refused"))
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process("describe the moon")
        text = await result.collect()

        assert isinstance(result.error, ProducerUnavailable)
        assert text.startswith("[Producer unavailable] Network error")

    @pytest.mark.asyncio
    async def test_abandoned_stream_is_not_counted(self, make_orchestrator, scripted_producer, statistics):
        """Test that closing a stream early releases the producer and records nothing."""
        producer = scripted_producer(["one ", "two ", "three "])
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process("write a song")
        first = await result.stream.__anext__()
        await result.aclose()

        assert first == "one "
        assert producer.closed == 1
        assert producer.finished == 0
        assert not result.completed
        assert result.content == "one "
        assert statistics.snapshot().total == 0


class TestHybridQueries:
    """Hybrid queries stream a draft, then verify its claims."""

    @pytest.mark.asyncio
    async def test_draft_then_verification_report(self, make_orchestrator, draft_producer, statistics):
        """Test that claims in the draft are verified after the stream ends."""
        orchestrator = make_orchestrator(draft_producer)

        result = await orchestrator.process("explain why 10 * 5 = 50")
        assert result.intent == Intent.HYBRID
        assert result.state == PipelineState.HYBRID_DRAFTING

        chunks = [chunk async for chunk in result.iter_chunks()]

        assert chunks[:4] == ["Sure. ", "10 * 5 = 50 and ", "2 + 2 = 5", "."]
        assert chunks[4].startswith("\n\n[Verification]")
        assert "✓ 10 * 5 = 50" in chunks[4]
        assert "✗ 2 + 2 = 5 (actual: 4)" in chunks[4]
        assert result.content == "Sure. 10 * 5 = 50 and 2 + 2 = 5."
        assert result.verification.total == 2
        assert result.verification.verified == 1
        assert result.verification.failed == 1
        assert result.completed
        assert statistics.snapshot().count(Intent.HYBRID) == 1

    @pytest.mark.asyncio
    async def test_claim_split_across_chunks_is_found(self, make_orchestrator, scripted_producer):
        """Test that verification reads the whole draft, not single chunks."""
        producer = scripted_producer(["So 12 ", "/ 4 ", "= 3", " exactly."])
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process_to_completion("explain how 12 / 4 works")

        assert result.verification.total == 1
        assert result.verification.all_verified

    @pytest.mark.asyncio
    async def test_draft_without_claims_has_empty_summary(self, make_orchestrator, scripted_producer):
        """Test that a draft with no claims still completes, without a report."""
        producer = scripted_producer(["No numbers here."])
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process("explain what 3 + 4 means")
        chunks = [chunk async for chunk in result.iter_chunks()]

        assert chunks == ["No numbers here."]
        assert result.verification is not None
        assert result.verification.total == 0
        assert result.completed

    @pytest.mark.asyncio
    async def test_report_can_be_disabled(self, make_orchestrator, draft_producer):
        """Test that the report chunk is omitted when disabled in config."""
        orchestrator = make_orchestrator(draft_producer, append_verification_report=False)

        result = await orchestrator.process("explain why 10 * 5 = 50")
        chunks = [chunk async for chunk in result.iter_chunks()]

        assert len(chunks) == 4
        assert result.verification.total == 2

    @pytest.mark.asyncio
    async def test_producer_failure_skips_verification(self, make_orchestrator, unavailable_producer, statistics):
        """Test that a failed draft is reported without a verification summary."""
        orchestrator = make_orchestrator(unavailable_producer)

        result = await orchestrator.process("explain why 10 * 5 = 50")
        text = await result.collect()

        assert text == "[Producer unavailable] backend offline"
        assert result.verification is None
        assert isinstance(result.error, ProducerUnavailable)
        assert result.completed
        assert statistics.snapshot().count(Intent.HYBRID) == 1

    @pytest.mark.asyncio
    async def test_oversized_numbers_in_draft_do_not_abort_verification(
            self, make_orchestrator, scripted_producer, statistics):
        """Test that huge literals in a draft fail their claims and the query still completes."""
        huge = "9" * 5000
        producer = scripted_producer([f"First 1 + {huge} = 2, ", f"then 1 + 1 = {huge}, ", "and 3 * 3 = 9."])
        orchestrator = make_orchestrator(producer)

        result = await orchestrator.process("explain why 3 * 3 = 9")
        chunks = [chunk async for chunk in result.iter_chunks()]

        assert result.completed
        assert result.verification.total == 2
        assert result.verification.verified == 1
        assert result.verification.verdicts[0].error.kind == EvalErrorKind.OVERFLOW
        assert chunks[-1].startswith("\n\n[Verification]")
        assert statistics.snapshot().count(Intent.HYBRID) == 1

    @pytest.mark.asyncio
    async def test_routing_decision(self, make_orchestrator, draft_producer):
        """Test that hybrid routing uses all three modules."""
        orchestrator = make_orchestrator(draft_producer)

        result = await orchestrator.process("explain why 10 * 5 = 50")
        await result.aclose()

        assert result.routing.merge_strategy == MergeStrategies.STREAM_THEN_VERIFY
        assert ModuleNames.VERIFICATION in result.routing.modules


class TestValidation:
    """Rejected queries raise and never reach a producer."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw,kind", [
        ("", ValidationErrorKind.EMPTY_QUERY),
        ("   ", ValidationErrorKind.EMPTY_QUERY),
        ("{}<>~", ValidationErrorKind.EMPTY_QUERY),
        ("a" * 5000, ValidationErrorKind.QUERY_TOO_LONG),
        (123, ValidationErrorKind.UNSANITIZABLE),
    ])
    async def test_invalid_queries_raise(self, make_orchestrator, scripted_producer, statistics, raw, kind):
        """Test that each invalid query raises the matching validation kind."""
        producer = scripted_producer(["unused"])
        orchestrator = make_orchestrator(producer)

        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.process(raw)

        assert exc_info.value.kind == kind
        assert producer.prompts == []
        assert statistics.snapshot().total == 0

    def test_failed_unreachable_after_classification(self):
        """Test that the state machine only fails before classification."""
        for state, targets in TRANSITIONS.items():
            if state in (PipelineState.RECEIVED, PipelineState.SANITIZED):
                assert can_transition(state, PipelineState.FAILED)
            else:
                assert PipelineState.FAILED not in targets


class TestStatistics:
    """Statistics count each completed query exactly once."""

    @pytest.mark.asyncio
    async def test_concurrent_queries_are_all_counted(self, make_orchestrator, scripted_producer, statistics):
        """Test that concurrent completions are never lost."""
        orchestrator = make_orchestrator(scripted_producer(["ok"]))
        queries = ["calculate 1 + 1"] * 10 + ["write a haiku"] * 5

        results = await asyncio.gather(*(orchestrator.process_to_completion(q) for q in queries))

        snapshot = orchestrator.snapshot()
        assert all(result.completed for result in results)
        assert snapshot.total == 15
        assert snapshot.count(Intent.LOGICAL) == 10
        assert snapshot.count(Intent.CREATIVE) == 5
        assert snapshot.total == sum(snapshot.per_intent.values())

    @pytest.mark.asyncio
    async def test_query_ids_are_unique(self, make_orchestrator):
        """Test that every processed query gets its own id."""
        orchestrator = make_orchestrator()

        first = await orchestrator.process("calculate 1 + 1")
        second = await orchestrator.process("calculate 2 + 2")

        assert first.query_id != second.query_id

    @pytest.mark.asyncio
    async def test_to_dict_serializes_result(self, make_orchestrator):
        """Test result serialization."""
        orchestrator = make_orchestrator()

        result = await orchestrator.process("calculate 6 * 7")
        data = result.to_dict()

        assert data['intent'] == 'logical'
        assert data['state'] == 'completed'
        assert data['content'] == "42"
        assert data['error'] is None

    @pytest.mark.asyncio
    async def test_echo_backend_creative_query(self, make_orchestrator, statistics):
        """Test a creative query end to end with the offline echo backend."""
        orchestrator = make_orchestrator(producer_backend='echo')

        result = await orchestrator.process_to_completion("Explain quantum physics")

        assert result.intent == Intent.CREATIVE
        assert result.content == "Explain quantum physics \n"
        assert result.verification is None
        assert statistics.snapshot().count(Intent.CREATIVE) == 1
