"""
Constants and enums for the orchestrator module.

This module contains the magic strings, defaults and message templates used
throughout the orchestrator to improve maintainability and reduce duplication.
"""

from enum import Enum
from typing import Final


class ProducerBackends(Enum):
    """Available text producer backends."""
    OLLAMA = "ollama"
    ECHO = "echo"
    NONE = "none"


class ModuleNames(Enum):
    """Pipeline modules reported in routing decisions."""
    DETERMINISTIC = "deterministic"
    PROBABILISTIC = "probabilistic"
    VERIFICATION = "verification"


class MergeStrategies(Enum):
    """How module outputs are combined into the answer."""
    DIRECT = "direct"
    STREAM = "stream"
    STREAM_THEN_VERIFY = "stream_then_verify"


# Characters that survive sanitization besides alphanumerics and whitespace
ALLOWED_PUNCTUATION: Final[frozenset] = frozenset("+-*/^%().=:,_[]")


class LogMessages:
    """Common log message templates."""
    STATE_TRANSITION = "Query {query_id}: {source} -> {target}"
    QUERY_REJECTED = "Query {query_id} rejected: {error}"
    QUERY_CLASSIFIED = "Query {query_id} classified as {intent} ({signals})"
    QUERY_COMPLETED = "Query {query_id} completed as {intent} in {duration:.3f}s"
    STREAM_ABANDONED = "Query {query_id} abandoned after {chunks} chunks; statistics not updated"
    PRODUCER_FAILED = "Query {query_id}: producer failed: {error}"
    VERIFICATION_DONE = "Query {query_id}: verified {verified}/{total} claims"


class ErrorMessages:
    """Error message templates shown to callers as content."""
    PRODUCER_UNAVAILABLE = "[Producer unavailable] {error}"
    PRODUCER_FAILED = "[Producer error] {error}"
    EVALUATION_FAILED = "[Evaluation error] {error}"
    EMPTY_QUERY = "Query is empty after sanitization"
    QUERY_TOO_LONG = "Query length {length} exceeds the maximum of {maximum} characters"
    NOT_TEXT = "Query must be text, got {type_name}"


class ConfigDefaults:
    """Default configuration values."""
    VERBOSE: Final[bool] = False
    MAX_QUERY_LENGTH: Final[int] = 4096
    MAX_PROOF_DEPTH: Final[int] = 16
    FLOAT_EPSILON: Final[float] = 1e-9
    PRODUCER_BACKEND: Final[str] = ProducerBackends.OLLAMA.value
    MODEL: Final[str] = "gemma3:4b"
    OLLAMA_HOST: Final[str] = "http://localhost:11434"
    TEMPERATURE: Final[float] = 0.7
    MAX_TOKENS: Final[int] = 512
    KEEP_ALIVE: Final[str] = "24h"
    # Timeout to open a stream, and between two consecutive chunks
    PRODUCER_TIMEOUT: Final[float] = 120.0
    CHUNK_TIMEOUT: Final[float] = 60.0
    MAX_RETRIES: Final[int] = 2
    RETRY_DELAY: Final[float] = 1.0
    ECHO_DELAY: Final[float] = 0.08
    APPEND_VERIFICATION_REPORT: Final[bool] = True


class StatsKeys:
    """Keys for statistics snapshots."""
    TOTAL = "total"
    PER_INTENT = "per_intent"
    AVG_DURATION = "avg_duration_seconds"
    STARTED_AT = "started_at"
    RUNTIME = "runtime_seconds"
