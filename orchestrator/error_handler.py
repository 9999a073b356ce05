"""
Error handling utilities for the axiom orchestrator.

Provides the error taxonomy shared by the sanitizer, the evaluators, the
producer adapters and the orchestrator, plus classification of raw backend
exceptions into producer errors with recovery information.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Enumeration of different error categories for better error handling."""
    VALIDATION_ERROR = "validation_error"
    EVALUATION_ERROR = "evaluation_error"
    PRODUCER_ERROR = "producer_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT_ERROR = "timeout_error"
    MODEL_ERROR = "model_error"
    QUOTA_ERROR = "quota_error"
    CONFIGURATION_ERROR = "configuration_error"
    UNKNOWN_ERROR = "unknown_error"


class ValidationErrorKind(Enum):
    """Reasons a raw query is rejected before classification."""
    EMPTY_QUERY = "empty_query"
    QUERY_TOO_LONG = "query_too_long"
    UNSANITIZABLE = "unsanitizable"


class EvalErrorKind(Enum):
    """Reasons a deterministic evaluation cannot produce a value."""
    DIVISION_BY_ZERO = "division_by_zero"
    PARSE_ERROR = "parse_error"
    PROOF_DEPTH_EXCEEDED = "proof_depth_exceeded"
    OVERFLOW = "overflow"
    UNDEFINED = "undefined"


class AxiomError(Exception):
    """Base exception for routing errors with categorization."""

    def __init__(self, message: str, category: ErrorCategory, recoverable: bool = False, retry_delay: Optional[int] = None):
        super().__init__(message)
        self.category = category
        self.recoverable = recoverable
        self.retry_delay = retry_delay
        self.message = message

    def __str__(self):
        return f"[{self.category.value}] {self.message}"


class ValidationError(AxiomError):
    """Raised when a raw query cannot enter the pipeline. Always fatal to the request."""

    def __init__(self, message: str, kind: ValidationErrorKind):
        super().__init__(message, ErrorCategory.VALIDATION_ERROR)
        self.kind = kind

    def __str__(self):
        return f"[{self.kind.value}] {self.message}"


class EvalError(AxiomError):
    """Raised by evaluators; the orchestrator reports it as data, never as a pipeline failure."""

    def __init__(self, message: str, kind: EvalErrorKind):
        super().__init__(message, ErrorCategory.EVALUATION_ERROR)
        self.kind = kind

    def __str__(self):
        return f"[{self.kind.value}] {self.message}"


class ProducerError(AxiomError):
    """Raised when the text producer fails while streaming."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.PRODUCER_ERROR,
                 recoverable: bool = False, retry_delay: Optional[int] = None):
        super().__init__(message, category, recoverable=recoverable, retry_delay=retry_delay)


class ProducerUnavailable(ProducerError):
    """Raised in place of the first chunk when no producer backend can serve the request."""


class ConfigurationError(AxiomError):
    """Raised for invalid or inconsistent configuration."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.CONFIGURATION_ERROR)


def classify_error(error: Exception, context: str = "", before_first_chunk: bool = True) -> ProducerError:
    """
    Classify a backend exception into a producer error with recovery information.

    Args:
        error: The exception to classify
        context: Additional context about where the error occurred
        before_first_chunk: Whether the stream had produced anything yet. Failures
            before the first chunk mean the backend is unavailable.

    Returns:
        ProducerError (ProducerUnavailable when nothing was produced yet)
    """
    if isinstance(error, ProducerError):
        return error

    error_cls = ProducerUnavailable if before_first_chunk else ProducerError
    error_str = str(error).lower()

    # Network-related errors
    if isinstance(error, (ConnectionError, TimeoutError)) or any(
            pattern in error_str for pattern in ['connect', 'timeout', 'timed out', 'network', 'dns', 'ssl']):
        if isinstance(error, TimeoutError) or 'timeout' in error_str or 'timed out' in error_str:
            return error_cls(
                f"Producer timeout in {context}: {error}",
                ErrorCategory.TIMEOUT_ERROR,
                recoverable=True,
                retry_delay=5
            )
        return error_cls(
            f"Network error in {context}: {error}",
            ErrorCategory.NETWORK_ERROR,
            recoverable=True,
            retry_delay=2
        )

    # Model availability errors
    if any(pattern in error_str for pattern in ['model not found', 'not found', 'model not available', 'unsupported model']):
        return error_cls(
            f"Model error in {context}: {error}",
            ErrorCategory.MODEL_ERROR,
            recoverable=False
        )

    # Quota/rate limit errors
    if any(pattern in error_str for pattern in ['rate limit', 'quota', 'too many requests', 'overload', 'busy']):
        return error_cls(
            f"Producer overloaded in {context}: {error}",
            ErrorCategory.QUOTA_ERROR,
            recoverable=True,
            retry_delay=30
        )

    return error_cls(
        f"Unknown producer error in {context}: {error}",
        ErrorCategory.UNKNOWN_ERROR,
        recoverable=False
    )
