"""
Query sanitization and validation.

Every raw query passes through here before anything else sees it: the raw
length is bounded first, then the text is filtered down to a fixed whitelist
of characters.
"""

from dataclasses import dataclass

from .constants import ALLOWED_PUNCTUATION, ConfigDefaults, ErrorMessages
from .error_handler import ValidationError, ValidationErrorKind


def is_allowed_character(char: str) -> bool:
    """Whether a character survives sanitization."""
    return char.isalnum() or char.isspace() or char in ALLOWED_PUNCTUATION


def sanitize(raw: str, max_length: int = ConfigDefaults.MAX_QUERY_LENGTH) -> str:
    """
    Normalize and bound raw query text.

    Args:
        raw: Text exactly as received from the caller
        max_length: Maximum raw length in characters

    Returns:
        The filtered, trimmed query text

    Raises:
        ValidationError: QUERY_TOO_LONG, EMPTY_QUERY or UNSANITIZABLE
    """
    if not isinstance(raw, str):
        raise ValidationError(
            ErrorMessages.NOT_TEXT.format(type_name=type(raw).__name__),
            ValidationErrorKind.UNSANITIZABLE
        )

    # Bound the scan before touching the characters
    if len(raw) > max_length:
        raise ValidationError(
            ErrorMessages.QUERY_TOO_LONG.format(length=len(raw), maximum=max_length),
            ValidationErrorKind.QUERY_TOO_LONG
        )

    filtered = ''.join(char for char in raw if is_allowed_character(char))
    sanitized = filtered.strip()

    if not sanitized:
        raise ValidationError(ErrorMessages.EMPTY_QUERY, ValidationErrorKind.EMPTY_QUERY)

    return sanitized


@dataclass(frozen=True)
class Query:
    """A single request: raw text plus its sanitized form."""
    raw: str
    sanitized: str
    byte_length: int

    @classmethod
    def from_raw(cls, raw: str, max_length: int = ConfigDefaults.MAX_QUERY_LENGTH) -> 'Query':
        """Sanitize raw text into an immutable Query. Raises ValidationError."""
        sanitized = sanitize(raw, max_length)
        return cls(raw=raw, sanitized=sanitized, byte_length=len(raw.encode('utf-8', errors='surrogatepass')))
