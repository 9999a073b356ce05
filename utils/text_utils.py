"""Text utilities: Unicode normalization helpers used across the routing pipeline.

This module centralizes Unicode normalization so keyword matching behaves the
same for composed and decomposed input, and collapses whitespace so patterns
can assume single spaces.
"""
import re
import unicodedata

_WHITESPACE_RUN = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    """Normalize text for safe pattern matching.

    Steps:
    - If input is falsy, return empty string
    - Normalize to NFKD to decompose combined characters
    - Lowercase using Unicode-aware lower()
    - Recompose to NFC for stable representation
    """
    if not text:
        return ""

    decomposed = unicodedata.normalize('NFKD', text)
    lowered = decomposed.lower()
    return unicodedata.normalize('NFC', lowered)


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run with a single space and trim the ends."""
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(' ', text).strip()


def truncate(text: str, limit: int = 100) -> str:
    """Shorten text for log lines."""
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
