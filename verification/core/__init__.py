"""
Core components of the verification system.
"""

from .claim_extractor import ClaimExtractor, normalize_expression, parse_asserted_value
from .models import Claim, VerdictStatus, VerificationVerdict, VerificationSummary

__all__ = [
    "ClaimExtractor",
    "normalize_expression",
    "parse_asserted_value",
    "Claim",
    "VerdictStatus",
    "VerificationVerdict",
    "VerificationSummary",
]
