"""
Verification of arithmetic claims found in generated drafts.
"""

from .core import Claim, ClaimExtractor, VerdictStatus, VerificationSummary, VerificationVerdict
from .aggregator import VerificationAggregator, values_match
from .result_formatter import format_verdict, format_verification_report, summary_to_json

__all__ = [
    "Claim",
    "ClaimExtractor",
    "VerdictStatus",
    "VerificationSummary",
    "VerificationVerdict",
    "VerificationAggregator",
    "values_match",
    "format_verdict",
    "format_verification_report",
    "summary_to_json",
]
