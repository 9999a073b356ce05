"""
Result formatting utilities.
Renders verification summaries as the text block appended to a hybrid answer.
"""

import json

from evaluator.base import format_number
from .core.models import VerdictStatus, VerificationSummary, VerificationVerdict

REPORT_HEADER = "[Verification]"

_STATUS_MARKS = {
    VerdictStatus.VERIFIED: "✓",
    VerdictStatus.MISMATCH: "✗",
    VerdictStatus.UNEVALUABLE: "✗",
}


def format_verdict(verdict: VerificationVerdict) -> str:
    """One report line for a verdict."""
    mark = _STATUS_MARKS[verdict.status]
    claim = verdict.claim
    line = f"{mark} {claim.expression} = {format_number(claim.asserted_value)}"

    if verdict.status == VerdictStatus.MISMATCH:
        line += f" (actual: {format_number(verdict.actual_value)})"
    elif verdict.status == VerdictStatus.UNEVALUABLE:
        line += f": {verdict.error}"
    return line


def format_verification_report(summary: VerificationSummary) -> str:
    """
    Format a summary as a `[Verification]` block with one ✓/✗ line per claim.

    Returns an empty string when the draft contained no claims.
    """
    if not summary.verdicts:
        return ""

    lines = [REPORT_HEADER]
    lines.extend(format_verdict(verdict) for verdict in summary.verdicts)
    lines.append(f"Verified {summary.verified}/{summary.total} claims")
    return "\n\n" + "\n".join(lines) + "\n"


def summary_to_json(summary: VerificationSummary) -> str:
    """Convert a summary to a JSON string."""
    return json.dumps(summary.to_dict(), ensure_ascii=False, indent=2)
