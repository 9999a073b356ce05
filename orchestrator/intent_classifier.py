"""
Intent classification: decides whether a query is answered by the text
producer, by the deterministic evaluator, or by both.

Two independent signal sets are matched against the normalized query:
computable signals (a parsable expression, a logic goal, math/logic
keywords) and creative signals (open-ended questions, non-computational
imperatives). The decision table is:

    computable only  -> LOGICAL
    creative only    -> CREATIVE
    both             -> HYBRID
    neither          -> CREATIVE
"""

import re
from typing import List, Optional

from evaluator.arithmetic import extract_math_expression, has_binary_operator, parse_expression
from evaluator.logic import GOAL_PATTERN
from utils.text_utils import normalize_text
from .error_handler import EvalError
from .models import ClassificationResult, Intent


class IntentClassifier:
    """
    Stateless intent classifier built on pre-compiled regex patterns.
    The same sanitized text always yields the same intent.
    """

    def __init__(self):
        self.computable_patterns = self._initialize_computable_patterns()
        self.creative_patterns = self._initialize_creative_patterns()

    def _initialize_computable_patterns(self) -> List[re.Pattern]:
        """Keywords and forms that ask for an exact answer."""
        return [
            # Explicit computation requests
            re.compile(r'\b(?:calculate|compute|solve|evaluate|simplify)\b', re.IGNORECASE),
            re.compile(r'\b(?:prove|verify|check\s+whether|is\s+it\s+true\s+that)\b', re.IGNORECASE),
            # Math vocabulary
            re.compile(r'\b(?:equation|arithmetic|math|maths|mathematics|algebra)\b', re.IGNORECASE),
            re.compile(r'\b(?:sum|product|quotient|remainder|difference)\s+of\b', re.IGNORECASE),
            re.compile(r'\b(?:plus|minus|times|divided\s+by|multiplied\s+by|squared|cubed|square\s+root)\b', re.IGNORECASE),
            # Percentages
            re.compile(r'\d\s*%'),
            re.compile(r'\bpercent(?:age)?\b', re.IGNORECASE),
            re.compile(r'\b(?:ancestor|parent|grandparent)\s+of\b', re.IGNORECASE),
        ]

    def _initialize_creative_patterns(self) -> List[re.Pattern]:
        """Open-ended questions and imperatives unrelated to computation."""
        return [
            # Generative imperatives
            re.compile(r'\b(?:write|compose|create|draft|generate|imagine|invent|suggest|brainstorm)\b', re.IGNORECASE),
            re.compile(r'\b(?:explain|describe|summarize|summarise|discuss|compare|tell\s+me)\b', re.IGNORECASE),
            # Creative forms
            re.compile(r'\b(?:story|poem|essay|song|haiku|joke|letter|dialogue|narrative)\b', re.IGNORECASE),
            # Open-ended question words
            re.compile(r'\b(?:why|who|how\s+(?:does|do|did|can|could|would|should|is|are))\b', re.IGNORECASE),
            re.compile(r'\bwhat\s+(?:is|are|was|were|does|do|if)\b', re.IGNORECASE),
            re.compile(r'\b(?:opinion|think|feel|meaning)\b', re.IGNORECASE),
        ]

    def _match_signals(self, text: str, patterns: List[re.Pattern]) -> List[str]:
        signals = []
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                signals.append(match.group(0))
        return signals

    def _find_goal(self, sanitized: str) -> Optional[str]:
        # Case preserved: a capitalized name is a variable to the logic evaluator, never a predicate
        match = GOAL_PATTERN.search(sanitized)
        return match.group(0) if match else None

    def _find_expression(self, text: str) -> Optional[str]:
        try:
            tree = parse_expression(text)
        except EvalError:
            return extract_math_expression(text)
        # A bare number is not something to compute
        return text if has_binary_operator(tree) else None

    def analyze(self, sanitized: str) -> ClassificationResult:
        """
        Classify a sanitized query and report the signals that decided it.

        Args:
            sanitized: Query text after sanitization

        Returns:
            ClassificationResult with intent and matched signals
        """
        text = normalize_text(sanitized or "")

        computable = self._match_signals(text, self.computable_patterns)
        creative = self._match_signals(text, self.creative_patterns)

        goal = self._find_goal(sanitized or "")
        if goal:
            computable.append(goal)

        expression = self._find_expression(text)
        if expression:
            computable.insert(0, expression)

        if computable and creative:
            intent = Intent.HYBRID
        elif computable:
            intent = Intent.LOGICAL
        else:
            intent = Intent.CREATIVE

        return ClassificationResult(
            intent=intent,
            computable_signals=tuple(computable),
            creative_signals=tuple(creative),
            expression=expression
        )

    def classify(self, sanitized: str) -> Intent:
        """Classify a sanitized query into an Intent."""
        return self.analyze(sanitized).intent


def describe_intent(intent: Intent) -> str:
    """Human-readable description of how an intent is served."""
    descriptions = {
        Intent.CREATIVE: "Creative: answered by the text producer",
        Intent.LOGICAL: "Logical: answered by the deterministic evaluator",
        Intent.HYBRID: "Hybrid: drafted by the text producer, claims checked by the deterministic evaluator",
    }
    return descriptions[intent]
