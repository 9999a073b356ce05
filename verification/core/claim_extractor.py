"""
Claim extraction functionality for draft verification.
Identifies arithmetic assertions such as `10 * 5 = 50` in generated text.
"""

import re
from typing import List, Optional

from evaluator.arithmetic import MAX_LITERAL_DIGITS
from utils.text_utils import collapse_whitespace
from .models import Claim, Number

_NUMBER = r'\d+(?:\.\d+)?'

# Binary operators; a bare x only counts as multiplication between spaces
_OPERATOR = r'(?:\*\*|[-+*/^%×÷−]|(?<=\s)[xX](?=\s))'

# Numbers, optionally signed, or one level of parenthesized arithmetic
_TERM = (
    r'(?:[-−]?' + _NUMBER +
    r'|\(\s*[-−]?' + _NUMBER + r'(?:\s*' + _OPERATOR + r'\s*[-−]?' + _NUMBER + r')*\s*\))'
)

_RELATION = r'(?:==|=>|=|→|->)'

_CLAIM_PATTERN = re.compile(
    # Never starts inside a word or number, nor right after "1," or "a-"
    r'(?<![\w.])(?<!\d,)(?<![\w.)\]][-−])'
    r'(?P<expression>' + _TERM + r'(?:\s*' + _OPERATOR + r'\s*' + _TERM + r')+)'
    r'\s*(?P<relation>' + _RELATION + r')\s*'
    r'(?P<value>[^\s,;:]+)'
)

_NUMERIC_LITERAL = re.compile(r'[-−]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?')
_TRAILING_PUNCTUATION = '.,!?;:)'

_SPACED_X = re.compile(r'(?<=\s)[xX](?=\s)')
_UNICODE_OPERATORS = str.maketrans({'×': '*', '÷': '/', '−': '-'})

_FIRST_OPERATION = re.compile(
    r'(?P<left>' + _TERM + r')\s*(?P<operator>\*\*|[-+*/^%])\s*(?P<right>.+)',
    re.DOTALL
)


def normalize_expression(expression: str) -> str:
    """Map ×, ÷, − and a spaced x to ASCII operators and collapse whitespace."""
    expression = collapse_whitespace(expression)
    expression = _SPACED_X.sub('*', expression)
    return expression.translate(_UNICODE_OPERATORS)


def parse_asserted_value(text: str) -> Optional[Number]:
    """Numeric literal to int or float; None when the text is not a number or is too long to check."""
    text = text.translate(_UNICODE_OPERATORS)
    if len(text) > MAX_LITERAL_DIGITS or not _NUMERIC_LITERAL.fullmatch(text):
        return None
    if any(marker in text for marker in '.eE'):
        return float(text)
    return int(text)


class ClaimExtractor:
    """
    Extracts `<expr> <op> <expr> = <value>` assertions from text.

    Matching is leftmost-longest and strictly left to right: a chain such as
    `2 + 3 * 4 = 14` is one claim, and no claim ever starts inside a word,
    a number or a span already consumed. Spans whose right-hand side is not a
    numeric literal (`2 + 2 = four`) are skipped.
    """

    def extract_claims(self, text: str) -> List[Claim]:
        """
        Extract claims in order of appearance.

        Args:
            text: Generated text to scan

        Returns:
            List of Claim, possibly empty
        """
        if not text:
            return []

        claims = []
        for match in _CLAIM_PATTERN.finditer(text):
            claim = self._build_claim(match)
            if claim is not None:
                claims.append(claim)
        return claims

    def _build_claim(self, match: re.Match) -> Optional[Claim]:
        raw_value = match.group('value')
        value_text = raw_value.rstrip(_TRAILING_PUNCTUATION)
        asserted_value = parse_asserted_value(value_text)
        if asserted_value is None:
            return None

        expression = normalize_expression(match.group('expression'))
        operation = _FIRST_OPERATION.fullmatch(expression)
        if operation is None:
            return None

        start = match.start()
        end = match.end() - (len(raw_value) - len(value_text))
        return Claim(
            expression=expression,
            left_operand=operation.group('left'),
            operator=operation.group('operator'),
            right_operand=operation.group('right'),
            relation=match.group('relation'),
            asserted_value=asserted_value,
            source_text=match.string[start:end],
            start=start,
            end=end
        )
