"""
Arithmetic evaluation over integers and floats.

Expressions are tokenized with a single regex, parsed by recursive descent
into a small tree, and evaluated without ever touching `eval`. Integer
arithmetic stays exact; division only produces a float when the quotient is
not whole.

Precedence, loosest first: `+ -`, `* / %`, unary sign, `^` (right
associative, `**` accepted as an alias). `( )` and `[ ]` group.
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from orchestrator.error_handler import EvalError, EvalErrorKind
from .base import Evaluator, EvalResult, Number, ResultKind

# Bounds keeping worst-case work proportional to input size
MAX_NESTING_DEPTH = 64
MAX_EXPONENT = 10000
# Integers stay below the interpreter's 4300-digit limit on int/str conversion
MAX_LITERAL_DIGITS = 4000
MAX_INTEGER_BITS = 13000

_NUMBER = r'(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?'

_TOKEN = re.compile(
    r'\s*(?:'
    r'(?P<number>' + _NUMBER + r')'
    r'|(?P<operator>\*\*|[-+*/^%×÷−])'
    r'|(?P<open>[(\[])'
    r'|(?P<close>[)\]])'
    r')'
)

_OPERATOR_ALIASES = {'**': '^', '×': '*', '÷': '/', '−': '-'}
_CLOSING = {'(': ')', '[': ']'}

# Runs of characters that can make up an arithmetic expression inside prose
_CANDIDATE_RUN = re.compile(r'[\d.\s+\-*/^%()\[\]×÷−]+')
_LEADING_JUNK = set('*/^%)]×÷.')
_TRAILING_JUNK = set('+-*/^%([×÷−.')


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True)
class NumberNode:
    value: Number


@dataclass(frozen=True)
class UnaryNode:
    operator: str
    operand: 'Node'


@dataclass(frozen=True)
class BinaryNode:
    operator: str
    left: 'Node'
    right: 'Node'


Node = Union[NumberNode, UnaryNode, BinaryNode]


def _parse_error(message: str) -> EvalError:
    return EvalError(message, EvalErrorKind.PARSE_ERROR)


def tokenize(expression: str) -> List[_Token]:
    """Split an expression into tokens. Raises EvalError on stray characters."""
    tokens = []
    position = 0
    length = len(expression)

    while position < length:
        if expression[position:].strip() == '':
            break
        match = _TOKEN.match(expression, position)
        if not match or match.end() == position:
            offending = expression[position:].lstrip()[:1]
            raise _parse_error(f"Unexpected character {offending!r} at position {position}")

        kind = match.lastgroup
        text = match.group(kind)
        if kind == 'operator':
            text = _OPERATOR_ALIASES.get(text, text)
        tokens.append(_Token(kind, text, match.start(kind)))
        position = match.end()

    return tokens


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: List[_Token]):
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise _parse_error("Empty expression")
        node = self._expression()
        if self.index < len(self.tokens):
            token = self.tokens[self.index]
            raise _parse_error(f"Unexpected {token.text!r} at position {token.position}")
        return node

    def _peek(self) -> Optional[_Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _peek_operator(self, *operators: str) -> Optional[str]:
        token = self._peek()
        if token is not None and token.kind == 'operator' and token.text in operators:
            return token.text
        return None

    def _advance(self) -> _Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _expression(self) -> Node:
        node = self._term()
        while self._peek_operator('+', '-'):
            operator = self._advance().text
            node = BinaryNode(operator, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while self._peek_operator('*', '/', '%'):
            operator = self._advance().text
            node = BinaryNode(operator, node, self._unary())
        return node

    def _unary(self) -> Node:
        self.depth += 1
        try:
            if self.depth > MAX_NESTING_DEPTH:
                raise _parse_error(f"Expression nests deeper than {MAX_NESTING_DEPTH} levels")
            if self._peek_operator('+', '-'):
                operator = self._advance().text
                return UnaryNode(operator, self._unary())
            return self._power()
        finally:
            self.depth -= 1

    def _power(self) -> Node:
        base = self._atom()
        if self._peek_operator('^'):
            self._advance()
            # Right associative, and binds tighter than a unary sign on its left
            return BinaryNode('^', base, self._unary())
        return base

    def _atom(self) -> Node:
        token = self._peek()
        if token is None:
            raise _parse_error("Expression ends unexpectedly")

        if token.kind == 'number':
            self._advance()
            return NumberNode(_to_number(token.text))

        if token.kind == 'open':
            self._advance()
            inner = self._expression()
            closing = self._peek()
            expected = _CLOSING[token.text]
            if closing is None or closing.kind != 'close':
                raise _parse_error(f"Missing {expected!r} for {token.text!r} at position {token.position}")
            if closing.text != expected:
                raise _parse_error(f"Mismatched {closing.text!r} at position {closing.position}")
            self._advance()
            return inner

        raise _parse_error(f"Unexpected {token.text!r} at position {token.position}")


def _to_number(text: str) -> Number:
    if len(text) > MAX_LITERAL_DIGITS:
        raise EvalError(f"Number literal longer than {MAX_LITERAL_DIGITS} characters", EvalErrorKind.OVERFLOW)
    try:
        if any(marker in text for marker in '.eE'):
            return float(text)
        return int(text)
    except ValueError as e:
        raise EvalError(f"Number literal out of range: {e}", EvalErrorKind.OVERFLOW) from e


def parse_expression(expression: str) -> Node:
    """Parse an arithmetic expression into a tree. Syntax only; nothing is evaluated."""
    return _Parser(tokenize(expression)).parse()


def _check_range(value: Number) -> Number:
    if isinstance(value, float) and math.isnan(value):
        raise EvalError("Result is not a number", EvalErrorKind.UNDEFINED)
    if isinstance(value, float) and not math.isfinite(value):
        raise EvalError("Result is not a finite number", EvalErrorKind.OVERFLOW)
    if isinstance(value, int) and value.bit_length() > MAX_INTEGER_BITS:
        raise EvalError("Integer result is too large", EvalErrorKind.OVERFLOW)
    return value


def _power(base: Number, exponent: Number) -> Number:
    if base == 0 and exponent < 0:
        raise EvalError("Zero raised to a negative power", EvalErrorKind.DIVISION_BY_ZERO)
    if abs(exponent) > MAX_EXPONENT:
        raise EvalError(f"Exponent {exponent} exceeds the limit of {MAX_EXPONENT}", EvalErrorKind.OVERFLOW)

    if isinstance(base, int) and isinstance(exponent, int) and exponent >= 0:
        # Lower bound on the result size; _check_range catches the rest
        if base not in (-1, 0, 1) and exponent * (base.bit_length() - 1) > MAX_INTEGER_BITS:
            raise EvalError("Integer result is too large", EvalErrorKind.OVERFLOW)
        return base ** exponent

    result = float(base) ** float(exponent)
    if isinstance(result, complex):
        raise EvalError(f"{base} ^ {exponent} has no real value", EvalErrorKind.UNDEFINED)
    return result


def _apply(operator: str, left: Number, right: Number) -> Number:
    if operator == '+':
        return left + right
    if operator == '-':
        return left - right
    if operator == '*':
        return left * right
    if operator == '/':
        if right == 0:
            raise EvalError("Division by zero", EvalErrorKind.DIVISION_BY_ZERO)
        if isinstance(left, int) and isinstance(right, int) and left % right == 0:
            return left // right
        return left / right
    if operator == '%':
        if right == 0:
            raise EvalError("Modulo by zero", EvalErrorKind.DIVISION_BY_ZERO)
        return left % right
    if operator == '^':
        return _power(left, right)
    raise _parse_error(f"Unknown operator {operator!r}")


def evaluate_tree(node: Node) -> Number:
    """
    Evaluate a parsed tree. Raises EvalError.

    Walks the tree with an explicit stack: long flat chains such as
    `1 + 1 + ... + 1` are left-nested far deeper than the parser's nesting limit.
    """
    pending = [(node, False)]
    values: List[Number] = []

    try:
        while pending:
            current, children_done = pending.pop()

            if isinstance(current, NumberNode):
                values.append(_check_range(current.value))
            elif not children_done:
                pending.append((current, True))
                if isinstance(current, UnaryNode):
                    pending.append((current.operand, False))
                else:
                    pending.append((current.right, False))
                    pending.append((current.left, False))
            elif isinstance(current, UnaryNode):
                operand = values.pop()
                values.append(-operand if current.operator == '-' else operand)
            else:
                right = values.pop()
                left = values.pop()
                values.append(_check_range(_apply(current.operator, left, right)))
    except OverflowError as e:
        raise EvalError(f"Numeric overflow: {e}", EvalErrorKind.OVERFLOW) from e

    return values[0]


def _has_operator_token(candidate: str) -> bool:
    return any(token.kind == 'operator' for token in tokenize(candidate)[1:])


def has_binary_operator(node: Node) -> bool:
    if isinstance(node, BinaryNode):
        return True
    if isinstance(node, UnaryNode):
        return has_binary_operator(node.operand)
    return False


def _trim_candidate(candidate: str) -> str:
    """Strip dangling operators, sentence punctuation and unmatched brackets."""
    previous = None
    while candidate != previous:
        previous = candidate
        candidate = candidate.strip()
        while candidate and candidate[0] in _LEADING_JUNK:
            candidate = candidate[1:].lstrip()
        while candidate and candidate[-1] in _TRAILING_JUNK:
            candidate = candidate[:-1].rstrip()
        opened = candidate.count('(') + candidate.count('[')
        closed = candidate.count(')') + candidate.count(']')
        if opened > closed and candidate[:1] in '([':
            candidate = candidate[1:]
        elif closed > opened and candidate[-1:] in ')]':
            candidate = candidate[:-1]
    return candidate


def extract_math_expression(text: str) -> Optional[str]:
    """
    Locate a parsable arithmetic expression inside a longer sentence.

    Best effort: returns the leftmost candidate that parses and contains at
    least one binary operator, or None. A bare number is not an expression.

    >>> extract_math_expression("what is 10 * 5")
    '10 * 5'
    """
    if not text:
        return None

    for match in _CANDIDATE_RUN.finditer(text):
        candidate = _trim_candidate(match.group())
        if not candidate or not any(char.isdigit() for char in candidate):
            continue
        try:
            tree = parse_expression(candidate)
        except EvalError as e:
            if e.kind == EvalErrorKind.PARSE_ERROR:
                continue
            # Well formed but out of range; still an expression
            if _has_operator_token(candidate):
                return candidate
            continue
        if has_binary_operator(tree):
            return candidate

    return None


class ArithmeticEvaluator(Evaluator):
    """Evaluates arithmetic, either a whole expression or one found inside a sentence."""

    name = "arithmetic"

    def parse(self, expression: str) -> Node:
        return parse_expression(expression)

    def _locate(self, text: str) -> Optional[str]:
        stripped = (text or "").strip()
        if not stripped:
            return None
        try:
            parse_expression(stripped)
        except EvalError as e:
            if e.kind == EvalErrorKind.PARSE_ERROR:
                return extract_math_expression(stripped)
        return stripped

    def can_evaluate(self, text: str) -> bool:
        return self._locate(text) is not None

    def evaluate(self, text: str) -> EvalResult:
        expression = self._locate(text)
        if expression is None:
            raise _parse_error(f"No arithmetic expression found in {text!r}")

        value = evaluate_tree(parse_expression(expression))
        return EvalResult(
            value=value,
            kind=ResultKind.NUMERIC,
            expression=expression,
            evaluator=self.name
        )

    def extract_math_expression(self, text: str) -> Optional[str]:
        return extract_math_expression(text)
