"""
Rule-based logic evaluation over a small Prolog-like knowledge base.

Facts and Horn rules are read from program text:

    parent(zeus, hercules).
    ancestor(X, Y) :- parent(X, Y).

Goals found in free text ("prove ancestor(zeus, hercules)") are resolved
depth-first with a bounded goal depth, and a successful search yields the
chain of rules and facts that proves the goal.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from orchestrator.constants import ConfigDefaults
from orchestrator.error_handler import EvalError, EvalErrorKind
from utils.logging_config import get_logger
from .base import Evaluator, EvalResult, ResultKind

logger = get_logger(__name__)

# Upper bound on clause attempts for a single goal
MAX_SEARCH_STEPS = 10000

DEFAULT_PROGRAM = """
% Greek pantheon, a small demonstration knowledge base
parent(uranus, cronus).
parent(cronus, zeus).
parent(rhea, zeus).
parent(zeus, hercules).
parent(zeus, athena).
parent(zeus, apollo).

ancestor(X, Y) :- parent(X, Y).
ancestor(X, Y) :- parent(X, Z), ancestor(Z, Y).

grandparent(X, Y) :- parent(X, Z), parent(Z, Y).
"""

_ARGUMENT = r'[A-Za-z0-9_]+'
_TERM_PATTERN = r'([a-z][a-zA-Z0-9_]*)\(\s*(' + _ARGUMENT + r'(?:\s*,\s*' + _ARGUMENT + r')*)\s*\)'

_TERM = re.compile(_TERM_PATTERN)
GOAL_PATTERN = re.compile(r'\b' + _TERM_PATTERN)
_CLAUSE = re.compile(
    r'^\s*(?P<head>' + _TERM_PATTERN + r')\s*'
    r'(?::-\s*(?P<body>' + _TERM_PATTERN + r'(?:\s*,\s*' + _TERM_PATTERN + r')*))?\s*$'
)

Substitution = Dict[str, str]


def is_variable(argument: str) -> bool:
    """Capitalized or underscore-prefixed arguments are variables."""
    return argument[:1].isupper() or argument.startswith('_')


@dataclass(frozen=True)
class Term:
    predicate: str
    args: Tuple[str, ...]

    @property
    def signature(self) -> Tuple[str, int]:
        return self.predicate, len(self.args)

    @classmethod
    def from_match(cls, predicate: str, arguments: str) -> 'Term':
        return cls(predicate, tuple(arg.strip() for arg in arguments.split(',')))

    def __str__(self) -> str:
        return f"{self.predicate}({', '.join(self.args)})"


@dataclass(frozen=True)
class Clause:
    head: Term
    body: Tuple[Term, ...] = ()

    @property
    def is_fact(self) -> bool:
        return not self.body

    def __str__(self) -> str:
        if self.is_fact:
            return f"{self.head}."
        return f"{self.head} :- {', '.join(str(term) for term in self.body)}."


def parse_clause(text: str) -> Clause:
    """Parse a single clause without its terminating period. Raises ValueError."""
    match = _CLAUSE.match(text)
    if not match:
        raise ValueError(f"Invalid clause: {text.strip()!r}")

    head = _TERM.match(match.group('head'))
    body_text = match.group('body') or ''
    body = tuple(Term.from_match(*term.groups()) for term in _TERM.finditer(body_text))
    return Clause(Term.from_match(*head.groups()), body)


class KnowledgeBase:
    """Immutable set of facts and rules, indexed by predicate and arity."""

    def __init__(self, clauses: Iterable[Clause]):
        self._clauses = tuple(clauses)
        index: Dict[Tuple[str, int], List[Clause]] = {}
        for clause in self._clauses:
            index.setdefault(clause.head.signature, []).append(clause)
        self._index = MappingProxyType({key: tuple(value) for key, value in index.items()})

    @classmethod
    def from_program(cls, program: str) -> 'KnowledgeBase':
        """Build a knowledge base from program text. `%` starts a comment line."""
        lines = [line for line in program.splitlines() if not line.strip().startswith('%')]
        statements = [statement for statement in ' '.join(lines).split('.') if statement.strip()]
        return cls(parse_clause(statement) for statement in statements)

    @property
    def clauses(self) -> Tuple[Clause, ...]:
        return self._clauses

    @property
    def signatures(self) -> frozenset:
        return frozenset(self._index)

    def clauses_for(self, term: Term) -> Tuple[Clause, ...]:
        return self._index.get(term.signature, ())

    def __len__(self) -> int:
        return len(self._clauses)


@dataclass(frozen=True)
class _ProofNode:
    clause: Clause
    premises: Tuple['_ProofNode', ...]


class _SearchState:
    """Bookkeeping for one goal; never shared between calls."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        self.steps = 0
        self.renames = 0
        self.depth_exceeded = False


def _walk(argument: str, subst: Substitution) -> str:
    while is_variable(argument) and argument in subst:
        argument = subst[argument]
    return argument


def _resolve(term: Term, subst: Substitution) -> Term:
    return Term(term.predicate, tuple(_walk(arg, subst) for arg in term.args))


def _unify(left: Term, right: Term, subst: Substitution) -> Optional[Substitution]:
    if left.signature != right.signature:
        return None

    result = dict(subst)
    for a, b in zip(left.args, right.args):
        a, b = _walk(a, result), _walk(b, result)
        if a == b:
            continue
        if is_variable(a):
            result[a] = b
        elif is_variable(b):
            result[b] = a
        else:
            return None
    return result


def _rename(clause: Clause, state: _SearchState) -> Clause:
    state.renames += 1
    suffix = f"#{state.renames}"

    def rename_term(term: Term) -> Term:
        return Term(term.predicate, tuple(arg + suffix if is_variable(arg) else arg for arg in term.args))

    return Clause(rename_term(clause.head), tuple(rename_term(term) for term in clause.body))


class RuleBasedLogicEvaluator(Evaluator):
    """
    Proves goals against a KnowledgeBase by depth-bounded SLD resolution.

    Returns True with a proof chain, False when the search space is exhausted,
    and raises PROOF_DEPTH_EXCEEDED when the depth bound cut the search
    before any proof was found.
    """

    name = "logic"

    def __init__(self, knowledge_base: Optional[KnowledgeBase] = None,
                 max_depth: int = ConfigDefaults.MAX_PROOF_DEPTH):
        self.knowledge_base = knowledge_base or KnowledgeBase.from_program(DEFAULT_PROGRAM)
        self.max_depth = max_depth

    def find_goal(self, text: str) -> Optional[Term]:
        """First `name(args)` form in the text whose predicate the knowledge base defines."""
        for match in GOAL_PATTERN.finditer(text or ""):
            term = Term.from_match(*match.groups())
            if term.signature in self.knowledge_base.signatures:
                return term
        return None

    def can_evaluate(self, text: str) -> bool:
        return self.find_goal(text) is not None

    def evaluate(self, text: str) -> EvalResult:
        goal = self.find_goal(text)
        if goal is None:
            raise EvalError(f"No known goal found in {text!r}", EvalErrorKind.PARSE_ERROR)

        state = _SearchState(self.max_depth)
        for subst, proof in self._prove(goal, {}, 1, state):
            lines = self._render(proof, subst)
            lines.append(f"Therefore {_resolve(goal, subst)}.")
            logger.debug(f"Proved {goal} in {state.steps} steps")
            return EvalResult(
                value=True,
                kind=ResultKind.LOGIC,
                expression=str(goal),
                proof=tuple(lines),
                evaluator=self.name
            )

        if state.depth_exceeded:
            raise EvalError(
                f"No proof of {goal} within depth {self.max_depth}",
                EvalErrorKind.PROOF_DEPTH_EXCEEDED
            )

        return EvalResult(value=False, kind=ResultKind.LOGIC, expression=str(goal), evaluator=self.name)

    def _prove(self, goal: Term, subst: Substitution, depth: int,
               state: _SearchState) -> Iterator[Tuple[Substitution, _ProofNode]]:
        if depth > state.max_depth:
            state.depth_exceeded = True
            return

        for clause in self.knowledge_base.clauses_for(goal):
            state.steps += 1
            if state.steps > MAX_SEARCH_STEPS:
                raise EvalError(
                    f"Search for {goal} exceeded {MAX_SEARCH_STEPS} steps",
                    EvalErrorKind.PROOF_DEPTH_EXCEEDED
                )

            renamed = _rename(clause, state)
            unified = _unify(goal, renamed.head, subst)
            if unified is None:
                continue

            for body_subst, premises in self._prove_all(renamed.body, unified, depth + 1, state):
                yield body_subst, _ProofNode(renamed, premises)

    def _prove_all(self, goals: Tuple[Term, ...], subst: Substitution, depth: int,
                   state: _SearchState) -> Iterator[Tuple[Substitution, Tuple[_ProofNode, ...]]]:
        if not goals:
            yield subst, ()
            return

        first, rest = goals[0], goals[1:]
        for first_subst, node in self._prove(first, subst, depth, state):
            for rest_subst, nodes in self._prove_all(rest, first_subst, depth, state):
                yield rest_subst, (node,) + nodes

    def _render(self, node: _ProofNode, subst: Substitution) -> List[str]:
        resolved = Clause(
            _resolve(node.clause.head, subst),
            tuple(_resolve(term, subst) for term in node.clause.body)
        )
        lines = [str(resolved)]
        for premise in node.premises:
            lines.extend(self._render(premise, subst))
        return lines
