"""
Tests for the rule-based logic evaluator and its knowledge base.
"""

import pytest

from evaluator.base import ResultKind
from evaluator.logic import (
    DEFAULT_PROGRAM,
    Clause,
    KnowledgeBase,
    RuleBasedLogicEvaluator,
    Term,
    is_variable,
    parse_clause,
)
from orchestrator.error_handler import EvalError, EvalErrorKind


@pytest.fixture
def logic():
    return RuleBasedLogicEvaluator()


class TestKnowledgeBase:
    """Test program parsing and indexing."""

    def test_default_program(self):
        kb = KnowledgeBase.from_program(DEFAULT_PROGRAM)
        assert len(kb) == 9
        assert kb.signatures == {('parent', 2), ('ancestor', 2), ('grandparent', 2)}
        assert len(kb.clauses_for(Term('parent', ('a', 'b')))) == 6
        assert kb.clauses_for(Term('sibling', ('a', 'b'))) == ()

    def test_parse_fact_and_rule(self):
        fact = parse_clause("parent(zeus, athena)")
        assert fact.is_fact
        assert str(fact) == "parent(zeus, athena)."

        rule = parse_clause("grandparent(X, Y) :- parent(X, Z), parent(Z, Y)")
        assert rule.head == Term('grandparent', ('X', 'Y'))
        assert len(rule.body) == 2
        assert str(rule) == "grandparent(X, Y) :- parent(X, Z), parent(Z, Y)."

    @pytest.mark.parametrize("text", ["not a clause", "parent(zeus", "Parent(a, b)", "p(a) :- "])
    def test_invalid_clause(self, text):
        with pytest.raises(ValueError):
            parse_clause(text)

    def test_comment_lines_are_skipped(self):
        kb = KnowledgeBase.from_program("% only a comment\nlikes(ann, tea).\n")
        assert kb.clauses == (Clause(Term('likes', ('ann', 'tea'))),)

    def test_is_variable(self):
        assert is_variable("X")
        assert is_variable("_tmp")
        assert not is_variable("zeus")
        assert not is_variable("42")


class TestProofs:
    """Test goal resolution against the default knowledge base."""

    def test_direct_fact(self, logic):
        result = logic.evaluate("prove ancestor(zeus, hercules)")
        assert result.value is True
        assert result.kind == ResultKind.LOGIC
        assert result.proof == (
            "ancestor(zeus, hercules) :- parent(zeus, hercules).",
            "parent(zeus, hercules).",
            "Therefore ancestor(zeus, hercules).",
        )

    def test_transitive_chain(self, logic):
        """Test that a multi-step proof lists every rule and fact used, in order."""
        result = logic.evaluate("ancestor(uranus, hercules)")
        assert result.value is True
        assert result.proof == (
            "ancestor(uranus, hercules) :- parent(uranus, cronus), ancestor(cronus, hercules).",
            "parent(uranus, cronus).",
            "ancestor(cronus, hercules) :- parent(cronus, zeus), ancestor(zeus, hercules).",
            "parent(cronus, zeus).",
            "ancestor(zeus, hercules) :- parent(zeus, hercules).",
            "parent(zeus, hercules).",
            "Therefore ancestor(uranus, hercules).",
        )

    def test_grandparent(self, logic):
        result = logic.evaluate("is grandparent(uranus, zeus) true")
        assert result.value is True
        assert result.proof[0] == "grandparent(uranus, zeus) :- parent(uranus, cronus), parent(cronus, zeus)."
        assert result.render().endswith("Therefore grandparent(uranus, zeus).")

    def test_variables_are_bound(self, logic):
        result = logic.evaluate("ancestor(X, hercules)")
        assert result.value is True
        assert result.proof[-1] == "Therefore ancestor(zeus, hercules)."

    def test_unprovable_goal_is_false(self, logic):
        result = logic.evaluate("ancestor(hercules, zeus)")
        assert result.value is False
        assert result.proof == ()
        assert "not provable" in result.render()

    def test_atoms_are_case_sensitive(self, logic):
        """Test that a lowercase name never matches a different spelling."""
        assert logic.evaluate("parent(zeus, athena)").value is True
        assert logic.evaluate("parent(zeus, athenaa)").value is False


class TestBounds:
    """Test depth and step limits."""

    def test_depth_limit_cuts_long_chains(self):
        shallow = RuleBasedLogicEvaluator(max_depth=2)
        assert shallow.evaluate("ancestor(zeus, hercules)").value is True
        with pytest.raises(EvalError) as exc_info:
            shallow.evaluate("ancestor(uranus, hercules)")
        assert exc_info.value.kind == EvalErrorKind.PROOF_DEPTH_EXCEEDED

    def test_left_recursion_terminates(self):
        """Test that a left-recursive rule is stopped by the depth bound."""
        kb = KnowledgeBase.from_program(
            "edge(a, b).\n"
            "path(X, Y) :- path(X, Z), edge(Z, Y).\n"
            "path(X, Y) :- edge(X, Y).\n"
        )
        evaluator = RuleBasedLogicEvaluator(kb, max_depth=8)

        with pytest.raises(EvalError) as exc_info:
            evaluator.evaluate("path(a, c)")
        assert exc_info.value.kind == EvalErrorKind.PROOF_DEPTH_EXCEEDED

    def test_evaluator_is_reentrant(self, logic):
        """Test that repeated evaluations give identical results."""
        first = logic.evaluate("ancestor(uranus, apollo)")
        second = logic.evaluate("ancestor(uranus, apollo)")
        assert first == second


class TestGoalDetection:
    def test_find_goal_skips_unknown_predicates(self, logic):
        goal = logic.find_goal("is sibling(a, b) or parent(rhea, zeus) true")
        assert goal == Term('parent', ('rhea', 'zeus'))

    def test_unknown_goal_cannot_be_evaluated(self, logic):
        assert not logic.can_evaluate("sibling(apollo, athena)")
        with pytest.raises(EvalError) as exc_info:
            logic.evaluate("sibling(apollo, athena)")
        assert exc_info.value.kind == EvalErrorKind.PARSE_ERROR

    def test_arity_must_match(self, logic):
        assert not logic.can_evaluate("parent(zeus)")
