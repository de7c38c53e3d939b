"""Tests for the z3-backed relation solver."""

import math

import pytest

from pathspectre.core.constraints import NOT_NULL, Decision
from pathspectre.core.state import ProgramState, Relation
from pathspectre.core.values import LiteralKind


@pytest.fixture
def ab(registry):
    a = registry.new_unknown(label="a")
    b = registry.new_unknown(label="b")
    state = ProgramState.empty().bind("a", a).bind("b", b)
    return a, b, state


class TestDecide:
    def test_nothing_known_is_undecidable(self, solver, ab):
        a, b, state = ab
        assert solver.decide(state, "<", a, b) is Decision.UNDECIDABLE
        assert solver.query_count == 0

    @pytest.mark.parametrize(
        "operator, expected",
        [
            ("<", Decision.ALWAYS_FALSE),
            ("<=", Decision.ALWAYS_FALSE),
            (">", Decision.ALWAYS_TRUE),
            (">=", Decision.ALWAYS_TRUE),
            ("==", Decision.ALWAYS_FALSE),
            ("===", Decision.ALWAYS_FALSE),
        ],
    )
    def test_consequences_of_greater_than(self, solver, ab, operator, expected):
        a, b, state = ab
        state = state.with_relation(Relation(">", a, b))
        assert solver.decide(state, operator, a, b) is expected

    def test_failed_comparison_does_not_imply_its_converse(self, solver, ab):
        a, b, state = ab
        state = state.with_relation(Relation(">", a, b, holds=False))
        assert solver.decide(state, "<=", a, b) is Decision.UNDECIDABLE
        assert solver.decide(state, ">", a, b) is Decision.ALWAYS_FALSE

    def test_transitivity(self, solver, registry, ab):
        a, b, state = ab
        c = registry.new_unknown(label="c")
        state = state.with_relation(Relation(">", a, b)).with_relation(Relation(">=", b, c))
        assert solver.decide(state, ">", a, c) is Decision.ALWAYS_TRUE

    def test_numeric_literals(self, solver, registry):
        state = ProgramState.empty()
        one, state = registry.new_literal(state, LiteralKind.NUMBER, 1)
        two, state = registry.new_literal(state, LiteralKind.NUMBER, 2.5)
        assert solver.decide(state, "<", one, two) is Decision.ALWAYS_TRUE
        assert solver.decide(state, "==", one, two) is Decision.ALWAYS_FALSE

    def test_nan_compares_false(self, solver, registry, ab):
        a, _, state = ab
        not_a_number, state = registry.new_literal(state, LiteralKind.NUMBER, math.nan)
        for operator in ("<", "<=", ">", ">=", "=="):
            assert solver.decide(state, operator, a, not_a_number) is Decision.ALWAYS_FALSE

    def test_zero_exactness_is_a_fact(self, solver, registry, ab):
        a, _, state = ab
        zero, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        state = state.with_relation(Relation(">", a, zero))
        one, state = registry.new_literal(state, LiteralKind.NUMBER, -1)
        assert solver.decide(state, ">", a, one) is Decision.ALWAYS_TRUE

    def test_results_are_cached(self, solver, ab):
        a, b, state = ab
        state = state.with_relation(Relation(">", a, b))
        solver.decide(state, "<", a, b)
        queries = solver.query_count
        solver.decide(state, "<", a, b)
        assert solver.query_count == queries
        assert solver.cache_hits == 1

    def test_unknown_operator(self, solver, ab):
        a, b, state = ab
        with pytest.raises(ValueError):
            solver.decide(state, "!=", a, b)


class TestLooseEquality:
    def test_holding_equality_leaves_ordering_open(self, solver, ab):
        a, b, state = ab
        state = state.with_relation(Relation("==", a, b))
        assert solver.decide(state, "==", a, b) is Decision.ALWAYS_TRUE
        assert solver.decide(state, ">=", a, b) is Decision.UNDECIDABLE
        assert solver.decide(state, "<=", a, b) is Decision.UNDECIDABLE
        assert solver.decide(state, ">", a, b) is Decision.ALWAYS_FALSE

    def test_present_operands_are_ordered(self, solver, ab):
        a, b, state = ab
        state = state.with_relation(Relation("==", a, b))
        state = state.constrain(a, NOT_NULL).constrain(b, NOT_NULL)
        assert solver.decide(state, ">=", a, b) is Decision.ALWAYS_TRUE

    def test_null_and_undefined(self, solver, registry):
        state = ProgramState.empty()
        null, state = registry.new_literal(state, LiteralKind.NULL)
        undefined, state = registry.new_literal(state, LiteralKind.UNDEFINED)
        zero, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        assert solver.decide(state, "==", null, undefined) is Decision.ALWAYS_TRUE
        assert solver.decide(state, ">=", null, undefined) is Decision.ALWAYS_FALSE
        assert solver.decide(state, "==", null, zero) is Decision.ALWAYS_FALSE
        assert solver.decide(state, ">=", null, zero) is Decision.ALWAYS_TRUE
