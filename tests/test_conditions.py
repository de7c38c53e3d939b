"""Tests for the transfer functions of boolean tests."""

import math

import pytest

from pathspectre.core.constraints import (
    ARRAY,
    FALSE,
    FUNCTION,
    NOT_NULL,
    NULL,
    NULLY,
    NUMBER,
    OBJECT,
    STRING,
    TRUE,
    TRUTHY,
    ZERO,
    Decision,
    Nullness,
    Truthiness,
    TypeKind,
)
from pathspectre.core.state import ProgramState, Relation
from pathspectre.core.values import LiteralKind, Predicate, PredicateKind
from pathspectre.execution.conditions import Evaluation, is_only_nully, may_be_nan


@pytest.fixture
def x(registry):
    return registry.new_unknown(label="x")


@pytest.fixture
def bound(x):
    return ProgramState.empty().bind("x", x)


class TestEvaluation:
    def test_fork_prunes_infeasible_successors(self, bound):
        evaluation = Evaluation.fork(bound, None)
        assert evaluation.decision is Decision.ALWAYS_TRUE
        assert evaluation.pruned == 1
        assert evaluation.successors() == [(True, bound)]

    def test_decided_requires_a_known_decision(self, bound):
        with pytest.raises(ValueError):
            Evaluation.decided(Decision.UNDECIDABLE, bound)

    def test_negate_swaps_outcomes(self, bound, registry):
        other = bound.bind("y", registry.new_unknown())
        evaluation = Evaluation(Decision.UNDECIDABLE, bound, other).negate()
        assert evaluation.true_state is other
        assert evaluation.false_state is bound


class TestInstanceOf:
    def test_primitive_is_never_an_instance(self, conditions, registry):
        five, state = registry.new_literal(ProgramState.empty(), LiteralKind.NUMBER, 5)
        for constructor in ("Number", "Object", "UnknownConstructor"):
            evaluation = conditions.instance_of(state, five, constructor)
            assert evaluation.decision is Decision.ALWAYS_FALSE
            assert evaluation.true_state is None

    def test_function_is_a_function(self, conditions, registry):
        fun, state = registry.new_function(ProgramState.empty())
        assert conditions.instance_of(state, fun, "Function").decision is Decision.ALWAYS_TRUE
        assert conditions.instance_of(state, fun, "Object").decision is Decision.ALWAYS_TRUE

    def test_unknown_constructor_forks_and_narrows_nullness(self, conditions, bound, x):
        evaluation = conditions.instance_of(bound, x, "UnknownConstructor")
        assert evaluation.decision is Decision.UNDECIDABLE
        assert evaluation.true_state.constraint_of(x) == NOT_NULL
        assert evaluation.false_state.constraint_of(x).is_top

    def test_recognized_constructor_narrows_kind(self, conditions, bound, x):
        evaluation = conditions.instance_of(bound, x, "Array")
        assert evaluation.decision is Decision.UNDECIDABLE
        assert evaluation.true_state.constraint_of(x) == ARRAY
        narrowed = evaluation.false_state.constraint_of(x)
        assert narrowed.is_incompatible_with(ARRAY)
        assert conditions.instance_of(evaluation.false_state, x, "Array").decision is (
            Decision.ALWAYS_FALSE
        )

    def test_object_instanceof_object(self, conditions, bound, x):
        state = conditions.instance_of(bound, x, "Object").true_state
        assert state.constraint_of(x) == OBJECT


class TestRelational:
    def test_fork_records_the_relation(self, conditions, registry, bound, x):
        y = registry.new_unknown(label="y")
        evaluation = conditions.relational(bound.bind("y", y), ">", x, y)
        assert evaluation.decision is Decision.UNDECIDABLE
        assert Relation(">", x, y) in evaluation.true_state.relations
        assert Relation(">", x, y, holds=False) in evaluation.false_state.relations

    def test_decided_from_recorded_relations(self, conditions, registry, bound, x):
        y = registry.new_unknown(label="y")
        state = bound.bind("y", y).with_relation(Relation(">", x, y))
        assert conditions.relational(state, "<", x, y).decision is Decision.ALWAYS_FALSE
        assert conditions.relational(state, ">=", x, y).decision is Decision.ALWAYS_TRUE

    def test_strict_comparison_with_itself(self, conditions, bound, x):
        assert conditions.relational(bound, "<", x, x).decision is Decision.ALWAYS_FALSE

    def test_rejects_equality_operators(self, conditions, bound, x):
        with pytest.raises(ValueError):
            conditions.relational(bound, "==", x, x)


class TestEquality:
    def test_incompatible_kinds_are_never_strictly_equal(self, conditions, registry, bound, x):
        y = registry.new_unknown()
        state = bound.bind("y", y).constrain(x, STRING).constrain(y, NUMBER)
        assert conditions.equality(state, "===", x, y).decision is Decision.ALWAYS_FALSE
        assert conditions.equality(state, "!==", x, y).decision is Decision.ALWAYS_TRUE

    def test_null_strictly_equals_null(self, conditions, registry):
        state = ProgramState.empty()
        a, state = registry.new_literal(state, LiteralKind.NULL)
        b, state = registry.new_literal(state, LiteralKind.NULL)
        assert conditions.equality(state, "===", a, b).decision is Decision.ALWAYS_TRUE

    def test_strict_true_branch_merges_values(self, conditions, registry, bound, x):
        y = registry.new_unknown()
        state = bound.bind("y", y).constrain(y, TRUTHY)
        evaluation = conditions.equality(state, "===", x, y)
        assert evaluation.decision is Decision.UNDECIDABLE
        assert evaluation.true_state.constraint_of(x) == TRUTHY
        narrowed = evaluation.true_state.constrain(x, NUMBER)
        assert narrowed.constraint_of(y) == NUMBER.meet(TRUTHY)

    def test_strict_comparison_with_a_literal_keeps_the_literal(self, conditions, registry, bound, x):
        zero, state = registry.new_literal(bound, LiteralKind.NUMBER, 0)
        evaluation = conditions.equality(state, "===", x, zero)
        assert evaluation.true_state.resolve(x) == zero
        assert evaluation.true_state.constraint_of(x) == ZERO

    def test_strict_false_branch_excludes_null(self, conditions, registry, bound, x):
        null, state = registry.new_literal(bound, LiteralKind.NULL)
        evaluation = conditions.equality(state, "===", x, null)
        assert evaluation.true_state.constraint_of(x) == NULL
        excluded = evaluation.false_state.constraint_of(x)
        assert not excluded.nullness & Nullness.NULL
        assert excluded.nullness & Nullness.UNDEFINED

    def test_loose_equality_with_null(self, conditions, registry, bound, x):
        null, state = registry.new_literal(bound, LiteralKind.NULL)
        evaluation = conditions.equality(state, "==", x, null)
        assert evaluation.true_state.constraint_of(x) == NULLY
        assert evaluation.false_state.constraint_of(x) == NOT_NULL
        negated = conditions.equality(state, "!=", x, null)
        assert negated.true_state.constraint_of(x) == NOT_NULL

    def test_loose_nullish_operands(self, conditions, registry):
        state = ProgramState.empty()
        null, state = registry.new_literal(state, LiteralKind.NULL)
        undefined, state = registry.new_literal(state, LiteralKind.UNDEFINED)
        zero, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        assert conditions.equality(state, "==", null, undefined).decision is Decision.ALWAYS_TRUE
        assert conditions.equality(state, "==", null, zero).decision is Decision.ALWAYS_FALSE

    def test_nan_is_not_equal_to_itself(self, conditions, registry):
        not_a_number, state = registry.new_literal(ProgramState.empty(), LiteralKind.NUMBER, math.nan)
        evaluation = conditions.equality(state, "===", not_a_number, not_a_number)
        assert evaluation.decision is Decision.UNDECIDABLE

    def test_same_value(self, conditions, bound, x):
        state = bound.constrain(x, STRING)
        assert conditions.equality(state, "===", x, x).decision is Decision.ALWAYS_TRUE
        assert conditions.equality(state, "==", x, x).decision is Decision.ALWAYS_TRUE

    def test_distinct_literals_are_never_strictly_equal(self, conditions, registry):
        state = ProgramState.empty()
        abc, state = registry.new_literal(state, LiteralKind.STRING, "abc")
        abd, state = registry.new_literal(state, LiteralKind.STRING, "abd")
        again, state = registry.new_literal(state, LiteralKind.STRING, "abc")
        assert conditions.equality(state, "===", abc, abd).decision is Decision.ALWAYS_FALSE
        assert conditions.equality(state, "!==", abc, abd).decision is Decision.ALWAYS_TRUE
        assert conditions.equality(state, "===", abc, again).decision is Decision.ALWAYS_TRUE

    def test_loose_equality_does_not_order_nullish_operands(self, conditions, registry, bound, x):
        y = registry.new_unknown(label="y")
        evaluation = conditions.equality(bound.bind("y", y), "==", x, y)
        assert evaluation.decision is Decision.UNDECIDABLE
        equal = evaluation.true_state
        assert conditions.relational(equal, ">=", x, y).decision is Decision.UNDECIDABLE
        assert conditions.relational(equal, "<=", x, y).decision is Decision.UNDECIDABLE
        present = equal.constrain(x, NOT_NULL).constrain(y, NOT_NULL)
        assert conditions.relational(present, ">=", x, y).decision is Decision.ALWAYS_TRUE


class TestTypeof:
    def test_narrows_both_branches(self, conditions, bound, x):
        evaluation = conditions.typeof(bound, x, "==", "string")
        assert evaluation.decision is Decision.UNDECIDABLE
        assert evaluation.true_state.constraint_of(x) == STRING
        assert evaluation.false_state.constraint_of(x).is_incompatible_with(STRING)

    def test_known_kind_decides(self, conditions, bound, x):
        state = bound.constrain(x, STRING)
        assert conditions.typeof(state, x, "===", "string").decision is Decision.ALWAYS_TRUE
        assert conditions.typeof(state, x, "===", "number").decision is Decision.ALWAYS_FALSE
        assert conditions.typeof(state, x, "!=", "number").decision is Decision.ALWAYS_TRUE

    def test_object_tag_includes_null(self, conditions, registry):
        null, state = registry.new_literal(ProgramState.empty(), LiteralKind.NULL)
        assert conditions.typeof(state, null, "==", "object").decision is Decision.ALWAYS_TRUE

    def test_unmodeled_tag_forks_without_narrowing(self, conditions, bound, x):
        evaluation = conditions.typeof(bound, x, "==", "symbol")
        assert evaluation.decision is Decision.UNDECIDABLE
        assert evaluation.true_state is bound
        assert evaluation.false_state is bound

    def test_unknown_tag_is_always_false(self, conditions, bound, x):
        assert conditions.typeof(bound, x, "==", "strnig").decision is Decision.ALWAYS_FALSE


class TestTruthiness:
    def test_fork(self, conditions, bound, x):
        evaluation = conditions.truthiness(bound, x)
        assert evaluation.true_state.constraint_of(x) == TRUTHY
        assert evaluation.true_state.constraint_of(x).is_stricter_or_equal_to(NOT_NULL)
        assert evaluation.false_state.constraint_of(x).truthiness == Truthiness.FALSY

    def test_known_truthiness_decides(self, conditions, registry):
        fun, state = registry.new_function(ProgramState.empty())
        assert conditions.truthiness(state, fun).decision is Decision.ALWAYS_TRUE
        zero, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        assert conditions.truthiness(state, zero).decision is Decision.ALWAYS_FALSE

    def test_derived_boolean_narrows_its_operand(self, conditions, registry, bound, x):
        predicate = Predicate(PredicateKind.INSTANCE_OF, (x,), argument="Function")
        flag, state = registry.new_derived(bound, predicate)
        evaluation = conditions.truthiness(state, flag)
        assert evaluation.true_state.constraint_of(x) == FUNCTION
        assert evaluation.true_state.constraint_of(flag) == TRUE
        assert evaluation.false_state.constraint_of(flag) == FALSE
        assert not evaluation.false_state.constraint_of(x).kind & TypeKind.FUNCTION

    def test_negated_predicate(self, conditions, bound, x):
        predicate = Predicate(PredicateKind.TRUTHINESS, (x,), negated=True)
        evaluation = conditions.evaluate(bound, predicate)
        assert evaluation.true_state.constraint_of(x).truthiness == Truthiness.FALSY


class TestHelpers:
    def test_may_be_nan(self):
        assert may_be_nan(NUMBER)
        assert not may_be_nan(ZERO)
        assert not may_be_nan(STRING)

    def test_is_only_nully(self):
        assert is_only_nully(NULL)
        assert not is_only_nully(NOT_NULL)
        assert not is_only_nully(NULL.meet(NOT_NULL))
