"""Tests for the immutable program state."""

import pytest

from pathspectre.core.constraints import (
    ANY_VALUE,
    NOT_NULL,
    NULL,
    NUMBER,
    TRUTHY,
    ZERO,
    Nullness,
)
from pathspectre.core.state import ProgramState, Relation
from pathspectre.core.values import LiteralKind, Predicate, PredicateKind, ValueRegistry


class TestBindings:
    def test_updates_do_not_mutate(self, registry, state):
        value = registry.new_unknown()
        bound = state.bind("x", value)
        assert state.value_of("x") is None
        assert bound.value_of("x") is value

    def test_bind_same_value_returns_same_state(self, registry, state):
        value = registry.new_unknown()
        bound = state.bind("x", value)
        assert bound.bind("x", value) is bound

    def test_unbind_and_retain(self, registry, state):
        state = state.bind("x", registry.new_unknown()).bind("y", registry.new_unknown())
        assert state.unbind("x").variables() == ["y"]
        assert state.retain({"y", "z"}).variables() == ["y"]
        assert state.retain({"x", "y"}) is state

    def test_constraint_of_variable(self, registry, state):
        value, state = registry.new_literal(state, LiteralKind.NULL)
        state = state.bind("x", value)
        assert state.constraint_of_variable("x") == NULL
        assert state.constraint_of_variable("missing") is None


class TestConstraints:
    def test_with_constraint_narrows(self, registry, state):
        value = registry.new_unknown()
        narrowed, feasible = state.with_constraint(value, NOT_NULL)
        assert feasible
        assert narrowed.constraint_of(value) == NOT_NULL
        assert state.constraint_of(value) == ANY_VALUE

    def test_infeasible_narrowing(self, registry, state):
        value, state = registry.new_literal(state, LiteralKind.NULL)
        unchanged, feasible = state.with_constraint(value, NOT_NULL)
        assert not feasible
        assert unchanged is state
        assert state.constrain(value, NOT_NULL) is None

    def test_lattice_element_is_accepted(self, registry, state):
        value = registry.new_unknown()
        state = state.constrain(value, Nullness.NULL)
        assert state.constraint_of(value) == NULL


class TestMergeValues:
    def test_constraints_are_intersected(self, registry, state):
        a, b = registry.new_unknown(), registry.new_unknown()
        state = state.constrain(a, NUMBER).constrain(b, TRUTHY)
        merged = state.merge_values(a, b)
        assert merged.resolve(b) == a
        assert merged.constraint_of(b) == NUMBER.meet(TRUTHY)

    def test_narrowing_one_is_seen_through_the_other(self, registry, state):
        a, b = registry.new_unknown(), registry.new_unknown()
        state = state.bind("a", a).bind("b", b).merge_values(a, b)
        state = state.constrain(a, TRUTHY)
        assert state.constraint_of_variable("b") == TRUTHY

    def test_contradicting_values_cannot_merge(self, registry, state):
        a, state = registry.new_literal(state, LiteralKind.NULL)
        b, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        assert state.merge_values(a, b) is None

    def test_merge_is_transitive(self, registry, state):
        a, b, c = (registry.new_unknown() for _ in range(3))
        state = state.merge_values(a, b).merge_values(a, c)
        assert state.resolve(b) == state.resolve(c) == a


class TestRelations:
    def test_relations_between_orients_the_relation(self, registry, state):
        a, b = registry.new_unknown(), registry.new_unknown()
        state = state.with_relation(Relation(">", a, b))
        assert state.relations_between(a, b) == [Relation(">", a, b)]
        assert state.relations_between(b, a) == [Relation("<", b, a)]

    def test_unknown_operator(self, registry):
        a = registry.new_unknown()
        with pytest.raises(ValueError):
            Relation("!=", a, a)

    def test_negate(self, registry):
        a, b = registry.new_unknown(), registry.new_unknown()
        relation = Relation("<=", a, b)
        assert not relation.negate().holds
        assert str(relation.negate()) == f"!({a} <= {b})"


class TestGarbageCollection:
    def test_dead_constraints_are_dropped(self, registry, state):
        kept, state = registry.new_literal(state, LiteralKind.NULL)
        dead, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        state = state.bind("x", kept)
        collected = state.collect_garbage()
        assert dead not in collected.constraints
        assert collected.constraint_of(kept) == NULL

    def test_relation_with_dead_endpoint_is_dropped(self, registry, state):
        a, b = registry.new_unknown(), registry.new_unknown()
        state = state.bind("a", a).with_relation(Relation(">", a, b))
        assert state.collect_garbage().relations == frozenset()

    def test_relation_with_literal_endpoint_survives(self, registry, state):
        a = registry.new_unknown()
        zero, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        state = state.bind("a", a).with_relation(Relation(">", a, zero))
        collected = state.collect_garbage()
        assert collected.relations == frozenset({Relation(">", a, zero)})
        assert collected.constraint_of(zero) == ZERO

    def test_derived_operands_stay_reachable(self, registry, state):
        operand = registry.new_unknown()
        state = state.constrain(operand, NOT_NULL)
        derived, state = registry.new_derived(state, Predicate(PredicateKind.TRUTHINESS, (operand,)))
        collected = state.bind("flag", derived).collect_garbage()
        assert collected.constraint_of(operand) == NOT_NULL

    def test_unchanged_state_is_returned(self, registry, state):
        state = state.bind("x", registry.new_unknown())
        assert state.collect_garbage() is state


class TestCanonicalEquality:
    def _state(self, registry):
        state = ProgramState.empty()
        a = registry.new_unknown()
        zero, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        state = state.bind("a", a).bind("x", zero)
        return state.with_relation(Relation(">", a, zero))

    def test_identity_numbers_do_not_matter(self):
        first = self._state(ValueRegistry("one"))
        other = ValueRegistry("two")
        for _ in range(5):
            other.new_unknown()
        second = self._state(other)
        assert first == second
        assert hash(first) == hash(second)

    def test_mirrored_relations_are_equal(self, registry):
        a, b = registry.new_unknown(), registry.new_unknown()
        state = ProgramState.empty().bind("a", a).bind("b", b)
        assert state.with_relation(Relation(">", a, b)) == state.with_relation(Relation("<", b, a))

    def test_different_constraints_differ(self, registry):
        value = registry.new_unknown()
        state = ProgramState.empty().bind("x", value)
        assert state != state.constrain(value, NULL)

    def test_dead_bookkeeping_is_ignored(self, registry):
        value = registry.new_unknown()
        state = ProgramState.empty().bind("x", value)
        _, noisy = registry.new_literal(state, LiteralKind.NUMBER, 3)
        assert noisy == state

    def test_describe(self, registry):
        zero, state = registry.new_literal(ProgramState.empty(), LiteralKind.NUMBER, 0)
        state = state.bind("x", zero).bind("y", registry.new_unknown())
        assert state.describe() == {"x": "ZERO", "y": "ANY_VALUE"}
        assert repr(state) == "ProgramState(x=ZERO, y=ANY_VALUE)"
