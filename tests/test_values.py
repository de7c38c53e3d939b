"""Tests for symbolic values, literals and the value registry."""

import math

import pytest

from pathspectre.core.constraints import (
    ARRAY,
    BOOLEAN,
    FALSE,
    FUNCTION,
    NULL,
    OBJECT,
    TRUE,
    UNDEFINED,
    ZERO,
    Exactness,
    Truthiness,
    TypeKind,
)
from pathspectre.core.errors import InvariantViolation
from pathspectre.core.values import (
    Literal,
    LiteralKind,
    Predicate,
    PredicateKind,
    SymbolicValue,
    ValueOrigin,
    ValueRegistry,
)


class TestLiteral:
    @pytest.mark.parametrize(
        "kind, value, expected",
        [
            (LiteralKind.NULL, None, NULL),
            (LiteralKind.UNDEFINED, None, UNDEFINED),
            (LiteralKind.BOOLEAN, True, TRUE),
            (LiteralKind.BOOLEAN, False, FALSE),
            (LiteralKind.NUMBER, 0, ZERO),
        ],
    )
    def test_constraint(self, kind, value, expected):
        assert Literal(kind, value).constraint() == expected

    def test_non_zero_number_is_truthy(self):
        constraint = Literal(LiteralKind.NUMBER, 5).constraint()
        assert constraint.kind == TypeKind.NUMBER
        assert constraint.truthiness == Truthiness.TRUTHY
        assert constraint.exactness == Exactness.NON_ZERO

    def test_nan_is_falsy_but_not_zero(self):
        literal = Literal(LiteralKind.NUMBER, math.nan)
        assert literal.is_nan
        constraint = literal.constraint()
        assert constraint.truthiness == Truthiness.FALSY
        assert constraint.exactness == Exactness.NON_ZERO
        assert str(literal) == "NaN"

    def test_nan_literals_share_a_key(self):
        assert Literal(LiteralKind.NUMBER, math.nan).key == Literal(LiteralKind.NUMBER, float("nan")).key

    def test_strings(self):
        assert Literal(LiteralKind.STRING, "").constraint().truthiness == Truthiness.FALSY
        assert Literal(LiteralKind.STRING, "s").constraint().truthiness == Truthiness.TRUTHY
        assert str(Literal(LiteralKind.STRING, "s")) == "'s'"


class TestSymbolicValue:
    def test_identity_is_the_id(self):
        a = SymbolicValue(1, ValueOrigin.CALL, "a")
        b = SymbolicValue(1, ValueOrigin.PARAMETER, "b")
        assert a == b
        assert hash(a) == hash(b)
        assert a != SymbolicValue(2, ValueOrigin.CALL, "a")

    def test_str(self):
        assert str(SymbolicValue(3, ValueOrigin.CALL)) == "SV_3"
        assert str(SymbolicValue(3, ValueOrigin.CALL, "foo()")) == "SV_3(foo())"


class TestValueRegistry:
    def test_ids_are_never_reused(self, registry):
        ids = {registry.new_unknown().id for _ in range(10)}
        assert len(ids) == 10
        assert len(registry) == 10

    def test_new_unknown_has_no_constraint(self, registry, state):
        value = registry.new_unknown(ValueOrigin.PARAMETER, "p")
        assert value.origin is ValueOrigin.PARAMETER
        assert state.constraint_of(value).is_top

    def test_new_literal_installs_its_constraint(self, registry, state):
        value, state = registry.new_literal(state, LiteralKind.NUMBER, 0)
        assert value.is_literal
        assert state.constraint_of(value) == ZERO

    def test_new_object_and_function(self, registry, state):
        obj, state = registry.new_object(state)
        arr, state = registry.new_object(state, TypeKind.ARRAY, "[]", ValueOrigin.COMPOSITE)
        fun, state = registry.new_function(state, "f")
        assert state.constraint_of(obj) == OBJECT
        assert state.constraint_of(arr) == ARRAY
        assert state.constraint_of(fun) == FUNCTION
        assert arr.origin is ValueOrigin.COMPOSITE

    def test_new_derived_is_boolean(self, registry, state):
        operand = registry.new_unknown()
        predicate = Predicate(PredicateKind.TRUTHINESS, (operand,))
        derived, state = registry.new_derived(state, predicate)
        assert derived.is_derived
        assert derived.origin is ValueOrigin.DERIVED
        assert state.constraint_of(derived) == BOOLEAN

    def test_new_derived_rejects_foreign_operands(self, registry, state):
        foreign = ValueRegistry("other").new_unknown()
        with pytest.raises(InvariantViolation):
            registry.new_derived(state, Predicate(PredicateKind.TRUTHINESS, (foreign,)))

    def test_alias_binds_registered_values(self, registry, state):
        value = registry.new_unknown()
        state = registry.alias(state, "x", value)
        assert state.value_of("x") is value

    def test_alias_rejects_foreign_values(self, registry, state):
        with pytest.raises(InvariantViolation):
            registry.alias(state, "x", SymbolicValue(1, ValueOrigin.CALL))

    def test_validate(self, registry, state):
        state = state.bind("x", registry.new_unknown())
        registry.validate(state)
        state = state.bind("y", ValueRegistry("other").new_unknown())
        with pytest.raises(InvariantViolation):
            registry.validate(state)

    def test_invariant_violation_is_an_assertion_error(self):
        assert issubclass(InvariantViolation, AssertionError)


class TestPredicate:
    def test_negate_round_trips(self, registry):
        value = registry.new_unknown(label="x")
        predicate = Predicate(PredicateKind.INSTANCE_OF, (value,), argument="Foo")
        assert predicate.negate().negated
        assert predicate.negate().negate() == predicate
        assert str(predicate) == "SV_1(x) instanceof Foo"
        assert str(predicate.negate()) == "!(SV_1(x) instanceof Foo)"
