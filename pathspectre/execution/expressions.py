"""Evaluation of expressions to symbolic values."""

from __future__ import annotations

from pathspectre.analysis.cfg import (
    ArrayLiteral,
    Call,
    Compare,
    Const,
    Expression,
    FunctionExpr,
    InstanceOf,
    New,
    Not,
    ObjectLiteral,
    Truthy,
    TypeOf,
    Var,
)
from pathspectre.core.constraints import Decision, TypeKind, instance_kinds
from pathspectre.core.state import ProgramState
from pathspectre.core.values import (
    RELATIONAL_OPERATORS,
    LiteralKind,
    Predicate,
    PredicateKind,
    SymbolicValue,
    ValueOrigin,
    ValueRegistry,
)
from pathspectre.execution.conditions import ConditionEvaluator


class ExpressionEvaluator:
    """Turns expression trees into symbolic values.
    Evaluation never forks: a condition used as a value becomes a literal
    boolean when its outcome is known and a derived boolean otherwise.
    """

    def __init__(self, registry: ValueRegistry, conditions: ConditionEvaluator):
        self.registry = registry
        self.conditions = conditions

    def evaluate(
        self, state: ProgramState, expression: Expression
    ) -> tuple[SymbolicValue, ProgramState]:
        if isinstance(expression, Var):
            return self.read(state, expression.name)
        if isinstance(expression, Const):
            return self.registry.new_literal(state, expression.kind, expression.value)
        if isinstance(expression, Call):
            state = self._evaluate_all(state, expression.arguments)
            return self.registry.new_unknown(ValueOrigin.CALL, f"{expression.callee}()"), state
        if isinstance(expression, New):
            state = self._evaluate_all(state, expression.arguments)
            kinds = instance_kinds(expression.constructor) or TypeKind.OBJECT
            return self.registry.new_object(state, kinds, f"new {expression.constructor}")
        if isinstance(expression, FunctionExpr):
            return self.registry.new_function(state, expression.name or "function")
        if isinstance(expression, ArrayLiteral):
            state = self._evaluate_all(state, expression.elements)
            return self.registry.new_object(state, TypeKind.ARRAY, "[]", ValueOrigin.COMPOSITE)
        if isinstance(expression, ObjectLiteral):
            return self.registry.new_object(
                state, TypeKind.OTHER_OBJECT, "{}", ValueOrigin.COMPOSITE
            )
        if isinstance(expression, (InstanceOf, Compare, TypeOf, Truthy, Not)):
            return self.condition_value(state, expression)
        raise TypeError(f"Cannot evaluate {expression!r}")

    def _evaluate_all(self, state: ProgramState, expressions: tuple[Expression, ...]) -> ProgramState:
        for expression in expressions:
            _, state = self.evaluate(state, expression)
        return state

    def read(self, state: ProgramState, name: str) -> tuple[SymbolicValue, ProgramState]:
        """Value of a variable; an unbound name gets a fresh global unknown."""
        value = state.value_of(name)
        if value is None:
            value = self.registry.new_unknown(ValueOrigin.GLOBAL, name)
            state = state.bind(name, value)
        return value, state

    def predicate_of(
        self, state: ProgramState, condition: Expression
    ) -> tuple[Predicate, ProgramState]:
        """Evaluate a condition's operands and build its predicate."""
        if isinstance(condition, Not):
            predicate, state = self.predicate_of(state, condition.operand)
            return predicate.negate(), state
        if isinstance(condition, InstanceOf):
            value, state = self.evaluate(state, condition.operand)
            return (
                Predicate(PredicateKind.INSTANCE_OF, (value,), argument=condition.constructor),
                state,
            )
        if isinstance(condition, Compare):
            left, state = self.evaluate(state, condition.left)
            right, state = self.evaluate(state, condition.right)
            kind = (
                PredicateKind.RELATIONAL
                if condition.operator in RELATIONAL_OPERATORS
                else PredicateKind.EQUALITY
            )
            return Predicate(kind, (left, right), operator=condition.operator), state
        if isinstance(condition, TypeOf):
            value, state = self.evaluate(state, condition.operand)
            return (
                Predicate(
                    PredicateKind.TYPEOF, (value,), operator=condition.operator, argument=condition.tag
                ),
                state,
            )
        operand = condition.operand if isinstance(condition, Truthy) else condition
        value, state = self.evaluate(state, operand)
        return Predicate(PredicateKind.TRUTHINESS, (value,)), state

    def condition_value(
        self, state: ProgramState, condition: Expression
    ) -> tuple[SymbolicValue, ProgramState]:
        """Boolean value of a condition used in value position."""
        predicate, state = self.predicate_of(state, condition)
        decision = self.conditions.decide(state, predicate)
        if decision is Decision.UNDECIDABLE:
            return self.registry.new_derived(state, predicate)
        return self.registry.new_literal(
            state, LiteralKind.BOOLEAN, decision is Decision.ALWAYS_TRUE
        )


__all__ = ["ExpressionEvaluator"]
