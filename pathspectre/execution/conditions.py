"""Transfer functions for boolean tests.
Each test is evaluated against a program state and yields an ``Evaluation``:
the statically known outcome, if any, and the narrowed successor state for
each feasible outcome. A narrowing that turns out infeasible prunes that
successor, and an evaluation left with a single successor is reported as
deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass

from pathspectre.core.constraints import (
    FALSE,
    FALSY,
    NOT_NULL,
    NULL,
    NULLY,
    TRUE,
    TRUTHY,
    UNDEFINED,
    UNMODELED_TYPEOF_TAGS,
    Constraint,
    Decision,
    Exactness,
    Nullness,
    Truthiness,
    TypeKind,
    instance_kinds,
    is_subtype_compatible,
    typeof_constraint,
)
from pathspectre.core.solver import RelationSolver
from pathspectre.core.state import ProgramState, Relation
from pathspectre.core.values import (
    EQUALITY_OPERATORS,
    RELATIONAL_OPERATORS,
    Predicate,
    PredicateKind,
    SymbolicValue,
)

NOT_NULL_VALUE = Constraint(nullness=Nullness.UNDEFINED | Nullness.PRESENT)
NOT_UNDEFINED_VALUE = Constraint(nullness=Nullness.NULL | Nullness.PRESENT)
NOT_ZERO_VALUE = Constraint(exactness=Exactness.NON_ZERO)


@dataclass(frozen=True)
class Evaluation:
    """Outcome of evaluating a test in one state.
    Attributes:
        decision: Statically known outcome, or UNDECIDABLE.
        true_state: Successor when the test holds, None if infeasible.
        false_state: Successor when the test fails, None if infeasible.
        pruned: Number of successors dropped because narrowing was infeasible.
    """

    decision: Decision
    true_state: ProgramState | None
    false_state: ProgramState | None
    pruned: int = 0

    @classmethod
    def fork(
        cls, true_state: ProgramState | None, false_state: ProgramState | None
    ) -> Evaluation:
        """Both outcomes possible a priori; drop the infeasible ones."""
        pruned = (true_state is None) + (false_state is None)
        if true_state is not None and false_state is None:
            return cls(Decision.ALWAYS_TRUE, true_state, None, pruned)
        if true_state is None and false_state is not None:
            return cls(Decision.ALWAYS_FALSE, None, false_state, pruned)
        return cls(Decision.UNDECIDABLE, true_state, false_state, pruned)

    @classmethod
    def decided(
        cls, decision: Decision, state: ProgramState, narrowed: ProgramState | None = None
    ) -> Evaluation:
        """A known outcome; ``narrowed`` refines the surviving state if feasible."""
        successor = narrowed if narrowed is not None else state
        if decision is Decision.ALWAYS_TRUE:
            return cls(decision, successor, None)
        if decision is Decision.ALWAYS_FALSE:
            return cls(decision, None, successor)
        raise ValueError("decided() needs a known decision")

    def negate(self) -> Evaluation:
        return Evaluation(self.decision.negate(), self.false_state, self.true_state, self.pruned)

    def successors(self) -> list[tuple[bool, ProgramState]]:
        result = []
        if self.true_state is not None:
            result.append((True, self.true_state))
        if self.false_state is not None:
            result.append((False, self.false_state))
        return result

    def constrain_result(self, value: SymbolicValue) -> Evaluation:
        """Also narrow a derived boolean ``value`` to TRUE/FALSE per outcome."""
        true_state = self.true_state.constrain(value, TRUE) if self.true_state else None
        false_state = self.false_state.constrain(value, FALSE) if self.false_state else None
        if self.decision.is_known:
            return Evaluation(self.decision, true_state, false_state, self.pruned)
        evaluation = Evaluation.fork(true_state, false_state)
        return Evaluation(
            evaluation.decision,
            evaluation.true_state,
            evaluation.false_state,
            self.pruned + evaluation.pruned,
        )


def may_be_nan(constraint: Constraint) -> bool:
    return bool(
        constraint.can_be_present()
        and constraint.kind & TypeKind.NUMBER
        and constraint.truthiness & Truthiness.FALSY
        and constraint.exactness & Exactness.NON_ZERO
    )


def is_only_nully(constraint: Constraint) -> bool:
    return not constraint.is_bottom and not constraint.can_be_present()


class ConditionEvaluator:
    """Evaluates predicates over symbolic values.
    Relational and equality facts that constraints cannot settle are handed
    to the ``RelationSolver``.
    """

    def __init__(self, solver: RelationSolver | None = None):
        self.solver = solver or RelationSolver()

    def evaluate(self, state: ProgramState, predicate: Predicate) -> Evaluation:
        """Evaluate a predicate, honoring its negation flag."""
        if predicate.kind is PredicateKind.INSTANCE_OF:
            evaluation = self.instance_of(state, predicate.operands[0], predicate.argument or "")
        elif predicate.kind is PredicateKind.RELATIONAL:
            evaluation = self.relational(state, predicate.operator or "", *predicate.operands)
        elif predicate.kind is PredicateKind.EQUALITY:
            evaluation = self.equality(state, predicate.operator or "", *predicate.operands)
        elif predicate.kind is PredicateKind.TYPEOF:
            evaluation = self.typeof(
                state, predicate.operands[0], predicate.operator or "==", predicate.argument or ""
            )
        else:
            evaluation = self.truthiness(state, predicate.operands[0])
        return evaluation.negate() if predicate.negated else evaluation

    def decide(self, state: ProgramState, predicate: Predicate) -> Decision:
        return self.evaluate(state, predicate).decision

    def instance_of(self, state: ProgramState, value: SymbolicValue, constructor: str) -> Evaluation:
        """``value instanceof constructor``."""
        decision = is_subtype_compatible(state.constraint_of(value), constructor)
        kinds = instance_kinds(constructor)
        if kinds is None:
            when_true = NOT_NULL
            when_false = None
        else:
            when_true = Constraint(Nullness.PRESENT, kinds)
            when_false = Constraint(kind=~kinds & TypeKind.UNKNOWN)
        if decision is Decision.ALWAYS_TRUE:
            return Evaluation.decided(decision, state, state.constrain(value, when_true))
        if decision is Decision.ALWAYS_FALSE:
            narrowed = state.constrain(value, when_false) if when_false is not None else None
            return Evaluation.decided(decision, state, narrowed)
        false_state = state if when_false is None else state.constrain(value, when_false)
        return Evaluation.fork(state.constrain(value, when_true), false_state)

    def relational(
        self, state: ProgramState, operator: str, left: SymbolicValue, right: SymbolicValue
    ) -> Evaluation:
        """``left < right`` and friends."""
        if operator not in RELATIONAL_OPERATORS:
            raise ValueError(f"Not a relational operator: {operator}")
        if state.resolve(left) == state.resolve(right) and operator in ("<", ">"):
            return Evaluation.decided(Decision.ALWAYS_FALSE, state)
        decision = self.solver.decide(state, operator, left, right)
        if decision.is_known:
            return Evaluation.decided(decision, state)
        relation = Relation(operator, left, right)
        return Evaluation.fork(
            state.with_relation(relation), state.with_relation(relation.negate())
        )

    def equality(
        self, state: ProgramState, operator: str, left: SymbolicValue, right: SymbolicValue
    ) -> Evaluation:
        """``==, !=, ===, !==``."""
        if operator not in EQUALITY_OPERATORS:
            raise ValueError(f"Not an equality operator: {operator}")
        if operator == "!=":
            return self.equality(state, "==", left, right).negate()
        if operator == "!==":
            return self.equality(state, "===", left, right).negate()
        if operator == "===":
            return self._strict_equality(state, left, right)
        return self._loose_equality(state, left, right)

    def _strict_equality(
        self, state: ProgramState, left: SymbolicValue, right: SymbolicValue
    ) -> Evaluation:
        a, b = state.constraint_of(left), state.constraint_of(right)
        if state.resolve(left) == state.resolve(right):
            if not may_be_nan(a):
                return Evaluation.decided(Decision.ALWAYS_TRUE, state)
            return Evaluation.fork(state, state)
        left, right = state.resolve(left), state.resolve(right)
        if left.is_literal and right.is_literal:
            same = not left.literal.is_nan and left.literal.key == right.literal.key
            return Evaluation.decided(
                Decision.ALWAYS_TRUE if same else Decision.ALWAYS_FALSE, state
            )
        if a.is_incompatible_with(b):
            return Evaluation.decided(Decision.ALWAYS_FALSE, state)
        if (a == NULL and b == NULL) or (a == UNDEFINED and b == UNDEFINED):
            return Evaluation.decided(Decision.ALWAYS_TRUE, state)
        decision = self.solver.decide(state, "===", left, right)
        if decision.is_known:
            return Evaluation.decided(decision, state)
        keep, drop = (right, left) if right.is_literal and not left.is_literal else (left, right)
        true_state = state.merge_values(keep, drop)
        false_state: ProgramState | None = state
        for known, other in ((b, left), (a, right)):
            if known == NULL:
                false_state = false_state and false_state.constrain(other, NOT_NULL_VALUE)
            elif known == UNDEFINED:
                false_state = false_state and false_state.constrain(other, NOT_UNDEFINED_VALUE)
            elif known.exactness == Exactness.ZERO:
                false_state = false_state and false_state.constrain(other, NOT_ZERO_VALUE)
        if false_state is not None:
            false_state = false_state.with_relation(Relation("===", left, right, holds=False))
        return Evaluation.fork(true_state, false_state)

    def _loose_equality(
        self, state: ProgramState, left: SymbolicValue, right: SymbolicValue
    ) -> Evaluation:
        a, b = state.constraint_of(left), state.constraint_of(right)
        a_nully, b_nully = is_only_nully(a), is_only_nully(b)
        if a_nully and b_nully:
            return Evaluation.decided(Decision.ALWAYS_TRUE, state)
        if (a_nully and not b.can_be_nully()) or (b_nully and not a.can_be_nully()):
            return Evaluation.decided(Decision.ALWAYS_FALSE, state)
        if a_nully or b_nully:
            other = right if a_nully else left
            return Evaluation.fork(state.constrain(other, NULLY), state.constrain(other, NOT_NULL))
        if state.resolve(left) == state.resolve(right) and not may_be_nan(a):
            return Evaluation.decided(Decision.ALWAYS_TRUE, state)
        decision = self.solver.decide(state, "==", left, right)
        if decision.is_known:
            return Evaluation.decided(decision, state)
        relation = Relation("==", left, right)
        return Evaluation.fork(
            state.with_relation(relation), state.with_relation(relation.negate())
        )

    def typeof(
        self, state: ProgramState, value: SymbolicValue, operator: str, tag: str
    ) -> Evaluation:
        """``typeof value <operator> tag``."""
        if operator not in EQUALITY_OPERATORS:
            raise ValueError(f"Not an equality operator: {operator}")
        evaluation = self._typeof_equals(state, value, tag)
        return evaluation if operator in ("==", "===") else evaluation.negate()

    def _typeof_equals(self, state: ProgramState, value: SymbolicValue, tag: str) -> Evaluation:
        if tag in UNMODELED_TYPEOF_TAGS:
            return Evaluation.fork(state, state)
        value_set = typeof_constraint(tag)
        if value_set is None:
            return Evaluation.decided(Decision.ALWAYS_FALSE, state)
        current = state.constraint_of(value)
        if current.is_incompatible_with(value_set):
            return Evaluation.decided(Decision.ALWAYS_FALSE, state)
        if current.is_stricter_or_equal_to(value_set):
            return Evaluation.decided(Decision.ALWAYS_TRUE, state)
        return Evaluation.fork(
            state.constrain(value, value_set), state.constrain(value, value_set.complement())
        )

    def truthiness(self, state: ProgramState, value: SymbolicValue) -> Evaluation:
        """``if (value)``; derived booleans re-evaluate their predicate."""
        truthiness = state.constraint_of(value).truthiness
        if truthiness == Truthiness.TRUTHY:
            return Evaluation.decided(Decision.ALWAYS_TRUE, state)
        if truthiness == Truthiness.FALSY:
            return Evaluation.decided(Decision.ALWAYS_FALSE, state)
        if value.predicate is not None:
            return self.evaluate(state, value.predicate).constrain_result(value)
        return Evaluation.fork(state.constrain(value, TRUTHY), state.constrain(value, FALSY))


__all__ = ["Evaluation", "ConditionEvaluator", "may_be_nan", "is_only_nully"]
