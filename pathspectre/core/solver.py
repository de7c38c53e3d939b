"""Z3-backed reasoning over recorded comparisons.
Relational and equality tests between symbolic values are decided from the
comparisons already taken on the path, zero-exactness, nullness and numeric
literal values. Each value is encoded as a real number together with a NaN
flag and a nullish flag, so that a comparison that did not hold does not
imply its converse. A nullish value that is not NaN is ``null`` and compares
as zero; ``undefined`` is NaN.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from fractions import Fraction

import z3

from pathspectre.core.constraints import Decision, Exactness, Nullness, TypeKind
from pathspectre.core.state import RELATION_OPERATORS, ProgramState, Relation
from pathspectre.core.values import LiteralKind, SymbolicValue


class RelationSolver:
    """Decides comparisons between values of one program state.
    Every solver owns its own ``z3.Context`` so that explorations running on
    different threads never share Z3 objects. Results are cached by the
    structure of the query.
    """

    def __init__(self, timeout_ms: int = 5000) -> None:
        """Initialize the solver.
        Args:
            timeout_ms: Per-check Z3 timeout in milliseconds.
        """
        self._ctx = z3.Context()
        self._timeout_ms = timeout_ms
        self._cache: dict[tuple, Decision] = {}
        self.query_count = 0
        self.cache_hits = 0

    def _number(self, value: SymbolicValue) -> z3.ArithRef:
        return z3.Real(f"v{value.id}", self._ctx)

    def _nan(self, value: SymbolicValue) -> z3.BoolRef:
        return z3.Bool(f"nan{value.id}", self._ctx)

    def _nully(self, value: SymbolicValue) -> z3.BoolRef:
        return z3.Bool(f"nully{value.id}", self._ctx)

    def encode(self, operator: str, left: SymbolicValue, right: SymbolicValue) -> z3.BoolRef:
        """Formula for ``left operator right`` holding."""
        a, b = self._number(left), self._number(right)
        if operator == "==":
            # null == undefined holds although undefined is NaN
            return z3.Or(
                z3.And(
                    z3.Not(self._nully(left)),
                    z3.Not(self._nully(right)),
                    z3.Not(self._nan(left)),
                    z3.Not(self._nan(right)),
                    a == b,
                ),
                z3.And(self._nully(left), self._nully(right)),
            )
        if operator == "<":
            comparison = a < b
        elif operator == "<=":
            comparison = a <= b
        elif operator == ">":
            comparison = a > b
        elif operator == ">=":
            comparison = a >= b
        elif operator == "===":
            comparison = z3.And(a == b, self._same_type(left, right))
        else:
            raise ValueError(f"Unsupported relation operator: {operator}")
        return z3.And(z3.Not(self._nan(left)), z3.Not(self._nan(right)), comparison)

    def _same_type(self, left: SymbolicValue, right: SymbolicValue) -> z3.BoolRef:
        """Atom for "both operands have the same runtime type"."""
        low, high = sorted((left.id, right.id))
        return z3.Bool(f"same{low}_{high}", self._ctx)

    def _value_facts(
        self, state: ProgramState, value: SymbolicValue
    ) -> tuple[list[z3.BoolRef], list[tuple]]:
        facts: list[z3.BoolRef] = []
        keys: list[tuple] = []
        literal = value.literal
        if literal is not None and literal.kind is LiteralKind.NUMBER:
            facts.append(z3.Not(self._nully(value)))
            if literal.is_nan:
                facts.append(self._nan(value))
                keys.append(("nan", value.id))
            elif isinstance(literal.value, (int, float)) and math.isfinite(literal.value):
                facts.append(z3.Not(self._nan(value)))
                exact = str(Fraction(literal.value))
                facts.append(self._number(value) == z3.RealVal(exact, self._ctx))
                keys.append(("literal", value.id, literal.key))
            return facts, keys
        constraint = state.constraint_of(value)
        if constraint.nullness == Nullness.PRESENT:
            facts.append(z3.Not(self._nully(value)))
            keys.append(("present", value.id))
        elif constraint.nullness == Nullness.NULL:
            facts.append(self._nully(value))
            facts.append(z3.Not(self._nan(value)))
            keys.append(("null", value.id))
        elif constraint.nullness == Nullness.UNDEFINED:
            facts.append(self._nully(value))
            facts.append(self._nan(value))
            keys.append(("undefined", value.id))
        elif constraint.nullness == Nullness.NULLY:
            facts.append(self._nully(value))
            keys.append(("nully", value.id))
        if constraint.exactness == Exactness.ZERO:
            facts.append(z3.Not(self._nan(value)))
            facts.append(self._number(value) == z3.RealVal(0, self._ctx))
            keys.append(("zero", value.id))
        return facts, keys

    def _null_is_zero(self, value: SymbolicValue) -> z3.BoolRef:
        return z3.Implies(
            z3.And(self._nully(value), z3.Not(self._nan(value))),
            self._number(value) == z3.RealVal(0, self._ctx),
        )

    def collect_facts(
        self, state: ProgramState, values: Iterable[SymbolicValue] = ()
    ) -> tuple[list[z3.BoolRef], tuple]:
        """Encode everything the state knows that bears on comparisons.
        Args:
            state: The program state.
            values: Extra values (e.g. query operands) whose exact numeric
                knowledge should be included.
        Returns:
            The Z3 facts and a hashable key describing them.
        """
        facts: list[z3.BoolRef] = []
        keys: list[tuple] = []
        involved: dict[SymbolicValue, None] = {}
        for relation in sorted(state.relations, key=_relation_order):
            left, right = state.resolve(relation.left), state.resolve(relation.right)
            formula = self.encode(relation.operator, left, right)
            facts.append(formula if relation.holds else z3.Not(formula))
            keys.append(("rel", relation.operator, left.id, right.id, relation.holds))
            involved[left] = None
            involved[right] = None
        for value in values:
            involved[state.resolve(value)] = None
        for value in involved:
            value_facts, value_keys = self._value_facts(state, value)
            facts.extend(value_facts)
            keys.extend(value_keys)
        if facts:
            facts.extend(self._null_is_zero(value) for value in involved)
        ordered = list(involved)
        for i, left in enumerate(ordered):
            for right in ordered[i + 1 :]:
                kind = _common_primitive(state, left, right)
                if kind is not None:
                    facts.append(self._same_type(left, right))
                    keys.append(("same", left.id, right.id, kind))
        return facts, tuple(keys)

    def decide(
        self,
        state: ProgramState,
        operator: str,
        left: SymbolicValue,
        right: SymbolicValue,
    ) -> Decision:
        """Decide ``left operator right`` in ``state``.
        Returns:
            ALWAYS_TRUE if the facts imply the comparison, ALWAYS_FALSE if
            they contradict it, UNDECIDABLE otherwise (or on solver timeout).
        """
        if operator not in RELATION_OPERATORS:
            raise ValueError(f"Unsupported relation operator: {operator}")
        left, right = state.resolve(left), state.resolve(right)
        facts, key = self.collect_facts(state, (left, right))
        if not facts:
            return Decision.UNDECIDABLE
        cache_key = (key, operator, left.id, right.id)
        cached = self._cache.get(cache_key)
        if cached is not None:
            self.cache_hits += 1
            return cached
        self.query_count += 1
        query = self.encode(operator, left, right)
        solver = z3.Solver(ctx=self._ctx)
        solver.set("timeout", self._timeout_ms)
        solver.add(*facts)
        if _unsat_with(solver, query):
            decision = Decision.ALWAYS_FALSE
        elif _unsat_with(solver, z3.Not(query)):
            decision = Decision.ALWAYS_TRUE
        else:
            decision = Decision.UNDECIDABLE
        self._cache[cache_key] = decision
        return decision


def _common_primitive(state: ProgramState, left: SymbolicValue, right: SymbolicValue) -> str | None:
    """Name of the primitive kind both values certainly have, if any."""
    a, b = state.constraint_of(left), state.constraint_of(right)
    if a.nullness != Nullness.PRESENT or b.nullness != Nullness.PRESENT:
        return None
    if a.kind == b.kind and a.kind in (TypeKind.NUMBER, TypeKind.STRING, TypeKind.BOOLEAN):
        return a.kind.name
    return None


def _unsat_with(solver: z3.Solver, formula: z3.BoolRef) -> bool:
    solver.push()
    try:
        solver.add(formula)
        return solver.check() == z3.unsat
    finally:
        solver.pop()


def _relation_order(relation: Relation) -> tuple:
    return (relation.left.id, relation.right.id, relation.operator, relation.holds)


__all__ = ["RelationSolver"]
