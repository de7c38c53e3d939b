"""Immutable program state for path-sensitive exploration.
A program state maps variables to symbolic values and symbolic values to
constraints. It also remembers which values were learned to be equal and
which comparisons were taken between them. Every update returns a new state;
unchanged parts are shared with the previous one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pathspectre.core.constraints import ANY_VALUE, Constraint
from pathspectre.core.values import SymbolicValue

RELATION_OPERATORS = frozenset({"<", "<=", ">", ">=", "==", "==="})
_MIRRORED = {"<": ">", "<=": ">=", ">": "<", ">=": "<=", "==": "==", "===": "==="}


@dataclass(frozen=True)
class Relation:
    """A comparison taken on the current path.
    Attributes:
        operator: One of ``<, <=, >, >=, ==, ===``.
        left: Left operand.
        right: Right operand.
        holds: False when the path took the comparison's false branch.
    """

    operator: str
    left: SymbolicValue
    right: SymbolicValue
    holds: bool = True

    def __post_init__(self) -> None:
        if self.operator not in RELATION_OPERATORS:
            raise ValueError(f"Unsupported relation operator: {self.operator}")

    def negate(self) -> Relation:
        return Relation(self.operator, self.left, self.right, not self.holds)

    def mirrored(self) -> Relation:
        """Same fact with operands swapped."""
        return Relation(_MIRRORED[self.operator], self.right, self.left, self.holds)

    def __str__(self) -> str:
        text = f"{self.left} {self.operator} {self.right}"
        return text if self.holds else f"!({text})"


class ProgramState:
    """One abstract state: bindings, constraints, equivalences and relations.
    States compare structurally over a canonical form in which reachable
    values are renumbered by first appearance (variables in name order, then
    operands of derived values). Two states that differ only in unreachable
    bookkeeping or in the identity numbers of their values are equal.
    """

    __slots__ = ("_bindings", "_constraints", "_aliases", "_relations", "_key")

    def __init__(
        self,
        bindings: Mapping[str, SymbolicValue] | None = None,
        constraints: Mapping[SymbolicValue, Constraint] | None = None,
        aliases: Mapping[SymbolicValue, SymbolicValue] | None = None,
        relations: frozenset[Relation] = frozenset(),
    ):
        self._bindings: dict[str, SymbolicValue] = dict(bindings or {})
        self._constraints: dict[SymbolicValue, Constraint] = dict(constraints or {})
        self._aliases: dict[SymbolicValue, SymbolicValue] = dict(aliases or {})
        self._relations = relations
        self._key: tuple | None = None

    @classmethod
    def empty(cls) -> ProgramState:
        return cls()

    def _replace(self, **changes: Any) -> ProgramState:
        return ProgramState(
            changes.get("bindings", self._bindings),
            changes.get("constraints", self._constraints),
            changes.get("aliases", self._aliases),
            changes.get("relations", self._relations),
        )

    @property
    def bindings(self) -> Mapping[str, SymbolicValue]:
        return MappingProxyType(self._bindings)

    @property
    def constraints(self) -> Mapping[SymbolicValue, Constraint]:
        return MappingProxyType(self._constraints)

    @property
    def aliases(self) -> Mapping[SymbolicValue, SymbolicValue]:
        return MappingProxyType(self._aliases)

    @property
    def relations(self) -> frozenset[Relation]:
        return self._relations

    def variables(self) -> list[str]:
        return sorted(self._bindings)

    def value_of(self, variable: str) -> SymbolicValue | None:
        return self._bindings.get(variable)

    def resolve(self, value: SymbolicValue) -> SymbolicValue:
        """Representative of the equivalence class of ``value``."""
        return self._aliases.get(value, value)

    def constraint_of(self, value: SymbolicValue) -> Constraint:
        return self._constraints.get(self.resolve(value), ANY_VALUE)

    def constraint_of_variable(self, variable: str) -> Constraint | None:
        value = self._bindings.get(variable)
        if value is None:
            return None
        return self.constraint_of(value)

    def bind(self, variable: str, value: SymbolicValue) -> ProgramState:
        if self._bindings.get(variable) is value:
            return self
        bindings = dict(self._bindings)
        bindings[variable] = value
        return self._replace(bindings=bindings)

    def unbind(self, variable: str) -> ProgramState:
        if variable not in self._bindings:
            return self
        bindings = dict(self._bindings)
        del bindings[variable]
        return self._replace(bindings=bindings)

    def retain(self, variables: Iterable[str]) -> ProgramState:
        """Drop every binding whose variable is not in ``variables``."""
        keep = set(variables)
        if keep.issuperset(self._bindings):
            return self
        return self._replace(
            bindings={name: value for name, value in self._bindings.items() if name in keep}
        )

    def with_constraint(
        self, value: SymbolicValue, constraint: Constraint | Any
    ) -> tuple[ProgramState, bool]:
        """Meet the value's constraint with ``constraint``.
        Args:
            value: Value to narrow; its representative receives the constraint.
            constraint: A Constraint or a single-lattice element.
        Returns:
            The narrowed state and whether it is feasible. An infeasible
            narrowing returns the unchanged state with False.
        """
        representative = self.resolve(value)
        current = self._constraints.get(representative, ANY_VALUE)
        narrowed = current.meet(constraint)
        if narrowed.is_bottom:
            return self, False
        if narrowed == current:
            return self, True
        constraints = dict(self._constraints)
        constraints[representative] = narrowed
        return self._replace(constraints=constraints), True

    def constrain(self, value: SymbolicValue, constraint: Constraint | Any) -> ProgramState | None:
        """Like ``with_constraint`` but returns None for an infeasible state."""
        state, feasible = self.with_constraint(value, constraint)
        return state if feasible else None

    def merge_values(self, keep: SymbolicValue, drop: SymbolicValue) -> ProgramState | None:
        """Record that two values are the same runtime value.
        The meet of both constraints is installed on ``keep``'s representative
        and ``drop``'s class is redirected to it, so later narrowing of either
        is seen through the other.
        Returns:
            The unified state, or None if the two constraints contradict.
        """
        kept = self.resolve(keep)
        dropped = self.resolve(drop)
        if kept == dropped:
            return self
        merged = self.constraint_of(kept).meet(self.constraint_of(dropped))
        if merged.is_bottom:
            return None
        constraints = dict(self._constraints)
        constraints.pop(dropped, None)
        if merged != ANY_VALUE:
            constraints[kept] = merged
        aliases = {
            source: (kept if target == dropped else target)
            for source, target in self._aliases.items()
        }
        aliases[dropped] = kept
        return self._replace(constraints=constraints, aliases=aliases)

    def with_relation(self, relation: Relation) -> ProgramState:
        if relation in self._relations:
            return self
        return self._replace(relations=self._relations | {relation})

    def relations_between(self, left: SymbolicValue, right: SymbolicValue) -> list[Relation]:
        """Recorded relations between two values, oriented left to right."""
        a, b = self.resolve(left), self.resolve(right)
        found = []
        for relation in self._relations:
            l, r = self.resolve(relation.left), self.resolve(relation.right)
            if (l, r) == (a, b):
                found.append(relation)
            elif (l, r) == (b, a):
                found.append(relation.mirrored())
        return found

    def mentioned_values(self) -> Iterator[SymbolicValue]:
        """Every value referenced anywhere in the state."""
        yield from self._bindings.values()
        yield from self._constraints
        for source, target in self._aliases.items():
            yield source
            yield target
        for relation in self._relations:
            yield relation.left
            yield relation.right

    def reachable_values(self) -> list[SymbolicValue]:
        """Values reachable from bindings, in canonical order.
        Both the bound values and their representatives are included;
        derived values contribute their predicate operands.
        """
        seen: dict[SymbolicValue, None] = {}
        queue: list[SymbolicValue] = [self._bindings[name] for name in sorted(self._bindings)]
        while queue:
            value = queue.pop(0)
            for candidate in (value, self.resolve(value)):
                if candidate in seen:
                    continue
                seen[candidate] = None
                if candidate.predicate is not None:
                    queue.extend(candidate.predicate.operands)
        return list(seen)

    def _relation_alive(self, relation: Relation, live: Iterable[SymbolicValue]) -> bool:
        """Both endpoints are reachable, or are literals that describe themselves."""
        for endpoint in (relation.left, relation.right):
            representative = self.resolve(endpoint)
            if representative not in live and representative.literal is None:
                return False
        return True

    def collect_garbage(self) -> ProgramState:
        """Forget constraints, equivalences and relations of dead values."""
        live = set(self.reachable_values())
        relations = frozenset(r for r in self._relations if self._relation_alive(r, live))
        kept = set(live)
        for relation in relations:
            kept.add(relation.left)
            kept.add(relation.right)
            kept.add(self.resolve(relation.left))
            kept.add(self.resolve(relation.right))
        constraints = {v: c for v, c in self._constraints.items() if v in kept}
        aliases = {s: t for s, t in self._aliases.items() if s in kept}
        if (
            len(constraints) == len(self._constraints)
            and len(aliases) == len(self._aliases)
            and len(relations) == len(self._relations)
        ):
            return self
        return self._replace(constraints=constraints, aliases=aliases, relations=relations)

    def canonical_key(self) -> tuple:
        """Identity-free structural form used for equality and hashing."""
        if self._key is not None:
            return self._key
        numbers: dict[SymbolicValue, int] = {}
        described: list[tuple] = []
        for value in self.reachable_values():
            representative = self.resolve(value)
            if representative in numbers:
                continue
            numbers[representative] = len(numbers)
        for representative in numbers:
            literal = representative.literal.key if representative.literal else None
            predicate = representative.predicate
            shape = None
            if predicate is not None:
                shape = (
                    predicate.kind.name,
                    predicate.operator,
                    predicate.argument,
                    predicate.negated,
                    tuple(numbers[self.resolve(op)] for op in predicate.operands),
                )
            described.append(
                (numbers[representative], self.constraint_of(representative), literal, shape)
            )
        bindings = tuple(
            (name, numbers[self.resolve(self._bindings[name])]) for name in sorted(self._bindings)
        )
        relations = set()
        for relation in self._relations:
            l = self._endpoint_key(relation.left, numbers)
            r = self._endpoint_key(relation.right, numbers)
            if l is None or r is None:
                continue
            operator = relation.operator
            if operator in ("<", "<=") or (operator in ("==", "===") and repr(l) > repr(r)):
                operator, l, r = _MIRRORED[operator], r, l
            relations.add((operator, l, r, relation.holds))
        self._key = (bindings, tuple(described), frozenset(relations))
        return self._key

    def _endpoint_key(
        self, value: SymbolicValue, numbers: Mapping[SymbolicValue, int]
    ) -> tuple | None:
        representative = self.resolve(value)
        if representative in numbers:
            return ("value", numbers[representative])
        if representative.literal is not None:
            return ("literal", representative.literal.key)
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProgramState):
            return NotImplemented
        if self is other:
            return True
        return self.canonical_key() == other.canonical_key()

    def __hash__(self) -> int:
        return hash(self.canonical_key())

    def describe(self) -> dict[str, str]:
        """Variable name to constraint display name."""
        return {name: str(self.constraint_of(value)) for name, value in sorted(self._bindings.items())}

    def __repr__(self) -> str:
        parts = ", ".join(f"{name}={text}" for name, text in self.describe().items())
        return f"ProgramState({parts})"


__all__ = ["Relation", "ProgramState", "RELATION_OPERATORS"]
