"""Symbolic values and the per-function value registry.
A symbolic value is an opaque identity standing for "whatever runtime value
flows here". Knowledge about it lives in the program state, never in the
value itself, so the same value can carry different constraints on
different paths.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from pathspectre.core.constraints import (
    BOOLEAN,
    FALSE,
    FUNCTION,
    NULL,
    TRUE,
    UNDEFINED,
    ZERO,
    Constraint,
    Exactness,
    Nullness,
    Truthiness,
    TypeKind,
)
from pathspectre.core.errors import InvariantViolation

if TYPE_CHECKING:
    from pathspectre.core.state import ProgramState


class ValueOrigin(Enum):
    """Where a symbolic value came from."""

    PARAMETER = auto()
    GLOBAL = auto()
    CALL = auto()
    NEW = auto()
    FUNCTION = auto()
    LITERAL = auto()
    COMPOSITE = auto()
    DERIVED = auto()
    JOINED = auto()


class LiteralKind(Enum):
    """Kinds of literal constants."""

    NUMBER = auto()
    STRING = auto()
    BOOLEAN = auto()
    NULL = auto()
    UNDEFINED = auto()


class PredicateKind(Enum):
    """Kinds of boolean tests a derived value may stand for."""

    INSTANCE_OF = auto()
    RELATIONAL = auto()
    EQUALITY = auto()
    TYPEOF = auto()
    TRUTHINESS = auto()


RELATIONAL_OPERATORS = frozenset({"<", "<=", ">", ">="})
EQUALITY_OPERATORS = frozenset({"==", "!=", "===", "!=="})


@dataclass(frozen=True)
class Literal:
    """A literal constant attached to a value."""

    kind: LiteralKind
    value: Any = None

    @property
    def is_nan(self) -> bool:
        return (
            self.kind is LiteralKind.NUMBER
            and isinstance(self.value, float)
            and math.isnan(self.value)
        )

    @property
    def key(self) -> tuple[str, Any]:
        """Hashable identity that treats every NaN as the same literal."""
        if self.is_nan:
            return (self.kind.name, "NaN")
        return (self.kind.name, self.value)

    def constraint(self) -> Constraint:
        """Constraint describing exactly this literal."""
        if self.kind is LiteralKind.NULL:
            return NULL
        if self.kind is LiteralKind.UNDEFINED:
            return UNDEFINED
        if self.kind is LiteralKind.BOOLEAN:
            return TRUE if self.value else FALSE
        if self.kind is LiteralKind.STRING:
            truthiness = Truthiness.TRUTHY if self.value else Truthiness.FALSY
            return Constraint(Nullness.PRESENT, TypeKind.STRING, truthiness)
        if self.is_nan:
            return Constraint(
                Nullness.PRESENT, TypeKind.NUMBER, Truthiness.FALSY, Exactness.NON_ZERO
            )
        if self.value == 0:
            return ZERO
        return Constraint(Nullness.PRESENT, TypeKind.NUMBER, Truthiness.TRUTHY)

    def __str__(self) -> str:
        if self.kind is LiteralKind.NULL:
            return "null"
        if self.kind is LiteralKind.UNDEFINED:
            return "undefined"
        if self.kind is LiteralKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind is LiteralKind.STRING:
            return repr(self.value)
        if self.is_nan:
            return "NaN"
        return str(self.value)


@dataclass(frozen=True)
class Predicate:
    """A boolean test remembered by a derived value.
    Attributes:
        kind: Which transfer function evaluates the test.
        operands: Values tested; one for unary tests, two for comparisons.
        operator: Comparison operator, or the equality operator of a typeof test.
        argument: Constructor name (instanceof) or type tag (typeof).
        negated: Whether the outcome is inverted.
    """

    kind: PredicateKind
    operands: tuple[SymbolicValue, ...]
    operator: str | None = None
    argument: str | None = None
    negated: bool = False

    def negate(self) -> Predicate:
        return Predicate(self.kind, self.operands, self.operator, self.argument, not self.negated)

    def __str__(self) -> str:
        names = [str(op) for op in self.operands]
        if self.kind is PredicateKind.INSTANCE_OF:
            text = f"{names[0]} instanceof {self.argument}"
        elif self.kind is PredicateKind.TYPEOF:
            text = f"typeof {names[0]} {self.operator} {self.argument!r}"
        elif self.kind is PredicateKind.TRUTHINESS:
            text = names[0]
        else:
            text = f"{names[0]} {self.operator} {names[1]}"
        return f"!({text})" if self.negated else text


@dataclass(frozen=True, eq=False)
class SymbolicValue:
    """Identity of a runtime value. Equality and hashing use ``id`` only."""

    id: int
    origin: ValueOrigin
    label: str = ""
    literal: Literal | None = None
    predicate: Predicate | None = field(default=None, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymbolicValue):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_literal(self) -> bool:
        return self.literal is not None

    @property
    def is_derived(self) -> bool:
        return self.predicate is not None

    def __str__(self) -> str:
        if self.label:
            return f"SV_{self.id}({self.label})"
        return f"SV_{self.id}"


class ValueRegistry:
    """Allocates symbolic values for one function's exploration.
    Identities are never reused. The registry is not shared across
    explorations, so concurrent explorations never contend on it.
    """

    def __init__(self, scope: str = ""):
        self.scope = scope
        self._ids = itertools.count(1)
        self._values: dict[int, SymbolicValue] = {}

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return isinstance(value, SymbolicValue) and self._values.get(value.id) is value

    def _allocate(
        self,
        origin: ValueOrigin,
        label: str = "",
        literal: Literal | None = None,
        predicate: Predicate | None = None,
    ) -> SymbolicValue:
        value = SymbolicValue(next(self._ids), origin, label, literal, predicate)
        if value.id in self._values:
            raise InvariantViolation(f"Duplicate symbolic value id {value.id}")
        self._values[value.id] = value
        return value

    def _install(
        self, state: ProgramState, value: SymbolicValue, constraint: Constraint
    ) -> ProgramState:
        new_state = state.constrain(value, constraint)
        if new_state is None:
            raise InvariantViolation(f"Fresh value {value} rejected {constraint}")
        return new_state

    def new_unknown(self, origin: ValueOrigin = ValueOrigin.CALL, label: str = "") -> SymbolicValue:
        """Fresh value with no constraint (ANY_VALUE)."""
        return self._allocate(origin, label)

    def new_literal(
        self, state: ProgramState, kind: LiteralKind, value: Any = None
    ) -> tuple[SymbolicValue, ProgramState]:
        """Fresh value for a literal, with the literal's constraint installed."""
        literal = Literal(kind, value)
        symbolic = self._allocate(ValueOrigin.LITERAL, str(literal), literal=literal)
        return symbolic, self._install(state, symbolic, literal.constraint())

    def new_object(
        self,
        state: ProgramState,
        kind: TypeKind = TypeKind.OBJECT,
        label: str = "",
        origin: ValueOrigin = ValueOrigin.NEW,
    ) -> tuple[SymbolicValue, ProgramState]:
        """Fresh present object value of the given object kinds."""
        symbolic = self._allocate(origin, label)
        return symbolic, self._install(state, symbolic, Constraint(Nullness.PRESENT, kind))

    def new_function(
        self, state: ProgramState, label: str = ""
    ) -> tuple[SymbolicValue, ProgramState]:
        """Fresh function value."""
        symbolic = self._allocate(ValueOrigin.FUNCTION, label)
        return symbolic, self._install(state, symbolic, FUNCTION)

    def new_derived(
        self, state: ProgramState, predicate: Predicate, label: str = ""
    ) -> tuple[SymbolicValue, ProgramState]:
        """Fresh boolean value standing for the outcome of ``predicate``."""
        for operand in predicate.operands:
            self.ensure_registered(operand)
        symbolic = self._allocate(ValueOrigin.DERIVED, label or str(predicate), predicate=predicate)
        return symbolic, self._install(state, symbolic, BOOLEAN)

    def alias(self, state: ProgramState, variable: str, value: SymbolicValue) -> ProgramState:
        """Bind ``variable`` to an existing value (assignment)."""
        self.ensure_registered(value)
        return state.bind(variable, value)

    def ensure_registered(self, value: SymbolicValue) -> None:
        if value not in self:
            raise InvariantViolation(f"{value} is not registered in scope {self.scope!r}")

    def validate(self, state: ProgramState) -> None:
        """Check that every value the state mentions belongs to this registry.
        Raises:
            InvariantViolation: If the state references a foreign or
                unregistered value.
        """
        for value in state.mentioned_values():
            self.ensure_registered(value)
            if value.predicate is not None:
                for operand in value.predicate.operands:
                    self.ensure_registered(operand)


__all__ = [
    "ValueOrigin",
    "LiteralKind",
    "PredicateKind",
    "RELATIONAL_OPERATORS",
    "EQUALITY_OPERATORS",
    "Literal",
    "Predicate",
    "SymbolicValue",
    "ValueRegistry",
]
