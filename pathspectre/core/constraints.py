"""Constraint lattices for abstract value states.
A value's knowledge is the reduced product of four small powerset lattices:
- Nullness: null, undefined or some present value
- TypeKind: what a present value is (primitive kinds, functions, arrays, objects)
- Truthiness: truthy or falsy
- Exactness: the number zero or anything else
Meet is intersection, join is union, the empty set is a contradiction.
Constraints are kept in a normal form where knowledge in one lattice is
propagated to the others, so structurally equal constraints describe the same
set of runtime values.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag, auto


class Nullness(Flag):
    """Whether a value may be null, undefined, or present."""

    NULL = 1
    UNDEFINED = 2
    PRESENT = 4
    NOT_NULL = 4
    NULLY = 3
    UNKNOWN = 7


class TypeKind(Flag):
    """Kind of a present value."""

    NUMBER = 1
    STRING = 2
    BOOLEAN = 4
    FUNCTION = 8
    ARRAY = 16
    NUMBER_OBJECT = 32
    STRING_OBJECT = 64
    BOOLEAN_OBJECT = 128
    OTHER_OBJECT = 256
    PRIMITIVE = 7
    OBJECT = 504
    UNKNOWN = 511


class Truthiness(Flag):
    """Boolean coercion of a value."""

    TRUTHY = 1
    FALSY = 2
    UNKNOWN = 3


class Exactness(Flag):
    """Whether a value is the number zero."""

    ZERO = 1
    NON_ZERO = 2
    UNKNOWN = 3


LATTICES: tuple[type[Flag], ...] = (Nullness, TypeKind, Truthiness, Exactness)


class Decision(Enum):
    """Statically known outcome of a boolean test."""

    ALWAYS_TRUE = auto()
    ALWAYS_FALSE = auto()
    UNDECIDABLE = auto()

    @staticmethod
    def of(value: bool) -> Decision:
        return Decision.ALWAYS_TRUE if value else Decision.ALWAYS_FALSE

    def negate(self) -> Decision:
        if self is Decision.ALWAYS_TRUE:
            return Decision.ALWAYS_FALSE
        if self is Decision.ALWAYS_FALSE:
            return Decision.ALWAYS_TRUE
        return self

    @property
    def is_known(self) -> bool:
        return self is not Decision.UNDECIDABLE


_NO_NULLNESS = Nullness(0)
_NO_KIND = TypeKind(0)
_NO_TRUTHINESS = Truthiness(0)
_NO_EXACTNESS = Exactness(0)


def _normalize(
    nullness: Nullness,
    kind: TypeKind,
    truthiness: Truthiness,
    exactness: Exactness,
) -> tuple[Nullness, TypeKind, Truthiness, Exactness]:
    """Propagate knowledge between lattices until nothing changes."""
    while True:
        before = (nullness, kind, truthiness, exactness)
        if not nullness & Nullness.PRESENT:
            kind = _NO_KIND
            truthiness &= Truthiness.FALSY
            exactness &= Exactness.NON_ZERO
        if not kind:
            nullness &= Nullness.NULLY
        if not truthiness & Truthiness.FALSY:
            nullness &= Nullness.PRESENT
            exactness &= Exactness.NON_ZERO
        if not truthiness & Truthiness.TRUTHY:
            kind &= TypeKind.PRIMITIVE
        if not exactness & Exactness.NON_ZERO:
            nullness &= Nullness.PRESENT
            kind &= TypeKind.NUMBER
            truthiness &= Truthiness.FALSY
        if not kind & TypeKind.NUMBER:
            exactness &= Exactness.NON_ZERO
        if nullness == Nullness.PRESENT and kind and not kind & TypeKind.PRIMITIVE:
            truthiness &= Truthiness.TRUTHY
        if (nullness, kind, truthiness, exactness) == before:
            break
    if not nullness or not truthiness or not exactness:
        return _NO_NULLNESS, _NO_KIND, _NO_TRUTHINESS, _NO_EXACTNESS
    return nullness, kind, truthiness, exactness


@dataclass(frozen=True)
class Constraint:
    """Knowledge about one symbolic value, one component per lattice.
    Instances are always normalized; every constructor call yields the
    canonical representative, so ``==`` is semantic equality.
    Attributes:
        nullness: Possible nullness of the value.
        kind: Possible kinds of the value when it is present.
        truthiness: Possible boolean coercions.
        exactness: Whether the value may or must be zero.
    """

    nullness: Nullness = Nullness.UNKNOWN
    kind: TypeKind = TypeKind.UNKNOWN
    truthiness: Truthiness = Truthiness.UNKNOWN
    exactness: Exactness = Exactness.UNKNOWN

    def __post_init__(self) -> None:
        normal = _normalize(self.nullness, self.kind, self.truthiness, self.exactness)
        object.__setattr__(self, "nullness", normal[0])
        object.__setattr__(self, "kind", normal[1])
        object.__setattr__(self, "truthiness", normal[2])
        object.__setattr__(self, "exactness", normal[3])

    @classmethod
    def of(cls, element: Constraint | Flag) -> Constraint:
        """Lift a single-lattice element to a constraint (other lattices top)."""
        if isinstance(element, Constraint):
            return element
        if isinstance(element, Nullness):
            return cls(nullness=element)
        if isinstance(element, TypeKind):
            return cls(kind=element)
        if isinstance(element, Truthiness):
            return cls(truthiness=element)
        if isinstance(element, Exactness):
            return cls(exactness=element)
        raise TypeError(f"Not a lattice element: {element!r}")

    @property
    def is_bottom(self) -> bool:
        return not self.nullness

    @property
    def is_top(self) -> bool:
        return self == ANY_VALUE

    def component(self, lattice: type[Flag]) -> Flag:
        """Project onto one lattice."""
        if lattice is Nullness:
            return self.nullness
        if lattice is TypeKind:
            return self.kind
        if lattice is Truthiness:
            return self.truthiness
        if lattice is Exactness:
            return self.exactness
        raise TypeError(f"Unknown lattice: {lattice!r}")

    def meet(self, other: Constraint | Flag) -> Constraint:
        """Greatest lower bound: both pieces of knowledge hold."""
        other = Constraint.of(other)
        return Constraint(
            self.nullness & other.nullness,
            self.kind & other.kind,
            self.truthiness & other.truthiness,
            self.exactness & other.exactness,
        )

    def join(self, other: Constraint | Flag) -> Constraint:
        """Least upper bound: either piece of knowledge holds."""
        other = Constraint.of(other)
        if self.is_bottom:
            return other
        if other.is_bottom:
            return self
        return Constraint(
            self.nullness | other.nullness,
            self.kind | other.kind,
            self.truthiness | other.truthiness,
            self.exactness | other.exactness,
        )

    def complement(self) -> Constraint:
        """Complement of the value set described by nullness and kind.
        Truthiness and exactness of the result are unconstrained; this is
        meant for constraints built from nullness and kind alone, such as
        the value sets of typeof tags.
        """
        nullness = ~self.nullness & Nullness.NULLY
        present_kinds = self.kind if self.nullness & Nullness.PRESENT else _NO_KIND
        kind = ~present_kinds & TypeKind.UNKNOWN
        if kind:
            nullness |= Nullness.PRESENT
        return Constraint(nullness=nullness, kind=kind)

    def is_stricter_or_equal_to(self, other: Constraint | Flag) -> bool:
        return self.meet(other) == self

    def is_incompatible_with(self, other: Constraint | Flag) -> bool:
        return self.meet(other).is_bottom

    def can_be_nully(self) -> bool:
        return bool(self.nullness & Nullness.NULLY)

    def can_be_present(self) -> bool:
        return bool(self.nullness & Nullness.PRESENT)

    def __str__(self) -> str:
        name = _NAMES.get(self)
        if name is not None:
            return name
        parts = []
        if self.nullness != Nullness.UNKNOWN:
            parts.append(_flag_name(self.nullness))
        if self.nullness & Nullness.PRESENT and self.kind != TypeKind.UNKNOWN:
            parts.append(_flag_name(self.kind))
        if self.truthiness != Truthiness.UNKNOWN:
            parts.append(_flag_name(self.truthiness))
        if self.exactness != Exactness.UNKNOWN:
            parts.append(_flag_name(self.exactness))
        return " & ".join(parts) if parts else "ANY_VALUE"


def _flag_name(flag: Flag) -> str:
    if flag.name is not None:
        return flag.name
    return "|".join(member.name for member in type(flag) if member in flag)


ANY_VALUE = Constraint()
BOTTOM = Constraint(nullness=_NO_NULLNESS)
NULL = Constraint(nullness=Nullness.NULL)
UNDEFINED = Constraint(nullness=Nullness.UNDEFINED)
NULLY = Constraint(nullness=Nullness.NULLY)
NOT_NULL = Constraint(nullness=Nullness.NOT_NULL)
TRUTHY = Constraint(truthiness=Truthiness.TRUTHY)
FALSY = Constraint(truthiness=Truthiness.FALSY)
ZERO = Constraint(exactness=Exactness.ZERO)
NON_ZERO = Constraint(exactness=Exactness.NON_ZERO)
NUMBER = Constraint(Nullness.PRESENT, TypeKind.NUMBER)
STRING = Constraint(Nullness.PRESENT, TypeKind.STRING)
BOOLEAN = Constraint(Nullness.PRESENT, TypeKind.BOOLEAN)
TRUE = Constraint(Nullness.PRESENT, TypeKind.BOOLEAN, Truthiness.TRUTHY)
FALSE = Constraint(Nullness.PRESENT, TypeKind.BOOLEAN, Truthiness.FALSY)
FUNCTION = Constraint(Nullness.PRESENT, TypeKind.FUNCTION)
ARRAY = Constraint(Nullness.PRESENT, TypeKind.ARRAY)
OBJECT = Constraint(Nullness.PRESENT, TypeKind.OBJECT)
NUMBER_OBJECT = Constraint(Nullness.PRESENT, TypeKind.NUMBER_OBJECT)
STRING_OBJECT = Constraint(Nullness.PRESENT, TypeKind.STRING_OBJECT)
BOOLEAN_OBJECT = Constraint(Nullness.PRESENT, TypeKind.BOOLEAN_OBJECT)
OTHER_OBJECT = Constraint(Nullness.PRESENT, TypeKind.OTHER_OBJECT)
ANY_NUMBER = Constraint(Nullness.PRESENT, TypeKind.NUMBER | TypeKind.NUMBER_OBJECT)
ANY_STRING = Constraint(Nullness.PRESENT, TypeKind.STRING | TypeKind.STRING_OBJECT)
ANY_BOOLEAN = Constraint(Nullness.PRESENT, TypeKind.BOOLEAN | TypeKind.BOOLEAN_OBJECT)

NAMED_CONSTRAINTS: dict[str, Constraint] = {
    "ANY_VALUE": ANY_VALUE,
    "BOTTOM": BOTTOM,
    "NULL": NULL,
    "UNDEFINED": UNDEFINED,
    "NULLY": NULLY,
    "NOT_NULL": NOT_NULL,
    "TRUTHY": TRUTHY,
    "FALSY": FALSY,
    "ZERO": ZERO,
    "NON_ZERO": NON_ZERO,
    "NUMBER": NUMBER,
    "STRING": STRING,
    "BOOLEAN": BOOLEAN,
    "TRUE": TRUE,
    "FALSE": FALSE,
    "FUNCTION": FUNCTION,
    "ARRAY": ARRAY,
    "OBJECT": OBJECT,
    "NUMBER_OBJECT": NUMBER_OBJECT,
    "STRING_OBJECT": STRING_OBJECT,
    "BOOLEAN_OBJECT": BOOLEAN_OBJECT,
    "OTHER_OBJECT": OTHER_OBJECT,
    "ANY_NUMBER": ANY_NUMBER,
    "ANY_STRING": ANY_STRING,
    "ANY_BOOLEAN": ANY_BOOLEAN,
}
_NAMES: dict[Constraint, str] = {}
for _name, _constraint in NAMED_CONSTRAINTS.items():
    _NAMES.setdefault(_constraint, _name)
    setattr(Constraint, _name, _constraint)


RECOGNIZED_CONSTRUCTORS: dict[str, TypeKind] = {
    "Number": TypeKind.NUMBER_OBJECT,
    "String": TypeKind.STRING_OBJECT,
    "Boolean": TypeKind.BOOLEAN_OBJECT,
    "Array": TypeKind.ARRAY,
    "Function": TypeKind.FUNCTION,
    "Object": TypeKind.OBJECT,
}


def instance_kinds(constructor: str) -> TypeKind | None:
    """Kinds of the instances of a built-in constructor, None if unrecognized."""
    return RECOGNIZED_CONSTRUCTORS.get(constructor)


def is_subtype_compatible(value: Constraint | TypeKind, constructor: str) -> Decision:
    """Decide ``value instanceof constructor`` from what is known of the value.
    Args:
        value: Constraint of the tested value, or a bare kind of a present value.
        constructor: Name of the constructor on the right-hand side.
    Returns:
        ALWAYS_FALSE for null, undefined and primitives, and for objects that
        cannot be instances of a recognized constructor. ALWAYS_TRUE when every
        possible value is an instance. UNDECIDABLE otherwise, including every
        possible object against an unrecognized constructor.
    """
    if isinstance(value, TypeKind):
        value = Constraint(nullness=Nullness.PRESENT, kind=value)
    object_kinds = value.kind & TypeKind.OBJECT
    if not value.can_be_present() or not object_kinds:
        return Decision.ALWAYS_FALSE
    kinds = instance_kinds(constructor)
    if kinds is None:
        return Decision.UNDECIDABLE
    if not object_kinds & kinds:
        return Decision.ALWAYS_FALSE
    if value.nullness == Nullness.PRESENT and value.kind & ~kinds & TypeKind.UNKNOWN == _NO_KIND:
        return Decision.ALWAYS_TRUE
    return Decision.UNDECIDABLE


TYPEOF_TAGS: dict[str, Constraint] = {
    "undefined": UNDEFINED,
    "object": Constraint(
        Nullness.NULL | Nullness.PRESENT,
        TypeKind.OBJECT & ~TypeKind.FUNCTION,
    ),
    "boolean": BOOLEAN,
    "number": NUMBER,
    "string": STRING,
    "function": FUNCTION,
}
UNMODELED_TYPEOF_TAGS = frozenset({"symbol", "bigint"})


def typeof_constraint(tag: str) -> Constraint | None:
    """Value set whose ``typeof`` is ``tag``; None for tags not modeled."""
    return TYPEOF_TAGS.get(tag)


__all__ = [
    "Nullness",
    "TypeKind",
    "Truthiness",
    "Exactness",
    "LATTICES",
    "Decision",
    "Constraint",
    "NAMED_CONSTRAINTS",
    "RECOGNIZED_CONSTRUCTORS",
    "TYPEOF_TAGS",
    "UNMODELED_TYPEOF_TAGS",
    "instance_kinds",
    "is_subtype_compatible",
    "typeof_constraint",
    "ANY_VALUE",
    "BOTTOM",
    "NULL",
    "UNDEFINED",
    "NULLY",
    "NOT_NULL",
    "TRUTHY",
    "FALSY",
    "ZERO",
    "NON_ZERO",
    "NUMBER",
    "STRING",
    "BOOLEAN",
    "TRUE",
    "FALSE",
    "FUNCTION",
    "ARRAY",
    "OBJECT",
    "ANY_NUMBER",
    "ANY_STRING",
    "ANY_BOOLEAN",
]
