"""Core data model: constraint lattices, symbolic values, program states."""

from pathspectre.core.constraints import (
    Constraint,
    Decision,
    Exactness,
    Nullness,
    Truthiness,
    TypeKind,
    is_subtype_compatible,
)
from pathspectre.core.errors import InvariantViolation, MalformedGraphError, PathSpectreError
from pathspectre.core.solver import RelationSolver
from pathspectre.core.state import ProgramState, Relation
from pathspectre.core.values import (
    LiteralKind,
    Predicate,
    PredicateKind,
    SymbolicValue,
    ValueOrigin,
    ValueRegistry,
)

__all__ = [
    "Constraint",
    "Decision",
    "Exactness",
    "Nullness",
    "Truthiness",
    "TypeKind",
    "is_subtype_compatible",
    "InvariantViolation",
    "MalformedGraphError",
    "PathSpectreError",
    "RelationSolver",
    "ProgramState",
    "Relation",
    "LiteralKind",
    "Predicate",
    "PredicateKind",
    "SymbolicValue",
    "ValueOrigin",
    "ValueRegistry",
]
