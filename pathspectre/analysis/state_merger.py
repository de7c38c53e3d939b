"""
State joining at program points.

Converging states are never joined by default: the explorer keeps every
distinct state reaching a point. This module provides the presentation join
used to summarize a point, and an opt-in policy that joins the states at a
point once too many distinct ones reach it, trading precision for speed.
"""
from __future__ import annotations
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING
from pathspectre.core.constraints import ANY_VALUE, BOTTOM, Constraint
from pathspectre.core.state import ProgramState, Relation
from pathspectre.core.values import SymbolicValue, ValueOrigin
if TYPE_CHECKING:
    from pathspectre.core.values import ValueRegistry


class MergePolicy(Enum):
    """When states converging at a point are joined."""
    NONE = auto()
    JOIN = auto()


@dataclass
class MergeStatistics:
    """Statistics about state joining."""
    merge_operations: int = 0


def summarize(states: Iterable[ProgramState]) -> dict[str, Constraint]:
    """Join, per variable, the constraints of all states binding it."""
    summary: dict[str, Constraint] = {}
    for state in states:
        for name in state.variables():
            constraint = state.constraint_of_variable(name)
            summary[name] = summary.get(name, BOTTOM).join(constraint)
    return dict(sorted(summary.items()))


class StateMerger:
    """Joins states that reach the same program point.
    Variables bound to the same value in every state keep that value;
    otherwise a fresh value of origin JOINED stands for all of them. The
    constraint of each variable is the join of its constraints, and only
    relations recorded in every state between surviving values are kept.
    """
    def __init__(
        self,
        registry: ValueRegistry,
        policy: MergePolicy = MergePolicy.NONE,
        merge_threshold: int = 8,
    ):
        self.registry = registry
        self.policy = policy
        self.merge_threshold = merge_threshold
        self.stats = MergeStatistics()
    def should_merge(self, recorded: int) -> bool:
        """Whether a point that already holds ``recorded`` states should join."""
        return self.policy is MergePolicy.JOIN and recorded >= self.merge_threshold
    def join(self, states: list[ProgramState]) -> ProgramState | None:
        """Join states binding the same variables; None if they bind different ones."""
        if not states:
            return None
        if len(states) == 1:
            return states[0]
        names = set(states[0].variables())
        if any(set(state.variables()) != names for state in states[1:]):
            return None
        bindings: dict[str, SymbolicValue] = {}
        constraints: dict[SymbolicValue, Constraint] = {}
        for name in sorted(names):
            values = {state.resolve(state.value_of(name)) for state in states}
            if len(values) == 1:
                value = values.pop()
            else:
                value = self.registry.new_unknown(ValueOrigin.JOINED, name)
            bindings[name] = value
            joined = BOTTOM
            for state in states:
                joined = joined.join(state.constraint_of_variable(name))
            constraints[value] = joined.join(constraints.get(value, BOTTOM))
        for value in list(bindings.values()):
            if value.predicate is None:
                continue
            for operand in value.predicate.operands:
                joined = BOTTOM
                for state in states:
                    joined = joined.join(state.constraint_of(operand))
                constraints[operand] = joined
        kept = set(bindings.values()) | set(constraints)
        relations = frozenset.intersection(*(state.relations for state in states))
        relations = frozenset(
            r for r in relations if _survives(r, kept) and all(
                state.resolve(r.left) == r.left and state.resolve(r.right) == r.right
                for state in states
            )
        )
        self.stats.merge_operations += 1
        return ProgramState(
            bindings=bindings,
            constraints={v: c for v, c in constraints.items() if c != ANY_VALUE},
            relations=relations,
        ).collect_garbage()


def _survives(relation: Relation, kept: set[SymbolicValue]) -> bool:
    return all(
        endpoint in kept or endpoint.literal is not None
        for endpoint in (relation.left, relation.right)
    )


__all__ = ["MergePolicy", "MergeStatistics", "StateMerger", "summarize"]
