"""Live variable analysis over a ``ControlFlowGraph``.
A variable is live at a point if some path from that point reads it before
redefining it. The explorer drops bindings of dead variables so that states
differing only in dead values collapse.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Generic, TypeVar

from pathspectre.analysis.cfg import CfgNode, ControlFlowGraph

T = TypeVar("T")


class DataFlowAnalysis(ABC, Generic[T]):
    """
    Abstract base class for data flow analyses over CFG nodes.
    Provides framework for:
    - Forward/backward analysis
    - Worklist iteration to a fixed point
    """

    def __init__(self, cfg: ControlFlowGraph) -> None:
        self.cfg = cfg
        self.in_facts: dict[int, T] = {}
        self.out_facts: dict[int, T] = {}

    @abstractmethod
    def initial_value(self) -> T:
        """Return the initial value for analysis."""

    @abstractmethod
    def transfer(self, node: CfgNode, fact: T) -> T:
        """Transfer function across one node."""

    @abstractmethod
    def meet(self, facts: list[T]) -> T:
        """Meet operation: combine facts from multiple paths."""

    def is_forward(self) -> bool:
        """Return True for forward analysis, False for backward."""
        return True

    def analyze(self) -> None:
        """Run the data flow analysis to fixed point."""
        forward = self.is_forward()
        preds = self.cfg.predecessors()
        succs = {node_id: self.cfg.successors(node_id) for node_id in self.cfg.nodes}
        for node_id in self.cfg.nodes:
            self.in_facts[node_id] = self.initial_value()
            self.out_facts[node_id] = self.initial_value()
        worklist = deque(sorted(self.cfg.nodes, reverse=not forward))
        queued = set(worklist)
        while worklist:
            node_id = worklist.popleft()
            queued.discard(node_id)
            node = self.cfg.node(node_id)
            if forward:
                incoming = [self.out_facts[p] for p in preds[node_id]]
                self.in_facts[node_id] = self.meet(incoming) if incoming else self.initial_value()
                new_fact = self.transfer(node, self.in_facts[node_id])
                if new_fact == self.out_facts[node_id]:
                    continue
                self.out_facts[node_id] = new_fact
                dependents = succs[node_id]
            else:
                outgoing = [self.in_facts[s] for s in succs[node_id]]
                self.out_facts[node_id] = self.meet(outgoing) if outgoing else self.initial_value()
                new_fact = self.transfer(node, self.out_facts[node_id])
                if new_fact == self.in_facts[node_id]:
                    continue
                self.in_facts[node_id] = new_fact
                dependents = preds[node_id]
            for dependent in dependents:
                if dependent not in queued:
                    queued.add(dependent)
                    worklist.append(dependent)


class LiveVariables(DataFlowAnalysis[frozenset[str]]):
    """
    Live variable analysis (backward).
    live_in(n) = uses(n) ∪ (live_out(n) - defs(n)),
    live_out(n) = union of live_in over successors.
    """

    def __init__(self, cfg: ControlFlowGraph) -> None:
        super().__init__(cfg)
        self.analyze()

    def is_forward(self) -> bool:
        return False

    def initial_value(self) -> frozenset[str]:
        return frozenset()

    def transfer(self, node: CfgNode, out_fact: frozenset[str]) -> frozenset[str]:
        """Transfer function: (out - kill) ∪ gen."""
        return node.uses() | (out_fact - node.defines())

    def meet(self, facts: list[frozenset[str]]) -> frozenset[str]:
        """Union: variable is live if live on any successor path."""
        result: set[str] = set()
        for f in facts:
            result |= f
        return frozenset(result)

    def live_in(self, node_id: int) -> frozenset[str]:
        return self.in_facts.get(node_id, frozenset())

    def live_out(self, node_id: int) -> frozenset[str]:
        return self.out_facts.get(node_id, frozenset())

    def is_live(self, var_name: str, node_id: int) -> bool:
        """Check if a variable is live on entry to a node."""
        return var_name in self.live_in(node_id)


__all__ = ["DataFlowAnalysis", "LiveVariables"]
