"""Path explorer for pathspectre.
Explores one function's control-flow graph with an explicit worklist of
``(program point, state)`` items, recording every distinct state that reaches
each point.
"""
from __future__ import annotations
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any
from pathspectre.analysis.cfg import ControlFlowGraph
from pathspectre.analysis.liveness import LiveVariables
from pathspectre.analysis.path_manager import (
    ExplorationStrategy,
    PathManager,
    WorkItem,
    create_path_manager,
)
from pathspectre.analysis.state_merger import MergePolicy, StateMerger, summarize
from pathspectre.core.constraints import Constraint, Decision
from pathspectre.core.solver import RelationSolver
from pathspectre.core.state import ProgramState
from pathspectre.core.values import ValueOrigin, ValueRegistry
from pathspectre.execution.conditions import ConditionEvaluator
from pathspectre.execution.dispatcher import TransferContext, TransferDispatcher
from pathspectre.execution.expressions import ExpressionEvaluator
from pathspectre.logging import PathSpectreLogger, get_logger
from pathspectre.resources import (
    BudgetExhausted,
    LimitExceeded,
    ResourceLimits,
    ResourceSnapshot,
    ResourceTracker,
)
import pathspectre.execution.handlers


@dataclass
class ExplorationConfig:
    """Configuration for path exploration."""
    max_steps: int = 10000
    strategy: ExplorationStrategy = ExplorationStrategy.BFS
    drop_dead_bindings: bool = True
    check_invariants: bool = False
    merge_policy: MergePolicy = MergePolicy.NONE
    merge_threshold: int = 8
    solver_timeout_ms: int = 5000
    timeout_seconds: float | None = None


@dataclass
class ExplorationResult:
    """Result of exploring one function.
    Attributes:
        function: Name of the explored function.
        graph: The explored graph.
        liveness: Live-variable facts of the graph.
        states: Distinct states recorded per program point, in arrival order.
        decisions: Outcomes observed per branch node.
        resources: Counters at the end of the exploration.
        budget: Set when exploration stopped early; the result is then partial.
        solver_queries: Number of queries that reached the SMT solver.
        merges: Number of joins performed by the merge policy.
    """
    function: str
    graph: ControlFlowGraph
    liveness: LiveVariables
    states: dict[int, tuple[ProgramState, ...]] = field(default_factory=dict)
    decisions: dict[int, frozenset[Decision]] = field(default_factory=dict)
    resources: ResourceSnapshot = field(default_factory=ResourceSnapshot)
    budget: BudgetExhausted | None = None
    solver_queries: int = 0
    merges: int = 0
    def states_at(self, point: int) -> frozenset[ProgramState]:
        """All distinct states recorded on entry to ``point``."""
        return frozenset(self.states.get(point, ()))
    def points(self) -> list[int]:
        """Program points reached by at least one state."""
        return sorted(p for p, states in self.states.items() if states)
    @staticmethod
    def constraint_of(
        state: ProgramState, variable: str, lattice: type | None = None
    ) -> Constraint | Any | None:
        """Constraint of ``variable`` in ``state``, or one lattice component of it.
        Returns None if the variable is not bound in the state.
        """
        constraint = state.constraint_of_variable(variable)
        if constraint is None or lattice is None:
            return constraint
        return constraint.component(lattice)
    def is_live(self, variable: str, point: int) -> bool:
        return self.liveness.is_live(variable, point)
    def decision_at(self, point: int) -> Decision | None:
        """Combined outcome of the branch at ``point`` over every state reaching it.
        None if the branch was never evaluated.
        """
        decisions = self.decisions.get(point)
        if not decisions:
            return None
        if len(decisions) == 1:
            return next(iter(decisions))
        return Decision.UNDECIDABLE
    def summary_at(self, point: int) -> dict[str, Constraint]:
        """Per-variable join of the states at ``point``, for display only."""
        return summarize(self.states.get(point, ()))
    @property
    def is_partial(self) -> bool:
        return self.budget is not None
    @property
    def steps(self) -> int:
        return self.resources.steps
    @property
    def states_recorded(self) -> int:
        return self.resources.states_recorded
    @property
    def pruned(self) -> int:
        return self.resources.pruned
    @property
    def deduplicated(self) -> int:
        return self.resources.deduplicated
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        points = []
        for point in self.points():
            node = self.graph.node(point)
            decision = self.decision_at(point)
            points.append({
                "point": point,
                "node": str(node),
                "line": node.line,
                "decision": decision.name if decision is not None else None,
                "states": [s.describe() for s in self.states[point]],
            })
        return {
            "function": self.function,
            "partial": self.is_partial,
            "budget": self.budget.to_dict() if self.budget else None,
            "resources": self.resources.to_dict(),
            "solver_queries": self.solver_queries,
            "merges": self.merges,
            "points": points,
        }


class PathExplorer:
    """Worklist explorer for a single function.
    Each exploration owns its value registry, its solver and its z3 context,
    so explorers of different functions share no mutable state.
    Example:
        explorer = PathExplorer(graph)
        result = explorer.run()
        for state in result.states_at(point):
            print(result.constraint_of(state, "x"))
    """
    def __init__(
        self,
        graph: ControlFlowGraph,
        config: ExplorationConfig | None = None,
        logger: PathSpectreLogger | None = None,
    ):
        graph.validate()
        self.graph = graph
        self.config = config or ExplorationConfig()
        self.logger = logger or get_logger()
        self.liveness = LiveVariables(graph)
        self.dispatcher = TransferDispatcher()
        self._reset()
    def _reset(self) -> None:
        self.registry = ValueRegistry(self.graph.name)
        self.solver = RelationSolver(timeout_ms=self.config.solver_timeout_ms)
        self.conditions = ConditionEvaluator(self.solver)
        self.expressions = ExpressionEvaluator(self.registry, self.conditions)
        self.context = TransferContext(
            graph=self.graph,
            registry=self.registry,
            expressions=self.expressions,
            conditions=self.conditions,
        )
        self.merger = StateMerger(
            self.registry, self.config.merge_policy, self.config.merge_threshold
        )
        self.tracker = ResourceTracker(
            ResourceLimits(
                max_steps=self.config.max_steps,
                timeout_seconds=self.config.timeout_seconds,
            )
        )
        self.frontier: PathManager = create_path_manager(self.config.strategy)
        self._states: dict[int, dict[ProgramState, None]] = {}
        self._decisions: dict[int, set[Decision]] = {}
        self.budget: BudgetExhausted | None = None
    def initial_state(self) -> ProgramState:
        """Entry state: every parameter bound to a fresh unknown."""
        state = ProgramState.empty()
        for name in self.graph.parameters:
            state = state.bind(name, self.registry.new_unknown(ValueOrigin.PARAMETER, name))
        return state
    def steps(self) -> Iterator[WorkItem]:
        """Explore, yielding each processed work item after its step."""
        self._reset()
        self.tracker.start()
        self.logger.verbose(
            f"Exploring {self.graph.name} ({len(self.graph.nodes)} nodes)",
            category="explorer",
        )
        self._push(self.graph.entry, self.initial_state())
        while not self.frontier.is_empty():
            try:
                self.tracker.check_limits()
            except LimitExceeded as e:
                self._exhaust(e)
                return
            item = self.frontier.get_next_state()
            self._step(item)
            yield item
    def run(self) -> ExplorationResult:
        """Explore to a fixed point (or until the budget runs out)."""
        for _ in self.steps():
            pass
        return self.result()
    def result(self) -> ExplorationResult:
        return ExplorationResult(
            function=self.graph.name,
            graph=self.graph,
            liveness=self.liveness,
            states={p: tuple(states) for p, states in self._states.items()},
            decisions={p: frozenset(d) for p, d in self._decisions.items()},
            resources=self.tracker.snapshot(),
            budget=self.budget,
            solver_queries=self.solver.query_count,
            merges=self.merger.stats.merge_operations,
        )
    def _step(self, item: WorkItem) -> None:
        node = self.graph.node(item.point)
        self.tracker.record_step()
        self.logger.trace(f"{node.id}: {node}", category="explorer", state=repr(item.state))
        result = self.dispatcher.dispatch(node, item.state, self.context)
        if result.decision is not None:
            self._decisions.setdefault(node.id, set()).add(result.decision)
            if result.decision is Decision.UNDECIDABLE:
                self.logger.debug(f"fork at {node.id}: {node}", category="explorer")
        if result.pruned:
            self.tracker.record_pruned(result.pruned)
            self.logger.debug(
                f"pruned {result.pruned} infeasible successor(s) at {node.id}",
                category="explorer",
            )
        for point, state in result.successors:
            self._push(point, state)
    def _push(self, point: int, state: ProgramState) -> None:
        if self.config.drop_dead_bindings:
            state = state.retain(self.liveness.live_in(point))
        state = state.collect_garbage()
        recorded = self._states.setdefault(point, {})
        if state in recorded:
            self.tracker.record_duplicate()
            return
        if self.merger.should_merge(len(recorded)):
            joined = self.merger.join([*recorded, state])
            if joined is not None:
                self.logger.debug(
                    f"joined {len(recorded) + 1} states at {point}", category="explorer"
                )
                if joined in recorded:
                    self.tracker.record_duplicate()
                    return
                recorded.clear()
                state = joined
        if self.config.check_invariants:
            self.registry.validate(state)
        recorded[state] = None
        self.tracker.record_state()
        self.frontier.add_state(WorkItem(point, state))
    def _exhaust(self, error: LimitExceeded) -> None:
        discarded = len(self.frontier.drain())
        self.budget = BudgetExhausted(
            function=self.graph.name,
            steps=self.tracker.steps,
            discarded=discarded,
            reason=error.resource_type,
        )
        self.logger.verbose(str(self.budget), category="explorer")


def explore(
    graph: ControlFlowGraph,
    config: ExplorationConfig | None = None,
    logger: PathSpectreLogger | None = None,
) -> ExplorationResult:
    """Explore a single function's graph."""
    return PathExplorer(graph, config, logger).run()


__all__ = [
    "ExplorationConfig",
    "ExplorationResult",
    "PathExplorer",
    "explore",
]
