"""Public API for pathspectre."""
from __future__ import annotations
from collections.abc import Iterable
from pathlib import Path
from pathspectre.analysis.cfg import ControlFlowGraph, load_graphs
from pathspectre.analysis.path_manager import ExplorationStrategy
from pathspectre.execution.explorer import (
    ExplorationConfig,
    ExplorationResult,
    PathExplorer,
)
from pathspectre.execution.parallel import explore_functions
from pathspectre.logging import PathSpectreLogger
def explore(
    graph: ControlFlowGraph,
    config: ExplorationConfig | None = None,
    *,
    max_steps: int | None = None,
    strategy: ExplorationStrategy | None = None,
    logger: PathSpectreLogger | None = None,
) -> ExplorationResult:
    """
    Explore one function and report the states reaching each program point.
    Args:
        graph: Control-flow graph of the function
        config: Exploration settings (defaults if omitted)
        max_steps: Override of ``config.max_steps``
        strategy: Override of ``config.strategy``
        logger: Logger for progress messages
    Returns:
        ExplorationResult with the recorded states and branch decisions
    Raises:
        MalformedGraphError: If the graph is structurally invalid
    Example:
        >>> b = GraphBuilder("f", parameters=("p",))
        >>> b.assign("x", null())
        >>> with b.if_(compare(">", "p", number(0))):
        ...     b.assign("x", number(0))
        >>> use = b.statement(call("foo", "x"))
        >>> result = explore(b.build())
        >>> sorted(str(result.constraint_of(s, "x")) for s in result.states_at(use))
        ['NULL', 'ZERO']
    """
    config = _with_overrides(config, max_steps, strategy)
    return PathExplorer(graph, config, logger).run()
def explore_many(
    graphs: Iterable[ControlFlowGraph],
    config: ExplorationConfig | None = None,
    *,
    max_workers: int | None = None,
    max_steps: int | None = None,
    strategy: ExplorationStrategy | None = None,
    logger: PathSpectreLogger | None = None,
) -> list[ExplorationResult]:
    """Explore independent functions concurrently; results keep input order."""
    config = _with_overrides(config, max_steps, strategy)
    return explore_functions(graphs, config, max_workers, logger)
def explore_file(
    path: str | Path,
    config: ExplorationConfig | None = None,
    *,
    max_workers: int | None = None,
    logger: PathSpectreLogger | None = None,
) -> list[ExplorationResult]:
    """Load every function of a JSON graph file and explore them."""
    return explore_functions(load_graphs(path), config, max_workers, logger)
def _with_overrides(
    config: ExplorationConfig | None,
    max_steps: int | None,
    strategy: ExplorationStrategy | None,
) -> ExplorationConfig:
    config = config or ExplorationConfig()
    changes = {}
    if max_steps is not None:
        changes["max_steps"] = max_steps
    if strategy is not None:
        changes["strategy"] = strategy
    if not changes:
        return config
    return ExplorationConfig(**{**config.__dict__, **changes})
__all__ = ["explore", "explore_many", "explore_file"]
