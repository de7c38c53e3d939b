"""Concurrent exploration of independent functions.
Functions share nothing during exploration: each explorer owns its registry,
its solver and its z3 context. Results come back in input order.
"""
from __future__ import annotations
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathspectre.analysis.cfg import ControlFlowGraph
from pathspectre.execution.explorer import ExplorationConfig, ExplorationResult, PathExplorer
from pathspectre.logging import PathSpectreLogger, get_logger


def explore_functions(
    graphs: Iterable[ControlFlowGraph],
    config: ExplorationConfig | None = None,
    max_workers: int | None = None,
    logger: PathSpectreLogger | None = None,
) -> list[ExplorationResult]:
    """Explore several functions, concurrently when ``max_workers`` > 1.
    Args:
        graphs: One graph per function.
        config: Exploration settings shared by every function.
        max_workers: Thread count; None lets the executor decide, 1 runs
            the functions sequentially in the calling thread.
        logger: Logger for progress messages.
    Returns:
        One result per graph, in input order.
    Raises:
        MalformedGraphError: If any graph is malformed. Graphs are validated
            before any exploration starts.
    """
    graphs = list(graphs)
    logger = logger or get_logger()
    explorers = [PathExplorer(graph, config, logger) for graph in graphs]
    if max_workers == 1 or len(explorers) <= 1:
        results = [explorer.run() for explorer in explorers]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(PathExplorer.run, explorers))
    partial = sum(1 for r in results if r.is_partial)
    if partial:
        logger.verbose(f"{partial} of {len(results)} function(s) hit their budget", category="parallel")
    return results


__all__ = ["explore_functions"]
