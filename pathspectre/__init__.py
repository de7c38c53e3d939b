"""pathspectre: path-sensitive symbolic execution over control-flow graphs.
pathspectre explores every path of a function's control-flow graph and
reports, for each program point, the distinct abstract states that reach it:
what is known about each variable's nullness, type, truthiness and zeroness,
and the relations recorded between values. Branches whose outcome is already
implied by the state are resolved without forking.
Example:
    >>> from pathspectre import GraphBuilder, explore
    >>> from pathspectre.analysis.cfg import call, instance_of
    >>> b = GraphBuilder("f", parameters=("x",))
    >>> with b.if_(instance_of("x", "Foo")):
    ...     use = b.statement(call("foo", "x"))
    >>> result = explore(b.build())
    >>> [str(result.constraint_of(s, "x")) for s in result.states_at(use)]
    ['NOT_NULL']
"""

__version__ = "0.1.0"

from pathspectre.analysis.cfg import ControlFlowGraph, GraphBuilder, load_graph, load_graphs
from pathspectre.api import explore, explore_file, explore_many
from pathspectre.config import PathSpectreConfig, load_config
from pathspectre.core.constraints import Constraint, Decision
from pathspectre.core.errors import InvariantViolation, MalformedGraphError, PathSpectreError
from pathspectre.core.state import ProgramState
from pathspectre.execution.explorer import (
    ExplorationConfig,
    ExplorationResult,
    PathExplorer,
)
from pathspectre.logging import LogLevel, configure_logging, get_logger
from pathspectre.reporting.formatters import format_result
from pathspectre.resources import BudgetExhausted

__all__ = [
    "__version__",
    "ControlFlowGraph",
    "GraphBuilder",
    "load_graph",
    "load_graphs",
    "explore",
    "explore_file",
    "explore_many",
    "PathSpectreConfig",
    "load_config",
    "Constraint",
    "Decision",
    "InvariantViolation",
    "MalformedGraphError",
    "PathSpectreError",
    "ProgramState",
    "ExplorationConfig",
    "ExplorationResult",
    "PathExplorer",
    "LogLevel",
    "configure_logging",
    "get_logger",
    "format_result",
    "BudgetExhausted",
]
