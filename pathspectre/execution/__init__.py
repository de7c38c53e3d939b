"""Transfer functions, node handlers and the path explorer."""

from pathspectre.execution.conditions import ConditionEvaluator, Evaluation
from pathspectre.execution.explorer import (
    ExplorationConfig,
    ExplorationResult,
    PathExplorer,
    explore,
)
from pathspectre.execution.parallel import explore_functions

__all__ = [
    "ConditionEvaluator",
    "Evaluation",
    "ExplorationConfig",
    "ExplorationResult",
    "PathExplorer",
    "explore",
    "explore_functions",
]
