"""Graph-level analyses: the CFG model, liveness, frontiers and state joining."""

from pathspectre.analysis.cfg import (
    CfgNode,
    ControlFlowGraph,
    GraphBuilder,
    NodeKind,
    load_graph,
    load_graphs,
)
from pathspectre.analysis.liveness import LiveVariables
from pathspectre.analysis.path_manager import ExplorationStrategy, create_path_manager
from pathspectre.analysis.state_merger import MergePolicy, StateMerger, summarize

__all__ = [
    "CfgNode",
    "ControlFlowGraph",
    "GraphBuilder",
    "NodeKind",
    "load_graph",
    "load_graphs",
    "LiveVariables",
    "ExplorationStrategy",
    "create_path_manager",
    "MergePolicy",
    "StateMerger",
    "summarize",
]
