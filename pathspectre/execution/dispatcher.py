"""Node dispatcher with registration system.
This module provides a decorator-based system for registering transfer
handlers per CFG node kind, allowing modular organization of the
interpretation of each node.
"""
from __future__ import annotations
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from pathspectre.analysis.cfg import CfgNode, NodeKind
from pathspectre.core.constraints import Decision
if TYPE_CHECKING:
    from pathspectre.analysis.cfg import ControlFlowGraph
    from pathspectre.core.state import ProgramState
    from pathspectre.core.values import ValueRegistry
    from pathspectre.execution.conditions import ConditionEvaluator, Evaluation
    from pathspectre.execution.expressions import ExpressionEvaluator


@dataclass
class TransferContext:
    """Everything a handler may use besides the node and the state."""
    graph: ControlFlowGraph
    registry: ValueRegistry
    expressions: ExpressionEvaluator
    conditions: ConditionEvaluator


@dataclass
class TransferResult:
    """Result of executing a node.
    Attributes:
        successors: (program point, state) pairs to explore next.
        decision: Outcome of a branch node; None for other nodes.
        pruned: Successors dropped as infeasible.
        terminal: Whether this node ends the path.
    """
    successors: list[tuple[int, ProgramState]] = field(default_factory=list)
    decision: Decision | None = None
    pruned: int = 0
    terminal: bool = False
    @staticmethod
    def continue_with(point: int, state: ProgramState) -> TransferResult:
        """Continue execution with a single state."""
        return TransferResult(successors=[(point, state)])
    @staticmethod
    def branch(node: CfgNode, evaluation: Evaluation) -> TransferResult:
        """Follow the feasible outcomes of a branch node."""
        successors = []
        for outcome, state in evaluation.successors():
            target = node.true_successor if outcome else node.false_successor
            successors.append((target, state))
        return TransferResult(
            successors=successors, decision=evaluation.decision, pruned=evaluation.pruned
        )
    @staticmethod
    def terminate() -> TransferResult:
        """Terminate this execution path."""
        return TransferResult(terminal=True)


TransferHandler = Callable[[CfgNode, "ProgramState", TransferContext], TransferResult]


class TransferDispatcher:
    """Dispatches CFG nodes to registered handlers.
    Example:
        dispatcher = TransferDispatcher()
        @dispatcher.register(NodeKind.STATEMENT)
        def handle_statement(node, state, ctx):
            ...
    """
    _global_handlers: dict[NodeKind, TransferHandler] = {}
    def __init__(self) -> None:
        self._handlers: dict[NodeKind, TransferHandler] = {}
    def register(self, *kinds: NodeKind) -> Callable[[TransferHandler], TransferHandler]:
        """Decorator to register a handler for one or more node kinds on this instance."""
        def decorator(handler: TransferHandler) -> TransferHandler:
            for kind in kinds:
                self._handlers[kind] = handler
            return handler
        return decorator
    def dispatch(self, node: CfgNode, state: ProgramState, ctx: TransferContext) -> TransferResult:
        """Dispatch a node to its handler.
        Raises:
            NotImplementedError: If no handler is registered for the node kind.
        """
        handler = self._handlers.get(node.kind)
        if handler is None:
            handler = TransferDispatcher._global_handlers.get(node.kind)
        if handler is None:
            raise NotImplementedError(f"Node kind not supported: {node.kind.name}")
        return handler(node, state, ctx)
    def has_handler(self, kind: NodeKind) -> bool:
        """Check if a handler is registered for a node kind."""
        return kind in self._handlers or kind in TransferDispatcher._global_handlers
    def registered_kinds(self) -> set[NodeKind]:
        return set(self._handlers) | set(TransferDispatcher._global_handlers)
    def __repr__(self) -> str:
        return f"TransferDispatcher({len(self.registered_kinds())} handlers)"


def transfer_handler(*kinds: NodeKind) -> Callable[[TransferHandler], TransferHandler]:
    """Decorator to register a handler globally.
    Handlers registered with this decorator are available to all
    TransferDispatcher instances.
    Example:
        @transfer_handler(NodeKind.ASSIGNMENT)
        def handle_assignment(node, state, ctx):
            ...
    """
    def decorator(handler: TransferHandler) -> TransferHandler:
        for kind in kinds:
            TransferDispatcher._global_handlers[kind] = handler
        return handler
    return decorator


__all__ = [
    "TransferContext",
    "TransferResult",
    "TransferHandler",
    "TransferDispatcher",
    "transfer_handler",
]
