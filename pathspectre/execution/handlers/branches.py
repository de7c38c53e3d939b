"""Branch nodes: instanceof, comparisons, typeof and truthiness tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pathspectre.analysis.cfg import CfgNode, NodeKind
from pathspectre.execution.dispatcher import TransferContext, TransferResult, transfer_handler

if TYPE_CHECKING:
    from pathspectre.core.state import ProgramState


@transfer_handler(NodeKind.TYPE_TEST, NodeKind.COMPARISON, NodeKind.TYPEOF, NodeKind.TRUTHINESS)
def handle_branch(node: CfgNode, state: ProgramState, ctx: TransferContext) -> TransferResult:
    """Evaluate the condition and follow each feasible outcome with its narrowed state."""
    predicate, state = ctx.expressions.predicate_of(state, node.condition)
    evaluation = ctx.conditions.evaluate(state, predicate)
    return TransferResult.branch(node, evaluation)
