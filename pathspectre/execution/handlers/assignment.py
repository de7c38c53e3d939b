"""Assignment nodes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pathspectre.analysis.cfg import CfgNode, NodeKind
from pathspectre.execution.dispatcher import TransferContext, TransferResult, transfer_handler

if TYPE_CHECKING:
    from pathspectre.core.state import ProgramState


@transfer_handler(NodeKind.ASSIGNMENT)
def handle_assignment(node: CfgNode, state: ProgramState, ctx: TransferContext) -> TransferResult:
    """``target = expression``: bind the target to the expression's value."""
    value, state = ctx.expressions.evaluate(state, node.expression)
    state = ctx.registry.alias(state, node.target, value)
    return TransferResult.continue_with(node.successor, state)
