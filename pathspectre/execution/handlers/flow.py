"""Entry, statement and exit nodes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pathspectre.analysis.cfg import CfgNode, NodeKind
from pathspectre.execution.dispatcher import TransferContext, TransferResult, transfer_handler

if TYPE_CHECKING:
    from pathspectre.core.state import ProgramState


@transfer_handler(NodeKind.ENTRY)
def handle_entry(node: CfgNode, state: ProgramState, ctx: TransferContext) -> TransferResult:
    """Parameters are bound by the explorer; just move on."""
    return TransferResult.continue_with(node.successor, state)


@transfer_handler(NodeKind.STATEMENT)
def handle_statement(node: CfgNode, state: ProgramState, ctx: TransferContext) -> TransferResult:
    """Evaluate the statement for its reads; its value is discarded."""
    if node.expression is not None:
        _, state = ctx.expressions.evaluate(state, node.expression)
    for name in node.reads:
        _, state = ctx.expressions.read(state, name)
    return TransferResult.continue_with(node.successor, state)


@transfer_handler(NodeKind.EXIT)
def handle_exit(node: CfgNode, state: ProgramState, ctx: TransferContext) -> TransferResult:
    """Return from function."""
    return TransferResult.terminate()
