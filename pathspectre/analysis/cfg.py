"""Control-flow graph model consumed by the path explorer.
The graph is produced by an external frontend; this module defines its
shape, validates it, and (de)serializes it to JSON. ``GraphBuilder`` builds
graphs in code with structured ``if``/``else``/``while`` blocks, which is how
tests and small tools describe functions without a parser.
"""

from __future__ import annotations

import itertools
import json
import math
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any

from pathspectre.core.errors import MalformedGraphError
from pathspectre.core.values import EQUALITY_OPERATORS, RELATIONAL_OPERATORS, LiteralKind


class Expression:
    """Base class of expression trees carried by CFG nodes."""

    def reads(self) -> frozenset[str]:
        """Variables read when evaluating this expression."""
        return frozenset()

    def children(self) -> tuple[Expression, ...]:
        return ()


@dataclass(frozen=True)
class Var(Expression):
    name: str

    def reads(self) -> frozenset[str]:
        return frozenset({self.name})

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Const(Expression):
    kind: LiteralKind
    value: Any = None

    def __str__(self) -> str:
        if self.kind is LiteralKind.NULL:
            return "null"
        if self.kind is LiteralKind.UNDEFINED:
            return "undefined"
        if self.kind is LiteralKind.BOOLEAN:
            return "true" if self.value else "false"
        return repr(self.value) if self.kind is LiteralKind.STRING else str(self.value)


def _reads_of(expressions: tuple[Expression, ...]) -> frozenset[str]:
    names: set[str] = set()
    for expression in expressions:
        names |= expression.reads()
    return frozenset(names)


@dataclass(frozen=True)
class Call(Expression):
    callee: str
    arguments: tuple[Expression, ...] = ()

    def reads(self) -> frozenset[str]:
        return _reads_of(self.arguments)

    def children(self) -> tuple[Expression, ...]:
        return self.arguments

    def __str__(self) -> str:
        return f"{self.callee}({', '.join(map(str, self.arguments))})"


@dataclass(frozen=True)
class New(Expression):
    constructor: str
    arguments: tuple[Expression, ...] = ()

    def reads(self) -> frozenset[str]:
        return _reads_of(self.arguments)

    def children(self) -> tuple[Expression, ...]:
        return self.arguments

    def __str__(self) -> str:
        return f"new {self.constructor}({', '.join(map(str, self.arguments))})"


@dataclass(frozen=True)
class FunctionExpr(Expression):
    name: str = ""

    def __str__(self) -> str:
        return f"function {self.name}() {{}}"


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    elements: tuple[Expression, ...] = ()

    def reads(self) -> frozenset[str]:
        return _reads_of(self.elements)

    def children(self) -> tuple[Expression, ...]:
        return self.elements

    def __str__(self) -> str:
        return f"[{', '.join(map(str, self.elements))}]"


@dataclass(frozen=True)
class ObjectLiteral(Expression):
    def __str__(self) -> str:
        return "{}"


@dataclass(frozen=True)
class InstanceOf(Expression):
    operand: Expression
    constructor: str

    def reads(self) -> frozenset[str]:
        return self.operand.reads()

    def children(self) -> tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return f"{self.operand} instanceof {self.constructor}"


@dataclass(frozen=True)
class Compare(Expression):
    """Relational (``< <= > >=``) or equality (``== != === !==``) comparison."""

    operator: str
    left: Expression
    right: Expression

    def reads(self) -> frozenset[str]:
        return self.left.reads() | self.right.reads()

    def children(self) -> tuple[Expression, ...]:
        return (self.left, self.right)

    def __str__(self) -> str:
        return f"{self.left} {self.operator} {self.right}"


@dataclass(frozen=True)
class TypeOf(Expression):
    """``typeof operand <operator> "tag"``."""

    operand: Expression
    tag: str
    operator: str = "=="

    def reads(self) -> frozenset[str]:
        return self.operand.reads()

    def children(self) -> tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return f"typeof {self.operand} {self.operator} {self.tag!r}"


@dataclass(frozen=True)
class Truthy(Expression):
    operand: Expression

    def reads(self) -> frozenset[str]:
        return self.operand.reads()

    def children(self) -> tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return str(self.operand)


@dataclass(frozen=True)
class Not(Expression):
    operand: Expression

    def reads(self) -> frozenset[str]:
        return self.operand.reads()

    def children(self) -> tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return f"!({self.operand})"


CONDITION_TYPES = (InstanceOf, Compare, TypeOf, Truthy, Not)


def var(name: str) -> Var:
    return Var(name)


def null() -> Const:
    return Const(LiteralKind.NULL)


def undefined() -> Const:
    return Const(LiteralKind.UNDEFINED)


def number(value: int | float) -> Const:
    return Const(LiteralKind.NUMBER, value)


def nan() -> Const:
    return Const(LiteralKind.NUMBER, math.nan)


def string(value: str) -> Const:
    return Const(LiteralKind.STRING, value)


def boolean(value: bool) -> Const:
    return Const(LiteralKind.BOOLEAN, bool(value))


def call(callee: str, *arguments: Expression | str) -> Call:
    return Call(callee, tuple(_as_expression(a) for a in arguments))


def new(constructor: str, *arguments: Expression | str) -> New:
    return New(constructor, tuple(_as_expression(a) for a in arguments))


def function_expr(name: str = "") -> FunctionExpr:
    return FunctionExpr(name)


def array(*elements: Expression | str) -> ArrayLiteral:
    return ArrayLiteral(tuple(_as_expression(e) for e in elements))


def obj() -> ObjectLiteral:
    return ObjectLiteral()


def instance_of(operand: Expression | str, constructor: str) -> InstanceOf:
    return InstanceOf(_as_expression(operand), constructor)


def compare(operator: str, left: Expression | str, right: Expression | str) -> Compare:
    return Compare(operator, _as_expression(left), _as_expression(right))


def type_of(operand: Expression | str, tag: str, operator: str = "==") -> TypeOf:
    return TypeOf(_as_expression(operand), tag, operator)


def truthy(operand: Expression | str) -> Truthy:
    return Truthy(_as_expression(operand))


def not_(condition: Expression | str) -> Not:
    return Not(as_condition(_as_expression(condition)))


def _as_expression(value: Expression | str) -> Expression:
    """Strings are shorthand for variable reads."""
    return Var(value) if isinstance(value, str) else value


def as_condition(expression: Expression) -> Expression:
    """Wrap a plain value expression in a truthiness test."""
    if isinstance(expression, CONDITION_TYPES):
        return expression
    return Truthy(expression)


class NodeKind(Enum):
    """Kinds of CFG nodes."""

    ENTRY = auto()
    ASSIGNMENT = auto()
    TYPE_TEST = auto()
    COMPARISON = auto()
    TYPEOF = auto()
    TRUTHINESS = auto()
    STATEMENT = auto()
    EXIT = auto()


BRANCH_KINDS = frozenset(
    {NodeKind.TYPE_TEST, NodeKind.COMPARISON, NodeKind.TYPEOF, NodeKind.TRUTHINESS}
)
LINEAR_KINDS = frozenset({NodeKind.ENTRY, NodeKind.ASSIGNMENT, NodeKind.STATEMENT})


def condition_kind(condition: Expression) -> NodeKind:
    """Branch node kind matching a condition (negations are looked through)."""
    while isinstance(condition, Not):
        condition = condition.operand
    if isinstance(condition, InstanceOf):
        return NodeKind.TYPE_TEST
    if isinstance(condition, Compare):
        return NodeKind.COMPARISON
    if isinstance(condition, TypeOf):
        return NodeKind.TYPEOF
    return NodeKind.TRUTHINESS


@dataclass
class CfgNode:
    """A program point.
    Attributes:
        id: Unique node identifier (the program point).
        kind: Node kind.
        successor: Next node of a linear node.
        true_successor: Target when a branch condition holds.
        false_successor: Target when a branch condition does not hold.
        target: Assigned variable of an ASSIGNMENT node.
        expression: Right-hand side of an assignment, or evaluated statement.
        condition: Condition of a branch node.
        reads: Extra variables read by a statement (e.g. call arguments).
        line: Source line, if known.
        annotation: Expected states at this point, in fixture syntax.
    """

    id: int
    kind: NodeKind
    successor: int | None = None
    true_successor: int | None = None
    false_successor: int | None = None
    target: str | None = None
    expression: Expression | None = None
    condition: Expression | None = None
    reads: tuple[str, ...] = ()
    line: int | None = None
    annotation: str | None = None

    @property
    def is_branch(self) -> bool:
        return self.kind in BRANCH_KINDS

    def successors(self) -> list[int]:
        if self.is_branch:
            return [s for s in (self.true_successor, self.false_successor) if s is not None]
        return [self.successor] if self.successor is not None else []

    def uses(self) -> frozenset[str]:
        names = set(self.reads)
        for expression in (self.expression, self.condition):
            if expression is not None:
                names |= expression.reads()
        return frozenset(names)

    def defines(self) -> frozenset[str]:
        if self.kind is NodeKind.ASSIGNMENT and self.target:
            return frozenset({self.target})
        return frozenset()

    def __str__(self) -> str:
        if self.kind is NodeKind.ASSIGNMENT:
            return f"{self.target} = {self.expression}"
        if self.is_branch:
            return f"if ({self.condition})"
        if self.kind is NodeKind.STATEMENT and self.expression is not None:
            return str(self.expression)
        return self.kind.name.lower()


@dataclass
class ControlFlowGraph:
    """The CFG of one function."""

    name: str
    nodes: dict[int, CfgNode]
    entry: int
    parameters: tuple[str, ...] = ()

    def node(self, node_id: int) -> CfgNode:
        return self.nodes[node_id]

    def successors(self, node_id: int) -> list[int]:
        return self.nodes[node_id].successors()

    def predecessors(self) -> dict[int, list[int]]:
        preds: dict[int, list[int]] = {node_id: [] for node_id in self.nodes}
        for node in self.nodes.values():
            for succ in node.successors():
                preds[succ].append(node.id)
        return preds

    def exits(self) -> list[int]:
        return [n.id for n in self.nodes.values() if n.kind is NodeKind.EXIT]

    def annotated_nodes(self) -> list[CfgNode]:
        return [self.nodes[i] for i in sorted(self.nodes) if self.nodes[i].annotation]

    def variables(self) -> frozenset[str]:
        names = set(self.parameters)
        for node in self.nodes.values():
            names |= node.uses() | node.defines()
        return frozenset(names)

    def validate(self) -> None:
        """Check the structural contract of the graph.
        Raises:
            MalformedGraphError: On a missing or duplicate entry, a dangling
                or missing edge, a condition on the wrong node kind, or an
                unknown operator.
        """
        entries = [n.id for n in self.nodes.values() if n.kind is NodeKind.ENTRY]
        if self.entry not in self.nodes:
            raise MalformedGraphError(self.entry, "entry node does not exist")
        if self.nodes[self.entry].kind is not NodeKind.ENTRY:
            raise MalformedGraphError(self.entry, "entry node is not of kind ENTRY")
        if len(entries) != 1:
            raise MalformedGraphError(entries[-1], "graph has more than one ENTRY node")
        for node_id, node in self.nodes.items():
            if node.id != node_id:
                raise MalformedGraphError(node_id, f"node registered under id {node_id} has id {node.id}")
            self._validate_node(node)

    def _validate_node(self, node: CfgNode) -> None:
        if node.kind is NodeKind.EXIT:
            if node.successors():
                raise MalformedGraphError(node.id, "EXIT node has successors")
            return
        if node.is_branch:
            if node.true_successor is None or node.false_successor is None:
                raise MalformedGraphError(node.id, "branch node needs both successors")
            if node.successor is not None:
                raise MalformedGraphError(node.id, "branch node has a plain successor")
            if node.condition is None:
                raise MalformedGraphError(node.id, "branch node has no condition")
            if condition_kind(node.condition) is not node.kind:
                raise MalformedGraphError(
                    node.id,
                    f"condition {node.condition} does not belong on a {node.kind.name} node",
                )
            _validate_expression(node.id, node.condition)
        else:
            if node.successor is None:
                raise MalformedGraphError(node.id, f"{node.kind.name} node has no successor")
            if node.true_successor is not None or node.false_successor is not None:
                raise MalformedGraphError(node.id, f"{node.kind.name} node has branch successors")
            if node.condition is not None:
                raise MalformedGraphError(node.id, f"{node.kind.name} node carries a condition")
        if node.kind is NodeKind.ASSIGNMENT:
            if not node.target or node.expression is None:
                raise MalformedGraphError(node.id, "assignment needs a target and an expression")
        if node.expression is not None:
            _validate_expression(node.id, node.expression)
        for succ in node.successors():
            if succ not in self.nodes:
                raise MalformedGraphError(node.id, f"edge to missing node {succ}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "parameters": list(self.parameters),
            "entry": self.entry,
            "nodes": [_node_to_dict(self.nodes[i]) for i in sorted(self.nodes)],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ControlFlowGraph:
        """Build and validate a graph from its JSON form.
        Raises:
            MalformedGraphError: If the data is structurally invalid.
        """
        try:
            nodes: dict[int, CfgNode] = {}
            for raw in data["nodes"]:
                node = _node_from_dict(raw)
                if node.id in nodes:
                    raise MalformedGraphError(node.id, "duplicate node id")
                nodes[node.id] = node
            graph = cls(
                name=data.get("name", "anonymous"),
                nodes=nodes,
                entry=int(data["entry"]),
                parameters=tuple(data.get("parameters", ())),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedGraphError(None, f"invalid graph data: {e}") from e
        graph.validate()
        return graph


def _validate_expression(node_id: int, expression: Expression) -> None:
    if isinstance(expression, Compare):
        if expression.operator not in RELATIONAL_OPERATORS | EQUALITY_OPERATORS:
            raise MalformedGraphError(node_id, f"unknown operator {expression.operator!r}")
    elif isinstance(expression, TypeOf):
        if expression.operator not in EQUALITY_OPERATORS:
            raise MalformedGraphError(node_id, f"unknown typeof operator {expression.operator!r}")
    for child in expression.children():
        _validate_expression(node_id, child)


def expression_to_dict(expression: Expression) -> dict[str, Any]:
    """JSON form of an expression tree."""
    if isinstance(expression, Var):
        return {"type": "var", "name": expression.name}
    if isinstance(expression, Const):
        value = expression.value
        if isinstance(value, float) and math.isnan(value):
            value = "NaN"
        return {"type": "literal", "kind": expression.kind.name, "value": value}
    if isinstance(expression, Call):
        return {
            "type": "call",
            "callee": expression.callee,
            "arguments": [expression_to_dict(a) for a in expression.arguments],
        }
    if isinstance(expression, New):
        return {
            "type": "new",
            "constructor": expression.constructor,
            "arguments": [expression_to_dict(a) for a in expression.arguments],
        }
    if isinstance(expression, FunctionExpr):
        return {"type": "function", "name": expression.name}
    if isinstance(expression, ArrayLiteral):
        return {"type": "array", "elements": [expression_to_dict(e) for e in expression.elements]}
    if isinstance(expression, ObjectLiteral):
        return {"type": "object"}
    if isinstance(expression, InstanceOf):
        return {
            "type": "instanceof",
            "operand": expression_to_dict(expression.operand),
            "constructor": expression.constructor,
        }
    if isinstance(expression, Compare):
        return {
            "type": "compare",
            "operator": expression.operator,
            "left": expression_to_dict(expression.left),
            "right": expression_to_dict(expression.right),
        }
    if isinstance(expression, TypeOf):
        return {
            "type": "typeof",
            "operand": expression_to_dict(expression.operand),
            "tag": expression.tag,
            "operator": expression.operator,
        }
    if isinstance(expression, Truthy):
        return {"type": "truthy", "operand": expression_to_dict(expression.operand)}
    if isinstance(expression, Not):
        return {"type": "not", "operand": expression_to_dict(expression.operand)}
    raise TypeError(f"Cannot serialize expression {expression!r}")


def expression_from_dict(data: dict[str, Any]) -> Expression:
    """Parse the JSON form of an expression tree."""
    kind = data["type"]
    if kind == "var":
        return Var(data["name"])
    if kind == "literal":
        literal_kind = LiteralKind[data["kind"]]
        value = data.get("value")
        if literal_kind is LiteralKind.NUMBER and value == "NaN":
            value = math.nan
        return Const(literal_kind, value)
    if kind == "call":
        return Call(data["callee"], tuple(expression_from_dict(a) for a in data.get("arguments", ())))
    if kind == "new":
        return New(
            data["constructor"], tuple(expression_from_dict(a) for a in data.get("arguments", ()))
        )
    if kind == "function":
        return FunctionExpr(data.get("name", ""))
    if kind == "array":
        return ArrayLiteral(tuple(expression_from_dict(e) for e in data.get("elements", ())))
    if kind == "object":
        return ObjectLiteral()
    if kind == "instanceof":
        return InstanceOf(expression_from_dict(data["operand"]), data["constructor"])
    if kind == "compare":
        return Compare(
            data["operator"],
            expression_from_dict(data["left"]),
            expression_from_dict(data["right"]),
        )
    if kind == "typeof":
        return TypeOf(expression_from_dict(data["operand"]), data["tag"], data.get("operator", "=="))
    if kind == "truthy":
        return Truthy(expression_from_dict(data["operand"]))
    if kind == "not":
        return Not(expression_from_dict(data["operand"]))
    raise ValueError(f"unknown expression type {kind!r}")


def _node_to_dict(node: CfgNode) -> dict[str, Any]:
    data: dict[str, Any] = {"id": node.id, "kind": node.kind.name}
    for key in ("successor", "true_successor", "false_successor", "target", "line", "annotation"):
        value = getattr(node, key)
        if value is not None:
            data[key] = value
    if node.expression is not None:
        data["expression"] = expression_to_dict(node.expression)
    if node.condition is not None:
        data["condition"] = expression_to_dict(node.condition)
    if node.reads:
        data["reads"] = list(node.reads)
    return data


def _node_from_dict(data: dict[str, Any]) -> CfgNode:
    node_id = int(data["id"])
    try:
        kind = NodeKind[data["kind"]]
        expression = data.get("expression")
        condition = data.get("condition")
        return CfgNode(
            id=node_id,
            kind=kind,
            successor=data.get("successor"),
            true_successor=data.get("true_successor"),
            false_successor=data.get("false_successor"),
            target=data.get("target"),
            expression=expression_from_dict(expression) if expression is not None else None,
            condition=expression_from_dict(condition) if condition is not None else None,
            reads=tuple(data.get("reads", ())),
            line=data.get("line"),
            annotation=data.get("annotation"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedGraphError(node_id, f"invalid node data: {e}") from e


def load_graph(path: str | Path) -> ControlFlowGraph:
    """Load a single graph from a JSON file."""
    graphs = load_graphs(path)
    if len(graphs) != 1:
        raise MalformedGraphError(None, f"{path} holds {len(graphs)} graphs, expected one")
    return graphs[0]


def load_graphs(path: str | Path) -> list[ControlFlowGraph]:
    """Load one graph, or a ``{"functions": [...]}`` document of several.
    Raises:
        MalformedGraphError: If the file cannot be read, is not JSON, or
            describes an invalid graph.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedGraphError(None, f"cannot read {path}: {e}") from e
    if isinstance(data, dict) and "functions" in data:
        return [ControlFlowGraph.from_dict(item) for item in data["functions"]]
    return [ControlFlowGraph.from_dict(data)]


def dump_graphs(graphs: list[ControlFlowGraph], path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"functions": [g.to_dict() for g in graphs]}, f, indent=2)


@dataclass
class _Slot:
    node_id: int
    attribute: str


class IfBlock:
    """Context manager for the then-block of ``GraphBuilder.if_``."""

    def __init__(self, builder: GraphBuilder, node: CfgNode):
        self._builder = builder
        self._node = node
        self._then_exits: list[_Slot] = []
        self._closed = False

    @property
    def node(self) -> CfgNode:
        """The branch node opened by this block."""
        return self._node

    def __enter__(self) -> IfBlock:
        self._builder._pending = [_Slot(self._node.id, "true_successor")]
        return self

    def __exit__(self, *exc_info: Any) -> bool:
        self._then_exits = self._builder._pending
        self._builder._pending = self._then_exits + [_Slot(self._node.id, "false_successor")]
        self._closed = True
        return False

    @contextmanager
    def orelse(self) -> Iterator[None]:
        """Else-block; must directly follow the then-block."""
        builder = self._builder
        expected = self._then_exits + [_Slot(self._node.id, "false_successor")]
        if not self._closed or builder._pending != expected:
            raise ValueError("orelse() must directly follow its if_ block")
        builder._pending = [_Slot(self._node.id, "false_successor")]
        yield
        builder._pending = self._then_exits + builder._pending


@dataclass
class GraphBuilder:
    """Builds a ``ControlFlowGraph`` with structured control flow.
    Example:
        b = GraphBuilder("f", parameters=("p",))
        b.assign("x", null())
        with b.if_(compare(">", "p", number(0))) as block:
            b.assign("x", number(0))
        with block.orelse():
            b.statement(call("foo"))
        b.statement(call("foo", "x"), expect="x=ZERO || x=NULL")
        graph = b.build()
    """

    name: str = "anonymous"
    parameters: tuple[str, ...] = ()
    _nodes: dict[int, CfgNode] = field(default_factory=dict, init=False)
    _pending: list[_Slot] = field(default_factory=list, init=False)
    _returns: list[_Slot] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self._ids = itertools.count()
        self.parameters = tuple(self.parameters)
        entry = self._add(NodeKind.ENTRY)
        self.entry = entry.id
        self._pending = [_Slot(entry.id, "successor")]

    def _add(self, kind: NodeKind, **fields: Any) -> CfgNode:
        node = CfgNode(id=next(self._ids), kind=kind, **fields)
        self._nodes[node.id] = node
        self._connect(node.id)
        return node

    def _connect(self, target: int) -> None:
        for slot in self._pending:
            setattr(self._nodes[slot.node_id], slot.attribute, target)
        self._pending = []

    def assign(
        self,
        target: str,
        expression: Expression | str,
        *,
        line: int | None = None,
        expect: str | None = None,
    ) -> int:
        """``target = expression``; returns the node id."""
        node = self._add(
            NodeKind.ASSIGNMENT,
            target=target,
            expression=_as_expression(expression),
            line=line,
            annotation=expect,
        )
        self._pending = [_Slot(node.id, "successor")]
        return node.id

    def statement(
        self,
        expression: Expression | None = None,
        *,
        reads: tuple[str, ...] | list[str] = (),
        line: int | None = None,
        expect: str | None = None,
    ) -> int:
        """An expression statement (typically a call); returns the node id."""
        node = self._add(
            NodeKind.STATEMENT,
            expression=expression,
            reads=tuple(reads),
            line=line,
            annotation=expect,
        )
        self._pending = [_Slot(node.id, "successor")]
        return node.id

    def branch(
        self,
        condition: Expression | str,
        *,
        line: int | None = None,
        expect: str | None = None,
    ) -> CfgNode:
        condition = as_condition(_as_expression(condition))
        return self._add(
            condition_kind(condition), condition=condition, line=line, annotation=expect
        )

    def if_(
        self,
        condition: Expression | str,
        *,
        line: int | None = None,
        expect: str | None = None,
    ) -> IfBlock:
        """Open an ``if`` whose then-block is the ``with`` body."""
        return IfBlock(self, self.branch(condition, line=line, expect=expect))

    @contextmanager
    def while_(
        self,
        condition: Expression | str,
        *,
        line: int | None = None,
        expect: str | None = None,
    ) -> Iterator[CfgNode]:
        """Loop whose body is the ``with`` body; the body flows back to the test."""
        node = self.branch(condition, line=line, expect=expect)
        self._pending = [_Slot(node.id, "true_successor")]
        yield node
        self._connect(node.id)
        self._pending = [_Slot(node.id, "false_successor")]

    def return_(self, expression: Expression | None = None, *, line: int | None = None) -> int:
        """Leave the function; code after it in the same block is unreachable."""
        node = self._add(NodeKind.STATEMENT, expression=expression, line=line)
        self._returns.append(_Slot(node.id, "successor"))
        self._pending = []
        return node.id

    def build(self) -> ControlFlowGraph:
        """Close the graph with an EXIT node and validate it."""
        self._pending = self._pending + self._returns
        self._returns = []
        exit_node = self._add(NodeKind.EXIT)
        graph = ControlFlowGraph(
            name=self.name,
            nodes=dict(self._nodes),
            entry=self.entry,
            parameters=self.parameters,
        )
        graph.validate()
        self.exit = exit_node.id
        return graph


__all__ = [
    "Expression",
    "Var",
    "Const",
    "Call",
    "New",
    "FunctionExpr",
    "ArrayLiteral",
    "ObjectLiteral",
    "InstanceOf",
    "Compare",
    "TypeOf",
    "Truthy",
    "Not",
    "var",
    "null",
    "undefined",
    "number",
    "nan",
    "string",
    "boolean",
    "call",
    "new",
    "function_expr",
    "array",
    "obj",
    "instance_of",
    "compare",
    "type_of",
    "truthy",
    "not_",
    "as_condition",
    "condition_kind",
    "NodeKind",
    "CfgNode",
    "ControlFlowGraph",
    "GraphBuilder",
    "IfBlock",
    "MalformedGraphError",
    "expression_to_dict",
    "expression_from_dict",
    "load_graph",
    "load_graphs",
    "dump_graphs",
]
