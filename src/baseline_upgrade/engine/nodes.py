from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, fields
from typing import Literal

DeclarationKind = Literal["var", "let", "const"]
FunctionKind = Literal["arrow", "expression", "declaration"]


@dataclass(frozen=True, slots=True)
class Span:
    start_line: int  # 1-based
    start_col: int  # 0-based, characters
    end_line: int  # 1-based
    end_col: int  # 0-based, characters, exclusive
    start_offset: int  # character offset into the source
    end_offset: int


@dataclass(frozen=True, slots=True, kw_only=True)
class Node:
    """
    Base class for the closed set of syntax constructs rules can match on.

    Child nodes are any dataclass fields holding a `Node` or a tuple of nodes;
    field declaration order is source order.
    """

    span: Span | None = None

    def children(self) -> tuple[Node, ...]:
        out: list[Node] = []
        for f in fields(self):
            if f.name == "span":
                continue
            value = getattr(self, f.name)
            if isinstance(value, Node):
                out.append(value)
            elif isinstance(value, tuple):
                out.extend(v for v in value if isinstance(v, Node))
        return tuple(out)


@dataclass(frozen=True, slots=True, kw_only=True)
class Program(Node):
    body: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class NumericLiteral(Node):
    raw: str
    value: float | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class StringLiteral(Node):
    value: str


@dataclass(frozen=True, slots=True, kw_only=True)
class VariableDeclarator(Node):
    id: Node
    init: Node | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class VariableDeclaration(Node):
    kind: DeclarationKind
    declarations: tuple[VariableDeclarator, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class CallExpression(Node):
    callee: Node
    arguments: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class NewExpression(Node):
    callee: Node
    arguments: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class MemberExpression(Node):
    object: Node
    property: Node
    computed: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class BinaryExpression(Node):
    left: Node
    operator: str
    right: Node


@dataclass(frozen=True, slots=True, kw_only=True)
class UnaryExpression(Node):
    operator: str
    argument: Node


@dataclass(frozen=True, slots=True, kw_only=True)
class AssignmentExpression(Node):
    left: Node
    operator: str
    right: Node


@dataclass(frozen=True, slots=True, kw_only=True)
class ArrayExpression(Node):
    elements: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class ObjectExpression(Node):
    properties: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class SpreadElement(Node):
    argument: Node


@dataclass(frozen=True, slots=True, kw_only=True)
class BlockStatement(Node):
    body: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class FunctionExpression(Node):
    kind: FunctionKind
    params: tuple[Node, ...] = ()
    body: Node | None = None
    is_async: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class ExpressionStatement(Node):
    expression: Node


@dataclass(frozen=True, slots=True, kw_only=True)
class ReturnStatement(Node):
    argument: Node | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class BreakStatement(Node):
    pass


@dataclass(frozen=True, slots=True, kw_only=True)
class IfStatement(Node):
    test: Node
    consequent: Node
    alternate: Node | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ForStatement(Node):
    init: Node | None = None
    test: Node | None = None
    update: Node | None = None
    body: Node | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ForInStatement(Node):
    left: Node
    right: Node
    body: Node | None = None
    kind: DeclarationKind | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class OtherNode(Node):
    """Any construct no rule matches on structurally (`type` is the parser's name)."""

    type: str
    nodes: tuple[Node, ...] = ()


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield `root` and its descendants pre-order: parent first, children in source order."""

    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children()))


def is_identifier(node: Node | None, name: str | None = None) -> bool:
    if not isinstance(node, Identifier):
        return False
    return name is None or node.name == name


def is_number(node: Node | None, value: float | None = None) -> bool:
    if not isinstance(node, NumericLiteral):
        return False
    return value is None or node.value == value


def is_minus_one(node: Node | None) -> bool:
    return isinstance(node, UnaryExpression) and node.operator == "-" and is_number(node.argument, 1)


def method_name(call: Node | None) -> str | None:
    """Return `m` for a call shaped like `obj.m(...)`, otherwise None."""

    if not isinstance(call, CallExpression):
        return None
    callee = call.callee
    if not isinstance(callee, MemberExpression) or callee.computed:
        return None
    if not isinstance(callee.property, Identifier):
        return None
    return callee.property.name


def is_method_call(node: Node | None, name: str) -> bool:
    return method_name(node) == name
