from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol, cast

from baseline_upgrade.engine.nodes import (
    ArrayExpression,
    AssignmentExpression,
    BinaryExpression,
    BlockStatement,
    BreakStatement,
    CallExpression,
    ExpressionStatement,
    ForInStatement,
    ForStatement,
    FunctionExpression,
    Identifier,
    IfStatement,
    MemberExpression,
    NewExpression,
    Node,
    NumericLiteral,
    ObjectExpression,
    OtherNode,
    Program,
    ReturnStatement,
    Span,
    SpreadElement,
    StringLiteral,
    UnaryExpression,
    VariableDeclaration,
    VariableDeclarator,
)

logger = logging.getLogger(__name__)


class _ParserLike(Protocol):
    def parse(self, source: bytes) -> Any: ...


_language_cls: Callable[[object], object] | None
_parser_cls: Callable[[object], _ParserLike] | None
_GRAMMARS: dict[str, Callable[[], object]] = {}

try:  # pragma: no cover
    from tree_sitter import Language as _TreeSitterLanguage
    from tree_sitter import Parser as _TreeSitterParser
except (ImportError, OSError):  # pragma: no cover
    _language_cls = None
    _parser_cls = None
else:  # pragma: no cover (depends on installed grammars)
    _language_cls = cast(Callable[[object], object], _TreeSitterLanguage)
    _parser_cls = cast(Callable[[object], _ParserLike], _TreeSitterParser)

try:  # pragma: no cover
    import tree_sitter_javascript as _ts_javascript
except (ImportError, OSError):  # pragma: no cover
    pass
else:  # pragma: no cover
    _GRAMMARS["javascript"] = _ts_javascript.language

try:  # pragma: no cover
    import tree_sitter_typescript as _ts_typescript
except (ImportError, OSError):  # pragma: no cover
    pass
else:  # pragma: no cover
    _GRAMMARS["typescript"] = _ts_typescript.language_typescript
    _GRAMMARS["tsx"] = _ts_typescript.language_tsx

_TREE_SITTER_AVAILABLE = _language_cls is not None and _parser_cls is not None

# Exposed for tests and light monkeypatching.
Parser: Callable[[object], _ParserLike] | None = _parser_cls


class TreeSitterError(RuntimeError):
    """Raised when tree-sitter cannot load a grammar or parse source."""


@lru_cache(maxsize=8)
def _get_language(language: str) -> object:
    if not _TREE_SITTER_AVAILABLE:  # pragma: no cover
        raise TreeSitterError(
            "tree-sitter is not installed. Install `tree-sitter`, `tree-sitter-javascript` and "
            "`tree-sitter-typescript` to enable syntax-tree rules."
        )
    factory = _GRAMMARS.get(language)
    if factory is None:
        raise TreeSitterError(f"tree-sitter grammar not available: {language!r}")
    assert _language_cls is not None
    try:
        return _language_cls(factory())
    except (TypeError, ValueError) as exc:  # pragma: no cover (depends on installed grammars)
        raise TreeSitterError(f"tree-sitter grammar failed to load: {language!r}") from exc


_PARSER_LOCAL = threading.local()


def _get_parser(language: str) -> _ParserLike:
    """
    Return a per-thread Parser instance for the requested language.

    tree-sitter Parser objects are not thread-safe; sharing a single cached
    Parser across threads can lead to crashes or corrupted parse output.
    """

    parsers: dict[str, _ParserLike] | None = getattr(_PARSER_LOCAL, "parsers", None)
    if parsers is None:
        parsers = {}
        _PARSER_LOCAL.parsers = parsers

    parser = parsers.get(language)
    if parser is not None:
        return parser

    lang = _get_language(language)
    assert Parser is not None
    parser = Parser(lang)
    parsers[language] = parser
    return parser


def is_available(language: str = "javascript") -> bool:
    return _TREE_SITTER_AVAILABLE and language in _GRAMMARS


class TreeSitterProvider:
    """
    Syntax tree provider backed by tree-sitter.

    `parse` returns the lowered `Program` or None when the source cannot be
    parsed cleanly (missing grammar, syntax errors, pathological nesting).
    """

    def parse(self, language: str, text: str) -> Program | None:
        if not is_available(language):
            logger.debug("no tree-sitter grammar installed for %s", language)
            return None
        source = text.encode("utf-8", errors="replace")
        parser = _get_parser(language)
        tree = parser.parse(source)
        root = tree.root_node
        if root.has_error:
            logger.debug("tree-sitter reported syntax errors (%s)", language)
            return None
        try:
            lowered = _Lowering(text).lower(root)
        except RecursionError:
            logger.warning("syntax tree too deeply nested; falling back to text rules")
            return None
        assert isinstance(lowered, Program)
        return lowered


class _Lowering:
    """Convert a tree-sitter tree into the tagged node types in `engine.nodes`."""

    def __init__(self, text: str) -> None:
        self._source = text
        self._lines = text.split("\n")
        self._line_starts: list[int] = []
        offset = 0
        for line in self._lines:
            self._line_starts.append(offset)
            offset += len(line) + 1
        self._ascii = text.isascii()
        self._encoded: dict[int, bytes] = {}

    def _char_col(self, row: int, byte_col: int) -> int:
        if self._ascii or row >= len(self._lines):
            return byte_col
        raw = self._encoded.get(row)
        if raw is None:
            raw = self._lines[row].encode("utf-8", errors="replace")
            self._encoded[row] = raw
        return len(raw[:byte_col].decode("utf-8", errors="replace"))

    def span(self, ts_node: Any) -> Span:
        start_row, start_byte_col = ts_node.start_point
        end_row, end_byte_col = ts_node.end_point
        start_col = self._char_col(start_row, start_byte_col)
        end_col = self._char_col(end_row, end_byte_col)
        return Span(
            start_line=start_row + 1,
            start_col=start_col,
            end_line=end_row + 1,
            end_col=end_col,
            start_offset=self._offset(start_row, start_col),
            end_offset=self._offset(end_row, end_col),
        )

    def _offset(self, row: int, col: int) -> int:
        if row >= len(self._line_starts):
            return self._line_starts[-1] + len(self._lines[-1])
        return self._line_starts[row] + col

    def text(self, ts_node: Any) -> str:
        span = self.span(ts_node)
        return self._source[span.start_offset : span.end_offset]

    def lower(self, ts_node: Any) -> Node:
        handler = _HANDLERS.get(ts_node.type)
        if handler is not None:
            lowered = handler(self, ts_node)
            if lowered is not None:
                return lowered
        return OtherNode(span=self.span(ts_node), type=ts_node.type, nodes=self.named(ts_node))

    def named(self, ts_node: Any) -> tuple[Node, ...]:
        return tuple(self.lower(child) for child in ts_node.named_children)

    def field(self, ts_node: Any, name: str) -> Node | None:
        child = ts_node.child_by_field_name(name)
        if child is None:
            return None
        return self.lower(child)


def _operator(ts_node: Any) -> str:
    op = ts_node.child_by_field_name("operator")
    return op.type if op is not None else ""


def _has_token(ts_node: Any, token: str) -> bool:
    return any(not child.is_named and child.type == token for child in ts_node.children)


def _program(lw: _Lowering, n: Any) -> Node:
    return Program(span=lw.span(n), body=lw.named(n))


def _identifier(lw: _Lowering, n: Any) -> Node:
    return Identifier(span=lw.span(n), name=lw.text(n))


def _number(lw: _Lowering, n: Any) -> Node:
    raw = lw.text(n)
    try:
        value: float | None = float(raw.replace("_", ""))
    except ValueError:
        value = None
    return NumericLiteral(span=lw.span(n), raw=raw, value=value)


def _string(lw: _Lowering, n: Any) -> Node:
    raw = lw.text(n)
    return StringLiteral(span=lw.span(n), value=raw[1:-1] if len(raw) >= 2 else raw)


def _declaration(lw: _Lowering, n: Any) -> Node | None:
    if n.type == "variable_declaration":
        kind = "var"
    else:
        kind_node = n.child_by_field_name("kind")
        kind = kind_node.type if kind_node is not None else ""
    if kind not in {"var", "let", "const"}:
        return None
    declarators = tuple(
        d for d in (lw.lower(c) for c in n.named_children if c.type == "variable_declarator")
        if isinstance(d, VariableDeclarator)
    )
    return VariableDeclaration(span=lw.span(n), kind=kind, declarations=declarators)  # type: ignore[arg-type]


def _declarator(lw: _Lowering, n: Any) -> Node | None:
    name = lw.field(n, "name")
    if name is None:
        return None
    return VariableDeclarator(span=lw.span(n), id=name, init=lw.field(n, "value"))


def _arguments(lw: _Lowering, n: Any) -> tuple[Node, ...]:
    args = n.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return ()
    return lw.named(args)


def _call(lw: _Lowering, n: Any) -> Node | None:
    callee = lw.field(n, "function")
    if callee is None:
        return None
    return CallExpression(span=lw.span(n), callee=callee, arguments=_arguments(lw, n))


def _new(lw: _Lowering, n: Any) -> Node | None:
    callee = lw.field(n, "constructor")
    if callee is None:
        return None
    return NewExpression(span=lw.span(n), callee=callee, arguments=_arguments(lw, n))


def _member(lw: _Lowering, n: Any) -> Node | None:
    obj = lw.field(n, "object")
    prop = lw.field(n, "property")
    if obj is None or prop is None:
        return None
    return MemberExpression(span=lw.span(n), object=obj, property=prop, computed=False)


def _subscript(lw: _Lowering, n: Any) -> Node | None:
    obj = lw.field(n, "object")
    index = lw.field(n, "index")
    if obj is None or index is None:
        return None
    return MemberExpression(span=lw.span(n), object=obj, property=index, computed=True)


def _binary(lw: _Lowering, n: Any) -> Node | None:
    left = lw.field(n, "left")
    right = lw.field(n, "right")
    if left is None or right is None:
        return None
    return BinaryExpression(span=lw.span(n), left=left, operator=_operator(n), right=right)


def _unary(lw: _Lowering, n: Any) -> Node | None:
    argument = lw.field(n, "argument")
    if argument is None:
        return None
    return UnaryExpression(span=lw.span(n), operator=_operator(n), argument=argument)


def _assignment(lw: _Lowering, n: Any) -> Node | None:
    left = lw.field(n, "left")
    right = lw.field(n, "right")
    if left is None or right is None:
        return None
    operator = "=" if n.type == "assignment_expression" else _operator(n)
    return AssignmentExpression(span=lw.span(n), left=left, operator=operator, right=right)


def _array(lw: _Lowering, n: Any) -> Node:
    elements = tuple(lw.lower(c) for c in n.named_children if c.type != "comment")
    return ArrayExpression(span=lw.span(n), elements=elements)


def _object(lw: _Lowering, n: Any) -> Node:
    props = tuple(lw.lower(c) for c in n.named_children if c.type != "comment")
    return ObjectExpression(span=lw.span(n), properties=props)


def _spread(lw: _Lowering, n: Any) -> Node | None:
    named = [c for c in n.named_children if c.type != "comment"]
    if not named:
        return None
    return SpreadElement(span=lw.span(n), argument=lw.lower(named[0]))


def _parenthesized(lw: _Lowering, n: Any) -> Node | None:
    named = [c for c in n.named_children if c.type != "comment"]
    if len(named) != 1:
        return None
    return lw.lower(named[0])


def _function(lw: _Lowering, n: Any) -> Node:
    if n.type == "arrow_function":
        kind = "arrow"
    elif n.type in {"function_declaration", "generator_function_declaration"}:
        kind = "declaration"
    else:
        kind = "expression"

    params: tuple[Node, ...]
    single = n.child_by_field_name("parameter")
    if single is not None:
        params = (lw.lower(single),)
    else:
        formal = n.child_by_field_name("parameters")
        params = lw.named(formal) if formal is not None else ()
        params = tuple(p for p in params if not (isinstance(p, OtherNode) and p.type == "comment"))

    return FunctionExpression(
        span=lw.span(n),
        kind=kind,  # type: ignore[arg-type]
        params=params,
        body=lw.field(n, "body"),
        is_async=_has_token(n, "async"),
    )


def _typed_parameter(lw: _Lowering, n: Any) -> Node | None:
    # TypeScript wraps parameters: `(a: T)` -> required_parameter(pattern: identifier, type: ...)
    return lw.field(n, "pattern")


def _block(lw: _Lowering, n: Any) -> Node:
    return BlockStatement(span=lw.span(n), body=lw.named(n))


def _expression_statement(lw: _Lowering, n: Any) -> Node | None:
    named = [c for c in n.named_children if c.type != "comment"]
    if len(named) != 1:
        return None
    return ExpressionStatement(span=lw.span(n), expression=lw.lower(named[0]))


def _return(lw: _Lowering, n: Any) -> Node:
    named = [c for c in n.named_children if c.type != "comment"]
    return ReturnStatement(span=lw.span(n), argument=lw.lower(named[0]) if named else None)


def _break(lw: _Lowering, n: Any) -> Node:
    return BreakStatement(span=lw.span(n))


def _if(lw: _Lowering, n: Any) -> Node | None:
    test = lw.field(n, "condition")
    consequent = lw.field(n, "consequence")
    if test is None or consequent is None:
        return None
    alternate: Node | None = None
    else_clause = n.child_by_field_name("alternative")
    if else_clause is not None:
        named = [c for c in else_clause.named_children if c.type != "comment"]
        alternate = lw.lower(named[0]) if named else None
    return IfStatement(span=lw.span(n), test=test, consequent=consequent, alternate=alternate)


def _for(lw: _Lowering, n: Any) -> Node:
    return ForStatement(
        span=lw.span(n),
        init=lw.field(n, "initializer"),
        test=lw.field(n, "condition"),
        update=lw.field(n, "increment"),
        body=lw.field(n, "body"),
    )


def _for_in(lw: _Lowering, n: Any) -> Node | None:
    if _operator(n) != "in":
        return None
    left = lw.field(n, "left")
    right = lw.field(n, "right")
    if left is None or right is None:
        return None
    kind_node = n.child_by_field_name("kind")
    kind = kind_node.type if kind_node is not None and kind_node.type in {"var", "let", "const"} else None
    return ForInStatement(
        span=lw.span(n),
        left=left,
        right=right,
        body=lw.field(n, "body"),
        kind=kind,  # type: ignore[arg-type]
    )


_HANDLERS: dict[str, Callable[[_Lowering, Any], Node | None]] = {
    "program": _program,
    "identifier": _identifier,
    "property_identifier": _identifier,
    "shorthand_property_identifier": _identifier,
    "private_property_identifier": _identifier,
    "number": _number,
    "string": _string,
    "variable_declaration": _declaration,
    "lexical_declaration": _declaration,
    "variable_declarator": _declarator,
    "call_expression": _call,
    "new_expression": _new,
    "member_expression": _member,
    "subscript_expression": _subscript,
    "binary_expression": _binary,
    "unary_expression": _unary,
    "assignment_expression": _assignment,
    "augmented_assignment_expression": _assignment,
    "array": _array,
    "object": _object,
    "spread_element": _spread,
    "parenthesized_expression": _parenthesized,
    "arrow_function": _function,
    "function": _function,
    "function_expression": _function,
    "function_declaration": _function,
    "generator_function": _function,
    "generator_function_declaration": _function,
    "required_parameter": _typed_parameter,
    "optional_parameter": _typed_parameter,
    "statement_block": _block,
    "expression_statement": _expression_statement,
    "return_statement": _return,
    "break_statement": _break,
    "if_statement": _if,
    "for_statement": _for,
    "for_in_statement": _for_in,
}
