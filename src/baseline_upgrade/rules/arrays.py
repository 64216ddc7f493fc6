from __future__ import annotations

from dataclasses import dataclass

from baseline_upgrade.engine.context import RuleContext
from baseline_upgrade.engine.nodes import (
    ArrayExpression,
    BinaryExpression,
    BlockStatement,
    BreakStatement,
    CallExpression,
    ForStatement,
    FunctionExpression,
    Identifier,
    IfStatement,
    MemberExpression,
    NewExpression,
    Node,
    NumericLiteral,
    ReturnStatement,
    SpreadElement,
    is_identifier,
    is_method_call,
    is_minus_one,
    is_number,
)
from baseline_upgrade.rules.base import BaseRule, RuleMeta
from baseline_upgrade.rules.utils import as_operand


def _indexof_operand(node: BinaryExpression) -> CallExpression | None:
    """
    Return the `indexOf` call in `x.indexOf(y) !== -1`, `x.indexOf(y) > -1`
    or `-1 !== x.indexOf(y)` (also `!=`), otherwise None.
    """

    if is_method_call(node.left, "indexOf") and is_minus_one(node.right):
        if node.operator in {"!==", "!=", ">"}:
            assert isinstance(node.left, CallExpression)
            return node.left
        return None
    if is_method_call(node.right, "indexOf") and is_minus_one(node.left) and node.operator in {"!==", "!="}:
        assert isinstance(node.right, CallExpression)
        return node.right
    return None


@dataclass(frozen=True, slots=True)
class IndexOfToIncludes(BaseRule):
    meta = RuleMeta(
        rule_id="indexof-to-includes",
        title="indexOf() membership check",
        description="Replace indexOf() !== -1 comparisons with includes().",
        category="api-modernization",
        default_severity="warn",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if not isinstance(node, BinaryExpression):
            return
        call = _indexof_operand(node)
        if call is None or len(call.arguments) != 1 or isinstance(call.arguments[0], SpreadElement):
            return
        assert isinstance(call.callee, MemberExpression)
        target = ctx.source(call.callee.object)
        needle = ctx.source(call.arguments[0])
        ctx.report_node(
            node,
            old_code=ctx.source(node).strip(),
            new_code=f"{target}.includes({needle})",
            description="includes() states the membership check directly and reads better than indexOf() !== -1.",
            fix=True,
        )


@dataclass(frozen=True, slots=True)
class ArrayAtMethod(BaseRule):
    meta = RuleMeta(
        rule_id="array-at-method",
        title="Index from the end",
        description="Replace arr[arr.length - N] with arr.at(-N).",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if not isinstance(node, MemberExpression) or not node.computed:
            return
        index = node.property
        if not isinstance(index, BinaryExpression) or index.operator != "-":
            return
        length = index.left
        if not isinstance(length, MemberExpression) or length.computed or not is_identifier(length.property, "length"):
            return
        if not isinstance(node.object, Identifier) or not is_identifier(length.object, node.object.name):
            return

        name = node.object.name
        offset = index.right
        # at() truncates its argument and maps -0 to the first element; both differ from indexing.
        exact = (
            isinstance(offset, NumericLiteral)
            and offset.value is not None
            and offset.value >= 1
            and offset.value.is_integer()
        )
        if isinstance(offset, NumericLiteral | Identifier):
            negative = f"-{ctx.source(offset)}"
        else:
            negative = f"-({ctx.source(offset)})"
        ctx.report_node(
            node,
            old_code=f"{name}[{name}.length - {ctx.source(offset)}]",
            new_code=f"{name}.at({negative})",
            description="Array.prototype.at() supports negative indexes directly.",
            fix=exact,
        )


def _statements(node: Node | None) -> tuple[Node, ...]:
    if node is None:
        return ()
    if isinstance(node, BlockStatement):
        return node.body
    return (node,)


def _contains_statement(body: Node | None, kind: type[Node]) -> bool:
    """Look for `kind` among `body`'s statements, descending into if/else branches only."""

    for stmt in _statements(body):
        if isinstance(stmt, kind):
            return True
        if isinstance(stmt, IfStatement):
            if _contains_statement(stmt.consequent, kind) or _contains_statement(stmt.alternate, kind):
                return True
    return False


@dataclass(frozen=True, slots=True)
class ArrayFindMethod(BaseRule):
    meta = RuleMeta(
        rule_id="array-find-method",
        title="Manual search",
        description="Replace search loops and filter()[0] with find()/findIndex().",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if isinstance(node, ForStatement) and isinstance(node.body, BlockStatement):
            has_break = _contains_statement(node.body, BreakStatement)
            has_return = _contains_statement(node.body, ReturnStatement)
            if has_break or has_return:
                replacement = "Array.find()" if has_return else "Array.findIndex()"
                ctx.report_node(
                    node,
                    old_code="for loop with break/return",
                    new_code=replacement,
                    description=f"{replacement} expresses the search without a manual loop.",
                    category="structural",
                )
            return

        if not isinstance(node, MemberExpression) or not node.computed or not is_number(node.property, 0):
            return
        call = node.object
        if not is_method_call(call, "filter"):
            return
        assert isinstance(call, CallExpression) and isinstance(call.callee, MemberExpression)
        if len(call.arguments) != 1 or isinstance(call.arguments[0], SpreadElement):
            return
        target = ctx.source(call.callee.object)
        predicate = ctx.source(call.arguments[0])
        ctx.report_node(
            node,
            old_code=f"{target}.filter({predicate})[0]",
            new_code=f"{target}.find({predicate})",
            description="find() stops at the first match instead of building a filtered copy.",
            category="performance",
            fix=True,
        )


@dataclass(frozen=True, slots=True)
class ArrayFromMethod(BaseRule):
    meta = RuleMeta(
        rule_id="array-from-method",
        title="Array generation",
        description="Replace new Array(n).fill().map() with Array.from().",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if isinstance(node, ArrayExpression):
            if len(node.elements) == 1 and isinstance(node.elements[0], SpreadElement):
                spread = node.elements[0]
                ctx.report_node(
                    spread,
                    old_code="[...arrayLike]",
                    new_code="Array.from(arrayLike)",
                    description="Array.from() also converts array-like objects that are not iterable.",
                )
            return

        if not is_method_call(node, "map"):
            return
        assert isinstance(node, CallExpression) and isinstance(node.callee, MemberExpression)
        fill = node.callee.object
        if not is_method_call(fill, "fill"):
            return
        assert isinstance(fill, CallExpression) and isinstance(fill.callee, MemberExpression)
        ctor = fill.callee.object
        if not isinstance(ctor, NewExpression) or not is_identifier(ctor.callee, "Array") or len(ctor.arguments) != 1:
            return

        size = ctx.source(ctor.arguments[0])
        callback = ctx.source(node.arguments[0]) if node.arguments else "callback"
        # fill(value) feeds `value` to the callback; Array.from would pass undefined.
        exact = not fill.arguments and len(node.arguments) == 1
        ctx.report_node(
            node,
            old_code=f"new Array({size}).fill().map({callback})",
            new_code=f"Array.from({{length: {size}}}, {callback})",
            description="Array.from() builds the array and maps it in one step.",
            fix=exact,
        )


def _concat_flattener(callback: Node) -> tuple[bool, bool]:
    """
    Return `(uses_concat, is_exact)` for a reduce callback.

    `is_exact` means the body is literally `acc.concat(value)` on the two parameters.
    """

    if not isinstance(callback, FunctionExpression) or callback.kind == "declaration" or len(callback.params) != 2:
        return False, False
    body = callback.body
    if isinstance(body, BlockStatement):
        if len(body.body) != 1 or not isinstance(body.body[0], ReturnStatement):
            return False, False
        body = body.body[0].argument
    if not is_method_call(body, "concat"):
        return False, False
    assert isinstance(body, CallExpression) and isinstance(body.callee, MemberExpression)
    acc, value = callback.params
    exact = (
        isinstance(acc, Identifier)
        and isinstance(value, Identifier)
        and is_identifier(body.callee.object, acc.name)
        and len(body.arguments) == 1
        and is_identifier(body.arguments[0], value.name)
    )
    return True, exact


@dataclass(frozen=True, slots=True)
class ArrayFlatMethod(BaseRule):
    meta = RuleMeta(
        rule_id="array-flat-method",
        title="Manual flattening",
        description="Replace reduce/concat flattening with Array.prototype.flat().",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if not isinstance(node, CallExpression):
            return

        if is_method_call(node, "reduce") and len(node.arguments) >= 2:
            assert isinstance(node.callee, MemberExpression)
            initial = node.arguments[1]
            if not isinstance(initial, ArrayExpression) or initial.elements:
                return
            uses_concat, exact = _concat_flattener(node.arguments[0])
            if not uses_concat:
                return
            ctx.report_node(
                node,
                old_code="reduce with concat for flattening",
                new_code=f"{as_operand(ctx, node.callee.object)}.flat()",
                description="flat() flattens one level without an accumulator.",
                fix=exact and len(node.arguments) == 2,
            )
            return

        if is_method_call(node, "concat"):
            assert isinstance(node.callee, MemberExpression)
            receiver = node.callee.object
            if not isinstance(receiver, ArrayExpression) or receiver.elements:
                return
            if len(node.arguments) != 1 or not isinstance(node.arguments[0], SpreadElement):
                return
            spread = node.arguments[0]
            arrays = as_operand(ctx, spread.argument)
            ctx.report_node(
                node,
                old_code=f"[].concat(...{ctx.source(spread.argument)})",
                new_code=f"{arrays}.flat()",
                description="flat() is more direct than concatenating a spread onto an empty array.",
                fix=True,
            )


def builtin_array_rules() -> list[BaseRule]:
    return [IndexOfToIncludes(), ArrayAtMethod(), ArrayFindMethod(), ArrayFromMethod(), ArrayFlatMethod()]
