from __future__ import annotations

from dataclasses import dataclass

from baseline_upgrade.engine.context import RuleContext
from baseline_upgrade.engine.nodes import (
    AssignmentExpression,
    BlockStatement,
    CallExpression,
    ExpressionStatement,
    ForInStatement,
    FunctionExpression,
    Identifier,
    IfStatement,
    MemberExpression,
    Node,
    ObjectExpression,
    VariableDeclarator,
    is_identifier,
    is_method_call,
)
from baseline_upgrade.rules.base import BaseRule, RuleMeta


def _is_static_call(node: Node | None, owner: str, name: str) -> bool:
    """True for `owner.name(...)`, e.g. `Object.keys(o)`."""

    if not is_method_call(node, name):
        return False
    assert isinstance(node, CallExpression) and isinstance(node.callee, MemberExpression)
    return is_identifier(node.callee.object, owner)


def _is_keyed_by(node: Node | None, key: str) -> bool:
    return isinstance(node, MemberExpression) and node.computed and is_identifier(node.property, key)


def _loop_key(node: ForInStatement) -> str | None:
    return node.left.name if isinstance(node.left, Identifier) else None


def _checks_own_property(body: BlockStatement, key: str) -> bool:
    for stmt in body.body:
        if not isinstance(stmt, IfStatement) or not is_method_call(stmt.test, "hasOwnProperty"):
            continue
        assert isinstance(stmt.test, CallExpression)
        if len(stmt.test.arguments) == 1 and is_identifier(stmt.test.arguments[0], key):
            return True
    return False


def _copies_by_key(body: BlockStatement, key: str) -> bool:
    """True when the loop body contains `target[key] = source[key];`."""

    for stmt in body.body:
        if not isinstance(stmt, ExpressionStatement):
            continue
        expr = stmt.expression
        if not isinstance(expr, AssignmentExpression) or expr.operator != "=":
            continue
        if _is_keyed_by(expr.left, key) and _is_keyed_by(expr.right, key):
            return True
    return False


@dataclass(frozen=True, slots=True)
class ObjectMethods(BaseRule):
    meta = RuleMeta(
        rule_id="object-methods",
        title="Manual object iteration",
        description="Replace manual key iteration with Object.values()/Object.keys().",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if isinstance(node, ForInStatement):
            key = _loop_key(node)
            if key is not None and isinstance(node.body, BlockStatement) and _checks_own_property(node.body, key):
                ctx.report_node(
                    node,
                    old_code="for-in with hasOwnProperty check",
                    new_code=f"Object.keys({ctx.source(node.right)}).forEach()",
                    description="Object.keys() only yields own properties, so the hasOwnProperty() guard goes away.",
                )
            return

        if not is_method_call(node, "map"):
            return
        assert isinstance(node, CallExpression) and isinstance(node.callee, MemberExpression)
        keys_call = node.callee.object
        if not _is_static_call(keys_call, "Object", "keys") or len(node.arguments) != 1:
            return
        assert isinstance(keys_call, CallExpression)
        if len(keys_call.arguments) != 1:
            return

        mapper = node.arguments[0]
        if not isinstance(mapper, FunctionExpression) or mapper.kind != "arrow" or len(mapper.params) != 1:
            return
        param = mapper.params[0]
        if not isinstance(param, Identifier) or not _is_keyed_by(mapper.body, param.name):
            return
        assert isinstance(mapper.body, MemberExpression)

        obj = ctx.source(keys_call.arguments[0])
        ctx.report_node(
            node,
            old_code=f"Object.keys({obj}).map({param.name} => {obj}[{param.name}])",
            new_code=f"Object.values({obj})",
            description="Object.values() is more direct than mapping over Object.keys().",
            # Only the same object on both sides is equivalent.
            fix=ctx.source(mapper.body.object) == obj,
        )


@dataclass(frozen=True, slots=True)
class ObjectAssignMethod(BaseRule):
    meta = RuleMeta(
        rule_id="object-assign-method",
        title="Manual property copying",
        description="Replace manual property copying with Object.assign().",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if isinstance(node, ForInStatement):
            key = _loop_key(node)
            if key is not None and isinstance(node.body, BlockStatement) and _copies_by_key(node.body, key):
                ctx.report_node(
                    node,
                    old_code="for-in loop copying properties",
                    new_code=f"Object.assign(target, {ctx.source(node.right)})",
                    description="Object.assign() copies enumerable own properties in one call.",
                )
            return

        if isinstance(node, VariableDeclarator):
            if isinstance(node.init, ObjectExpression) and not node.init.properties:
                ctx.report_node(
                    node,
                    old_code="empty object with manual property assignment",
                    new_code="Object.assign() or object spread syntax",
                    description="Consider Object.assign() or spread syntax for object composition.",
                )
            return

        if (
            isinstance(node, AssignmentExpression)
            and node.operator == "="
            and isinstance(node.left, MemberExpression)
            and isinstance(node.right, MemberExpression)
        ):
            ctx.report_node(
                node,
                old_code="manual property assignment",
                new_code="Object.assign() for multiple properties",
                description="Consider Object.assign() when copying several properties.",
            )


def builtin_object_rules() -> list[BaseRule]:
    return [ObjectMethods(), ObjectAssignMethod()]
