from __future__ import annotations

import re
from dataclasses import dataclass

from baseline_upgrade.engine.context import RuleContext
from baseline_upgrade.engine.nodes import (
    BinaryExpression,
    CallExpression,
    MemberExpression,
    NewExpression,
    Node,
    StringLiteral,
    is_identifier,
    is_method_call,
    is_minus_one,
    is_number,
)
from baseline_upgrade.engine.types import Position, TextEdit
from baseline_upgrade.rules.base import BaseRule, RuleMeta
from baseline_upgrade.rules.utils import as_operand, iter_matches

_TRIM_ALIAS_RE = re.compile(r"\.(trimLeft|trimRight)\s*\(")
_TRIM_REPLACEMENTS = {"trimLeft": "trimStart", "trimRight": "trimEnd"}


def _receiver_and_argument(ctx: RuleContext, call: Node) -> tuple[str, str] | None:
    """Return the source of `obj` and `arg` for `obj.m(arg)`; None when `arg` is missing."""

    if not isinstance(call, CallExpression) or not isinstance(call.callee, MemberExpression):
        return None
    if not call.arguments:
        return None
    return ctx.source(call.callee.object), ctx.source(call.arguments[0])


@dataclass(frozen=True, slots=True)
class StringMethods(BaseRule):
    meta = RuleMeta(
        rule_id="string-methods",
        title="String search idiom",
        description="Replace indexOf/lastIndexOf comparisons with includes/startsWith/endsWith.",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if not isinstance(node, BinaryExpression):
            return

        if node.operator == "!==" and is_minus_one(node.right) and is_method_call(node.left, "indexOf"):
            parts = _receiver_and_argument(ctx, node.left)
            if parts is None:
                return
            target, needle = parts
            ctx.report_node(
                node,
                old_code=f"{target}.indexOf({needle}) !== -1",
                new_code=f"{target}.includes({needle})",
                description="String.prototype.includes() is more readable than an indexOf comparison.",
                fix=True,
            )
            return

        if node.operator == "===" and is_number(node.right, 0) and is_method_call(node.left, "indexOf"):
            parts = _receiver_and_argument(ctx, node.left)
            if parts is None:
                return
            target, prefix = parts
            ctx.report_node(
                node,
                old_code=f"{target}.indexOf({prefix}) === 0",
                new_code=f"{target}.startsWith({prefix})",
                description="String.prototype.startsWith() says what indexOf() === 0 means.",
                fix=True,
            )
            return

        if (
            node.operator == "==="
            and isinstance(node.right, BinaryExpression)
            and node.right.operator == "-"
            and is_method_call(node.left, "lastIndexOf")
        ):
            parts = _receiver_and_argument(ctx, node.left)
            if parts is None:
                return
            target, suffix = parts
            # lastIndexOf(s) === a - b only matches endsWith when the lengths line up.
            ctx.report_node(
                node,
                old_code="lastIndexOf suffix length comparison",
                new_code=f"{target}.endsWith({suffix})",
                description="String.prototype.endsWith() is clearer than lastIndexOf() arithmetic.",
            )


@dataclass(frozen=True, slots=True)
class StringRepeatMethod(BaseRule):
    meta = RuleMeta(
        rule_id="string-repeat-method",
        title="Array join repetition",
        description="Replace new Array(n + 1).join(s) with s.repeat(n).",
        category="api-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if not is_method_call(node, "join"):
            return
        assert isinstance(node, CallExpression) and isinstance(node.callee, MemberExpression)
        if len(node.arguments) != 1:
            return
        separator = node.arguments[0]
        receiver = node.callee.object

        if isinstance(receiver, NewExpression) and is_identifier(receiver.callee, "Array"):
            if len(receiver.arguments) != 1:
                return
            size = receiver.arguments[0]
            if isinstance(size, BinaryExpression) and size.operator == "+" and is_number(size.right, 1):
                count = ctx.source(size.left)
                ctx.report_node(
                    node,
                    old_code=f"new Array({count} + 1).join({ctx.source(separator)})",
                    new_code=f"{as_operand(ctx, separator)}.repeat({count})",
                    description="String.prototype.repeat() is clearer than the Array join trick.",
                    fix=True,
                )
                return
            count = ctx.source(size)
            ctx.report_node(
                node,
                old_code=f"new Array({count}).join({ctx.source(separator)})",
                new_code=f"{as_operand(ctx, separator)}.repeat({count} - 1)",
                description="Consider String.prototype.repeat() instead of joining an empty array.",
            )
            return

        if is_method_call(receiver, "from"):
            assert isinstance(receiver, CallExpression) and isinstance(receiver.callee, MemberExpression)
            if not is_identifier(receiver.callee.object, "Array"):
                return
            if isinstance(separator, StringLiteral) and separator.value == "":
                ctx.report_node(
                    node,
                    old_code="Array.from pattern for string repetition",
                    new_code="str.repeat(n)",
                    description="String.prototype.repeat() is more direct than Array.from() plus join('').",
                )


@dataclass(frozen=True, slots=True)
class StringTrimAliases(BaseRule):
    meta = RuleMeta(
        rule_id="string-trim-aliases",
        title="Legacy trim aliases",
        description="Replace trimLeft()/trimRight() with trimStart()/trimEnd().",
        category="api-modernization",
        default_severity="info",
    )

    def visit_text(self, ctx: RuleContext) -> None:
        for line_no, match in iter_matches(ctx, _TRIM_ALIAS_RE):
            alias = match.group(1)
            replacement = _TRIM_REPLACEMENTS[alias]
            start, end = match.span(1)
            ctx.report(
                line=line_no,
                column=start,
                old_code=f".{alias}(",
                new_code=f".{replacement}(",
                description=f"{alias}() is a legacy alias of {replacement}().",
                edit=TextEdit(start=Position(line_no, start), end=Position(line_no, end), new_text=replacement),
            )


def builtin_string_rules() -> list[BaseRule]:
    return [StringMethods(), StringRepeatMethod(), StringTrimAliases()]
