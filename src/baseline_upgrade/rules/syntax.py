from __future__ import annotations

import re
from dataclasses import dataclass

from baseline_upgrade.engine.context import RuleContext
from baseline_upgrade.engine.nodes import (
    FunctionExpression,
    Identifier,
    NewExpression,
    Node,
    VariableDeclaration,
    is_identifier,
    method_name,
)
from baseline_upgrade.engine.types import Position, TextEdit
from baseline_upgrade.rules.base import BaseRule, RuleMeta

# Names that usually belong to counters; declared with `let` even when initialized.
_COUNTER_NAME_RE = re.compile(r"^(?:i|j|k|index|count)$")
_CHAINED_CALL_RE = re.compile(r"\.(?:then|catch|finally)\s*\(")
_CHAIN_LOOKAHEAD = 50


def suggested_keyword(declaration: VariableDeclaration) -> str:
    """
    Pick `let` or `const` for a `var` declaration.

    This is a syntactic guess, not data-flow analysis: a declarator without an
    initializer is assumed to be reassigned later, one with an initializer is
    assumed not to be (unless its name looks like a loop counter). It will
    misclassify in both directions.
    """

    for declarator in declaration.declarations:
        if declarator.init is None:
            return "let"
        if isinstance(declarator.id, Identifier) and _COUNTER_NAME_RE.match(declarator.id.name):
            return "let"
    return "const"


@dataclass(frozen=True, slots=True)
class VarToConstLet(BaseRule):
    meta = RuleMeta(
        rule_id="var-to-const-let",
        title="var declaration",
        description="Replace var declarations with const/let for block scoping.",
        category="syntax-modernization",
        default_severity="warn",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if not isinstance(node, VariableDeclaration) or node.kind != "var":
            return
        if node.span is None or not node.declarations:
            return
        first = node.declarations[0]
        if not isinstance(first.id, Identifier) or first.id.span is None:
            return

        keyword = suggested_keyword(node)
        name = first.id.name
        span = node.span
        edit = TextEdit(
            start=Position(span.start_line, span.start_col),
            end=Position(first.id.span.end_line, first.id.span.end_col),
            new_text=f"{keyword} {name}",
        )
        ctx.report(
            line=span.start_line,
            column=span.start_col,
            old_code=f"var {name}",
            new_code=f"{keyword} {name}",
            description=f"{keyword} provides block scoping and avoids var hoisting surprises.",
            edit=edit,
        )


@dataclass(frozen=True, slots=True)
class AsyncAwait(BaseRule):
    meta = RuleMeta(
        rule_id="async-await",
        title="Promise chain",
        description="Replace Promise chains with async/await for readability.",
        category="syntax-modernization",
        default_severity="info",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if method_name(node) == "then" and node.span is not None:
            following = ctx.text[node.span.end_offset : node.span.end_offset + _CHAIN_LOOKAHEAD]
            if _CHAINED_CALL_RE.search(following):
                ctx.report_node(
                    node,
                    old_code="Promise chains with .then().catch()",
                    new_code="async/await syntax",
                    description="async/await is more readable than chained .then() callbacks.",
                )
            return

        if isinstance(node, NewExpression) and is_identifier(node.callee, "Promise") and len(node.arguments) == 1:
            executor = node.arguments[0]
            if isinstance(executor, FunctionExpression) and executor.kind != "declaration" and len(executor.params) == 2:
                ctx.report_node(
                    node,
                    old_code="new Promise() constructor",
                    new_code="async function",
                    description="Consider an async function instead of wrapping work in the Promise constructor.",
                )


def builtin_syntax_rules() -> list[BaseRule]:
    return [VarToConstLet(), AsyncAwait()]
