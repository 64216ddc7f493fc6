from __future__ import annotations

import re
from dataclasses import dataclass

from baseline_upgrade.engine.context import RuleContext
from baseline_upgrade.engine.nodes import Identifier, NewExpression, Node, is_identifier
from baseline_upgrade.rules.base import BaseRule, RuleMeta
from baseline_upgrade.rules.utils import iter_matches

_XHR_RE = re.compile(r"\bXMLHttpRequest\b")
_NEW_PREFIX_RE = re.compile(r"\bnew\s+$")
_NEW_KEYWORD_RE = re.compile(r"(?:^|[^\w$])new$")
_LEGACY_LISTENER_RE = re.compile(r"\.(attachEvent|detachEvent)\s*\(")
_LISTENER_REPLACEMENTS = {"attachEvent": "addEventListener", "detachEvent": "removeEventListener"}


def _is_constructor_callee(ctx: RuleContext, node: Identifier) -> bool:
    """True when `node` directly follows `new`, possibly on an earlier line."""

    assert node.span is not None
    prefix = ctx.text[: node.span.start_offset].rstrip()
    return _NEW_KEYWORD_RE.search(prefix[-4:]) is not None


@dataclass(frozen=True, slots=True)
class XhrToFetch(BaseRule):
    meta = RuleMeta(
        rule_id="xhr-to-fetch",
        title="XMLHttpRequest",
        description="Replace XMLHttpRequest with the Promise-based fetch() API.",
        category="api-modernization",
        default_severity="warn",
    )

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        if isinstance(node, NewExpression) and is_identifier(node.callee, "XMLHttpRequest"):
            self._report_constructor(ctx, node)
            return
        if isinstance(node, Identifier) and node.name == "XMLHttpRequest" and node.span is not None:
            if _is_constructor_callee(ctx, node):
                return
            self._report_reference(ctx, node)

    def visit_text(self, ctx: RuleContext) -> None:
        if ctx.parsed:
            return
        for line_no, match in iter_matches(ctx, _XHR_RE):
            line = ctx.lines[line_no - 1]
            if _NEW_PREFIX_RE.search(line[: match.start()]):
                ctx.report(
                    line=line_no,
                    column=match.start(),
                    old_code="new XMLHttpRequest()",
                    new_code="fetch(url)",
                    description="fetch() provides a cleaner Promise-based request API.",
                )
            else:
                ctx.report(
                    line=line_no,
                    column=match.start(),
                    old_code="XMLHttpRequest",
                    new_code="fetch() API",
                    description="Consider migrating to fetch() for Promise-based HTTP requests.",
                    severity="info",
                )

    def _report_constructor(self, ctx: RuleContext, node: NewExpression) -> None:
        ctx.report_node(
            node,
            old_code="new XMLHttpRequest()",
            new_code="fetch(url)",
            description="fetch() provides a cleaner Promise-based request API.",
        )

    def _report_reference(self, ctx: RuleContext, node: Identifier) -> None:
        ctx.report_node(
            node,
            old_code="XMLHttpRequest",
            new_code="fetch() API",
            description="Consider migrating to fetch() for Promise-based HTTP requests.",
            severity="info",
        )


@dataclass(frozen=True, slots=True)
class LegacyEventListeners(BaseRule):
    meta = RuleMeta(
        rule_id="legacy-event-listeners",
        title="Legacy IE event API",
        description="Replace attachEvent()/detachEvent() with addEventListener()/removeEventListener().",
        category="api-modernization",
        default_severity="warn",
    )

    def visit_text(self, ctx: RuleContext) -> None:
        for line_no, match in iter_matches(ctx, _LEGACY_LISTENER_RE):
            legacy = match.group(1)
            replacement = _LISTENER_REPLACEMENTS[legacy]
            # Event names differ ("onclick" vs "click"), so this is never an exact rewrite.
            ctx.report(
                line=line_no,
                column=match.start(1),
                old_code=f".{legacy}(",
                new_code=f".{replacement}(",
                description=f"{legacy}() only exists in legacy Internet Explorer; use {replacement}().",
            )


def builtin_web_api_rules() -> list[BaseRule]:
    return [XhrToFetch(), LegacyEventListeners()]
