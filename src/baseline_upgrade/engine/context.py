from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from baseline_upgrade.engine.nodes import Node, Program
from baseline_upgrade.engine.types import Category, Severity, StabilityTier, Suggestion, TextEdit

if TYPE_CHECKING:
    from baseline_upgrade.rules.base import RuleMeta


class SyntaxTreeProvider(Protocol):
    def parse(self, language: str, text: str) -> Program | None: ...


Emit = Callable[[Suggestion, TextEdit | None], None]


@dataclass(frozen=True, slots=True)
class RuleContext:
    """
    Read-only view of one file handed to one rule.

    `report` is bound to the owning rule: it stamps the rule id, file path and
    the rule's declared classification onto every suggestion.
    """

    file_path: str
    text: str
    lines: tuple[str, ...]
    language: str | None
    parsed: bool
    meta: RuleMeta
    severity_override: Severity | None
    _emit: Emit

    def source(self, node: Node | None) -> str:
        if node is None or node.span is None:
            return ""
        return self.text[node.span.start_offset : node.span.end_offset]

    def report(
        self,
        *,
        line: int,
        column: int,
        old_code: str,
        new_code: str,
        description: str,
        severity: Severity | None = None,
        category: Category | None = None,
        stability: StabilityTier | None = None,
        edit: TextEdit | None = None,
    ) -> None:
        suggestion = Suggestion(
            file_path=self.file_path,
            rule_id=self.meta.rule_id,
            line=line,
            column=column,
            old_code=old_code,
            new_code=new_code,
            description=description,
            category=category or self.meta.category,
            stability=stability or self.meta.stability,
            severity=self.severity_override or severity or self.meta.default_severity,
        )
        self._emit(suggestion, edit)

    def report_node(
        self,
        node: Node,
        *,
        old_code: str,
        new_code: str,
        description: str,
        severity: Severity | None = None,
        category: Category | None = None,
        fix: bool = False,
    ) -> None:
        """
        Report a finding at `node`'s start position.

        With `fix=True` the node's exact range is offered for replacement by
        `new_code`.
        """

        if node.span is None:
            return
        edit = TextEdit.from_span(node.span, new_code) if fix else None
        self.report(
            line=node.span.start_line,
            column=node.span.start_col,
            old_code=old_code,
            new_code=new_code,
            description=description,
            severity=severity,
            category=category,
            edit=edit,
        )
