from __future__ import annotations

from abc import ABC
from dataclasses import dataclass

from baseline_upgrade.engine.context import RuleContext
from baseline_upgrade.engine.nodes import Node
from baseline_upgrade.engine.types import Category, Severity, StabilityTier


@dataclass(frozen=True, slots=True)
class RuleMeta:
    rule_id: str
    title: str
    description: str
    category: Category
    default_severity: Severity
    stability: StabilityTier = "fully-supported"


class BaseRule(ABC):
    """
    A single legacy-pattern detector.

    Subclasses override `visit_node` (called for every node of a parsed file),
    `visit_text` (called once per file with the raw text), or both. Rules must
    not keep state between calls: one instance serves every file and thread.
    """

    meta: RuleMeta

    def visit_node(self, node: Node, ctx: RuleContext) -> None:
        return None

    def visit_text(self, ctx: RuleContext) -> None:
        return None

    @property
    def has_node_visitor(self) -> bool:
        return type(self).visit_node is not BaseRule.visit_node

    @property
    def has_text_scanner(self) -> bool:
        return type(self).visit_text is not BaseRule.visit_text
