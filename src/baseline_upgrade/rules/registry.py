from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from baseline_upgrade.engine.types import CATEGORIES, SEVERITIES, STABILITY_ORDER
from baseline_upgrade.rules.arrays import builtin_array_rules
from baseline_upgrade.rules.base import BaseRule, RuleMeta
from baseline_upgrade.rules.objects import builtin_object_rules
from baseline_upgrade.rules.strings import builtin_string_rules
from baseline_upgrade.rules.syntax import builtin_syntax_rules
from baseline_upgrade.rules.web_apis import builtin_web_api_rules

_RULE_ID_RE = re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)*$")


class RuleSetError(RuntimeError):
    """Raised when a rule set would contain a malformed or duplicate rule id."""


def _check_meta(meta: RuleMeta) -> None:
    # Plugin metadata is not type-checked at runtime.
    if meta.category not in CATEGORIES:
        raise RuleSetError(f"Rule {meta.rule_id} has unknown category {meta.category!r}")
    if meta.default_severity not in SEVERITIES:
        raise RuleSetError(f"Rule {meta.rule_id} has unknown default severity {meta.default_severity!r}")
    if meta.stability not in STABILITY_ORDER:
        raise RuleSetError(f"Rule {meta.rule_id} has unknown stability tier {meta.stability!r}")


def _validated(rules: Iterable[BaseRule]) -> tuple[BaseRule, ...]:
    by_id: dict[str, BaseRule] = {}
    for rule in rules:
        if not isinstance(rule, BaseRule):
            raise RuleSetError(f"Rules must be BaseRule instances, got: {type(rule).__name__}")
        rule_id = rule.meta.rule_id
        if not _RULE_ID_RE.match(rule_id):
            raise RuleSetError(f"Rule id must be lowercase kebab-case ({_RULE_ID_RE.pattern}): {rule_id!r}")
        _check_meta(rule.meta)
        if rule_id in by_id:
            raise RuleSetError(f"Duplicate rule id: {rule_id}")
        by_id[rule_id] = rule
    return tuple(by_id[k] for k in sorted(by_id))


@lru_cache(maxsize=1)
def builtin_rules() -> tuple[BaseRule, ...]:
    rules: list[BaseRule] = []
    rules.extend(builtin_syntax_rules())
    rules.extend(builtin_array_rules())
    rules.extend(builtin_string_rules())
    rules.extend(builtin_object_rules())
    rules.extend(builtin_web_api_rules())
    return _validated(rules)


@dataclass(frozen=True, slots=True)
class RuleSet:
    """
    An immutable, id-ordered collection of rules.

    Build one per run (built-ins, optionally extended with plugin rules) and
    hand it to the engine. Extending returns a new set.
    """

    rules: tuple[BaseRule, ...] = ()

    @classmethod
    def builtin(cls) -> RuleSet:
        return cls(builtin_rules())

    @classmethod
    def of(cls, rules: Iterable[BaseRule]) -> RuleSet:
        return cls(_validated(rules))

    def extended(self, extra: Iterable[BaseRule]) -> RuleSet:
        extra = tuple(extra)
        existing = set(self.rule_ids())
        for rule in extra:
            if isinstance(rule, BaseRule) and rule.meta.rule_id in existing:
                raise RuleSetError(f"Rule id conflicts with an existing rule: {rule.meta.rule_id}")
        return RuleSet.of((*self.rules, *extra))

    def rule_ids(self) -> tuple[str, ...]:
        return tuple(r.meta.rule_id for r in self.rules)

    def get(self, rule_id: str) -> BaseRule | None:
        for rule in self.rules:
            if rule.meta.rule_id == rule_id:
                return rule
        return None

    def meta_by_id(self) -> Mapping[str, RuleMeta]:
        return MappingProxyType({r.meta.rule_id: r.meta for r in self.rules})

    def __iter__(self) -> Iterator[BaseRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, rule_id: object) -> bool:
        return isinstance(rule_id, str) and self.get(rule_id) is not None
