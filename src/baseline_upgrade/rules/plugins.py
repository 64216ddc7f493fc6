from __future__ import annotations

import importlib
from collections.abc import Iterable
from types import ModuleType
from typing import Any

from baseline_upgrade.rules.base import BaseRule

_FACTORY_NAME = "baseline_upgrade_rules"


class PluginLoadError(RuntimeError):
    """Raised when a `plugins` entry in `[tool.baseline-upgrade]` yields no usable rules."""


def load_plugin_rules(plugin_specs: Iterable[str]) -> list[BaseRule]:
    """
    Collect team rules from `module` or `module:attr` plugin entries.

    A module exports its rules through a `baseline_upgrade_rules()` factory or a
    `RULES` sequence; an explicit `attr` may name either kind of export, a rule
    instance or a rule class. Id clashes with built-ins are caught later, when the
    rules are added to a `RuleSet`.
    """

    rules: list[BaseRule] = []
    for raw_spec in plugin_specs:
        spec = raw_spec.strip()
        if spec:
            rules.extend(_rules_from(_resolve_export(spec), spec))
    return rules


def _resolve_export(spec: str) -> Any:
    module_name, sep, attr = spec.partition(":")
    try:
        module = importlib.import_module(module_name)
    except Exception as exc:  # noqa: BLE001
        raise PluginLoadError(f"Failed to import plugin module {module_name!r}: {exc}") from exc
    if not sep:
        return module
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise PluginLoadError(f"Plugin module {module_name!r} has no attribute {attr!r}") from exc


def _rules_from(export: Any, spec: str) -> list[BaseRule]:
    if isinstance(export, ModuleType):
        for name in (_FACTORY_NAME, "RULES"):
            if hasattr(export, name):
                return _rules_from(getattr(export, name), spec)
        raise PluginLoadError(f"Plugin {spec!r}: module must define `{_FACTORY_NAME}()` or `RULES`.")

    if isinstance(export, BaseRule):
        return [export]

    # Rule classes and factories are both called with no arguments.
    if callable(export):
        try:
            produced = export()
        except Exception as exc:  # noqa: BLE001
            raise PluginLoadError(f"Plugin {spec!r}: rule factory failed: {exc}") from exc
        return _rules_from(produced, spec)

    if isinstance(export, list | tuple):
        for item in export:
            if not isinstance(item, BaseRule):
                raise PluginLoadError(f"Plugin {spec!r}: rules must be BaseRule instances, got: {type(item).__name__}")
        return list(export)

    raise PluginLoadError(f"Plugin {spec!r}: Unsupported export type: {type(export).__name__}")
