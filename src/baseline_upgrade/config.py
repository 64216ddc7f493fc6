from __future__ import annotations

import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal, cast

from baseline_upgrade.engine.types import AutofixOptions

RuleSetting = Literal["off", "warn", "error", "info"]

_TOOL_KEY = "baseline-upgrade"
_RULE_ID_RE = re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)*$")
_DEFAULT_AUTOFIX = AutofixOptions()


class ConfigError(ValueError):
    """Raised when a baseline-upgrade configuration is invalid."""


def _validate_str_list(value: Any, *, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
        raise ConfigError(f"`{field_name}` must be a list of strings.")
    return tuple(v.strip() for v in value)


def _normalize_rule_id(value: str) -> str:
    # Rule ids are case-insensitive in config files, but canonicalized internally.
    return value.strip().lower()


def _validate_setting(value: Any, *, field_name: str) -> RuleSetting:
    if not isinstance(value, str):
        raise ConfigError(f"`{field_name}` must be a string.")
    normalized = value.strip().lower()
    if normalized == "warning":
        normalized = "warn"
    if normalized not in {"off", "info", "warn", "error"}:
        raise ConfigError(f"`{field_name}` must be one of: off, info, warn, error.")
    return cast(RuleSetting, normalized)


def normalize_rule_settings(value: Any, *, field_name: str = "rules") -> Mapping[str, RuleSetting]:
    """
    Validate a `rule_id -> setting` mapping.

    Ids are lowercased and `warning` is accepted as an alias of `warn`.
    """

    if value is None:
        return MappingProxyType({})
    if not isinstance(value, Mapping):
        raise ConfigError(f"`{field_name}` must be a table.")

    out: dict[str, RuleSetting] = {}
    for raw_rule_id, raw_setting in value.items():
        if not isinstance(raw_rule_id, str):
            raise ConfigError(f"`{field_name}` keys must be strings.")
        rule_id = _normalize_rule_id(raw_rule_id)
        if not _RULE_ID_RE.match(rule_id):
            raise ConfigError(f"`{field_name}.{raw_rule_id}` is invalid; expected a rule id like var-to-const-let.")
        out[rule_id] = _validate_setting(raw_setting, field_name=f"{field_name}.{raw_rule_id}")
    return MappingProxyType(out)


@dataclass(frozen=True, slots=True)
class AutofixConfig:
    safe_only: bool = _DEFAULT_AUTOFIX.safe_only
    max_edits: int = _DEFAULT_AUTOFIX.max_edits

    def options(self, *, dry_run: bool = False) -> AutofixOptions:
        return AutofixOptions(dry_run=dry_run, safe_only=self.safe_only, max_edits=self.max_edits)


@dataclass(frozen=True, slots=True)
class BaselineUpgradeConfig:
    rules: Mapping[str, RuleSetting] = field(default_factory=lambda: MappingProxyType({}))
    plugins: tuple[str, ...] = ()
    autofix: AutofixConfig = field(default_factory=AutofixConfig)


def load_config(project_dir: Path | str = ".") -> BaselineUpgradeConfig:
    """
    Load configuration from `pyproject.toml` within `project_dir`.

    If no file / no `[tool.baseline-upgrade]` table exists, returns defaults.
    """

    pyproject_path = Path(project_dir) / "pyproject.toml"
    if not pyproject_path.exists():
        return BaselineUpgradeConfig()

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {exc}") from exc

    tool_table = data.get("tool", {})
    if not isinstance(tool_table, dict):
        return BaselineUpgradeConfig()

    table = tool_table.get(_TOOL_KEY, {})
    if not isinstance(table, dict) or not table:
        return BaselineUpgradeConfig()

    return parse_config_table(table)


def parse_config_table(table: Mapping[str, Any]) -> BaselineUpgradeConfig:
    rules = normalize_rule_settings(table.get("rules", {}), field_name=f"tool.{_TOOL_KEY}.rules")
    plugins = _validate_str_list(table.get("plugins", []), field_name=f"tool.{_TOOL_KEY}.plugins")
    autofix = _parse_autofix_config(table.get("autofix", {}))
    return BaselineUpgradeConfig(rules=rules, plugins=plugins, autofix=autofix)


def _parse_autofix_config(value: Any) -> AutofixConfig:
    if value is None:
        return AutofixConfig()
    if not isinstance(value, Mapping):
        raise ConfigError(f"`tool.{_TOOL_KEY}.autofix` must be a table.")

    safe_only = value.get("safe-only", value.get("safe_only", _DEFAULT_AUTOFIX.safe_only))
    if not isinstance(safe_only, bool):
        raise ConfigError(f"`tool.{_TOOL_KEY}.autofix.safe-only` must be a boolean.")

    max_edits = value.get("max-edits", value.get("max_edits", _DEFAULT_AUTOFIX.max_edits))
    # bool is an int subclass; `max-edits = true` is a typo, not 1.
    if isinstance(max_edits, bool) or not isinstance(max_edits, int):
        raise ConfigError(f"`tool.{_TOOL_KEY}.autofix.max-edits` must be an integer.")

    return AutofixConfig(safe_only=safe_only, max_edits=max_edits)
