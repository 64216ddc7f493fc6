from __future__ import annotations

import pytest

pytest.importorskip("tree_sitter")
pytest.importorskip("tree_sitter_javascript")

from helpers import apply_all  # noqa: E402

from baseline_upgrade.engine.detection import RuleEngine  # noqa: E402
from baseline_upgrade.rules.objects import ObjectAssignMethod, ObjectMethods  # noqa: E402
from baseline_upgrade.rules.registry import RuleSet  # noqa: E402


def _engine(*rules) -> RuleEngine:
    return RuleEngine(rule_set=RuleSet.of(rules))


def test_keys_map_becomes_values() -> None:
    engine = _engine(ObjectMethods())
    code = "const vals = Object.keys(obj).map(k => obj[k]);"
    assert apply_all(engine, code) == "const vals = Object.values(obj);"

    [s] = engine.analyze("app.js", code)
    assert s.old_code == "Object.keys(obj).map(k => obj[k])"


def test_keys_map_over_another_object_is_advisory() -> None:
    engine = _engine(ObjectMethods())
    result = engine.analyze_with_fixes("app.js", "const vals = Object.keys(a).map(k => b[k]);")
    assert len(result.suggestions) == 1
    assert result.autofix_suggestions == ()


def test_keys_map_with_other_body_is_ignored() -> None:
    engine = _engine(ObjectMethods())
    assert engine.analyze("app.js", "const ks = Object.keys(obj).map(k => k.toUpperCase());") == []


def test_own_property_loop_suggests_object_keys() -> None:
    engine = _engine(ObjectMethods())
    code = "for (var key in config) {\n  if (config.hasOwnProperty(key)) {\n    use(config[key]);\n  }\n}\n"
    result = engine.analyze_with_fixes("app.js", code)
    [s] = result.suggestions
    assert s.new_code == "Object.keys(config).forEach()"
    assert (s.line, s.column) == (1, 0)
    assert result.autofix_suggestions == ()


def test_property_copy_loop_suggests_object_assign() -> None:
    engine = _engine(ObjectAssignMethod())
    code = "for (var k in source) {\n  target[k] = source[k];\n}\n"
    suggestions = engine.analyze("app.js", code)
    assert [(s.line, s.new_code) for s in suggestions] == [
        (1, "Object.assign(target, source)"),
        (2, "Object.assign() for multiple properties"),
    ]


def test_empty_object_and_member_copies_are_advisories() -> None:
    engine = _engine(ObjectAssignMethod())
    code = "var out = {};\nout.name = input.name;\nvar full = {a: 1};\n"
    result = engine.analyze_with_fixes("app.js", code)
    assert [(s.line, s.old_code) for s in result.suggestions] == [
        (1, "empty object with manual property assignment"),
        (2, "manual property assignment"),
    ]
    assert result.autofix_suggestions == ()
