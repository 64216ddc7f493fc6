from __future__ import annotations

import pytest

from baseline_upgrade.engine.detection import RuleEngine
from baseline_upgrade.rules.registry import RuleSet
from baseline_upgrade.rules.web_apis import LegacyEventListeners, XhrToFetch


class NoParse:
    def parse(self, language: str, text: str) -> None:
        return None


def _engine(*rules, provider=None) -> RuleEngine:
    return RuleEngine(rule_set=RuleSet.of(rules), provider=provider)


def test_xhr_constructor_is_reported_once() -> None:
    pytest.importorskip("tree_sitter")
    pytest.importorskip("tree_sitter_javascript")
    engine = _engine(XhrToFetch())
    suggestions = engine.analyze("app.js", "const req = new XMLHttpRequest();\n")
    assert [(s.line, s.column, s.severity, s.new_code) for s in suggestions] == [(1, 12, "warn", "fetch(url)")]


def test_xhr_constructor_split_across_lines_is_reported_once() -> None:
    pytest.importorskip("tree_sitter")
    pytest.importorskip("tree_sitter_javascript")
    engine = _engine(XhrToFetch())
    suggestions = engine.analyze("app.js", "const r = new\n  XMLHttpRequest();\n")
    assert [(s.line, s.severity) for s in suggestions] == [(1, "warn")]


def test_xhr_reference_is_informational() -> None:
    pytest.importorskip("tree_sitter")
    pytest.importorskip("tree_sitter_javascript")
    engine = _engine(XhrToFetch())
    [s] = engine.analyze("app.js", "if (window.XMLHttpRequest) { legacy(); }\n")
    assert s.severity == "info"
    assert s.new_code == "fetch() API"


def test_xhr_text_fallback_for_unparseable_files() -> None:
    engine = _engine(XhrToFetch(), provider=NoParse())
    code = "var r = new XMLHttpRequest();\nif (XMLHttpRequest) {}\n"
    suggestions = engine.analyze("app.js", code)
    assert [(s.line, s.severity) for s in suggestions] == [(1, "warn"), (2, "info")]
    assert engine.analyze_with_fixes("app.js", code).autofix_suggestions == ()


def test_xhr_is_found_in_non_script_files() -> None:
    engine = _engine(XhrToFetch())
    [s] = engine.analyze("page.html", "<script>var r = new XMLHttpRequest();</script>\n")
    assert s.severity == "warn"


def test_legacy_event_listener_column_points_at_the_method() -> None:
    engine = _engine(LegacyEventListeners())
    code = "el.attachEvent('onclick', handler);\nel.detachEvent('onclick', handler);\n"
    result = engine.analyze_with_fixes("page.html", code)
    assert [(s.line, s.column, s.new_code) for s in result.suggestions] == [
        (1, 3, ".addEventListener("),
        (2, 3, ".removeEventListener("),
    ]
    assert {s.severity for s in result.suggestions} == {"warn"}
    assert result.autofix_suggestions == ()
