from __future__ import annotations

import pytest

pytest.importorskip("tree_sitter")
pytest.importorskip("tree_sitter_javascript")

from helpers import apply_all, by_rule  # noqa: E402

from baseline_upgrade.engine.detection import RuleEngine  # noqa: E402
from baseline_upgrade.rules.arrays import (  # noqa: E402
    ArrayAtMethod,
    ArrayFindMethod,
    ArrayFlatMethod,
    ArrayFromMethod,
    IndexOfToIncludes,
)
from baseline_upgrade.rules.registry import RuleSet  # noqa: E402


def _engine(*rules) -> RuleEngine:
    return RuleEngine(rule_set=RuleSet.of(rules))


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("if (list.indexOf(item) !== -1) {}", "if (list.includes(item)) {}"),
        ("ok = list.indexOf(item) != -1;", "ok = list.includes(item);"),
        ("ok = list.indexOf(item) > -1;", "ok = list.includes(item);"),
        ("ok = -1 !== list.indexOf(item);", "ok = list.includes(item);"),
    ],
)
def test_indexof_membership_checks_become_includes(code: str, expected: str) -> None:
    assert apply_all(_engine(IndexOfToIncludes()), code) == expected


@pytest.mark.parametrize(
    "code",
    [
        "ok = list.indexOf(item) === -1;",
        "ok = list.indexOf(item, 2) !== -1;",
        "ok = list.indexOf(...args) !== -1;",
        "ok = list.indexOf(item) !== 0;",
    ],
)
def test_indexof_non_membership_forms_are_ignored(code: str) -> None:
    assert _engine(IndexOfToIncludes()).analyze("app.js", code) == []


def test_indexof_severity_is_warn() -> None:
    [s] = _engine(IndexOfToIncludes()).analyze("app.js", "ok = a.indexOf(b) !== -1;")
    assert s.severity == "warn"
    assert s.new_code == "a.includes(b)"


def test_array_at_rewrites_numeric_offsets() -> None:
    engine = _engine(ArrayAtMethod())
    assert apply_all(engine, "const last = items[items.length - 1];") == "const last = items.at(-1);"
    assert apply_all(engine, "const x = items[items.length - 2];") == "const x = items.at(-2);"


def test_array_at_is_advisory_for_non_literal_offsets() -> None:
    engine = _engine(ArrayAtMethod())
    result = engine.analyze_with_fixes("app.js", "x = items[items.length - n];\ny = items[items.length - 0];")
    assert [s.new_code for s in result.suggestions] == ["items.at(-n)", "items.at(-0)"]
    assert result.autofix_suggestions == ()


@pytest.mark.parametrize("offset", ["1.5", "2.25", "1e400"])
def test_array_at_fractional_offsets_are_advisory(offset: str) -> None:
    engine = _engine(ArrayAtMethod())
    code = f"const v = arr[arr.length - {offset}];"
    result = engine.analyze_with_fixes("app.js", code)
    assert [s.new_code for s in result.suggestions] == [f"arr.at(-{offset})"]
    assert result.autofix_suggestions == ()
    assert engine.apply_autofix("app.js", code).modified_content == code


def test_array_at_requires_the_same_array() -> None:
    assert _engine(ArrayAtMethod()).analyze("app.js", "x = a[b.length - 1];") == []


def test_filter_first_becomes_find() -> None:
    engine = _engine(ArrayFindMethod())
    code = "const user = users.filter(u => u.active)[0];"
    assert apply_all(engine, code) == "const user = users.find(u => u.active);"
    [s] = engine.analyze("app.js", code)
    assert s.category == "performance"


def test_search_loops_are_advisory() -> None:
    engine = _engine(ArrayFindMethod())
    with_return = "function f(xs) {\n  for (let i = 0; i < xs.length; i++) {\n    if (xs[i] > 1) return xs[i];\n  }\n}\n"
    with_break = "for (let i = 0; i < xs.length; i++) {\n  if (xs[i] === t) {\n    found = i;\n    break;\n  }\n}\n"

    [find] = engine.analyze("app.js", with_return)
    assert find.new_code == "Array.find()"
    assert find.category == "structural"
    assert (find.line, find.column) == (2, 2)

    [find_index] = engine.analyze("app.js", with_break)
    assert find_index.new_code == "Array.findIndex()"
    assert engine.analyze_with_fixes("app.js", with_break).autofix_suggestions == ()


def test_plain_loops_are_not_flagged() -> None:
    code = "for (let i = 0; i < 3; i++) {\n  total += i;\n}\n"
    assert _engine(ArrayFindMethod()).analyze("app.js", code) == []


def test_fill_map_becomes_array_from() -> None:
    engine = _engine(ArrayFromMethod())
    code = "const squares = new Array(5).fill().map((_, i) => i * i);"
    assert apply_all(engine, code) == "const squares = Array.from({length: 5}, (_, i) => i * i);"


def test_fill_with_value_is_advisory() -> None:
    engine = _engine(ArrayFromMethod())
    result = engine.analyze_with_fixes("app.js", "xs = new Array(3).fill(0).map(f);")
    assert len(result.suggestions) == 1
    assert result.autofix_suggestions == ()


def test_single_spread_array_is_advisory() -> None:
    engine = _engine(ArrayFromMethod())
    result = engine.analyze_with_fixes("app.js", "const copy = [...nodes];\nconst both = [...a, ...b];")
    assert [(s.line, s.new_code) for s in result.suggestions] == [(1, "Array.from(arrayLike)")]
    assert result.autofix_suggestions == ()


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("flat = nested.reduce((acc, val) => acc.concat(val), []);", "flat = nested.flat();"),
        (
            "flat = nested.reduce(function (acc, val) { return acc.concat(val); }, []);",
            "flat = nested.flat();",
        ),
        ("flat = [].concat(...nested);", "flat = nested.flat();"),
        ("flat = [].concat(...getLists());", "flat = getLists().flat();"),
    ],
)
def test_manual_flattening_becomes_flat(code: str, expected: str) -> None:
    assert apply_all(_engine(ArrayFlatMethod()), code) == expected


def test_reduce_with_other_concat_shape_is_advisory() -> None:
    engine = _engine(ArrayFlatMethod())
    result = engine.analyze_with_fixes("app.js", "x = lists.reduce((acc, val) => acc.concat(val, extra), []);")
    assert len(by_rule(result.suggestions, "array-flat-method")) == 1
    assert result.autofix_suggestions == ()


def test_reduce_without_empty_initial_array_is_ignored() -> None:
    code = "x = lists.reduce((acc, val) => acc.concat(val), [0]);"
    assert _engine(ArrayFlatMethod()).analyze("app.js", code) == []
