from __future__ import annotations

import itertools
import random

from helpers import make_fix

from baseline_upgrade.autofix import _application_order, _drop_overlaps, apply_fixes
from baseline_upgrade.engine.types import AutofixOptions

MULTI_LINE = "\n".join(
    [
        "line1",
        "var a = 1;",
        "line3",
        "line4",
        "foo(",
        "  x",
        ");",
        "line8",
    ]
)


def test_empty_suggestion_list_returns_text_unchanged() -> None:
    text = "const a = 1;\nconst b = 2;\n"
    result = apply_fixes(text, [])
    assert result.success is True
    assert result.applied_edits == 0
    assert result.errors == ()
    assert result.modified_content == text
    assert result.dropped_conflicts == 0


def test_simple_rewrite() -> None:
    result = apply_fixes("var x = 1;", [make_fix((1, 0), (1, 5), "const x")])
    assert result.success is True
    assert result.applied_edits == 1
    assert result.modified_content == "const x = 1;"


def test_same_line_conflict_keeps_the_edit_ending_last() -> None:
    text = "0123456789ABCDEFGHIJ"
    left = make_fix((1, 0), (1, 10), "L", rule_id="left-rule")
    right = make_fix((1, 5), (1, 15), "R", rule_id="right-rule")

    result = apply_fixes(text, [left, right])

    assert result.applied_edits == 1
    assert result.dropped_conflicts == 1
    assert result.modified_content == "01234RFGHIJ"
    # Dropping a conflict is not an error.
    assert result.success is True
    assert result.errors == ()


def test_conflict_winner_does_not_depend_on_input_order() -> None:
    text = "0123456789ABCDEFGHIJ"
    fixes = [
        make_fix((1, 0), (1, 10), "L"),
        make_fix((1, 5), (1, 15), "R"),
        make_fix((1, 12), (1, 15), "S"),
        make_fix((1, 2), (1, 15), "W"),
    ]
    outcomes = {apply_fixes(text, list(p)).modified_content for p in itertools.permutations(fixes)}
    # Same end column: the widest range wins.
    assert outcomes == {"01WFGHIJ"}


def test_identical_ranges_are_resolved_by_rule_id() -> None:
    a = make_fix((1, 0), (1, 3), "AAA", rule_id="a-rule")
    b = make_fix((1, 0), (1, 3), "BBB", rule_id="b-rule")
    assert apply_fixes("xyz!", [b, a]).modified_content == "AAA!"
    assert apply_fixes("xyz!", [a, b]).modified_content == "AAA!"


def test_multi_line_collapse_then_upstream_edit() -> None:
    collapse = make_fix((5, 0), (7, 2), "foo(x);")
    upstream = make_fix((2, 0), (2, 5), "const a")

    result = apply_fixes(MULTI_LINE, [upstream, collapse])

    assert result.success is True
    assert result.applied_edits == 2
    assert result.modified_content == "\n".join(
        ["line1", "const a = 1;", "line3", "line4", "foo(x);", "line8"]
    )


def test_adjacent_edits_on_one_line_both_apply() -> None:
    fixes = [make_fix((1, 0), (1, 3), "ONE"), make_fix((1, 3), (1, 6), "TWO")]
    result = apply_fixes("abcdef", fixes)
    assert result.applied_edits == 2
    assert result.dropped_conflicts == 0
    assert result.modified_content == "ONETWO"


def test_max_edits_caps_in_bottom_to_top_order() -> None:
    text = "\n".join(f"v{i}" for i in range(1, 11))
    fixes = [make_fix((i, 0), (i, 2), f"X{i}") for i in range(1, 11)]

    result = apply_fixes(text, fixes, AutofixOptions(max_edits=3))

    assert result.applied_edits == 3
    lines = (result.modified_content or "").split("\n")
    assert lines[:7] == [f"v{i}" for i in range(1, 8)]
    assert lines[7:] == ["X8", "X9", "X10"]


def test_non_positive_max_edits_means_unlimited() -> None:
    text = "\n".join(f"v{i}" for i in range(1, 151))
    fixes = [make_fix((i, 0), (i, 1), "w") for i in range(1, 151)]
    assert apply_fixes(text, fixes, AutofixOptions(max_edits=0)).applied_edits == 150
    assert apply_fixes(text, fixes, AutofixOptions(max_edits=-1)).applied_edits == 150
    # Default cap.
    assert apply_fixes(text, fixes).applied_edits == 100


def test_dry_run_matches_real_run_and_leaves_inputs_alone() -> None:
    text = MULTI_LINE
    fixes = [make_fix((5, 0), (7, 2), "foo(x);"), make_fix((2, 0), (2, 5), "const a")]
    fixes_before = list(fixes)

    preview = apply_fixes(text, fixes, AutofixOptions(dry_run=True))
    real = apply_fixes(text, fixes, AutofixOptions(dry_run=False))

    assert preview.dry_run is True
    assert real.dry_run is False
    assert preview.modified_content == real.modified_content
    assert preview.applied_edits == real.applied_edits == 2
    assert text == MULTI_LINE
    assert fixes == fixes_before


def test_safe_only_skips_non_info_suggestions() -> None:
    fixes = [
        make_fix((1, 0), (1, 3), "let", severity="warn"),
        make_fix((1, 8), (1, 9), "2", severity="info"),
    ]
    safe = apply_fixes("var x = 1;", fixes)
    assert safe.applied_edits == 1
    assert safe.modified_content == "var x = 2;"

    everything = apply_fixes("var x = 1;", fixes, AutofixOptions(safe_only=False))
    assert everything.applied_edits == 2
    assert everything.modified_content == "let x = 2;"


def test_malformed_and_out_of_bounds_edits_are_filtered_silently() -> None:
    fixes = [
        make_fix((1, 5), (1, 2), "backwards"),
        make_fix((3, 0), (2, 0), "backwards lines"),
        make_fix((0, 0), (1, 1), "line zero"),
        make_fix((9, 0), (9, 1), "past the end"),
        make_fix((1, 0), (1, 1), "A"),
    ]
    result = apply_fixes("abc\ndef", fixes)
    assert result.success is True
    assert result.errors == ()
    assert result.applied_edits == 1
    assert result.modified_content == "Abc\ndef"


def test_failed_edit_is_recorded_and_the_rest_still_apply() -> None:
    bad = make_fix((1, 10), (1, 12), "??", rule_id="bad-rule")
    good = make_fix((2, 0), (2, 2), "XY", rule_id="good-rule")

    result = apply_fixes("ab\ncd", [bad, good])

    assert result.success is False
    assert result.applied_edits == 1
    assert result.modified_content == "ab\nXY"
    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.rule_id == "bad-rule"
    assert error.position is not None
    assert (error.position.line, error.position.column) == (1, 10)
    assert "column" in error.message


def test_insertions_and_deletions() -> None:
    fixes = [
        make_fix((1, 3), (1, 3), "+"),  # insertion
        make_fix((2, 0), (2, 4), ""),  # deletion
    ]
    result = apply_fixes("abcdef\nXXXXrest", fixes)
    assert result.modified_content == "abc+def\nrest"


def test_insertion_at_the_end_of_a_replacement() -> None:
    fixes = [make_fix((1, 3), (1, 6), "X"), make_fix((1, 6), (1, 6), "+")]
    for ordering in (fixes, fixes[::-1]):
        result = apply_fixes("abcdefgh", ordering)
        assert result.applied_edits == 2
        assert result.dropped_conflicts == 0
        assert result.modified_content == "abcX+gh"


def test_insertion_at_the_end_of_a_multi_line_replacement() -> None:
    fixes = [make_fix((1, 2), (2, 2), "Z"), make_fix((2, 2), (2, 2), "+")]
    for ordering in (fixes, fixes[::-1]):
        result = apply_fixes("ab12\ncdef", ordering)
        assert result.applied_edits == 2
        assert result.modified_content == "abZ+ef"


def test_insertion_at_the_start_of_a_replacement() -> None:
    fixes = [make_fix((1, 3), (1, 3), "+"), make_fix((1, 3), (1, 6), "X")]
    assert apply_fixes("abcdefgh", fixes).modified_content == "abc+Xgh"


def test_accepted_edits_never_overlap() -> None:
    rng = random.Random(1234)
    lines = ["x" * 40 for _ in range(8)]
    for _ in range(50):
        fixes = []
        for _ in range(20):
            start_line = rng.randint(1, 8)
            end_line = rng.randint(start_line, min(8, start_line + 2))
            start_col = rng.randint(0, 40)
            end_col = rng.randint(start_col if end_line == start_line else 0, 40)
            fixes.append(make_fix((start_line, start_col), (end_line, end_col), "y"))

        ordered = sorted(fixes, key=_application_order)
        accepted, dropped = _drop_overlaps(ordered, lines)
        assert len(accepted) + dropped == len(fixes)

        def offset(pos) -> int:
            return (pos.line - 1) * 41 + pos.column

        ranges = [(offset(f.edit.start), offset(f.edit.end)) for f in accepted]
        for (a_start, a_end), (b_start, b_end) in itertools.combinations(ranges, 2):
            assert not (a_start < b_end and b_start < a_end)
