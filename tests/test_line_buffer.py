from __future__ import annotations

import pytest

from baseline_upgrade.autofix import EditApplicationError, LineBuffer
from baseline_upgrade.engine.types import Position, TextEdit


def _edit(start: tuple[int, int], end: tuple[int, int], text: str) -> TextEdit:
    return TextEdit(Position(*start), Position(*end), text)


def test_single_line_replacement() -> None:
    buf = LineBuffer("var x = 1;\nvar y = 2;")
    buf.apply_edit(_edit((2, 0), (2, 3), "let"))
    assert buf.text() == "var x = 1;\nlet y = 2;"
    assert len(buf) == 2


def test_multi_line_edit_collapses_into_one_line() -> None:
    buf = LineBuffer("a\nfoo(\n  1,\n  2\n);\nz")
    buf.apply_edit(_edit((2, 3), (5, 1), "(1, 2)"))
    assert buf.lines == ("a", "foo(1, 2);", "z")


def test_replacement_may_introduce_new_lines() -> None:
    buf = LineBuffer("ab")
    buf.apply_edit(_edit((1, 1), (1, 1), "\n"))
    # The buffer keeps the combined text as one entry; text() is what callers read.
    assert buf.text() == "a\nb"


def test_trailing_newline_is_preserved() -> None:
    buf = LineBuffer("x\n")
    buf.apply_edit(_edit((1, 0), (1, 1), "y"))
    assert buf.text() == "y\n"


def test_edit_at_end_of_line_is_allowed() -> None:
    buf = LineBuffer("abc")
    buf.apply_edit(_edit((1, 3), (1, 3), ";"))
    assert buf.text() == "abc;"


@pytest.mark.parametrize(
    ("start", "end", "message"),
    [
        ((1, 4), (1, 5), "start column"),
        ((1, 0), (1, 9), "end column"),
        ((3, 0), (3, 1), "outside the buffer"),
        ((1, 2), (1, 1), "ends before it starts"),
    ],
)
def test_invalid_edits_raise(start, end, message) -> None:
    buf = LineBuffer("abc\nde")
    with pytest.raises(EditApplicationError, match=message):
        buf.apply_edit(_edit(start, end, "x"))
    assert buf.text() == "abc\nde"
