from __future__ import annotations

from baseline_upgrade.engine.nodes import Span
from baseline_upgrade.engine.types import AutofixOptions, AutofixSuggestion, Position, Severity, Suggestion, TextEdit


def make_fix(
    start: tuple[int, int],
    end: tuple[int, int],
    new_text: str,
    *,
    rule_id: str = "test-rule",
    severity: Severity = "info",
) -> AutofixSuggestion:
    suggestion = Suggestion(
        file_path="app.js",
        rule_id=rule_id,
        line=start[0],
        column=start[1],
        old_code="",
        new_code=new_text,
        description="test edit",
        category="syntax-modernization",
        stability="fully-supported",
        severity=severity,
    )
    return AutofixSuggestion(suggestion=suggestion, edit=TextEdit(Position(*start), Position(*end), new_text))


def span_of(text: str, needle: str, *, occurrence: int = 1) -> Span:
    """Span of the n-th occurrence of `needle` in `text` (single-line needles only)."""

    index = -1
    for _ in range(occurrence):
        index = text.index(needle, index + 1)
    line = text.count("\n", 0, index) + 1
    line_start = text.rfind("\n", 0, index) + 1
    col = index - line_start
    return Span(
        start_line=line,
        start_col=col,
        end_line=line,
        end_col=col + len(needle),
        start_offset=index,
        end_offset=index + len(needle),
    )


def apply_all(engine, code: str, *, path: str = "app.js", safe_only: bool = False) -> str:
    result = engine.apply_autofix(path, code, AutofixOptions(safe_only=safe_only, max_edits=0))
    assert result.success, result.errors
    assert result.modified_content is not None
    return result.modified_content


def by_rule(suggestions, rule_id: str) -> list:
    return [s for s in suggestions if s.rule_id == rule_id]
