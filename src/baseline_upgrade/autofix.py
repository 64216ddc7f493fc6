from __future__ import annotations

import difflib
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from baseline_upgrade.engine.types import (
    AutofixError,
    AutofixOptions,
    AutofixResult,
    AutofixSuggestion,
    Position,
    TextEdit,
)

if TYPE_CHECKING:
    from baseline_upgrade.engine.detection import RuleEngine

logger = logging.getLogger(__name__)


class EditApplicationError(ValueError):
    """Raised by `LineBuffer.apply_edit` when an edit does not fit the current buffer."""


class LineBuffer:
    """
    An owned, mutable list of lines.

    `apply_edit` is the only mutation. It replaces the text between two
    positions; a multi-line range is collapsed into a single line holding the
    first line's prefix, the replacement and the last line's suffix. Lines
    after the edited range shift up, lines before it are untouched, which is
    why callers apply edits bottom-to-top.
    """

    def __init__(self, text: str) -> None:
        self._lines = text.split("\n")

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def apply_edit(self, edit: TextEdit) -> None:
        start, end = edit.start, edit.end
        if (end.line, end.column) < (start.line, start.column):
            raise EditApplicationError(f"edit ends before it starts: {_fmt(start)}-{_fmt(end)}")
        if start.line < 1 or end.line > len(self._lines):
            raise EditApplicationError(
                f"edit lines {start.line}-{end.line} are outside the buffer (1-{len(self._lines)})"
            )

        first = self._lines[start.line - 1]
        last = self._lines[end.line - 1]
        if not 0 <= start.column <= len(first):
            raise EditApplicationError(f"start column {start.column} is outside line {start.line} (0-{len(first)})")
        if not 0 <= end.column <= len(last):
            raise EditApplicationError(f"end column {end.column} is outside line {end.line} (0-{len(last)})")

        combined = first[: start.column] + edit.new_text + last[end.column :]
        self._lines[start.line - 1 : end.line] = [combined]


def _fmt(pos: Position) -> str:
    return f"{pos.line}:{pos.column}"


def apply_fixes(
    text: str,
    suggestions: Iterable[AutofixSuggestion],
    options: AutofixOptions | None = None,
) -> AutofixResult:
    """
    Apply a non-conflicting subset of `suggestions` to `text`.

    Pipeline: filter (safe-only, malformed, out of bounds) -> sort bottom-to-top
    -> drop overlaps -> cap at `max_edits` -> apply. Every edit addresses the
    original `text`; the caller's string is never modified, so a dry run
    returns exactly what a real run would.
    """

    opts = options or AutofixOptions()
    original_lines = text.split("\n")

    candidates = _filter_candidates(suggestions, original_lines, safe_only=opts.safe_only)
    ordered = sorted(candidates, key=_application_order)
    accepted, dropped = _drop_overlaps(ordered, original_lines)
    if dropped:
        logger.debug("dropped %d overlapping edit(s)", dropped)
    if opts.max_edits > 0 and len(accepted) > opts.max_edits:
        logger.debug("capping %d edit(s) at max_edits=%d", len(accepted), opts.max_edits)
        accepted = accepted[: opts.max_edits]

    buffer = LineBuffer(text)
    errors: list[AutofixError] = []
    applied = 0
    for suggestion in sorted(accepted, key=_splice_order):
        try:
            buffer.apply_edit(suggestion.edit)
        except EditApplicationError as exc:
            errors.append(AutofixError(rule_id=suggestion.rule_id, message=str(exc), position=suggestion.edit.start))
            continue
        applied += 1

    return AutofixResult(
        success=not errors,
        applied_edits=applied,
        errors=tuple(errors),
        modified_content=buffer.text(),
        dry_run=opts.dry_run,
        dropped_conflicts=dropped,
    )


def _filter_candidates(
    suggestions: Iterable[AutofixSuggestion],
    lines: Sequence[str],
    *,
    safe_only: bool,
) -> list[AutofixSuggestion]:
    out: list[AutofixSuggestion] = []
    for suggestion in suggestions:
        if safe_only and suggestion.severity != "info":
            continue
        edit = suggestion.edit
        if not edit.is_well_formed():
            logger.debug("skipping malformed edit from %s", suggestion.rule_id)
            continue
        if edit.start.line > len(lines) or edit.end.line > len(lines):
            logger.debug("skipping out-of-bounds edit from %s", suggestion.rule_id)
            continue
        out.append(suggestion)
    return out


def _application_order(suggestion: AutofixSuggestion) -> tuple[int, int, int, int, str, str]:
    """
    Bottom-to-top and right-to-left by end position.

    On equal end positions the wider edit (earlier start) comes first; rule id
    and replacement text settle the rest so the input order never matters.
    """

    edit = suggestion.edit
    return (-edit.end.line, -edit.end.column, edit.start.line, edit.start.column, suggestion.rule_id, edit.new_text)


def _splice_order(suggestion: AutofixSuggestion) -> tuple[int, int, int, int, str, str]:
    """
    Order accepted edits so no pending edit starts after an applied splice.

    On equal end positions the later start goes first: an insertion at the end
    of a replacement must land before the replacement shifts that column.
    """

    edit = suggestion.edit
    return (-edit.end.line, -edit.end.column, -edit.start.line, -edit.start.column, suggestion.rule_id, edit.new_text)


def _offset(lines: Sequence[str], pos: Position) -> int:
    return sum(len(line) + 1 for line in lines[: pos.line - 1]) + pos.column


def _drop_overlaps(
    ordered: Sequence[AutofixSuggestion],
    lines: Sequence[str],
) -> tuple[list[AutofixSuggestion], int]:
    accepted: list[AutofixSuggestion] = []
    ranges: list[tuple[int, int]] = []
    dropped = 0
    for suggestion in ordered:
        start = _offset(lines, suggestion.edit.start)
        end = _offset(lines, suggestion.edit.end)
        # Half-open intervals: touching ranges and insertions at a boundary do not overlap.
        if any(start < other_end and other_start < end for other_start, other_end in ranges):
            dropped += 1
            continue
        accepted.append(suggestion)
        ranges.append((start, end))
    return accepted, dropped


@dataclass(frozen=True, slots=True)
class AutofixFileResult:
    path: Path
    changed: bool
    diff: str
    result: AutofixResult


def autofix_file(
    path: Path,
    engine: RuleEngine,
    options: AutofixOptions | None = None,
    *,
    backup: bool = False,
) -> AutofixFileResult:
    """
    Analyze and fix one file on disk.

    The file is rewritten only when something changed and `options.dry_run` is
    off; with `backup=True` the original is first kept next to it as `<name>.bak`.
    """

    opts = options or AutofixOptions()
    original = path.read_text(encoding="utf-8", errors="replace")
    result = engine.apply_autofix(str(path), original, opts)
    updated = result.modified_content if result.modified_content is not None else original

    diff = _unified_diff(original, updated, path=path)
    changed = original != updated

    if changed and not opts.dry_run:
        if backup:
            backup_path = path.with_suffix(path.suffix + ".bak")
            if not backup_path.exists():
                backup_path.write_text(original, encoding="utf-8")
        path.write_text(updated, encoding="utf-8")

    return AutofixFileResult(path=path, changed=changed, diff=diff, result=result)


def _unified_diff(before: str, after: str, *, path: Path) -> str:
    if before == after:
        return ""
    diff = difflib.unified_diff(
        before.splitlines(keepends=False),
        after.splitlines(keepends=False),
        fromfile=str(path),
        tofile=str(path),
        lineterm="",
    )
    return "\n".join(diff)
