from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from baseline_upgrade.engine.nodes import Span

Severity = Literal["error", "warn", "info"]
Category = Literal["syntax-modernization", "api-modernization", "structural", "performance"]
StabilityTier = Literal["fully-supported", "newly-supported", "partially-supported", "unsupported"]

SEVERITIES: tuple[Severity, ...] = ("error", "warn", "info")
CATEGORIES: tuple[Category, ...] = ("syntax-modernization", "api-modernization", "structural", "performance")
# Most broadly supported first.
STABILITY_ORDER: tuple[StabilityTier, ...] = (
    "fully-supported",
    "newly-supported",
    "partially-supported",
    "unsupported",
)


@dataclass(frozen=True, slots=True, order=True)
class Position:
    line: int  # 1-based
    column: int  # 0-based


@dataclass(frozen=True, slots=True)
class TextEdit:
    """
    Replace the text between `start` and `end` with `new_text`.

    Both positions address the original, unmodified snapshot of the file.
    """

    start: Position
    end: Position
    new_text: str

    def is_well_formed(self) -> bool:
        if self.start.line < 1 or self.end.line < 1:
            return False
        if self.start.column < 0 or self.end.column < 0:
            return False
        return self.end >= self.start

    @classmethod
    def from_span(cls, span: Span, new_text: str) -> TextEdit:
        return cls(
            start=Position(span.start_line, span.start_col),
            end=Position(span.end_line, span.end_col),
            new_text=new_text,
        )


@dataclass(frozen=True, slots=True)
class Suggestion:
    file_path: str
    rule_id: str
    line: int  # 1-based
    column: int  # 0-based
    old_code: str
    new_code: str
    description: str
    category: Category
    stability: StabilityTier
    severity: Severity


@dataclass(frozen=True, slots=True)
class AutofixSuggestion:
    suggestion: Suggestion
    edit: TextEdit

    @property
    def rule_id(self) -> str:
        return self.suggestion.rule_id

    @property
    def severity(self) -> Severity:
        return self.suggestion.severity

    @property
    def stability(self) -> StabilityTier:
        return self.suggestion.stability

    @property
    def file_path(self) -> str:
        return self.suggestion.file_path


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    suggestions: tuple[Suggestion, ...]
    autofix_suggestions: tuple[AutofixSuggestion, ...]


@dataclass(frozen=True, slots=True)
class AutofixError:
    rule_id: str
    message: str
    position: Position | None = None


@dataclass(frozen=True, slots=True)
class AutofixOptions:
    dry_run: bool = False
    safe_only: bool = True
    max_edits: int = 100  # <= 0 means unlimited


@dataclass(frozen=True, slots=True)
class AutofixResult:
    success: bool
    applied_edits: int
    errors: tuple[AutofixError, ...] = ()
    modified_content: str | None = None
    dry_run: bool = False
    # Candidates discarded because they overlapped an already accepted edit.
    dropped_conflicts: int = 0
