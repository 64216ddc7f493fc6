from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from baseline_upgrade import __version__
from baseline_upgrade.engine.types import Suggestion

_SEVERITY_ICON = {"error": "✖", "warn": "⚠", "info": "ℹ"}
_SEVERITY_STYLE = {"error": "bold red", "warn": "yellow", "info": "dim"}


def render_terminal(
    findings: Mapping[str, Sequence[Suggestion]],
    *,
    sources: Mapping[str, str],
    console: Console,
) -> None:
    """Print suggestions grouped by file, with the offending source line under each."""

    header = Text()
    header.append("baseline-upgrade ", style="bold")
    header.append(f"v{__version__}", style="dim")
    console.print(Panel(header, subtitle=f"Analyzed {len(findings)} file(s)", border_style="cyan"))

    for file_path in findings:
        suggestions = findings[file_path]
        if not suggestions:
            continue
        console.print(Text(file_path, style="bold"))
        file_lines = sources.get(file_path, "").split("\n")
        for s in suggestions:
            _print_suggestion(console, s, file_lines=file_lines)
        console.print()

    _print_summary(findings, console=console)


def _print_suggestion(console: Console, s: Suggestion, *, file_lines: list[str]) -> None:
    icon = _SEVERITY_ICON.get(s.severity, "•")
    style = _SEVERITY_STYLE.get(s.severity, "")

    line = Text()
    line.append(f"  {icon} ", style=style)
    line.append(s.rule_id, style="bold")
    line.append(f"  ({s.line}:{s.column})", style="dim")
    line.append(f"  {s.description}")
    console.print(line)

    idx = s.line - 1
    if 0 <= idx < len(file_lines):
        console.print(Text(f"     {s.line:>4} │ {file_lines[idx].rstrip()}", style="dim"))
    console.print(Text(f"     {s.old_code} → {s.new_code}", style="dim"))


def _print_summary(findings: Mapping[str, Sequence[Suggestion]], *, console: Console) -> None:
    counts = Counter(s.severity for suggestions in findings.values() for s in suggestions)
    total = sum(counts.values())
    console.print(Text("─" * 60, style="dim"))
    if not total:
        console.print(Text("No legacy patterns found.", style="bold green"))
    else:
        parts = ", ".join(f"{counts[sev]} {sev}" for sev in ("error", "warn", "info") if counts[sev])
        console.print(Text(f"{total} suggestion(s): {parts}", style="bold"))
    console.print(Text("─" * 60, style="dim"))


def render_fix_summary(file_path: str, *, applied: int, dropped: int, errors: Sequence[str], console: Console) -> None:
    line = Text()
    line.append(file_path, style="bold")
    line.append(f"  {applied} edit(s) applied", style="green" if applied else "dim")
    if dropped:
        line.append(f", {dropped} overlapping dropped", style="dim")
    console.print(line)
    for message in errors:
        console.print(Text(f"  ✖ {message}", style="bold red"))
