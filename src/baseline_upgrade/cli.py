from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import click
import typer
from rich.console import Console
from rich.table import Table

from baseline_upgrade import __version__
from baseline_upgrade.autofix import autofix_file
from baseline_upgrade.config import BaselineUpgradeConfig, ConfigError, load_config
from baseline_upgrade.engine.detection import RuleEngine
from baseline_upgrade.engine.types import Suggestion
from baseline_upgrade.logging_utils import configure_logging
from baseline_upgrade.reporters.json_reporter import render_json
from baseline_upgrade.reporters.terminal import render_fix_summary, render_terminal
from baseline_upgrade.rules.plugins import PluginLoadError, load_plugin_rules
from baseline_upgrade.rules.registry import RuleSet, RuleSetError

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="baseline-upgrade: find legacy JavaScript patterns and rewrite them with modern equivalents.",
)
console = Console()
logger = logging.getLogger(__name__)


def _project_option() -> typer.models.OptionInfo:
    return typer.Option(
        "--project",
        file_okay=False,
        dir_okay=True,
        help="Directory holding the pyproject.toml to read [tool.baseline-upgrade] from.",
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logs (printed to stderr)."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Reduce non-essential output."),
    ] = False,
) -> None:
    """baseline-upgrade CLI."""

    if verbose and quiet:
        raise typer.BadParameter("Choose at most one: --verbose or --quiet.")
    configure_logging(verbose=verbose, quiet=quiet)
    ctx.obj = {"verbose": verbose, "quiet": quiet}


def _is_quiet(ctx: click.Context) -> bool:
    root = ctx.find_root()
    return isinstance(root.obj, dict) and bool(root.obj.get("quiet", False))


def _load(project: Path) -> tuple[BaselineUpgradeConfig, RuleEngine]:
    try:
        config = load_config(project)
        rule_set = RuleSet.builtin().extended(load_plugin_rules(config.plugins))
    except (ConfigError, PluginLoadError, RuleSetError) as exc:
        console.print(f"Configuration error: {exc}")
        raise typer.Exit(code=2) from exc
    return config, RuleEngine(rule_set=rule_set, config=config.rules)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


@app.command("file")
def file_command(
    paths: Annotated[
        list[Path],
        typer.Argument(exists=True, file_okay=True, dir_okay=False, help="Files to analyze."),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: text, json.", show_default=True),
    ] = "text",
    workers: Annotated[
        int,
        typer.Option("--workers", min=1, help="Analyze files on this many threads.", show_default=True),
    ] = 1,
    project: Annotated[Path, _project_option()] = Path("."),
) -> None:
    """
    Report legacy patterns in the given files.

    Exits with code 1 when any suggestion has severity `error`.
    """

    normalized = output_format.strip().lower()
    if normalized not in {"text", "json"}:
        raise typer.BadParameter("Unsupported format. Use: text, json.")

    _, engine = _load(project)
    sources = {str(p): _read(p) for p in paths}
    results = engine.analyze_many(sources.items(), workers=workers)
    findings: dict[str, list[Suggestion]] = {
        file_path: list(result.suggestions) for file_path, result in zip(sources, results, strict=True)
    }

    if normalized == "json":
        typer.echo(render_json(findings))
    else:
        render_terminal(findings, sources=sources, console=console)

    if any(s.severity == "error" for suggestions in findings.values() for s in suggestions):
        raise typer.Exit(code=1)


@app.command()
def fix(
    ctx: typer.Context,
    paths: Annotated[
        list[Path],
        typer.Argument(exists=True, file_okay=True, dir_okay=False, help="Files to rewrite."),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Don't write changes; only print a unified diff."),
    ] = False,
    safe_only: Annotated[
        bool | None,
        typer.Option(
            "--safe-only/--all",
            help="Apply only info-level rewrites (default from config, otherwise safe-only).",
            show_default=False,
        ),
    ] = None,
    max_edits: Annotated[
        int | None,
        typer.Option("--max-edits", help="Apply at most N edits per file (0 = unlimited)."),
    ] = None,
    backup: Annotated[
        bool,
        typer.Option("--backup", help="Keep a <file>.bak copy before writing."),
    ] = False,
    project: Annotated[Path, _project_option()] = Path("."),
) -> None:
    """
    Apply exact, non-overlapping rewrites to the given files.
    """

    config, engine = _load(project)
    autofix_config = config.autofix
    options = autofix_config.options(dry_run=dry_run)
    if safe_only is not None or max_edits is not None:
        options = replace(
            options,
            safe_only=options.safe_only if safe_only is None else safe_only,
            max_edits=options.max_edits if max_edits is None else max_edits,
        )

    failed = False
    for path in paths:
        outcome = autofix_file(path, engine, options, backup=backup)
        result = outcome.result
        if not _is_quiet(ctx):
            render_fix_summary(
                str(path),
                applied=result.applied_edits,
                dropped=result.dropped_conflicts,
                errors=[f"{e.rule_id}: {e.message}" for e in result.errors],
                console=console,
            )
        if outcome.diff and dry_run:
            typer.echo(outcome.diff)
        failed = failed or not result.success

    if failed:
        raise typer.Exit(code=1)


@app.command()
def rules(
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: text, json.", show_default=True),
    ] = "text",
    project: Annotated[Path, _project_option()] = Path("."),
) -> None:
    """
    List the available rules (built-in + plugin rules) and their effective settings.
    """

    config, engine = _load(project)
    active = {r.meta.rule_id for r in engine.active_rules}
    rows = [
        {
            "rule_id": rule.meta.rule_id,
            "enabled": rule.meta.rule_id in active,
            "severity": config.rules.get(rule.meta.rule_id, rule.meta.default_severity),
            "category": rule.meta.category,
            "title": rule.meta.title,
        }
        for rule in engine.rule_set
    ]

    normalized = output_format.strip().lower()
    if normalized == "json":
        typer.echo(json.dumps(rows, indent=2, sort_keys=True))
        return
    if normalized != "text":
        raise typer.BadParameter("Unsupported format. Use: text, json.")

    table = Table(title="baseline-upgrade rules")
    table.add_column("ID", style="bold")
    table.add_column("Enabled", justify="center")
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Title")
    for row in rows:
        table.add_row(
            str(row["rule_id"]),
            "yes" if row["enabled"] else "no",
            str(row["severity"]),
            str(row["category"]),
            str(row["title"]),
        )
    console.print(table)
