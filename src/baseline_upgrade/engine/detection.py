from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import cast

from baseline_upgrade.autofix import apply_fixes
from baseline_upgrade.config import RuleSetting, normalize_rule_settings
from baseline_upgrade.engine.context import RuleContext, SyntaxTreeProvider
from baseline_upgrade.engine.nodes import Program, iter_nodes
from baseline_upgrade.engine.tree_sitter import TreeSitterProvider
from baseline_upgrade.engine.types import (
    SEVERITIES,
    AnalysisResult,
    AutofixOptions,
    AutofixResult,
    AutofixSuggestion,
    Severity,
    Suggestion,
    TextEdit,
)
from baseline_upgrade.languages.registry import detect_language
from baseline_upgrade.rules.base import BaseRule
from baseline_upgrade.rules.registry import RuleSet

logger = logging.getLogger(__name__)


class RuleEngine:
    """
    Run a rule set over one file at a time.

    The engine holds no per-file state, so one instance may serve many threads
    (see `analyze_many`). `config` maps rule ids to `off` or a severity; `off`
    removes the rule before any file is analyzed, a severity replaces the
    rule's own on everything it reports.
    """

    def __init__(
        self,
        rule_set: RuleSet | None = None,
        config: Mapping[str, str] | None = None,
        provider: SyntaxTreeProvider | None = None,
    ) -> None:
        self._rule_set = rule_set if rule_set is not None else RuleSet.builtin()
        self._settings: Mapping[str, RuleSetting] = normalize_rule_settings(config or {})
        self._provider: SyntaxTreeProvider = provider if provider is not None else TreeSitterProvider()

        known = set(self._rule_set.rule_ids())
        for rule_id in sorted(self._settings):
            if rule_id not in known:
                logger.warning("unknown rule id in configuration: %s", rule_id)

        self._active = tuple(r for r in self._rule_set if self._settings.get(r.meta.rule_id) != "off")
        self._visitors = tuple(r for r in self._active if r.has_node_visitor)
        self._scanners = tuple(r for r in self._active if r.has_text_scanner)

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    @property
    def active_rules(self) -> tuple[BaseRule, ...]:
        return self._active

    def analyze(self, file_path: str, text: str) -> list[Suggestion]:
        return list(self.analyze_with_fixes(file_path, text).suggestions)

    def analyze_with_fixes(self, file_path: str, text: str) -> AnalysisResult:
        suggestions: list[Suggestion] = []
        fixes: list[AutofixSuggestion] = []

        def emit(suggestion: Suggestion, edit: TextEdit | None) -> None:
            suggestions.append(suggestion)
            if edit is not None:
                fixes.append(AutofixSuggestion(suggestion=suggestion, edit=edit))

        language = detect_language(file_path)
        program = self._parse(file_path, language, text) if self._visitors else None
        parsed = program is not None
        lines = tuple(text.split("\n"))

        def context_for(rule: BaseRule) -> RuleContext:
            return RuleContext(
                file_path=file_path,
                text=text,
                lines=lines,
                language=language,
                parsed=parsed,
                meta=rule.meta,
                severity_override=self._severity_override(rule.meta.rule_id),
                _emit=emit,
            )

        failed: set[str] = set()
        if program is not None:
            visitors = [(rule, context_for(rule)) for rule in self._visitors]
            for node in iter_nodes(program):
                for rule, ctx in visitors:
                    try:
                        rule.visit_node(node, ctx)
                    except Exception as exc:  # noqa: BLE001
                        self._log_rule_failure(rule, file_path, exc, failed)

        for rule in self._scanners:
            try:
                rule.visit_text(context_for(rule))
            except Exception as exc:  # noqa: BLE001
                self._log_rule_failure(rule, file_path, exc, failed)

        return AnalysisResult(suggestions=tuple(suggestions), autofix_suggestions=tuple(fixes))

    def apply_autofix(self, file_path: str, text: str, options: AutofixOptions | None = None) -> AutofixResult:
        analysis = self.analyze_with_fixes(file_path, text)
        return apply_fixes(text, analysis.autofix_suggestions, options or AutofixOptions())

    def analyze_many(self, files: Iterable[tuple[str, str]], *, workers: int | None = None) -> list[AnalysisResult]:
        """
        Analyze `(file_path, text)` pairs, optionally on a thread pool.

        Results are returned in input order regardless of `workers`.
        """

        file_list = list(files)
        effective_workers = workers or 1
        if effective_workers <= 1 or len(file_list) <= 1:
            return [self.analyze_with_fixes(path, text) for path, text in file_list]

        max_workers = min(effective_workers, len(file_list))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda item: self.analyze_with_fixes(*item), file_list))

    def _parse(self, file_path: str, language: str | None, text: str) -> Program | None:
        if language is None:
            return None
        try:
            program = self._provider.parse(language, text)
        except Exception as exc:  # noqa: BLE001
            logger.warning("failed to parse %s (%s); running text rules only: %s", file_path, language, exc)
            return None
        if program is None:
            logger.debug("%s is not parseable as %s; running text rules only", file_path, language)
        return program

    def _severity_override(self, rule_id: str) -> Severity | None:
        setting = self._settings.get(rule_id)
        if setting in SEVERITIES:
            return cast(Severity, setting)
        return None

    @staticmethod
    def _log_rule_failure(rule: BaseRule, file_path: str, exc: Exception, failed: set[str]) -> None:
        rule_id = rule.meta.rule_id
        # One warning per rule and file; a rule that throws on every node would flood the log.
        if rule_id in failed:
            logger.debug("rule %s failed again on %s: %r", rule_id, file_path, exc)
            return
        failed.add(rule_id)
        logger.warning("rule %s failed on %s: %r", rule_id, file_path, exc)
