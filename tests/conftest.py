from __future__ import annotations

import pytest

from baseline_upgrade.engine.detection import RuleEngine


@pytest.fixture()
def js_engine() -> RuleEngine:
    """Engine with the built-in rules and the real tree-sitter grammars."""

    pytest.importorskip("tree_sitter")
    pytest.importorskip("tree_sitter_javascript")
    return RuleEngine()


@pytest.fixture()
def ts_engine() -> RuleEngine:
    pytest.importorskip("tree_sitter")
    pytest.importorskip("tree_sitter_typescript")
    return RuleEngine()
