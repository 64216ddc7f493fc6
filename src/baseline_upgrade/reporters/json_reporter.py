from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from baseline_upgrade import __version__
from baseline_upgrade.engine.types import Suggestion

REPORT_SCHEMA_VERSION = 1


def render_json(findings: Mapping[str, Sequence[Suggestion]]) -> str:
    payload = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "tool": {"name": "baseline-upgrade", "version": __version__},
        "files_analyzed": len(findings),
        "suggestions": [_suggestion_to_dict(s) for suggestions in findings.values() for s in suggestions],
    }
    return json.dumps(payload, indent=2, sort_keys=False)


def _suggestion_to_dict(s: Suggestion) -> dict[str, Any]:
    return {
        "file": s.file_path,
        "rule_id": s.rule_id,
        "line": s.line,
        "column": s.column,
        "old_code": s.old_code,
        "new_code": s.new_code,
        "description": s.description,
        "category": s.category,
        "stability": s.stability,
        "severity": s.severity,
    }
