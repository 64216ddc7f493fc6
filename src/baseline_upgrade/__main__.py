from __future__ import annotations

from baseline_upgrade.cli import app

if __name__ == "__main__":  # pragma: no cover
    app(prog_name="baseline-upgrade")
