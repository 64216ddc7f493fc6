from __future__ import annotations

import logging
import sys

LOG_PREFIX = "baseline-upgrade"


def configure_logging(*, verbose: bool, quiet: bool) -> None:
    """
    Send the tool's log records to stderr at the level picked by the CLI flags.

    `--quiet` keeps only warnings (a rule that crashed on a file, an unknown rule
    id in the config). `--verbose` adds debug records, such as overlapping fixes
    that were dropped, tagged with the emitting module. stdout is reserved for
    reports and `fix --dry-run` diffs.
    """

    if verbose:
        level = logging.DEBUG
        fmt = f"{LOG_PREFIX} [%(levelname)s] %(name)s: %(message)s"
    else:
        level = logging.WARNING if quiet else logging.INFO
        fmt = f"{LOG_PREFIX}: %(message)s"

    logging.basicConfig(level=level, format=fmt, stream=sys.stderr, force=True)
