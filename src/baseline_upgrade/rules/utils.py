from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from baseline_upgrade.engine.context import RuleContext
from baseline_upgrade.engine.nodes import (
    ArrayExpression,
    CallExpression,
    Identifier,
    MemberExpression,
    NewExpression,
    Node,
    StringLiteral,
)

_LINE_COMMENT_PREFIX = "//"
_BLOCK_COMMENT_START = "/*"
_BLOCK_COMMENT_END = "*/"


def iter_code_lines(ctx: RuleContext) -> Iterable[tuple[int, str]]:
    """
    Yield `(line_no, line)` for non-empty code lines with basic block-comment support.

    Lines are treated as comments only when the delimiter appears at the start
    of the line (after whitespace). This is a low-noise heuristic for text
    scanners, not a lexer.
    """

    in_block_comment = False
    for idx, line in enumerate(ctx.lines, start=1):
        stripped = line.strip()
        if not stripped:
            continue

        if in_block_comment:
            if _BLOCK_COMMENT_END in stripped:
                in_block_comment = False
            continue

        if stripped.startswith(_LINE_COMMENT_PREFIX):
            continue
        if stripped.startswith(_BLOCK_COMMENT_START):
            if _BLOCK_COMMENT_END not in stripped:
                in_block_comment = True
            continue

        yield idx, line


def iter_matches(ctx: RuleContext, pattern: re.Pattern[str]) -> Iterator[tuple[int, re.Match[str]]]:
    """Yield `(line_no, match)` for every match on code lines, top-to-bottom and left-to-right."""

    for line_no, line in iter_code_lines(ctx):
        for match in pattern.finditer(line):
            yield line_no, match


_PRIMARY_NODES = (
    Identifier,
    MemberExpression,
    CallExpression,
    NewExpression,
    StringLiteral,
    ArrayExpression,
)


def as_operand(ctx: RuleContext, node: Node) -> str:
    """
    Return `node`'s source, parenthesized unless it can be used as the object
    of a member access (`<operand>.method()`) as-is.
    """

    text = ctx.source(node)
    if isinstance(node, _PRIMARY_NODES):
        return text
    return f"({text})"
