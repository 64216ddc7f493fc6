from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath


@dataclass(frozen=True, slots=True)
class LanguageSpec:
    name: str  # tree-sitter grammar name
    extensions: tuple[str, ...]


LANGUAGES: tuple[LanguageSpec, ...] = (
    LanguageSpec("javascript", (".js", ".jsx", ".mjs", ".cjs")),
    LanguageSpec("typescript", (".ts", ".mts", ".cts")),
    LanguageSpec("tsx", (".tsx",)),
)

_EXT_TO_LANG = {ext: spec.name for spec in LANGUAGES for ext in spec.extensions}


def detect_language(path: str | PurePath) -> str | None:
    """
    Grammar to parse `path` with, based on its extension.

    Returns None for files that only get text scanning (HTML, CSS, unknown types).
    """

    return _EXT_TO_LANG.get(PurePath(path).suffix.lower())
