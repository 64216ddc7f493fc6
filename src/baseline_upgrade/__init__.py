"""Detect legacy JavaScript patterns and rewrite them with their modern, standardized replacements."""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
