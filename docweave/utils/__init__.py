"""Docweave utility modules."""

from docweave.utils.patterns import match_path_pattern, matches_any

__all__ = [
    "match_path_pattern",
    "matches_any",
]
