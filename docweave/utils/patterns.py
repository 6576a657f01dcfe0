"""Glob matching for document discovery."""

from __future__ import annotations

import fnmatch
import re
from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into an anchored regex.

    ``**`` matches zero or more directories, ``*`` and ``?`` never cross
    a ``/``.
    """
    parts = []
    segments = pattern.split("/")
    for index, seg in enumerate(segments):
        last = index == len(segments) - 1
        if seg == "**":
            # Trailing ** matches everything below
            parts.append(".*" if last else "(?:[^/]+/)*")
            continue
        seg_re = "".join(
            "[^/]*" if ch == "*" else "[^/]" if ch == "?" else re.escape(ch)
            for ch in seg
        )
        parts.append(seg_re if last else seg_re + "/")
    return re.compile("".join(parts))


def match_path_pattern(file_path: str | Path, pattern: str) -> bool:
    """Match a relative POSIX path against a glob pattern.

    Args:
        file_path: The file path to check (relative to the run root).
        pattern: A glob pattern like "docs/**/*.md" or "**/build/**".

    Returns:
        True if the whole path matches the pattern.
    """
    path_str = Path(file_path).as_posix()
    if path_str.startswith("./"):
        path_str = path_str[2:]
    pattern = pattern[2:] if pattern.startswith("./") else pattern

    if "**" not in pattern and "/" not in pattern:
        # Bare patterns match the file name in any directory
        return fnmatch.fnmatchcase(Path(path_str).name, pattern)

    return bool(_compile(pattern).fullmatch(path_str))


def matches_any(file_path: str | Path, patterns: tuple[str, ...] | list[str]) -> bool:
    return any(match_path_pattern(file_path, p) for p in patterns)
