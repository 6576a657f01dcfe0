"""Load documents as line sequences with their line separator."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docweave.fs import FileSystem, LocalFileSystem

LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class Document:
    """A loaded document. Lines carry no separators."""

    path: Path
    lines: tuple[str, ...]
    line_separator: str = "\n"
    trailing_newline: bool = True

    def text(self, separator: Optional[str] = None) -> str:
        """Join the lines back into file content."""
        return join_lines(self.lines, separator or self.line_separator, self.trailing_newline)


def detect_line_separator(text: str) -> str:
    """Return "\\r\\n" if the text uses Windows line endings, else "\\n"."""
    return "\r\n" if "\r\n" in text else "\n"


def split_lines(text: str) -> tuple[list[str], bool]:
    """Split text into lines on \\n or \\r\\n only.

    Returns:
        Tuple of (lines, whether the text ended with a line break)
    """
    if not text:
        return [], False
    lines = LINE_BREAK.split(text)
    trailing = lines[-1] == ""
    if trailing:
        lines.pop()
    return lines, trailing


def join_lines(lines: list[str] | tuple[str, ...], separator: str, trailing_newline: bool = True) -> str:
    if not lines:
        return ""
    return separator.join(lines) + (separator if trailing_newline else "")


def parse_document(path: Path | str, text: str) -> Document:
    lines, trailing = split_lines(text)
    return Document(
        path=Path(path),
        lines=tuple(lines),
        line_separator=detect_line_separator(text),
        trailing_newline=trailing,
    )


def load_document(path: Path | str, fs: FileSystem | None = None) -> Document:
    """Read a document from disk.

    Args:
        path: Document path
        fs: File system to read from (local disk if None)

    Returns:
        The loaded Document
    """
    if fs is None:
        fs = LocalFileSystem()
    return parse_document(path, fs.read_text(Path(path)))
