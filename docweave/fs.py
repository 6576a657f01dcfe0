"""File access used by the engine.

The engine only talks to the file system through a ``FileSystem`` so runs
can be exercised against an in-memory tree.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


class FileSystem:
    """Minimal read/write interface the engine depends on."""

    def read_text(self, path: Path) -> str:
        raise NotImplementedError

    def write_text(self, path: Path, text: str) -> None:
        raise NotImplementedError

    def exists(self, path: Path) -> bool:
        raise NotImplementedError

    def is_dir(self, path: Path) -> bool:
        raise NotImplementedError

    def list_dir(self, path: Path) -> list[Path]:
        raise NotImplementedError


class LocalFileSystem(FileSystem):
    """The real file system. Line endings are read and written untranslated."""

    def read_text(self, path: Path) -> str:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()

    def write_text(self, path: Path, text: str) -> None:
        """Replace a file in one step using tempfile + rename."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp", prefix=path.name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.replace(tmp_path, str(path))
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def list_dir(self, path: Path) -> list[Path]:
        return sorted(Path(path).iterdir())


class MemoryFileSystem(FileSystem):
    """In-memory file tree keyed by absolute path."""

    def __init__(self, files: dict[str | Path, str] | None = None):
        self.files: dict[Path, str] = {}
        self.writes: list[Path] = []
        for path, text in (files or {}).items():
            self.files[Path(path)] = text

    def read_text(self, path: Path) -> str:
        try:
            return self.files[Path(path)]
        except KeyError:
            raise FileNotFoundError(str(path))

    def write_text(self, path: Path, text: str) -> None:
        self.files[Path(path)] = text
        self.writes.append(Path(path))

    def exists(self, path: Path) -> bool:
        return Path(path) in self.files or self.is_dir(path)

    def is_dir(self, path: Path) -> bool:
        path = Path(path)
        return any(path in f.parents for f in self.files)

    def list_dir(self, path: Path) -> list[Path]:
        path = Path(path)
        children: set[Path] = set()
        for f in self.files:
            if path in f.parents:
                children.add(path / f.relative_to(path).parts[0])
        return sorted(children)
