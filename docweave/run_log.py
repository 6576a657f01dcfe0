"""Run-wide log of warnings, errors and outdated artifacts."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity of a log entry."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class LogEntry:
    """A single recorded message."""

    severity: Severity
    message: str
    path: Optional[str] = None
    line: Optional[int] = None

    def __str__(self) -> str:
        location = ""
        if self.path:
            location = self.path
            if self.line:
                location += f":{self.line}"
            location += ": "
        return f"{location}{self.message}"


@dataclass
class RunLog:
    """Accumulates counts and entries for one run.

    Safe to share between worker threads; every update goes through a
    single lock.
    """

    n_warnings: int = 0
    n_errors: int = 0
    n_outdated: int = 0
    n_updated: int = 0
    entries: list[LogEntry] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    @property
    def has_warning_or_error(self) -> bool:
        return self.n_warnings > 0 or self.n_errors > 0

    def _record(self, entry: LogEntry) -> LogEntry:
        with self._lock:
            self.entries.append(entry)
            if entry.severity is Severity.WARNING:
                self.n_warnings += 1
            elif entry.severity is Severity.ERROR:
                self.n_errors += 1
        return entry

    def info(self, message: str, path: Path | str | None = None, line: Optional[int] = None) -> None:
        entry = self._record(LogEntry(Severity.INFO, message, _path_str(path), line))
        logger.info(str(entry))

    def warn(self, message: str, path: Path | str | None = None, line: Optional[int] = None) -> None:
        entry = self._record(LogEntry(Severity.WARNING, message, _path_str(path), line))
        logger.warning(str(entry))

    def error(self, message: str, path: Path | str | None = None, line: Optional[int] = None) -> None:
        entry = self._record(LogEntry(Severity.ERROR, message, _path_str(path), line))
        logger.error(str(entry))

    def outdated(self, path: Path | str, reason: str) -> None:
        """Record an artifact whose disk state differs from its composed form."""
        with self._lock:
            self.n_outdated += 1
        self.warn(reason, path)

    def updated(self, path: Path | str, reason: str) -> None:
        """Record an artifact that was written."""
        with self._lock:
            self.n_updated += 1
        self.info(reason, path)

    def warnings(self) -> list[LogEntry]:
        return [e for e in self.entries if e.severity is Severity.WARNING]

    def errors(self) -> list[LogEntry]:
        return [e for e in self.entries if e.severity is Severity.ERROR]


def _path_str(path: Path | str | None) -> Optional[str]:
    if path is None:
        return None
    return str(path)
