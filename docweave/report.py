"""Compare composed artifacts with disk and write or report them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from docweave.fs import FileSystem
from docweave.run_log import RunLog

logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    """Check reports only; apply rewrites outdated artifacts."""

    CHECK = "check"
    APPLY = "apply"


@dataclass(frozen=True)
class Artifact:
    """A composed file and the content currently on disk."""

    path: Path
    content: str
    original: Optional[str]  # None: not on disk
    kind: str = "document"  # document, sample

    @property
    def is_outdated(self) -> bool:
        return self.original != self.content


def read_original(path: Path, fs: FileSystem) -> Optional[str]:
    if not fs.exists(path) or fs.is_dir(path):
        return None
    return fs.read_text(path)


def _describe(artifact: Artifact) -> str:
    if artifact.original is None:
        return f"{artifact.kind} is missing"
    if artifact.original.replace("\r\n", "\n") == artifact.content.replace("\r\n", "\n"):
        return f"{artifact.kind} line separators differ"
    return f"{artifact.kind} is outdated"


def apply_artifacts(artifacts: list[Artifact], mode: RunMode, fs: FileSystem, log: RunLog) -> int:
    """Check or write a document's artifacts.

    In check mode nothing is written; every outdated artifact is counted
    and logged as a warning. In apply mode outdated artifacts are
    replaced, one write per file.

    Returns:
        Number of outdated artifacts
    """
    outdated = 0
    for artifact in artifacts:
        if not artifact.is_outdated:
            logger.debug(f"{artifact.path}: up to date")
            continue
        outdated += 1
        if mode is RunMode.CHECK:
            log.outdated(artifact.path, _describe(artifact))
        else:
            fs.write_text(artifact.path, artifact.content)
            action = "written" if artifact.original is None else "updated"
            log.updated(artifact.path, f"{artifact.kind} {action}")
    return outdated
