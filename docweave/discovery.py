"""Find candidate documents under the run root."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from docweave.config import WeaveConfig
from docweave.utils.patterns import matches_any

logger = logging.getLogger(__name__)


def discover_documents(config: WeaveConfig, root: Optional[Path] = None) -> list[Path]:
    """List files matching the include patterns and none of the excludes.

    Args:
        config: Run configuration (include/exclude patterns)
        root: Directory to walk (defaults to the configured root)

    Returns:
        Sorted absolute paths
    """
    root = (root or config.root_path).resolve()
    found: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root)
        # Prune excluded directories early
        dirnames[:] = sorted(
            d for d in dirnames
            if not matches_any((rel_dir / d / "_").as_posix(), config.exclude)
        )
        for name in filenames:
            rel_path = (rel_dir / name).as_posix()
            if not matches_any(rel_path, config.include):
                continue
            if matches_any(rel_path, config.exclude):
                continue
            found.append(Path(dirpath) / name)

    logger.debug(f"Discovered {len(found)} documents under {root}")
    return sorted(found)
