"""Module registry: attribute files to modules and find their docs URLs."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from docweave.config import ConfigError, WeaveConfig
from docweave.fs import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Module:
    """A named group of files sharing a documentation root."""

    name: str
    root: Path
    docs_url: Optional[str] = None
    markers: tuple[str, ...] = ()
    docs_dir: Optional[Path] = None  # generated docs that links must exist in

    def contains(self, path: Path) -> bool:
        return path == self.root or self.root in path.parents


@dataclass(frozen=True)
class ModuleRegistry:
    """Read-only lookup of modules, built once per run."""

    modules: tuple[Module, ...] = ()
    _by_name: dict[str, Module] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_name.update({m.name: m for m in self.modules})

    def get(self, name: str) -> Optional[Module]:
        return self._by_name.get(name)

    def module_for(self, path: Path | str) -> Optional[Module]:
        """Return the module with the deepest root containing ``path``."""
        path = Path(path)
        best: Optional[Module] = None
        for module in self.modules:
            if module.contains(path):
                if best is None or len(module.root.parts) > len(best.root.parts):
                    best = module
        return best

    def __len__(self) -> int:
        return len(self.modules)


def _docs_url(name: str, explicit: Optional[str], site_root: Optional[str]) -> Optional[str]:
    if explicit:
        return explicit.rstrip("/")
    if site_root:
        return f"{site_root.rstrip('/')}/{name}"
    return None


def _docs_dir(root: Path, docs_path: Optional[str]) -> Optional[Path]:
    return root / docs_path if docs_path else None


def _matching_markers(directory: Path, patterns: tuple[str, ...], fs: FileSystem) -> tuple[str, ...]:
    """Return the marker patterns matched by a file directly in ``directory``."""
    names = [p.name for p in fs.list_dir(directory) if not fs.is_dir(p)]
    return tuple(
        pattern for pattern in patterns
        if any(fnmatch.fnmatchcase(n, pattern) for n in names)
    )


def discover_modules(config: WeaveConfig, fs: FileSystem) -> list[Module]:
    """Find modules under the configured roots.

    A root directory, and each of its immediate sub-directories, is a
    module when it directly contains a file matching a marker pattern.
    """
    root_dir = config.root_path
    modules_config = config.modules
    found: list[Module] = []

    for root in modules_config.roots:
        root_path = (root_dir / root).resolve() if not Path(root).is_absolute() else Path(root)
        if not fs.is_dir(root_path):
            logger.warning(f"Module root not found: {root_path}")
            continue

        candidates = [root_path] + [p for p in fs.list_dir(root_path) if fs.is_dir(p)]
        for directory in candidates:
            markers = _matching_markers(directory, modules_config.markers, fs)
            if not markers:
                continue
            found.append(Module(
                name=directory.name,
                root=directory,
                docs_url=_docs_url(directory.name, None, modules_config.site_root),
                markers=markers,
                docs_dir=_docs_dir(directory, modules_config.docs_path),
            ))

    return found


def build_registry(config: WeaveConfig, fs: FileSystem | None = None) -> ModuleRegistry:
    """Build the module registry for a run.

    Explicitly configured modules come first; discovered modules with the
    same name as an explicit one are ignored.

    Raises:
        ConfigError: If two discovered modules share a name.
    """
    if fs is None:
        fs = LocalFileSystem()

    root_dir = config.root_path
    modules: list[Module] = []
    names: set[str] = set()

    for spec in config.modules.modules:
        root = Path(spec.root)
        root = root if root.is_absolute() else (root_dir / root).resolve()
        modules.append(Module(
            name=spec.name,
            root=root,
            docs_url=_docs_url(spec.name, spec.docs_url, config.modules.site_root),
            docs_dir=_docs_dir(root, config.modules.docs_path),
        ))
        names.add(spec.name)

    explicit = set(names)
    for module in discover_modules(config, fs):
        if module.name in explicit:
            continue
        if module.name in names:
            raise ConfigError(
                f"Duplicate module name: {module.name} ({module.root})",
                error_type="config_invalid",
            )
        modules.append(module)
        names.add(module.name)

    logger.debug(f"Registered {len(modules)} modules: {', '.join(sorted(names))}")
    return ModuleRegistry(modules=tuple(modules))
