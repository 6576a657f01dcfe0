"""Resolve API reference links against the module registry."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from docweave.document import Document
from docweave.fs import FileSystem
from docweave.markers import Region
from docweave.modules import Module, ModuleRegistry
from docweave.run_log import RunLog

# [label]: target "optional title"
LINK_DEFINITION = re.compile(r"^(?P<lead>\s{0,3}\[(?P<label>[^\]]+)\]:\s*)(?P<target>\S+)(?P<rest>.*)$")
URL_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


def is_absolute_target(target: str) -> bool:
    return bool(URL_SCHEME.match(target)) or target.startswith(("#", "/"))


def _documented(docs_dir: Path, path: str, fs: FileSystem) -> bool:
    target = docs_dir / path
    return fs.exists(target) or fs.exists(target.with_name(target.name + ".md"))


def resolve_target(
    target: str,
    registry: ModuleRegistry,
    document_module: Optional[Module] = None,
    fs: Optional[FileSystem] = None,
) -> tuple[Optional[str], Optional[str]]:
    """Resolve a module-relative identifier to a documentation URL.

    Args:
        target: ``module/path`` or, within a module, a bare ``path``
        registry: Module registry
        document_module: Module of the referencing document
        fs: File system used to look the target up in the module's
            generated docs; without it the lookup is skipped

    Returns:
        Tuple of (resolved URL, None) or (None, reason it failed)
    """
    head, sep, tail = target.partition("/")
    module = registry.get(head) if sep else None
    path = tail

    if module is None:
        if sep:
            return None, f"unknown module '{head}'"
        if document_module is None:
            return None, "document belongs to no module"
        module = document_module
        path = target

    if not path:
        return None, f"empty path for module '{module.name}'"
    if not module.docs_url:
        return None, f"module '{module.name}' has no documentation URL"
    path = path.lstrip("/")
    if fs is not None and module.docs_dir is not None and not _documented(module.docs_dir, path, fs):
        return None, f"'{path}' not found in {module.docs_dir}"
    return f"{module.docs_url}/{path}", None


def resolve_links(
    document: Document,
    region: Region,
    registry: ModuleRegistry,
    document_module: Optional[Module],
    log: RunLog,
    fs: Optional[FileSystem] = None,
) -> list[str]:
    """Rewrite link definitions in a LINKS region body.

    Unresolvable targets are logged as warnings and left unchanged.
    """
    body: list[str] = []
    for offset, line in enumerate(region.body(document)):
        match = LINK_DEFINITION.match(line)
        if match is None or is_absolute_target(match.group("target")):
            body.append(line)
            continue

        target = match.group("target")
        url, reason = resolve_target(target, registry, document_module, fs)
        if url is None:
            log.warn(
                f"Unresolved link target '{target}': {reason}",
                document.path,
                region.start + offset + 2,
            )
            body.append(line)
            continue
        body.append(f"{match.group('lead')}{url}{match.group('rest')}")
    return body
