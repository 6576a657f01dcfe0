"""Run controller: load, scan, weave and check or write documents."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from docweave.config import WeaveConfig, validate_config
from docweave.document import Document, join_lines, parse_document
from docweave.fs import FileSystem, LocalFileSystem
from docweave.links import resolve_links
from docweave.markers import Region, RegionKind, StructuralError, scan_document
from docweave.modules import Module, ModuleRegistry, build_registry
from docweave.report import Artifact, RunMode, apply_artifacts, read_original
from docweave.run_log import RunLog
from docweave.toc import Header, TocEntry, build_entries, collect_headers, render_toc
from docweave.weaver import weave_include, weave_sample

logger = logging.getLogger(__name__)


@dataclass
class ScannedDocument:
    """A document after the first pass: regions, module and headers."""

    document: Document
    original: str
    regions: list[Region]
    module: Optional[Module] = None
    headers: list[Header] = field(default_factory=list)


@dataclass
class DocumentOutcome:
    """Composed artifacts of one document, or the failure to compose them."""

    path: Path
    artifacts: list[Artifact] = field(default_factory=list)
    failed: bool = False


@dataclass
class RunResult:
    """Verdict and log of a run."""

    success: bool
    mode: RunMode
    log: RunLog
    message: str
    documents: int = 0


@dataclass
class _RunContext:
    config: WeaveConfig
    fs: FileSystem
    log: RunLog
    registry: ModuleRegistry
    module_tocs: dict[str, list[TocEntry]] = field(default_factory=dict)


def normalize_paths(paths: Iterable[Path | str], root: Path) -> list[Path]:
    """Make document paths absolute and drop duplicates, keeping order."""
    result: list[Path] = []
    seen: set[Path] = set()
    for path in paths:
        path = Path(path)
        if not path.is_absolute():
            path = root / path
        path = path.resolve()
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result


def _module_for(
    document: Document,
    regions: list[Region],
    registry: ModuleRegistry,
    log: RunLog,
) -> Optional[Module]:
    """A MODULE anchor wins over attribution by path."""
    declared: Optional[Region] = None
    for region in regions:
        if region.kind is not RegionKind.MODULE_ANCHOR:
            continue
        if declared is not None and declared.directive.args[0] != region.directive.args[0]:
            raise StructuralError(
                f"Conflicting MODULE declarations: '{declared.directive.args[0]}' at line "
                f"{declared.directive.line} and '{region.directive.args[0]}'",
                file=str(document.path),
                line=region.directive.line,
            )
        declared = region

    if declared is not None:
        name = declared.directive.args[0]
        module = registry.get(name)
        if module is not None:
            return module
        log.warn(f"Unknown module '{name}'", document.path, declared.directive.line)

    return registry.module_for(document.path)


def scan(path: Path, context: _RunContext) -> Optional[ScannedDocument]:
    """First pass over one document. Failures are logged, not raised."""
    try:
        original = context.fs.read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        context.log.error(f"Cannot read document: {e}", path)
        return None

    document = parse_document(path, original)
    try:
        regions = scan_document(document)
        module = _module_for(document, regions, context.registry, context.log)
    except StructuralError as e:
        context.log.error(e.message, e.file, e.line)
        return None

    return ScannedDocument(
        document=document,
        original=original,
        regions=regions,
        module=module,
        headers=collect_headers(document, regions, context.config.toc),
    )


def build_module_tocs(scanned: list[ScannedDocument], config: WeaveConfig) -> dict[str, list[TocEntry]]:
    """Combine ToC entries across each module's documents, ordered by path.

    Slugs stay unique per document; entries keep their document so links
    into other documents carry a relative path.
    """
    by_module: dict[str, list[ScannedDocument]] = {}
    for item in scanned:
        if item.module is not None:
            by_module.setdefault(item.module.name, []).append(item)

    tocs: dict[str, list[TocEntry]] = {}
    for name, items in by_module.items():
        entries: list[TocEntry] = []
        for item in sorted(items, key=lambda i: i.document.path.as_posix()):
            entries.extend(build_entries(item.headers, config.toc, item.document.path))
        tocs[name] = entries
    return tocs


def _toc_entries(item: ScannedDocument, context: _RunContext) -> list[TocEntry]:
    toc = context.config.toc
    if toc.scope == "module" and item.module is not None:
        return context.module_tocs.get(item.module.name, [])
    return build_entries(item.headers, toc, item.document.path)


def _check_output(path: Path, line: int, outputs: dict[Path, int], document: Document) -> None:
    if path == document.path:
        raise StructuralError(
            f"Sample file {path} would overwrite its own document",
            file=str(document.path),
            line=line,
        )
    if path in outputs:
        raise StructuralError(
            f"Sample file {path} is already generated at line {outputs[path]}",
            file=str(document.path),
            line=line,
        )
    outputs[path] = line


def compose(item: ScannedDocument, context: _RunContext) -> list[Artifact]:
    """Second pass: compose a document and its runnable samples.

    Returns:
        Artifacts to diff; empty when the document has no directives

    Raises:
        StructuralError: If a region cannot be woven
    """
    document = item.document
    config = context.config
    lines: list[str] = []
    samples: list[Artifact] = []
    outputs: dict[Path, int] = {}
    has_directives = False

    for region in item.regions:
        if region.kind is RegionKind.LITERAL:
            lines.extend(region.lines(document))
            continue

        has_directives = True
        if region.kind is RegionKind.INCLUDE:
            body = weave_include(document, region, context.fs, config)
        elif region.kind is RegionKind.SAMPLE_TEST:
            woven = weave_sample(document, region, context.fs, config)
            body = list(woven.body)
            if woven.derived is not None:
                _check_output(woven.derived.path, woven.derived.line, outputs, document)
                samples.append(Artifact(
                    path=woven.derived.path,
                    content=join_lines(woven.derived.lines, config.line_separator),
                    original=read_original(woven.derived.path, context.fs),
                    kind="sample",
                ))
        elif region.kind is RegionKind.TOC_ANCHOR:
            body = render_toc(_toc_entries(item, context), config.toc, document.path)
        elif region.kind is RegionKind.LINK_ANCHOR:
            body = resolve_links(document, region, context.registry, item.module, context.log, context.fs)
        else:
            body = list(region.body(document))

        lines.append(document.lines[region.start])
        lines.extend(body)
        lines.append(document.lines[region.end - 1])

    if not has_directives:
        return []

    composed = Artifact(
        path=document.path,
        content=join_lines(lines, config.line_separator, document.trailing_newline),
        original=item.original,
    )
    return [composed] + samples


def _weave(item: ScannedDocument, context: _RunContext) -> DocumentOutcome:
    path = item.document.path
    try:
        return DocumentOutcome(path=path, artifacts=compose(item, context))
    except StructuralError as e:
        context.log.error(e.message, e.file, e.line)
    except (OSError, UnicodeDecodeError) as e:
        context.log.error(f"Cannot read sample source: {e}", path)
    return DocumentOutcome(path=path, failed=True)


def _claim_outputs(
    outcome: DocumentOutcome,
    claimed: dict[Path, Path],
    woven: set[Path],
    log: RunLog,
) -> bool:
    """Reject a document whose sample files are taken.

    A sample file is taken when another document already generates it, or
    when it is itself a document with directives. A document without
    directives at an output path is just that sample's target.
    """
    outputs = [a.path for a in outcome.artifacts if a.kind == "sample"]
    for path in outputs:
        owner = claimed.get(path)
        if owner is not None and owner != outcome.path:
            log.error(f"Sample file {path} is already generated from {owner}", outcome.path)
            return False
        if path in woven:
            log.error(f"Sample file {path} is a document with directives", outcome.path)
            return False
    for path in outputs:
        claimed.setdefault(path, outcome.path)
    return True


def _apply(outcome: DocumentOutcome, mode: RunMode, fs: FileSystem, log: RunLog) -> None:
    try:
        apply_artifacts(outcome.artifacts, mode, fs, log)
    except OSError as e:
        log.error(f"Cannot write artifacts: {e}", outcome.path)


def _verdict(mode: RunMode, log: RunLog, documents: int) -> RunResult:
    success = log.n_errors == 0 and not (mode is RunMode.CHECK and log.n_outdated > 0)
    if success:
        if mode is RunMode.CHECK:
            message = f"Checked {documents} documents: everything is up to date."
        else:
            message = f"Processed {documents} documents: {log.n_updated} files written."
    else:
        message = f"docweave {mode.value} failed, see log for details."
        if mode is RunMode.CHECK and log.n_outdated > 0:
            message += f"\nRun 'docweave apply' to write {log.n_outdated} missing/outdated files."
    return RunResult(success=success, mode=mode, log=log, message=message, documents=documents)


def run(
    config: WeaveConfig,
    paths: Iterable[Path | str],
    mode: RunMode | str = RunMode.CHECK,
    fs: FileSystem | None = None,
) -> RunResult:
    """Process documents and return the aggregated verdict.

    Args:
        config: Validated run configuration
        paths: Documents to process (relative paths are taken from the root)
        mode: "check" to report only, "apply" to write
        fs: File system (local disk if None)

    Returns:
        RunResult with the verdict, message and log

    Raises:
        ConfigError: If the configuration is invalid; raised before any
            document is read
    """
    validate_config(config)
    mode = RunMode(mode)
    if fs is None:
        fs = LocalFileSystem()

    log = RunLog()
    context = _RunContext(config=config, fs=fs, log=log, registry=build_registry(config, fs))
    documents = normalize_paths(paths, config.root_path)
    logger.info(f"docweave {mode.value}: {len(documents)} documents, {len(context.registry)} modules")

    scanned = [item for item in (scan(path, context) for path in documents) if item is not None]
    if config.toc.scope == "module":
        context.module_tocs = build_module_tocs(scanned, config)

    if config.workers > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            outcomes = list(executor.map(lambda item: _weave(item, context), scanned))
    else:
        outcomes = [_weave(item, context) for item in scanned]

    woven = {outcome.path for outcome in outcomes if outcome.artifacts}
    claimed: dict[Path, Path] = {}
    for outcome in outcomes:
        if outcome.failed or not _claim_outputs(outcome, claimed, woven, log):
            continue
        _apply(outcome, mode, fs, log)

    return _verdict(mode, log, len(documents))
