"""Weave source ranges and runnable samples into document regions."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docweave.config import SampleConfig, WeaveConfig
from docweave.document import Document, split_lines
from docweave.fs import FileSystem
from docweave.markers import (
    FENCE_PATTERN,
    Region,
    SampleReference,
    StructuralError,
)

logger = logging.getLogger(__name__)

# File extension -> fence language tag
LANGUAGES = {
    ".py": "python",
    ".pyi": "python",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".java": "java",
    ".js": "javascript",
    ".ts": "typescript",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".sh": "bash",
    ".sql": "sql",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".json": "json",
}

# File extension -> line comment prefix for generated headers
COMMENT_PREFIXES = {
    ".kt": "//",
    ".kts": "//",
    ".java": "//",
    ".js": "//",
    ".ts": "//",
    ".go": "//",
    ".rs": "//",
    ".c": "//",
    ".h": "//",
    ".cpp": "//",
    ".swift": "//",
    ".scala": "//",
    ".sql": "--",
    ".lua": "--",
    ".hs": "--",
}
DEFAULT_COMMENT_PREFIX = "#"


@dataclass(frozen=True)
class DerivedFile:
    """A runnable file composed from a SAMPLE region."""

    path: Path
    lines: tuple[str, ...]
    source: Path  # document it came from
    line: int  # directive line in that document


@dataclass(frozen=True)
class WovenSample:
    """Replacement body for a SAMPLE region plus its optional runnable file."""

    body: tuple[str, ...]
    derived: Optional[DerivedFile] = None


def language_for(path: Path | str) -> str:
    return LANGUAGES.get(Path(path).suffix.lower(), "")


def comment_prefix_for(path: Path | str) -> str:
    return COMMENT_PREFIXES.get(Path(path).suffix.lower(), DEFAULT_COMMENT_PREFIX)


def _marker_pattern(samples: SampleConfig) -> re.Pattern[str]:
    prefixes = "|".join(re.escape(p) for p in (samples.range_start, samples.range_end))
    return re.compile(r"(?<![\w-])(" + prefixes + r")([\w.-]*\w)")


def find_range_markers(lines: list[str], samples: SampleConfig) -> dict[tuple[str, str], list[int]]:
    """Index every range marker in a source file.

    Returns:
        Mapping of (prefix, range name) to the 0-based lines carrying it
    """
    pattern = _marker_pattern(samples)
    found: dict[tuple[str, str], list[int]] = {}
    for index, line in enumerate(lines):
        for match in pattern.finditer(line):
            found.setdefault((match.group(1), match.group(2)), []).append(index)
    return found


def dedent_lines(lines: list[str]) -> list[str]:
    """Remove the indentation shared by all non-blank lines."""
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    if not indents:
        return ["" for _ in lines]
    strip = min(indents)
    return [line[strip:] if line.strip() else "" for line in lines]


def extract_range(
    source_path: Path,
    range_name: str,
    fs: FileSystem,
    samples: SampleConfig,
    document: Optional[Document] = None,
    line: Optional[int] = None,
) -> list[str]:
    """Read the lines between a START/END marker pair.

    Args:
        source_path: Source file holding the range
        range_name: Name following the start/end prefixes
        fs: File system to read from
        samples: Marker prefixes and hide marker
        document: Referencing document, for error messages
        line: Directive line in the referencing document

    Returns:
        The range lines with hidden and marker lines dropped, dedented

    Raises:
        StructuralError: If the file or either marker is missing, a marker
            is duplicated, or the end marker precedes the start marker
    """
    file = str(document.path) if document is not None else str(source_path)
    start_token = f"{samples.range_start}{range_name}"
    end_token = f"{samples.range_end}{range_name}"

    try:
        text = fs.read_text(source_path)
    except (FileNotFoundError, IsADirectoryError):
        raise StructuralError(
            f"Sample source not found: {source_path}",
            file=file,
            line=line,
            error_type="sample_missing",
        )

    lines, _ = split_lines(text)
    markers = find_range_markers(lines, samples)
    starts = markers.get((samples.range_start, range_name), [])
    ends = markers.get((samples.range_end, range_name), [])

    for token, positions in ((start_token, starts), (end_token, ends)):
        if not positions:
            raise StructuralError(
                f"Missing {token} marker in {source_path}",
                file=file,
                line=line,
                error_type="sample_missing",
            )
        if len(positions) > 1:
            where = ", ".join(str(p + 1) for p in positions)
            raise StructuralError(
                f"Duplicate {token} marker in {source_path} (lines {where})",
                file=file,
                line=line,
                error_type="sample_duplicate",
            )

    start, end = starts[0], ends[0]
    if end <= start:
        raise StructuralError(
            f"{end_token} precedes {start_token} in {source_path}",
            file=file,
            line=line,
            error_type="sample_invalid",
        )

    # Only lines carrying a START/END of a range delimited in this file are markers
    marker_lines = {
        index
        for (prefix, name), positions in markers.items()
        if prefix == samples.range_start and (samples.range_end, name) in markers
        for index in positions + markers[(samples.range_end, name)]
    }
    kept = [
        source_line
        for index, source_line in enumerate(lines[start + 1:end], start + 1)
        if samples.hide_marker not in source_line and index not in marker_lines
    ]
    return dedent_lines(kept)


def fence(lines: list[str], lang: str) -> list[str]:
    return [f"```{lang}", *lines, "```"]


def fenced_blocks(lines: tuple[str, ...] | list[str], document: Document, offset: int) -> list[list[str]]:
    """Return the contents of every fenced code block in ``lines``.

    Args:
        lines: Region body lines
        document: Owning document, for error messages
        offset: 0-based document index of ``lines[0]``

    Raises:
        StructuralError: If a code fence is left open
    """
    blocks: list[list[str]] = []
    current: Optional[list[str]] = None
    opener = ""
    opened_at = 0

    for index, line in enumerate(lines):
        match = FENCE_PATTERN.match(line)
        if current is None:
            if match is not None:
                current = []
                opener = match.group(1)
                opened_at = offset + index + 1
            continue
        if (
            match is not None
            and match.group(1)[0] == opener[0]
            and len(match.group(1)) >= len(opener)
            and not match.group(2).strip()
        ):
            blocks.append(current)
            current = None
            continue
        current.append(line)

    if current is not None:
        raise StructuralError(
            "Unclosed code fence in SAMPLE region",
            file=str(document.path),
            line=opened_at,
        )
    return blocks


def _resolve(document: Document, relative: str) -> Path:
    return (document.path.parent / relative).resolve()


def weave_include(document: Document, region: Region, fs: FileSystem, config: WeaveConfig) -> list[str]:
    """Compose the body of an INCLUDE region from its source range."""
    directive = region.directive
    ref: SampleReference = directive.reference
    lines = extract_range(
        _resolve(document, ref.path),
        ref.range_name,
        fs,
        config.samples,
        document=document,
        line=directive.line,
    )
    lang = directive.options.get("lang")
    if lang:
        return fence(lines, lang)
    return lines


def compose_runnable(
    blocks: list[list[str]],
    output: Path,
    source_label: str,
    samples: SampleConfig,
) -> list[str]:
    """Wrap sample code with the generated header and prelude."""
    prefix = comment_prefix_for(output)
    lines: list[str] = []

    if samples.header:
        for header_line in samples.header.replace("{source}", source_label).splitlines():
            lines.append(f"{prefix} {header_line}".rstrip())
        lines.append("")

    if samples.prelude:
        lines.extend(samples.prelude)
        lines.append("")

    for index, block in enumerate(blocks):
        if index:
            lines.append("")
        lines.extend(block)

    return lines


def source_label(document: Document, config: WeaveConfig) -> str:
    """Document path relative to the run root, in POSIX form."""
    try:
        return document.path.relative_to(config.root_path).as_posix()
    except ValueError:
        return document.path.name


def weave_sample(document: Document, region: Region, fs: FileSystem, config: WeaveConfig) -> WovenSample:
    """Compose the body of a SAMPLE region and its runnable file.

    With a reference the body is regenerated from the source range;
    without one the fenced blocks already in the document are kept as
    they are.
    """
    directive = region.directive
    ref = directive.reference

    if ref is not None:
        source_path = _resolve(document, ref.path)
        code = extract_range(
            source_path,
            ref.range_name,
            fs,
            config.samples,
            document=document,
            line=directive.line,
        )
        lang = directive.options.get("lang") or language_for(source_path)
        body = fence(code, lang)
        blocks = [code]
    else:
        body = list(region.body(document))
        blocks = fenced_blocks(body, document, region.start + 1)
        if not blocks:
            raise StructuralError(
                "SAMPLE region contains no code block",
                file=str(document.path),
                line=directive.line,
            )

    derived = None
    output = directive.options.get("file")
    if output:
        output_path = _resolve(document, output)
        derived = DerivedFile(
            path=output_path,
            lines=tuple(compose_runnable(
                blocks, output_path, source_label(document, config), config.samples
            )),
            source=document.path,
            line=directive.line,
        )
        logger.debug(f"{document.path}:{directive.line}: composed sample {output_path}")

    return WovenSample(body=tuple(body), derived=derived)
