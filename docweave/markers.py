"""Scan documents for marker directives and split them into regions.

Directive grammar (one directive per line, case-sensitive)::

    <!--- INCLUDE path/to/file.py#range [lang=python] -->
    <!--- SAMPLE [path/to/file.py#range] [lang=python] [file=out.py] -->
    <!--- TOC -->
    <!--- MODULE name -->
    <!--- LINKS -->
    <!--- END [NAME] -->

Every opening directive must be closed by ``END`` (optionally naming the
open directive) before the end of the document. Regions never nest.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from docweave.document import Document
from docweave.errors import StructuralError

DIRECTIVE_OPEN = "<!---"
DIRECTIVE_CLOSE = "-->"
END = "END"

FENCE_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")


class RegionKind(str, Enum):
    """Kinds of document regions."""

    LITERAL = "literal"
    INCLUDE = "include"
    SAMPLE_TEST = "sample"
    TOC_ANCHOR = "toc"
    MODULE_ANCHOR = "module"
    LINK_ANCHOR = "links"


# Directive name -> (region kind, allowed option keys, min positional, max positional)
DIRECTIVES: dict[str, tuple[RegionKind, frozenset[str], int, int]] = {
    "INCLUDE": (RegionKind.INCLUDE, frozenset({"lang"}), 1, 1),
    "SAMPLE": (RegionKind.SAMPLE_TEST, frozenset({"lang", "file"}), 0, 1),
    "TOC": (RegionKind.TOC_ANCHOR, frozenset(), 0, 0),
    "MODULE": (RegionKind.MODULE_ANCHOR, frozenset(), 1, 1),
    "LINKS": (RegionKind.LINK_ANCHOR, frozenset(), 0, 0),
}


@dataclass(frozen=True)
class SampleReference:
    """A named sub-range inside an external source file."""

    path: str
    range_name: str

    def __str__(self) -> str:
        return f"{self.path}#{self.range_name}"


@dataclass(frozen=True)
class Directive:
    """A parsed directive line."""

    name: str
    line: int  # 1-based
    text: str
    args: tuple[str, ...] = ()
    options: dict[str, str] = field(default_factory=dict)

    @property
    def kind(self) -> Optional[RegionKind]:
        if self.name == END:
            return None
        return DIRECTIVES[self.name][0]

    @property
    def reference(self) -> Optional[SampleReference]:
        """The external sample reference named by INCLUDE or SAMPLE."""
        if self.name not in ("INCLUDE", "SAMPLE") or not self.args:
            return None
        path, _, range_name = self.args[0].rpartition("#")
        return SampleReference(path=path, range_name=range_name)


@dataclass(frozen=True)
class Region:
    """A contiguous span of document lines [start, end)."""

    kind: RegionKind
    start: int
    end: int
    directive: Optional[Directive] = None
    closing: Optional[Directive] = None

    def lines(self, document: Document) -> tuple[str, ...]:
        return document.lines[self.start:self.end]

    def body(self, document: Document) -> tuple[str, ...]:
        """Lines between the opening and closing directive."""
        if self.kind is RegionKind.LITERAL:
            return self.lines(document)
        return document.lines[self.start + 1:self.end - 1]


@dataclass(frozen=True)
class Outside:
    """Scanner is in literal text; ``fence`` is the open code fence, if any."""

    fence: Optional[str] = None


@dataclass(frozen=True)
class Inside:
    """Scanner is inside the region opened by ``directive``."""

    directive: Directive
    start: int


ScanState = Union[Outside, Inside]


def parse_directive(line: str, line_no: int, path: Path | str | None = None) -> Optional[Directive]:
    """Recognize a directive line.

    Args:
        line: Raw document line
        line_no: 1-based line number
        path: Document path for error messages

    Returns:
        The parsed Directive, or None if the line is not a directive

    Raises:
        StructuralError: If the line names a known directive but is malformed
    """
    stripped = line.strip()
    if not stripped.startswith(DIRECTIVE_OPEN):
        return None

    rest = stripped[len(DIRECTIVE_OPEN):]
    tokens = rest.split()
    if not tokens:
        return None
    name = tokens[0]
    if name == DIRECTIVE_CLOSE or name.endswith(DIRECTIVE_CLOSE):
        name = name[:-len(DIRECTIVE_CLOSE)]
    if name not in DIRECTIVES and name != END:
        return None

    file = str(path) if path is not None else None
    if not stripped.endswith(DIRECTIVE_CLOSE) or len(stripped) < len(DIRECTIVE_OPEN) + len(DIRECTIVE_CLOSE):
        raise StructuralError(
            f"Malformed {name} directive: missing closing '{DIRECTIVE_CLOSE}'",
            file=file,
            line=line_no,
        )

    inner = stripped[len(DIRECTIVE_OPEN):-len(DIRECTIVE_CLOSE)].split()
    if not inner or inner[0] != name:
        raise StructuralError(f"Malformed {name} directive", file=file, line=line_no)

    args: list[str] = []
    options: dict[str, str] = {}
    for token in inner[1:]:
        key, sep, value = token.partition("=")
        if sep:
            options[key] = value
        else:
            args.append(token)

    if name == END:
        if options or len(args) > 1:
            raise StructuralError(f"Malformed END directive: {stripped}", file=file, line=line_no)
        return Directive(name=END, line=line_no, text=line, args=tuple(args))

    _kind, allowed, min_args, max_args = DIRECTIVES[name]
    unknown = sorted(set(options) - allowed)
    if unknown:
        raise StructuralError(
            f"Unknown option(s) for {name}: {', '.join(unknown)}",
            file=file,
            line=line_no,
        )
    empty = sorted(k for k, v in options.items() if not v)
    if empty:
        raise StructuralError(
            f"Empty value for {name} option(s): {', '.join(empty)}",
            file=file,
            line=line_no,
        )
    if not min_args <= len(args) <= max_args:
        raise StructuralError(
            f"{name} expects {_describe_arity(min_args, max_args)}, got {len(args)}",
            file=file,
            line=line_no,
        )

    directive = Directive(name=name, line=line_no, text=line, args=tuple(args), options=options)

    if name in ("INCLUDE", "SAMPLE") and args:
        ref_path, hash_sign, range_name = args[0].rpartition("#")
        if not hash_sign or not ref_path or not range_name:
            raise StructuralError(
                f"Malformed sample reference '{args[0]}', expected <path>#<range>",
                file=file,
                line=line_no,
            )

    return directive


def _describe_arity(min_args: int, max_args: int) -> str:
    if max_args == 0:
        return "no arguments"
    if min_args == max_args:
        return f"{min_args} argument" + ("s" if min_args != 1 else "")
    return f"{min_args} to {max_args} arguments"


def scan_document(document: Document) -> list[Region]:
    """Split a document into an ordered list of regions.

    Literal text outside directives becomes LITERAL regions; each
    directive pair becomes one region spanning both directive lines.
    Directives inside fenced code blocks of literal text are ignored.

    Raises:
        StructuralError: For unmatched, nested or malformed directives
    """
    file = str(document.path)
    regions: list[Region] = []
    state: ScanState = Outside()
    literal_start = 0

    for index, line in enumerate(document.lines):
        line_no = index + 1

        if isinstance(state, Outside):
            if state.fence is not None:
                if _closes_fence(line, state.fence):
                    state = Outside()
                continue

            fence = _opens_fence(line)
            if fence is not None:
                state = Outside(fence=fence)
                continue

            directive = parse_directive(line, line_no, file)
            if directive is None:
                continue
            if directive.name == END:
                raise StructuralError(
                    "END directive without an open region",
                    file=file,
                    line=line_no,
                )
            if index > literal_start:
                regions.append(Region(RegionKind.LITERAL, literal_start, index))
            state = Inside(directive=directive, start=index)

        else:
            directive = parse_directive(line, line_no, file)
            if directive is None:
                continue
            if directive.name != END:
                raise StructuralError(
                    f"{directive.name} directive inside {state.directive.name} region "
                    f"opened at line {state.directive.line}",
                    file=file,
                    line=line_no,
                )
            if directive.args and directive.args[0] != state.directive.name:
                raise StructuralError(
                    f"END {directive.args[0]} does not match {state.directive.name} "
                    f"opened at line {state.directive.line}",
                    file=file,
                    line=line_no,
                )
            regions.append(Region(
                kind=state.directive.kind,
                start=state.start,
                end=index + 1,
                directive=state.directive,
                closing=directive,
            ))
            literal_start = index + 1
            state = Outside()

    if isinstance(state, Inside):
        raise StructuralError(
            f"Unmatched {state.directive.name} directive: no END before end of document",
            file=file,
            line=state.directive.line,
        )

    if len(document.lines) > literal_start:
        regions.append(Region(RegionKind.LITERAL, literal_start, len(document.lines)))

    return regions


def _opens_fence(line: str) -> Optional[str]:
    match = FENCE_PATTERN.match(line)
    if match is None:
        return None
    return match.group(1)


def _closes_fence(line: str, fence: str) -> bool:
    match = FENCE_PATTERN.match(line)
    if match is None:
        return False
    marker, rest = match.group(1), match.group(2)
    return marker[0] == fence[0] and len(marker) >= len(fence) and not rest.strip()


def is_fence_line(line: str) -> bool:
    return _opens_fence(line) is not None
