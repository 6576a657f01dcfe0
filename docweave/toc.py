"""Generate tables of contents from document headers."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docweave.config import TocConfig
from docweave.document import Document
from docweave.markers import FENCE_PATTERN, Region, RegionKind

HEADER_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
SLUG_DROP = re.compile(r"[^\w\- ]")


@dataclass(frozen=True)
class Header:
    """An ATX header found in a document."""

    text: str
    level: int
    line: int  # 1-based


@dataclass(frozen=True)
class TocEntry:
    """One line of a generated table of contents."""

    text: str
    depth: int
    slug: str
    document: Optional[Path] = None  # None: same document


def collect_headers(document: Document, regions: list[Region], toc: TocConfig) -> list[Header]:
    """Collect headers within the configured levels.

    Only literal regions are searched, and lines inside fenced code blocks
    are skipped.
    """
    headers: list[Header] = []
    for region in regions:
        if region.kind is not RegionKind.LITERAL:
            continue
        fence: Optional[str] = None
        for index in range(region.start, region.end):
            line = document.lines[index]
            match = FENCE_PATTERN.match(line)
            if fence is not None:
                if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence) \
                        and not match.group(2).strip():
                    fence = None
                continue
            if match:
                fence = match.group(1)
                continue
            header = HEADER_PATTERN.match(line)
            if header is None:
                continue
            level = len(header.group(1))
            if toc.min_level <= level <= toc.max_level:
                headers.append(Header(text=header.group(2).strip(), level=level, line=index + 1))
    return headers


def slugify(text: str) -> str:
    """GitHub-style anchor: lowercase, punctuation dropped, spaces to hyphens."""
    return SLUG_DROP.sub("", text.strip().lower()).replace(" ", "-")


def build_entries(headers: list[Header], toc: TocConfig, document: Optional[Path] = None) -> list[TocEntry]:
    """Turn one document's headers into ToC entries with unique slugs.

    Repeated slugs get ``-1``, ``-2``, ... in order of occurrence.
    """
    seen: dict[str, int] = {}
    used: set[str] = set()
    entries: list[TocEntry] = []
    for header in headers:
        base = slugify(header.text)
        slug = base
        if slug in used:
            count = seen.get(base, 0)
            while slug in used:
                count += 1
                slug = f"{base}-{count}"
            seen[base] = count
        used.add(slug)
        entries.append(TocEntry(
            text=header.text,
            depth=header.level - toc.min_level,
            slug=slug,
            document=document,
        ))
    return entries


def _relative_link(target: Path, current: Path) -> str:
    return Path(os.path.relpath(target, current.parent)).as_posix()


def render_toc(entries: list[TocEntry], toc: TocConfig, current: Optional[Path] = None) -> list[str]:
    """Render ToC lines, one per entry, indented by depth."""
    lines = []
    for entry in entries:
        anchor = f"#{entry.slug}"
        if entry.document is not None and current is not None and entry.document != current:
            anchor = f"{_relative_link(entry.document, current)}{anchor}"
        lines.append(f"{'  ' * entry.depth}{toc.bullet} [{entry.text}]({anchor})")
    return lines
