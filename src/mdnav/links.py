"""Link extraction and classification.

Links come from two passes over a parsed document:

1. Standard ``[text](destination)`` links (and ``<autolinks>``) read from the
   same markdown-it token stream that produced the headings.
2. Wiki links (``[[name]]`` / ``[[name|alias]]``), which CommonMark does not
   know about, found by a dedicated scan of the raw text.

Both passes report offsets into the document text and are merged with a
stable sort, so standard links win ties.
"""

from __future__ import annotations

import bisect
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import ClassVar, TYPE_CHECKING
from urllib.parse import unquote

from markdown_it.token import Token

from .document import SOURCE_END, SOURCE_POS, LineIndex

if TYPE_CHECKING:
    from .document import Document

# Pattern to match wiki links: [[target]] or [[target|display text]]
WIKI_LINK_PATTERN = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")

# scheme://... destinations are external
URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


@dataclass(frozen=True)
class Anchor:
    """Jump to a heading in the current document."""

    slug: str
    kind: ClassVar[str] = "anchor"

    def __str__(self) -> str:
        return f"#{self.slug}"


@dataclass(frozen=True)
class RelativeFile:
    """Open another markdown file, relative to the current one."""

    path: str
    kind: ClassVar[str] = "file"

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class FileWithAnchor:
    """Open another file and jump to a heading in it."""

    path: str
    slug: str
    kind: ClassVar[str] = "file+anchor"

    def __str__(self) -> str:
        return f"{self.path}#{self.slug}"


@dataclass(frozen=True)
class WikiLink:
    """Open a file by name from the current file's directory."""

    name: str
    alias: str | None = None
    kind: ClassVar[str] = "wiki"

    def __str__(self) -> str:
        if self.alias:
            return f"[[{self.name}|{self.alias}]]"
        return f"[[{self.name}]]"


@dataclass(frozen=True)
class External:
    """A URL handed to the system's opener."""

    url: str
    kind: ClassVar[str] = "external"

    def __str__(self) -> str:
        return self.url


LinkTarget = Anchor | RelativeFile | FileWithAnchor | WikiLink | External


@dataclass(frozen=True)
class Link:
    """A link found in a document."""

    text: str
    target: LinkTarget
    offset: int


def wiki_target(name: str, alias: str | None = None) -> WikiLink | None:
    """Build a WikiLink from the parts of a [[name|alias]] match."""
    name = name.strip()
    if not name:
        return None
    if alias is not None:
        alias = alias.strip() or None
    return WikiLink(name, alias)


def classify_destination(destination: str) -> LinkTarget | None:
    """Classify a link destination.

    Returns None for destinations that cannot be followed (empty, a bare
    ``#``, an empty wiki link); callers skip those.

    Examples:
        "#install"          -> Anchor("install")
        "./guide.md"        -> RelativeFile("./guide.md")
        "./guide.md#usage"  -> FileWithAnchor("./guide.md", "usage")
        "https://x.org"     -> External("https://x.org")
        "[[README]]"        -> WikiLink("README")
    """
    destination = destination.strip()
    if not destination:
        return None

    wiki = WIKI_LINK_PATTERN.fullmatch(destination)
    if wiki:
        return wiki_target(wiki.group(1), wiki.group(2))
    if destination.startswith("[[") and destination.endswith("]]"):
        return None

    if destination.startswith("#"):
        slug = unquote(destination[1:]).strip()
        return Anchor(slug) if slug else None

    if URL_SCHEME_PATTERN.match(destination) or destination.lower().startswith(
        "mailto:"
    ):
        return External(destination)

    path, _, fragment = destination.partition("#")
    path = unquote(path)
    fragment = unquote(fragment).strip()
    if not path:
        return None
    if fragment:
        return FileWithAnchor(path, fragment)
    return RelativeFile(path)


def _fragment_column(line: str, fragment: str, cursor: int, prefer_suffix: bool) -> int:
    """Column at which an inline content fragment sits in its source line.

    Block content is the tail of each source line once container markers
    and indentation are removed, so the suffix check covers paragraphs,
    list items and quotes. Table cells share a line and are located left
    to right from a cursor, which also covers ATX headings with closing
    hashes. The cursor only moves forward, so a cell whose text also
    appears in an earlier cell still lands on its own occurrence.
    """
    body = line.rstrip()
    wanted = fragment.rstrip()
    if prefer_suffix and body.endswith(wanted):
        return len(body) - len(wanted)
    found = line.find(wanted, cursor)
    return found if found >= 0 else cursor


class _InlinePlacer:
    """Maps positions in an inline token's content back to document offsets."""

    def __init__(
        self,
        content: str,
        first_line: int,
        lines: LineIndex,
        cursors: dict[int, int],
        in_cell: bool,
    ) -> None:
        self._content_starts: list[int] = []
        self._source_starts: list[int] = []

        content_start = 0
        for k, fragment in enumerate(content.split("\n")):
            line = first_line + k
            column = _fragment_column(
                lines.text(line), fragment, cursors.get(line, 0), not in_cell
            )
            cursors[line] = column + len(fragment)
            self._content_starts.append(content_start)
            self._source_starts.append(lines.start(line) + column)
            content_start += len(fragment) + 1

    def offset(self, pos: int) -> int:
        k = max(bisect.bisect_right(self._content_starts, pos) - 1, 0)
        return self._source_starts[k] + pos - self._content_starts[k]


def _label(children: list[Token]) -> str:
    parts = []
    for child in children:
        if child.type in ("text", "text_special", "code_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
    return "".join(parts).strip()


def _placed_inlines(document: Document) -> Iterator[tuple[Token, _InlinePlacer]]:
    """Inline tokens with children, each paired with its source placer."""
    cursors: dict[int, int] = {}
    block_map: list[int] | None = None
    previous: Token | None = None

    for token in document.tokens:
        if token.type != "inline":
            if token.map is not None:
                block_map = token.map
            previous = token
            continue

        token_map = token.map or block_map
        in_cell = previous is not None and previous.type in ("th_open", "td_open")
        previous = token
        if not token.children or token_map is None:
            continue

        yield token, _InlinePlacer(
            token.content, token_map[0], document.lines, cursors, in_cell
        )


def _standard_links(document: Document) -> list[Link]:
    """Pass A: links from the markdown-it token stream."""
    links: list[Link] = []
    for token, placer in _placed_inlines(document):
        children = token.children
        i = 0
        while i < len(children):
            child = children[i]
            if child.type != "link_open":
                i += 1
                continue

            end = i + 1
            while end < len(children) and children[end].type != "link_close":
                end += 1

            href = str(child.attrGet("href") or "")
            target = classify_destination(href)
            if target is not None:
                text = _label(children[i + 1 : end]) or href
                offset = placer.offset(child.meta.get(SOURCE_POS, 0))
                links.append(Link(text, target, offset))
            i = end + 1

    return links


def _code_ranges(document: Document) -> list[tuple[int, int]]:
    """Source spans of code blocks and inline code spans."""
    ranges = []
    for token in document.tokens:
        if token.type in ("fence", "code_block") and token.map is not None:
            start, end = token.map
            ranges.append((document.lines.start(start), document.lines.start(end)))
    for token, placer in _placed_inlines(document):
        for child in token.children:
            if child.type == "code_inline" and SOURCE_END in child.meta:
                ranges.append(
                    (
                        placer.offset(child.meta[SOURCE_POS]),
                        placer.offset(child.meta[SOURCE_END]),
                    )
                )
    return ranges


def _wiki_links(document: Document) -> list[Link]:
    """Pass B: [[wiki]] links found in the raw text outside code."""
    code_ranges = _code_ranges(document)
    links = []
    for match in WIKI_LINK_PATTERN.finditer(document.content):
        offset = match.start()
        if any(start <= offset < end for start, end in code_ranges):
            continue
        target = wiki_target(match.group(1), match.group(2))
        if target is None:
            continue
        links.append(Link(target.alias or target.name, target, offset))
    return links


def extract_links(document: Document) -> list[Link]:
    """All links of a document ordered by offset.

    The sort is stable and standard links are listed first, so a tie keeps
    the standard link ahead of the wiki link.
    """
    return sorted(_standard_links(document) + _wiki_links(document), key=lambda l: l.offset)
