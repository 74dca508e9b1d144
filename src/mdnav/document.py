"""Markdown document model: headings, sections and the heading tree.

Offsets are ``str`` indices into ``Document.content``. They are taken from
the markdown-it token stream (block line maps translated through a line
table built once per text), never from searching the text for heading
strings.
"""

from __future__ import annotations

import bisect
import re
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline, autolink, backtick, link
from markdown_it.token import Token

if TYPE_CHECKING:
    from .links import Link

MAX_HEADING_LEVEL = 6

# Joins a repeated heading's text to its occurrence number
IDENTITY_SEPARATOR = "@"

# Runs of anything that is not a letter or digit become a single dash
SLUG_SEPARATORS = re.compile(r"[\W_]+")

LINE_BREAK = re.compile(r"\r\n|\r|\n")

# Setext underline following a heading's text line
SETEXT_UNDERLINE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")

# Token meta keys holding the inline source span of a link or code span
SOURCE_POS = "source_pos"
SOURCE_END = "source_end"


def slugify(text: str) -> str:
    """Turn heading text into an anchor slug.

    Lowercases, collapses every run of non-alphanumeric characters into a
    single dash and trims dashes from both ends, so "Getting Started!"
    becomes "getting-started".
    """
    return SLUG_SEPARATORS.sub("-", text.lower()).strip("-")


def _track_source_pos(
    rule: Callable[[StateInline, bool], bool], token_type: str = "link_open"
):
    """Wrap an inline rule so the tokens it opens remember their source span."""

    def tracked(state: StateInline, silent: bool) -> bool:
        start = state.pos
        first = len(state.tokens)
        if not rule(state, silent):
            return False
        if not silent:
            for token in state.tokens[first:]:
                if token.type == token_type:
                    token.meta[SOURCE_POS] = start
                    token.meta[SOURCE_END] = state.pos
                    break
        return True

    return tracked


def link_offsets_plugin(md: MarkdownIt) -> None:
    """markdown-it plugin recording the inline position of links and code spans."""
    md.inline.ruler.at("link", _track_source_pos(link))
    md.inline.ruler.at("autolink", _track_source_pos(autolink))
    md.inline.ruler.at("backticks", _track_source_pos(backtick, "code_inline"))


def create_parser() -> MarkdownIt:
    """Build the markdown-it parser used for headings and links."""
    return (
        MarkdownIt("commonmark")
        .enable(["table", "strikethrough"])
        .use(link_offsets_plugin)
    )


_parser = create_parser()


class LineIndex:
    """Start offset of every source line, built once per text."""

    def __init__(self, text: str) -> None:
        self._text = text
        self.starts = [0] + [m.end() for m in LINE_BREAK.finditer(text)]

    def __len__(self) -> int:
        return len(self.starts)

    def start(self, line: int) -> int:
        """Offset of the first character of a 0-based line."""
        if line >= len(self.starts):
            return len(self._text)
        return self.starts[line]

    def text(self, line: int) -> str:
        """Text of a 0-based line without its terminator."""
        return self._text[self.start(line) : self.start(line + 1)].rstrip("\r\n")

    def line_of(self, offset: int) -> int:
        """0-based line containing an offset."""
        return bisect.bisect_right(self.starts, offset) - 1


@dataclass(frozen=True)
class Heading:
    """A heading with its level (1-6), display text and source position."""

    level: int
    text: str
    offset: int
    line: int = 1
    anchor: str = ""

    def __post_init__(self) -> None:
        if not self.anchor:
            object.__setattr__(self, "anchor", slugify(self.text))


@dataclass
class HeadingNode:
    """A heading and the headings nested under it."""

    heading: Heading
    children: list[HeadingNode] = field(default_factory=list)

    def render_box_tree(self, prefix: str = "", is_last: bool = True) -> str:
        """Render this subtree with box-drawing connectors."""
        connector = "└─ " if is_last else "├─ "
        marker = "#" * self.heading.level
        lines = [f"{prefix}{connector}{marker} {self.heading.text}\n"]

        child_prefix = prefix + ("    " if is_last else "│   ")
        for i, child in enumerate(self.children):
            lines.append(
                child.render_box_tree(child_prefix, i == len(self.children) - 1)
            )
        return "".join(lines)


@dataclass
class Document:
    """A markdown document: its raw text, headings and collapse state.

    ``collapsed`` holds heading identities, never indices. A heading's
    identity is its text; a repeated text gets its occurrence number
    appended (``Example``, ``Example@2``).
    """

    content: str
    headings: list[Heading]
    path: Path | None = None
    collapsed: set[str] = field(default_factory=set)
    tokens: list[Token] = field(default_factory=list, repr=False, compare=False)
    lines: LineIndex | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.lines is None:
            self.lines = LineIndex(self.content)
        self._links: list[Link] | None = None
        self._section_ends = self._compute_section_ends()
        self._identities = self._compute_identities()

    def _compute_identities(self) -> list[str]:
        seen: Counter[str] = Counter()
        identities = []
        for heading in self.headings:
            seen[heading.text] += 1
            ordinal = seen[heading.text]
            identities.append(
                heading.text if ordinal == 1 else f"{heading.text}{IDENTITY_SEPARATOR}{ordinal}"
            )
        return identities

    def _compute_section_ends(self) -> list[int]:
        """End offset of every heading's section, in one pass."""
        ends = [len(self.content)] * len(self.headings)
        open_sections: list[int] = []
        for i, heading in enumerate(self.headings):
            while (
                open_sections
                and self.headings[open_sections[-1]].level >= heading.level
            ):
                ends[open_sections.pop()] = heading.offset
            open_sections.append(i)
        return ends

    @property
    def name(self) -> str:
        return self.path.name if self.path else "<untitled>"

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    def identity_of(self, index: int) -> str:
        return self._identities[index]

    def index_of(self, identity: str | None) -> int | None:
        """Index of the heading with this identity.

        Falls back to the first heading whose text, then anchor, matches.
        """
        if identity is None:
            return None
        try:
            return self._identities.index(identity)
        except ValueError:
            pass
        for i, heading in enumerate(self.headings):
            if heading.text == identity:
                return i
        for i, heading in enumerate(self.headings):
            if heading.anchor == identity:
                return i
        return None

    def section_range(self, index: int) -> tuple[int, int]:
        """Start and end offsets of a heading's section."""
        return self.headings[index].offset, self._section_ends[index]

    def extract_section(self, index: int) -> str:
        return extract_section(self, index)

    def section_body(self, index: int) -> str:
        """Section text without the heading line itself, trimmed."""
        start, end = self.section_range(index)
        line = self.lines.line_of(start) + 1
        if SETEXT_UNDERLINE.match(self.lines.text(line)):
            line += 1
        body_start = min(self.lines.start(line), end)
        return self.content[body_start:end].strip()

    def parent_index(self, index: int) -> int | None:
        """Scan backwards for the nearest heading with a lower level."""
        level = self.headings[index].level
        for i in range(index - 1, -1, -1):
            if self.headings[i].level < level:
                return i
        return None

    def ancestors(self, index: int) -> list[int]:
        """Indices of every enclosing heading, nearest first."""
        result = []
        parent = self.parent_index(index)
        while parent is not None:
            result.append(parent)
            parent = self.parent_index(parent)
        return result

    def depth(self, index: int) -> int:
        """Nesting depth of a heading in the tree (0 for roots)."""
        return len(self.ancestors(index))

    def has_children(self, index: int) -> bool:
        return (
            index + 1 < len(self.headings)
            and self.headings[index + 1].level > self.headings[index].level
        )

    def find_heading(self, text: str) -> Heading | None:
        """Find a heading by text (case-insensitive)."""
        search = text.lower()
        for heading in self.headings:
            if heading.text.lower() == search:
                return heading
        return None

    def headings_at_level(self, level: int) -> list[Heading]:
        return [h for h in self.headings if h.level == level]

    def filter_headings(self, query: str) -> list[Heading]:
        """Headings whose text contains query (case-insensitive)."""
        search = query.lower()
        return [h for h in self.headings if search in h.text.lower()]

    def build_tree(self) -> list[HeadingNode]:
        """Build a heading hierarchy from the flat heading list."""
        roots: list[HeadingNode] = []
        stack: list[HeadingNode] = []

        for heading in self.headings:
            node = HeadingNode(heading)
            while stack and stack[-1].heading.level >= heading.level:
                stack.pop()
            if stack:
                stack[-1].children.append(node)
            else:
                roots.append(node)
            stack.append(node)

        return roots

    @property
    def links(self) -> list[Link]:
        """All links in the document, ordered by offset."""
        if self._links is None:
            from .links import extract_links

            self._links = extract_links(self)
        return self._links

    def links_in_section(self, index: int | None) -> list[Link]:
        """Links inside a heading's section, or the whole document for None."""
        if index is None:
            return list(self.links)
        start, end = self.section_range(index)
        return [lnk for lnk in self.links if start <= lnk.offset < end]


def inline_text(token: Token) -> str:
    """Display text of an inline token with decoration markers dropped."""
    parts = []
    for child in token.children or []:
        if child.type in ("text", "text_special", "code_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
        elif child.type == "image":
            parts.append(inline_text(child))
    return "".join(parts)


def _collect_headings(tokens: list[Token], lines: LineIndex) -> list[Heading]:
    headings = []
    for i, token in enumerate(tokens):
        if token.type != "heading_open" or token.map is None:
            continue
        text = inline_text(tokens[i + 1]).strip() if i + 1 < len(tokens) else ""
        line = token.map[0]
        headings.append(
            Heading(
                level=int(token.tag[1:]),
                text=text,
                offset=lines.start(line),
                line=line + 1,
            )
        )
    return headings


def parse_markdown(content: str, path: Path | None = None) -> Document:
    """Parse markdown text into a Document with its headings."""
    tokens = _parser.parse(content)
    lines = LineIndex(content)
    return Document(
        content=content,
        headings=_collect_headings(tokens, lines),
        path=path,
        tokens=tokens,
        lines=lines,
    )


def parse_headings(content: str) -> list[Heading]:
    """Ordered headings of a markdown text."""
    return parse_markdown(content).headings


def extract_section(document: Document, index: int) -> str:
    """Text of a heading's section, heading line included.

    The section runs from the heading's offset up to the next heading of
    the same or a lower level (or the end of the text), so deeper
    subsections are part of it.
    """
    start, end = document.section_range(index)
    return document.content[start:end]
