"""Navigation engine: the open document, selection, outline state and history.

Selection and collapse state are keyed by heading identity (see
``Document.identity_of``), never by list index, so collapsing, filtering
and reloading cannot shift them onto a different heading. Every
operation reports a Status instead of raising;
on failure the engine is left exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .collaborators import Clipboard, Editor, UrlOpener, SystemClipboard, SystemOpener
from .document import Document, Heading
from .errors import (
    ClipboardError,
    ClipboardUnavailableError,
    DocumentLoadError,
    DocumentNotFoundError,
    EditorError,
    OpenError,
    ResolutionError,
)
from .links import Link
from .loader import invalidate_file_cache, load_document
from .resolver import JumpToHeading, Loader, OpenExternal, resolve

logger = logging.getLogger(__name__)

StatusKind = Literal["success", "warning", "error"]

DEFAULT_MAX_HISTORY = 100


def page_step(height: int, pages: float) -> int:
    """Lines to scroll for a fraction of a page, never zero and signed like ``pages``."""
    step = int(max(1, height) * pages)
    if step:
        return step
    return 1 if pages > 0 else -1


@dataclass(frozen=True)
class Status:
    """Human-readable outcome of an operation."""

    message: str
    kind: StatusKind = "success"

    @property
    def ok(self) -> bool:
        return self.kind != "error"


@dataclass(frozen=True)
class FileState:
    """Snapshot of a view, used to restore it from history."""

    path: Path | None
    scroll_offset: int = 0
    selected_heading: str | None = None
    collapsed: frozenset[str] = frozenset()


@dataclass(frozen=True)
class OutlineEntry:
    """A heading as shown in the outline."""

    index: int
    heading: Heading
    identity: str
    depth: int
    collapsed: bool
    has_children: bool


class NavigationHistory:
    """Back/forward stacks of FileState snapshots with browser semantics."""

    def __init__(self, max_entries: int = DEFAULT_MAX_HISTORY) -> None:
        self.max_entries = max(1, max_entries)
        self.back: list[FileState] = []
        self.forward: list[FileState] = []

    def _push(self, stack: list[FileState], state: FileState) -> None:
        stack.append(state)
        overflow = len(stack) - self.max_entries
        if overflow > 0:
            del stack[:overflow]

    def record(self, state: FileState) -> None:
        """Remember the state being left by a new navigation."""
        self._push(self.back, state)
        self.forward.clear()

    def step_back(self, current: FileState) -> FileState | None:
        if not self.back:
            return None
        target = self.back.pop()
        self._push(self.forward, current)
        return target

    def step_forward(self, current: FileState) -> FileState | None:
        if not self.forward:
            return None
        target = self.forward.pop()
        self._push(self.back, current)
        return target

    @property
    def can_go_back(self) -> bool:
        return bool(self.back)

    @property
    def can_go_forward(self) -> bool:
        return bool(self.forward)

    def clear(self) -> None:
        self.back.clear()
        self.forward.clear()


class NavigationEngine:
    """Owns the current document and everything needed to navigate it."""

    def __init__(
        self,
        document: Document,
        loader: Loader = load_document,
        *,
        opener: UrlOpener | None = None,
        clipboard: Clipboard | None = None,
        editor: Editor | None = None,
        max_history: int = DEFAULT_MAX_HISTORY,
        wiki_extension: str = ".md",
        case_insensitive: bool = True,
    ) -> None:
        self.loader = loader
        self.opener = opener or SystemOpener()
        self.clipboard = clipboard or SystemClipboard()
        self.editor = editor or Editor()
        self.history = NavigationHistory(max_history)
        self.wiki_extension = wiki_extension
        self.case_insensitive = case_insensitive
        self.viewport_height = 0
        self._install(document)

    # -- state -----------------------------------------------------------

    def _install(self, document: Document) -> None:
        self._document = document
        self.selected: str | None = document.identity_of(0) if document.headings else None
        self.scroll_offset = 0
        self.filter_query: str | None = None
        self._parked: str | None = None

    @property
    def document(self) -> Document:
        return self._document

    @property
    def path(self) -> Path | None:
        return self._document.path

    @property
    def collapsed(self) -> set[str]:
        return self._document.collapsed

    @property
    def selected_index(self) -> int | None:
        return self._document.index_of(self.selected)

    @property
    def selected_heading(self) -> Heading | None:
        index = self.selected_index
        return None if index is None else self._document.headings[index]

    def snapshot(self) -> FileState:
        return FileState(
            path=self.path,
            scroll_offset=self.scroll_offset,
            selected_heading=self.selected,
            collapsed=frozenset(self.collapsed),
        )

    # -- derived view ----------------------------------------------------

    def _outline(self) -> Iterator[OutlineEntry]:
        headings = self._document.headings
        query = self.filter_query.lower() if self.filter_query else None
        levels: list[int] = []
        hidden_below: int | None = None

        for i, heading in enumerate(headings):
            while levels and levels[-1] >= heading.level:
                levels.pop()
            depth = len(levels)
            levels.append(heading.level)

            if query is not None:
                if query in heading.text.lower():
                    yield self._entry(i, heading, depth)
                continue

            if hidden_below is not None and heading.level > hidden_below:
                continue
            hidden_below = None
            entry = self._entry(i, heading, depth)
            if entry.collapsed:
                hidden_below = heading.level
            yield entry

    def _entry(self, index: int, heading: Heading, depth: int) -> OutlineEntry:
        has_children = self._document.has_children(index)
        identity = self._document.identity_of(index)
        return OutlineEntry(
            index=index,
            heading=heading,
            identity=identity,
            depth=depth,
            collapsed=has_children and identity in self.collapsed,
            has_children=has_children,
        )

    def visible_headings(self) -> list[OutlineEntry]:
        """Headings shown in the outline, honouring collapse and filter."""
        return list(self._outline())

    def _visible_indices(self) -> set[int]:
        return {entry.index for entry in self._outline()}

    @property
    def section_text(self) -> str:
        """Text of the selected section, or the whole document."""
        index = self.selected_index
        if index is None:
            return self._document.content
        return self._document.extract_section(index)

    @property
    def content_height(self) -> int:
        text = self.section_text
        return text.count("\n") + 1 if text else 0

    @property
    def max_scroll(self) -> int:
        return max(0, self.content_height - self.viewport_height)

    def scroll_to(self, offset: int) -> None:
        self.scroll_offset = min(max(0, offset), self.max_scroll)

    def scroll_by(self, delta: int) -> None:
        self.scroll_to(self.scroll_offset + delta)

    @property
    def links(self) -> list[Link]:
        """Links in the selected section."""
        return self._document.links_in_section(self.selected_index)

    # -- selection and outline -------------------------------------------

    def select(self, identity: str | None) -> bool:
        """Select a heading by identity; unknown identities clear the selection."""
        self._parked = None
        self.scroll_offset = 0
        index = self._document.index_of(identity)
        if index is None:
            self.selected = None
            return False
        self._reveal(index)
        self.selected = self._document.identity_of(index)
        return True

    def _move(self, step: int) -> bool:
        entries = self.visible_headings()
        if not entries:
            return False
        indices = [entry.index for entry in entries]
        current = self.selected_index
        if current not in indices:
            target = entries[0] if step > 0 else entries[-1]
        else:
            position = indices.index(current) + step
            if not 0 <= position < len(entries):
                return False
            target = entries[position]
        return self.select(target.identity)

    def select_next(self) -> bool:
        return self._move(1)

    def select_previous(self) -> bool:
        return self._move(-1)

    def select_first(self) -> bool:
        entries = self.visible_headings()
        return bool(entries) and self.select(entries[0].identity)

    def _reveal(self, index: int) -> None:
        """Expand every collapsed ancestor of a heading."""
        if self.filter_query:
            return
        for ancestor in self._document.ancestors(index):
            self.collapsed.discard(self._document.identity_of(ancestor))

    def _settle_selection(self) -> None:
        """Keep the selection visible after the collapse set changed.

        A selection hidden by a collapse is parked and moves to its nearest
        visible ancestor; once the parked heading is visible again it is
        selected again.
        """
        visible = self._visible_indices()
        if self._parked is not None:
            parked_index = self._document.index_of(self._parked)
            if parked_index is not None and parked_index in visible:
                self.selected = self._parked
                self._parked = None
                return

        index = self.selected_index
        if index is None or index in visible:
            return
        for ancestor in self._document.ancestors(index):
            if ancestor in visible:
                if self._parked is None:
                    self._parked = self.selected
                self.selected = self._document.identity_of(ancestor)
                self.scroll_offset = 0
                return

    def toggle_collapse(self, identity: str | None = None) -> Status:
        """Collapse or expand a heading (the selected one by default)."""
        index = self._document.index_of(identity if identity is not None else self.selected)
        if index is None:
            return Status("No heading selected", "warning")
        heading = self._document.headings[index]
        if not self._document.has_children(index):
            return Status(f"'{heading.text}' has no subsections", "warning")

        key = self._document.identity_of(index)
        if key in self.collapsed:
            self.collapsed.discard(key)
            message = f"Expanded '{heading.text}'"
        else:
            self.collapsed.add(key)
            message = f"Collapsed '{heading.text}'"
        self._settle_selection()
        return Status(message)

    def expand_all(self) -> Status:
        self.collapsed.clear()
        self._settle_selection()
        return Status("Expanded all headings")

    def collapse_all(self) -> Status:
        for i in range(len(self._document.headings)):
            if self._document.has_children(i):
                self.collapsed.add(self._document.identity_of(i))
        self._settle_selection()
        return Status("Collapsed all headings")

    def parent_of(self, identity: str | None) -> str | None:
        """Identity of the nearest enclosing heading, or None at top level."""
        index = self._document.index_of(identity)
        if index is None:
            return None
        parent = self._document.parent_index(index)
        return None if parent is None else self._document.identity_of(parent)

    def jump_to_parent(self, identity: str | None = None) -> Status:
        """Select the parent of a heading (the selected one by default)."""
        identity = identity if identity is not None else self.selected
        if self._document.index_of(identity) is None:
            return Status("No heading selected", "warning")
        parent = self.parent_of(identity)
        if parent is None:
            return Status("Already at top level", "warning")
        self.select(parent)
        return Status(f"Jumped to '{self.selected_heading.text}'")

    # -- search filter -----------------------------------------------------

    def apply_filter(self, query: str) -> Status:
        """Filter the outline to headings containing query.

        The selection is kept when it matches, otherwise the first match is
        selected. A query matching nothing leaves the outline unfiltered.
        """
        query = query.strip()
        if not query:
            return self.clear_filter()

        matches = self._document.filter_headings(query)
        if not matches:
            return Status(f"No headings match '{query}'", "warning")

        self.filter_query = query
        current = self.selected_heading
        if current is None or current not in matches:
            first = self._document.headings.index(matches[0])
            self.select(self._document.identity_of(first))
        return Status(f"{len(matches)} heading(s) match '{query}'")

    def clear_filter(self) -> Status:
        self.filter_query = None
        self._settle_selection()
        return Status("Filter cleared")

    # -- navigation --------------------------------------------------------

    def _restore(self, document: Document, state: FileState, keep_filter: bool = False) -> None:
        query = self.filter_query if keep_filter else None
        self._install(document)
        document.collapsed.clear()
        document.collapsed.update(state.collapsed)
        self.filter_query = query
        self.selected = (
            state.selected_heading
            if document.index_of(state.selected_heading) is not None
            else None
        )
        self.scroll_to(state.scroll_offset)

    def _navigate_to(self, document: Document, heading_index: int | None = None) -> None:
        self.history.record(self.snapshot())
        logger.info("Navigating from %s to %s", self._document.name, document.name)
        self._install(document)
        if heading_index is not None:
            self.select(document.identity_of(heading_index))

    def open_path(self, path: Path) -> Status:
        """Open a file as a new navigation."""
        try:
            document = self.loader(path)
        except DocumentLoadError as e:
            return Status(str(e), "error")
        self._navigate_to(document)
        return Status(f"Opened {document.name}")

    def follow_link(self, link: Link) -> Status:
        """Follow a link.

        Links into another file push the current view onto the back stack
        and clear the forward stack. Anchor links within the document only
        move the selection.
        """
        try:
            resolution = resolve(
                link.target,
                self._document,
                self.path,
                self.loader,
                wiki_extension=self.wiki_extension,
                case_insensitive=self.case_insensitive,
            )
        except (ResolutionError, DocumentLoadError) as e:
            logger.warning("Could not follow %s: %s", link.target, e)
            return Status(str(e), "error")

        if isinstance(resolution, JumpToHeading):
            heading = self._document.headings[resolution.index]
            self.select(self._document.identity_of(resolution.index))
            return Status(f"Jumped to '{heading.text}'")

        if isinstance(resolution, OpenExternal):
            return self._open_external(resolution.url)

        document = resolution.document
        self._navigate_to(document, resolution.heading_index)
        if resolution.anchor_error is not None:
            return Status(
                f"Opened {document.name}, but {resolution.anchor_error}", "warning"
            )
        return Status(f"Opened {document.name}")

    def _open_external(self, url: str) -> Status:
        try:
            self.opener.open(url)
        except OpenError as e:
            logger.warning("Opener failed for %s: %s", url, e)
            try:
                self.clipboard.copy(url)
            except ClipboardError as clip_error:
                return Status(
                    f"Could not open {url} ({e}); clipboard failed: {clip_error}",
                    "error",
                )
            return Status(f"Could not open {url}; copied to clipboard", "warning")
        return Status(f"Opened {url} in browser")

    def _document_for(self, state: FileState) -> Document:
        if state.path == self.path:
            return self._document
        if state.path is None:
            raise DocumentNotFoundError(Path("<untitled>"))
        return self.loader(state.path)

    def _step(
        self,
        stack: list[FileState],
        step: Callable[[FileState], FileState | None],
        direction: str,
    ) -> Status:
        if not stack:
            return Status(f"No {direction} history", "warning")
        try:
            document = self._document_for(stack[-1])
        except DocumentLoadError as e:
            logger.warning("History entry unavailable: %s", e)
            return Status(f"Cannot go {direction}: {e}", "error")

        target = step(self.snapshot())
        self._restore(document, target)
        return Status(f"{direction.capitalize()} to {document.name}")

    def go_back(self) -> Status:
        return self._step(self.history.back, self.history.step_back, "back")

    def go_forward(self) -> Status:
        return self._step(self.history.forward, self.history.step_forward, "forward")

    def reload(self) -> Status:
        """Re-read the current file, restoring the view by identity."""
        if self.path is None:
            return Status("Nothing to reload", "warning")
        state = self.snapshot()
        invalidate_file_cache(self.path)
        try:
            document = self.loader(self.path)
        except DocumentLoadError as e:
            return Status(f"Reload failed: {e}", "error")
        self._restore(document, state, keep_filter=True)
        return Status(f"Reloaded {document.name}")

    # -- side-channel actions --------------------------------------------

    def edit(
        self,
        suspend: Callable[[], AbstractContextManager] = nullcontext,
    ) -> Status:
        """Edit the current file, then reload it whatever the editor did."""
        if self.path is None:
            return Status("No file to edit", "warning")

        failure: Status | None = None
        try:
            with suspend():
                self.editor.edit(self.path)
        except EditorError as e:
            failure = Status(str(e), "error")

        reloaded = self.reload()
        if failure is not None:
            return failure
        if not reloaded.ok:
            return reloaded
        return Status(f"Edited {self._document.name}")

    def _copy(self, text: str, description: str) -> Status:
        try:
            self.clipboard.copy(text)
        except ClipboardUnavailableError as e:
            return Status(f"No clipboard available: {e}", "error")
        except ClipboardError as e:
            return Status(f"Clipboard error: {e}", "error")
        return Status(f"Copied {description}")

    def copy_section(self) -> Status:
        heading = self.selected_heading
        text = self.section_text
        if not text:
            return Status("Nothing to copy", "warning")
        label = f"section '{heading.text}'" if heading else "document"
        lines = text.count("\n") + 1
        return self._copy(text, f"{label} ({lines} lines)")

    def copy_anchor_link(self) -> Status:
        heading = self.selected_heading
        if heading is None:
            return Status("No heading selected", "warning")
        link = f"{self.path.name}#{heading.anchor}" if self.path else f"#{heading.anchor}"
        return self._copy(link, link)
