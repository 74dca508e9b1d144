"""Interaction modes and the actions valid in each.

``Navigator`` is the single object the interaction loop talks to: it
holds the active mode, gates every action on it and forwards the work to
the navigation engine. Copy actions are valid in every mode and never
change it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from enum import Enum

from .links import Link
from .navigation import NavigationEngine, Status

logger = logging.getLogger(__name__)


class AppMode(Enum):
    NORMAL = "normal"
    LINK_FOLLOW = "link follow"
    SEARCH = "search"
    THEME_PICKER = "theme picker"
    HELP = "help"


class Action(Enum):
    MOVE = "move"
    SCROLL = "scroll"
    TOGGLE_COLLAPSE = "toggle collapse"
    FOLD_ALL = "fold all"
    JUMP_TO_PARENT = "jump to parent"
    ENTER_LINK_MODE = "enter link mode"
    CYCLE_LINK = "cycle link"
    FOLLOW_LINK = "follow link"
    ENTER_SEARCH = "enter search"
    EDIT_SEARCH = "edit search"
    COMMIT_SEARCH = "commit search"
    CLEAR_FILTER = "clear filter"
    OPEN_THEME_PICKER = "open theme picker"
    CYCLE_THEME = "cycle theme"
    PICK_THEME = "pick theme"
    SHOW_HELP = "show help"
    GO_BACK = "go back"
    GO_FORWARD = "go forward"
    EDIT_FILE = "edit file"
    RELOAD = "reload"
    CANCEL = "cancel"
    COPY_SECTION = "copy section"
    COPY_ANCHOR = "copy anchor"


# Side-channel actions layered over whatever mode is active
ALWAYS_VALID = frozenset({Action.COPY_SECTION, Action.COPY_ANCHOR, Action.RELOAD})

VALID_ACTIONS: dict[AppMode, frozenset[Action]] = {
    AppMode.NORMAL: frozenset(
        {
            Action.MOVE,
            Action.SCROLL,
            Action.TOGGLE_COLLAPSE,
            Action.FOLD_ALL,
            Action.JUMP_TO_PARENT,
            Action.ENTER_LINK_MODE,
            Action.ENTER_SEARCH,
            Action.CLEAR_FILTER,
            Action.OPEN_THEME_PICKER,
            Action.SHOW_HELP,
            Action.GO_BACK,
            Action.GO_FORWARD,
            Action.EDIT_FILE,
        }
    ),
    AppMode.LINK_FOLLOW: frozenset(
        {
            Action.SCROLL,
            Action.CYCLE_LINK,
            Action.FOLLOW_LINK,
            Action.JUMP_TO_PARENT,
            Action.CANCEL,
        }
    ),
    AppMode.SEARCH: frozenset(
        {Action.EDIT_SEARCH, Action.COMMIT_SEARCH, Action.CANCEL}
    ),
    AppMode.THEME_PICKER: frozenset(
        {Action.CYCLE_THEME, Action.PICK_THEME, Action.CANCEL}
    ),
    AppMode.HELP: frozenset({Action.SCROLL, Action.CANCEL}),
}


def is_valid(mode: AppMode, action: Action) -> bool:
    """Check whether an action may run in a mode."""
    return action in ALWAYS_VALID or action in VALID_ACTIONS[mode]


class Navigator:
    """Mode state machine wrapped around a NavigationEngine."""

    def __init__(
        self,
        engine: NavigationEngine,
        themes: list[str] | None = None,
        theme: str | None = None,
    ) -> None:
        self.engine = engine
        self.mode = AppMode.NORMAL
        self.link_index = 0
        self.search_query = ""
        self._filter_before_search: str | None = None
        self.themes = list(themes or [])
        self.theme = theme
        self.theme_index = 0

    def allows(self, action: Action) -> bool:
        return is_valid(self.mode, action)

    def _gate(self, action: Action) -> Status | None:
        if self.allows(action):
            return None
        return Status(f"Cannot {action.value} in {self.mode.value} mode", "warning")

    def _set_mode(self, mode: AppMode) -> None:
        if mode is not self.mode:
            logger.debug("Mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode

    # -- normal mode -------------------------------------------------------

    def move(self, step: int) -> Status:
        if (rejected := self._gate(Action.MOVE)) is not None:
            return rejected
        moved = self.engine.select_next() if step > 0 else self.engine.select_previous()
        return Status("") if moved else Status("No more headings", "warning")

    def select_heading(self, identity: str) -> Status:
        if (rejected := self._gate(Action.MOVE)) is not None:
            return rejected
        if not self.engine.select(identity):
            return Status(f"No heading '{identity}'", "warning")
        return Status("")

    def scroll(self, delta: int) -> Status:
        if (rejected := self._gate(Action.SCROLL)) is not None:
            return rejected
        self.engine.scroll_by(delta)
        return Status("")

    def toggle_collapse(self) -> Status:
        return self._gate(Action.TOGGLE_COLLAPSE) or self.engine.toggle_collapse()

    def expand_all(self) -> Status:
        return self._gate(Action.FOLD_ALL) or self.engine.expand_all()

    def collapse_all(self) -> Status:
        return self._gate(Action.FOLD_ALL) or self.engine.collapse_all()

    def go_back(self) -> Status:
        return self._gate(Action.GO_BACK) or self._settle(self.engine.go_back())

    def go_forward(self) -> Status:
        return self._gate(Action.GO_FORWARD) or self._settle(self.engine.go_forward())

    def edit(self, suspend: Callable[[], AbstractContextManager] = nullcontext) -> Status:
        return self._gate(Action.EDIT_FILE) or self.engine.edit(suspend)

    def reload(self) -> Status:
        return self._settle(self.engine.reload())

    def _settle(self, status: Status) -> Status:
        """Fall back to normal mode when an operation failed outright.

        An uncommitted search preview is dropped on the way out.
        """
        if not status.ok:
            self._leave_search()
            self._set_mode(AppMode.NORMAL)
        return status

    def _leave_search(self) -> None:
        if self.mode is AppMode.SEARCH:
            self.engine.filter_query = self._filter_before_search
            self.search_query = ""

    def jump_to_parent(self) -> Status:
        """Jump to the parent heading.

        In link mode the link list switches to the parent's section and
        link mode stays active.
        """
        if (rejected := self._gate(Action.JUMP_TO_PARENT)) is not None:
            return rejected
        status = self.engine.jump_to_parent()
        if self.mode is AppMode.LINK_FOLLOW and status.kind == "success":
            self.link_index = 0
            if not self.links:
                return Status(f"{status.message} (no links in this section)", "warning")
        return status

    # -- link mode -----------------------------------------------------------

    @property
    def links(self) -> list[Link]:
        return self.engine.links

    @property
    def selected_link(self) -> Link | None:
        links = self.links
        if 0 <= self.link_index < len(links):
            return links[self.link_index]
        return None

    def enter_link_mode(self) -> Status:
        if (rejected := self._gate(Action.ENTER_LINK_MODE)) is not None:
            return rejected
        count = len(self.links)
        if not count:
            return Status("No links in this section", "warning")
        self.link_index = 0
        self._set_mode(AppMode.LINK_FOLLOW)
        return Status(f"{count} link(s)")

    def cycle_link(self, step: int = 1) -> Status:
        if (rejected := self._gate(Action.CYCLE_LINK)) is not None:
            return rejected
        links = self.links
        if not links:
            return Status("No links in this section", "warning")
        self.link_index = (self.link_index + step) % len(links)
        return Status("")

    def select_link(self, index: int) -> Status:
        if (rejected := self._gate(Action.CYCLE_LINK)) is not None:
            return rejected
        if not 0 <= index < len(self.links):
            return Status("No such link", "warning")
        self.link_index = index
        return Status("")

    def follow_link(self) -> Status:
        if (rejected := self._gate(Action.FOLLOW_LINK)) is not None:
            return rejected
        link = self.selected_link
        if link is None:
            return Status("No link selected", "warning")
        status = self.engine.follow_link(link)
        if status.ok:
            self._set_mode(AppMode.NORMAL)
            self.link_index = 0
        return status

    # -- search --------------------------------------------------------------

    def enter_search(self) -> Status:
        if (rejected := self._gate(Action.ENTER_SEARCH)) is not None:
            return rejected
        self._filter_before_search = self.engine.filter_query
        self.search_query = ""
        self._set_mode(AppMode.SEARCH)
        return Status("")

    def update_search(self, query: str) -> Status:
        """Preview a filter while typing; the selection is left alone."""
        if (rejected := self._gate(Action.EDIT_SEARCH)) is not None:
            return rejected
        self.search_query = query
        self.engine.filter_query = query.strip() or None
        return Status("")

    def commit_search(self) -> Status:
        if (rejected := self._gate(Action.COMMIT_SEARCH)) is not None:
            return rejected
        self.engine.filter_query = self._filter_before_search
        status = self.engine.apply_filter(self.search_query)
        self._set_mode(AppMode.NORMAL)
        return status

    def clear_filter(self) -> Status:
        if (rejected := self._gate(Action.CLEAR_FILTER)) is not None:
            return rejected
        if self.engine.filter_query is None:
            return Status("No filter active", "warning")
        return self.engine.clear_filter()

    # -- theme picker --------------------------------------------------------

    def open_theme_picker(self) -> Status:
        if (rejected := self._gate(Action.OPEN_THEME_PICKER)) is not None:
            return rejected
        if not self.themes:
            return Status("No themes available", "warning")
        self.theme_index = self.themes.index(self.theme) if self.theme in self.themes else 0
        self._set_mode(AppMode.THEME_PICKER)
        return Status("")

    @property
    def highlighted_theme(self) -> str | None:
        if 0 <= self.theme_index < len(self.themes):
            return self.themes[self.theme_index]
        return None

    def cycle_theme(self, step: int = 1) -> Status:
        if (rejected := self._gate(Action.CYCLE_THEME)) is not None:
            return rejected
        self.theme_index = (self.theme_index + step) % len(self.themes)
        return Status("")

    def highlight_theme(self, name: str) -> Status:
        if (rejected := self._gate(Action.CYCLE_THEME)) is not None:
            return rejected
        if name not in self.themes:
            return Status(f"Unknown theme: {name}", "warning")
        self.theme_index = self.themes.index(name)
        return Status("")

    def pick_theme(self, name: str | None = None) -> Status:
        if (rejected := self._gate(Action.PICK_THEME)) is not None:
            return rejected
        if name is not None:
            if name not in self.themes:
                return Status(f"Unknown theme: {name}", "warning")
            self.theme_index = self.themes.index(name)
        self.theme = self.highlighted_theme
        self._set_mode(AppMode.NORMAL)
        return Status(f"Theme: {self.theme}")

    # -- help ----------------------------------------------------------------

    def show_help(self) -> Status:
        if (rejected := self._gate(Action.SHOW_HELP)) is not None:
            return rejected
        self._set_mode(AppMode.HELP)
        return Status("")

    # -- shared ----------------------------------------------------------------

    def cancel(self) -> Status:
        """Leave the active mode without doing anything."""
        if (rejected := self._gate(Action.CANCEL)) is not None:
            return rejected
        self._leave_search()
        self.link_index = 0
        self._set_mode(AppMode.NORMAL)
        return Status("")

    def copy_section(self) -> Status:
        return self.engine.copy_section()

    def copy_anchor_link(self) -> Status:
        return self.engine.copy_anchor_link()
