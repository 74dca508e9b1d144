"""Outline widget: the heading tree of the open document."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import Key
from textual.message import Message
from textual.widgets import Input, Label, ListItem, ListView, Static

from ..navigation import OutlineEntry


class HeadingItem(ListItem):
    """A list item representing a heading."""

    def __init__(self, entry: OutlineEntry, flat: bool = False) -> None:
        super().__init__()
        self.entry = entry
        self.flat = flat

    @property
    def identity(self) -> str:
        return self.entry.identity

    def compose(self) -> ComposeResult:
        entry = self.entry
        if entry.collapsed:
            marker = "▸"
        elif entry.has_children:
            marker = "▾"
        else:
            marker = " "
        indent = "" if self.flat else "  " * entry.depth
        yield Label(f"{indent}{marker} {entry.heading.text}", markup=False)


class OutlineList(ListView, can_focus=False):
    """Heading list driven by the app's key bindings, not by focus."""


class Outline(Vertical):
    """Widget displaying the document outline and the search input."""

    DEFAULT_CSS = """
    Outline {
        width: 1fr;
        height: 1fr;
    }

    Outline > #outline-header {
        background: $primary-background;
        color: $accent;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    Outline > #search-input {
        height: 1;
        border: none;
        padding: 0 1;
        display: none;
    }

    Outline > #search-input.visible {
        display: block;
    }

    Outline > #outline-list {
        height: 1fr;
    }

    Outline ListItem {
        padding: 0 1;
    }

    Outline ListItem:hover {
        background: $boost;
    }

    Outline ListItem.--highlight {
        background: $accent;
    }
    """

    class HeadingClicked(Message):
        """Message emitted when a heading is clicked."""

        def __init__(self, identity: str) -> None:
            super().__init__()
            self.identity = identity

    class SearchChanged(Message):
        """Message emitted when the search text changes."""

        def __init__(self, query: str) -> None:
            super().__init__()
            self.query = query

    class SearchSubmitted(Message):
        """Message emitted when Enter is pressed in the search input."""

        def __init__(self, query: str) -> None:
            super().__init__()
            self.query = query

    class SearchCancelled(Message):
        """Message emitted when Escape is pressed in the search input."""

        pass

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._entries: tuple[OutlineEntry, ...] = ()
        self._search_mode: bool = False

    def compose(self) -> ComposeResult:
        yield Static("OUTLINE", id="outline-header")
        yield Input(placeholder="Filter headings...", id="search-input")
        yield OutlineList(id="outline-list")

    @property
    def list_view(self) -> ListView:
        return self.query_one("#outline-list", ListView)

    @property
    def search_input(self) -> Input:
        return self.query_one("#search-input", Input)

    def update_outline(
        self,
        entries: list[OutlineEntry],
        selected_index: int | None,
        title: str,
        filter_query: str | None = None,
    ) -> None:
        """Show entries and highlight the selected heading.

        The list is only rebuilt when the entries changed, so moving the
        selection does not remount every item.
        """
        header = self.query_one("#outline-header", Static)
        if filter_query:
            header.update(f"OUTLINE - {title} (/{filter_query}: {len(entries)})")
        else:
            header.update(f"OUTLINE - {title}")

        list_view = self.list_view
        entries_key = tuple(entries)
        if entries_key != self._entries:
            self._entries = entries_key
            list_view.clear()
            for entry in entries:
                list_view.append(HeadingItem(entry, flat=bool(filter_query)))

        positions = [entry.index for entry in entries]
        if selected_index in positions:
            list_view.index = positions.index(selected_index)
        else:
            list_view.index = None

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        """Handle a click on a heading."""
        if event.item is not None and isinstance(event.item, HeadingItem):
            self.post_message(self.HeadingClicked(event.item.identity))

    def is_search_mode(self) -> bool:
        """Check if currently in search mode."""
        return self._search_mode

    @property
    def searching(self) -> bool:
        return self._search_mode

    def enter_search_mode(self, query: str = "") -> None:
        """Show the search input and focus it."""
        self._search_mode = True
        search_input = self.search_input
        search_input.add_class("visible")
        search_input.value = query
        search_input.focus()

    def exit_search_mode(self) -> None:
        """Hide the search input."""
        self._search_mode = False
        search_input = self.search_input
        search_input.remove_class("visible")
        search_input.value = ""

    def on_input_changed(self, event: Input.Changed) -> None:
        if self._search_mode and event.input.id == "search-input":
            self.post_message(self.SearchChanged(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self._search_mode and event.input.id == "search-input":
            self.post_message(self.SearchSubmitted(event.value))

    def on_key(self, event: Key) -> None:
        """Escape cancels search mode."""
        if self._search_mode and event.key == "escape":
            self.post_message(self.SearchCancelled())
            event.stop()
