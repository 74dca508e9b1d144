"""Link picker shown while link mode is active."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Label, ListItem, ListView, Static

from ..links import Link

KIND_LABELS = {
    "anchor": "#",
    "file": "file",
    "file+anchor": "file#",
    "wiki": "wiki",
    "external": "url",
}


class LinkItem(ListItem):
    """A list item representing a link."""

    def __init__(self, number: int, link: Link) -> None:
        super().__init__()
        self.number = number
        self.link = link

    def compose(self) -> ComposeResult:
        kind = KIND_LABELS.get(self.link.target.kind, self.link.target.kind)
        yield Label(
            f"{self.number:>2}. [{kind}] {self.link.text}  → {self.link.target}",
            markup=False,
        )


class LinkList(ListView, can_focus=False):
    pass


class LinkPanel(Vertical):
    """Numbered list of the links in the selected section."""

    DEFAULT_CSS = """
    LinkPanel {
        height: auto;
        max-height: 12;
        border-top: solid $warning;
        display: none;
    }

    LinkPanel.visible {
        display: block;
    }

    LinkPanel > #link-header {
        background: $primary-background;
        color: $warning;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    LinkPanel > #link-list {
        height: auto;
        max-height: 10;
    }

    LinkPanel ListItem {
        padding: 0 1;
    }

    LinkPanel ListItem.--highlight {
        background: $warning 40%;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._links: tuple[Link, ...] = ()

    def compose(self) -> ComposeResult:
        yield Static("LINKS", id="link-header")
        yield LinkList(id="link-list")

    @property
    def list_view(self) -> ListView:
        return self.query_one("#link-list", ListView)

    def show_links(self, links: list[Link], selected: int) -> None:
        self.add_class("visible")
        self.query_one("#link-header", Static).update(
            f"LINKS ({len(links)}) - Tab: next, Enter: follow, p: parent, Esc: cancel"
        )
        list_view = self.list_view
        if tuple(links) != self._links:
            self._links = tuple(links)
            list_view.clear()
            for number, link in enumerate(links, start=1):
                list_view.append(LinkItem(number, link))
        list_view.index = selected if 0 <= selected < len(links) else None

    def hide(self) -> None:
        self.remove_class("visible")
