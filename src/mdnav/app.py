"""Main Textual application for mdnav."""

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Static

from .actions import FileActionsMixin, LinkActionsMixin, NavigationActionsMixin
from .collaborators import Clipboard, Editor, UrlOpener
from .config import Config
from .document import Document
from .modes import AppMode, Navigator
from .navigation import NavigationEngine, Status
from .watcher import DocumentWatcher
from .widgets import LinkPanel, Outline, SectionView

SEVERITIES = {"success": "information", "warning": "warning", "error": "error"}


class MdnavApp(NavigationActionsMixin, LinkActionsMixin, FileActionsMixin, App):
    """mdnav - Markdown Structural Navigator."""

    TITLE = "mdnav"
    SUB_TITLE = "Markdown Navigator"

    CSS = """
    #main-container {
        width: 100%;
        height: 1fr;
    }

    #outline {
        width: 35%;
        height: 100%;
        border: solid $accent;
    }

    #right-panel {
        width: 65%;
        height: 100%;
        border: solid $success;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $primary-background;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("j,down", "cursor_down", "Down", show=False),
        Binding("k,up", "cursor_up", "Up", show=False),
        Binding("g,home", "first_heading", "Top", show=False),
        Binding("enter,space", "activate", "Fold/Follow", show=False),
        Binding("E", "expand_all", "Expand all", show=False),
        Binding("C", "collapse_all", "Collapse all", show=False),
        Binding("p", "parent", "Parent"),
        Binding("slash", "search", "Search"),
        Binding("f", "link_mode", "Links"),
        Binding("tab", "next_link", "Next link", show=False),
        Binding("shift+tab", "previous_link", "Prev link", show=False),
        *[Binding(str(n), f"pick_link({n - 1})", show=False) for n in range(1, 10)],
        Binding("b", "go_back", "Back"),
        Binding("F", "go_forward", "Forward", show=False),
        Binding("ctrl+d,pagedown", "scroll_down", "Scroll down", show=False),
        Binding("ctrl+u,pageup", "scroll_up", "Scroll up", show=False),
        Binding("e", "edit", "Edit"),
        Binding("r", "reload", "Reload", show=False),
        Binding("y", "copy_section", "Copy"),
        Binding("Y", "copy_anchor", "Copy link", show=False),
        Binding("t", "theme", "Theme"),
        Binding("question_mark", "help", "Help"),
        Binding("escape", "escape", "Back", show=False),
    ]

    def __init__(
        self,
        config: Config,
        document: Document,
        *,
        clipboard: Clipboard | None = None,
        opener: UrlOpener | None = None,
    ) -> None:
        super().__init__()
        self.config = config
        engine = NavigationEngine(
            document,
            opener=opener,
            clipboard=clipboard,
            editor=Editor(config.editor),
            max_history=config.max_history,
            wiki_extension=config.links.wiki_extension,
            case_insensitive=config.links.case_insensitive_fallback,
        )
        self.navigator = Navigator(engine)
        self._watcher: DocumentWatcher | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="main-container"):
            yield Outline(id="outline", classes="panel")
            with Vertical(id="right-panel"):
                yield SectionView(id="content", classes="panel")
                yield LinkPanel(id="links")
        yield Static("", id="status-bar", markup=False)
        yield Footer()

    async def on_mount(self) -> None:
        """Initialize the app after mounting."""
        navigator = self.navigator
        navigator.themes = sorted(self.available_themes)
        if self.config.theme in self.available_themes:
            self.theme = self.config.theme
        navigator.theme = self.theme

        if self.config.watch:
            self._watcher = DocumentWatcher(self._on_file_change)

        await self._refresh_view()

    async def on_unmount(self) -> None:
        """Clean up when app closes."""
        if self._watcher:
            self._watcher.stop()

    def _report(self, status: Status) -> None:
        """Show a status as a notification."""
        if not status.message:
            return
        self.notify(
            status.message,
            severity=SEVERITIES[status.kind],
            timeout=5 if status.kind == "error" else 3,
        )

    def _status_line(self) -> str:
        navigator = self.navigator
        engine = navigator.engine
        parts = [navigator.mode.value.upper(), engine.document.name]
        if engine.filter_query:
            parts.append(f"filter: {engine.filter_query}")
        if navigator.mode is AppMode.SEARCH:
            parts.append("Enter: apply  Esc: cancel")
        history = engine.history
        parts.append(f"← {len(history.back)}  → {len(history.forward)}")
        return "  │  ".join(parts)

    async def _refresh_view(self) -> None:
        """Redraw every panel from the navigator's state."""
        navigator = self.navigator
        engine = navigator.engine

        outline = self.query_one("#outline", Outline)
        if navigator.mode is not AppMode.SEARCH and outline.searching:
            outline.exit_search_mode()
        outline.update_outline(
            engine.visible_headings(),
            engine.selected_index,
            engine.document.name,
            engine.filter_query,
        )

        section_view = self.query_one("#content", SectionView)
        engine.viewport_height = section_view.viewport_height
        heading = engine.selected_heading
        await section_view.show_section(
            heading.text if heading else engine.document.name,
            engine.section_text,
            engine.scroll_offset,
        )

        link_panel = self.query_one("#links", LinkPanel)
        if navigator.mode is AppMode.LINK_FOLLOW:
            link_panel.show_links(navigator.links, navigator.link_index)
        else:
            link_panel.hide()

        self.query_one("#status-bar", Static).update(self._status_line())
        self.sub_title = str(engine.path) if engine.path else "Markdown Navigator"

        if self._watcher is not None:
            self._watcher.watch(engine.path)


def run_app(config: Config, document: Document) -> None:
    """Run the mdnav application."""
    app = MdnavApp(config, document)
    app.run()
