"""Section content widget."""

from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Markdown, Static


class ContentScroll(VerticalScroll, can_focus=False):
    """Scrolled by the app's key bindings, so it never takes focus."""


class SectionView(Vertical):
    """Widget rendering the selected section as markdown."""

    DEFAULT_CSS = """
    SectionView {
        width: 1fr;
        height: 1fr;
    }

    SectionView > #content-header {
        background: $primary-background;
        color: $success;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    SectionView > VerticalScroll {
        height: 1fr;
    }

    SectionView Markdown {
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._shown: tuple[str, str] | None = None

    def compose(self) -> ComposeResult:
        yield Static("CONTENT", id="content-header")
        with ContentScroll(id="content-scroll"):
            yield Markdown(id="content-markdown", open_links=False)

    @property
    def scroll_view(self) -> VerticalScroll:
        return self.query_one("#content-scroll", VerticalScroll)

    @property
    def markdown_widget(self) -> Markdown:
        return self.query_one("#content-markdown", Markdown)

    @property
    def viewport_height(self) -> int:
        return self.scroll_view.size.height

    async def show_section(self, title: str, text: str, scroll_offset: int = 0) -> None:
        """Display section text, skipping the re-render when it is unchanged."""
        self.query_one("#content-header", Static).update(f"CONTENT - {title}")
        if self._shown != (title, text):
            self._shown = (title, text)
            await self.markdown_widget.update(text)
        self.scroll_view.scroll_to(y=scroll_offset, animate=False)

    def on_markdown_link_clicked(self, event: Markdown.LinkClicked) -> None:
        """Links are followed from link mode, not by clicking."""
        event.prevent_default()
        event.stop()
