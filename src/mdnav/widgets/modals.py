"""Modal screens: key help and theme picker."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option

HELP_SECTIONS = [
    (
        "Outline",
        [
            ("j / ↓", "Next heading"),
            ("k / ↑", "Previous heading"),
            ("g", "First heading"),
            ("Enter / Space", "Collapse or expand"),
            ("E / C", "Expand all / collapse all"),
            ("p", "Jump to parent heading"),
            ("/", "Filter headings"),
            ("Esc", "Clear filter"),
        ],
    ),
    (
        "Content",
        [
            ("ctrl+d / ctrl+u", "Scroll down / up"),
            ("f", "Link mode: follow a link in this section"),
            ("b / F", "Back / forward"),
            ("e", "Edit file in $EDITOR"),
            ("r", "Reload file"),
            ("y", "Copy section"),
            ("Y", "Copy anchor link"),
        ],
    ),
    (
        "Link mode",
        [
            ("Tab / j", "Next link"),
            ("shift+Tab / k", "Previous link"),
            ("1-9", "Select link by number"),
            ("Enter", "Follow link"),
            ("p", "Parent section's links"),
            ("Esc", "Leave link mode"),
        ],
    ),
    (
        "General",
        [
            ("t", "Theme picker"),
            ("?", "This help"),
            ("q", "Quit"),
        ],
    ),
]


def help_text() -> str:
    lines = []
    for title, keys in HELP_SECTIONS:
        lines.append(title.upper())
        for key, description in keys:
            lines.append(f"  {key:<18}{description}")
        lines.append("")
    return "\n".join(lines).rstrip()


class HelpScreen(ModalScreen[None]):
    """Modal screen listing the key bindings."""

    BINDINGS = [
        Binding("escape", "close", "Close", show=False),
        Binding("question_mark", "close", "Close", show=False),
        Binding("q", "close", "Close", show=False),
    ]

    CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-container {
        width: 64;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    #help-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #help-scroll {
        height: auto;
        max-height: 30;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="help-container"):
            yield Static("KEYS", id="help-title")
            with VerticalScroll(id="help-scroll"):
                yield Static(help_text(), markup=False)

    def action_close(self) -> None:
        self.dismiss(None)


class ThemePickerScreen(ModalScreen[str | None]):
    """Modal screen for choosing a theme; dismisses with the name or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    CSS = """
    ThemePickerScreen {
        align: center middle;
    }

    #theme-container {
        width: 40;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    #theme-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #theme-list {
        height: auto;
        max-height: 20;
    }
    """

    class ThemeHighlighted(Message):
        """Message emitted when the cursor moves to a theme."""

        def __init__(self, theme: str) -> None:
            super().__init__()
            self.theme = theme

    def __init__(self, themes: list[str], current: str | None) -> None:
        super().__init__()
        self.themes = themes
        self.current = current

    def compose(self) -> ComposeResult:
        with Vertical(id="theme-container"):
            yield Static("THEME", id="theme-title")
            yield OptionList(*[Option(name, id=name) for name in self.themes], id="theme-list")

    def on_mount(self) -> None:
        option_list = self.query_one("#theme-list", OptionList)
        if self.current in self.themes:
            option_list.highlighted = self.themes.index(self.current)
        option_list.focus()

    def on_option_list_option_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        if event.option.id is not None:
            self.post_message(self.ThemeHighlighted(event.option.id))

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)
