"""File, clipboard and screen action handlers for MdnavApp."""

from __future__ import annotations

from pathlib import Path

from ..modes import AppMode
from ..widgets import HelpScreen, ThemePickerScreen


class FileActionsMixin:
    """Mixin providing edit, reload, copy, theme picker and help."""

    async def action_edit(self) -> None:
        """Edit the current file; the TUI is suspended while the editor runs."""
        self._report(self.navigator.edit(self.suspend))
        await self._refresh_view()

    async def action_reload(self) -> None:
        self._report(self.navigator.reload())
        await self._refresh_view()

    def action_copy_section(self) -> None:
        self._report(self.navigator.copy_section())

    def action_copy_anchor(self) -> None:
        self._report(self.navigator.copy_anchor_link())

    def _on_file_change(self, path: Path) -> None:
        """Handle a change to the open file (called from watcher thread)."""
        self.call_from_thread(self._handle_file_change, path)

    async def _handle_file_change(self, path: Path) -> None:
        if path != self.navigator.engine.path:
            return
        status = self.navigator.reload()
        if status.ok:
            self.notify(f"{path.name} changed on disk, reloaded", timeout=2)
        else:
            self._report(status)
        await self._refresh_view()

    def action_theme(self) -> None:
        navigator = self.navigator
        self._report(navigator.open_theme_picker())
        if navigator.mode is AppMode.THEME_PICKER:
            self.push_screen(
                ThemePickerScreen(navigator.themes, navigator.theme),
                self._on_theme_dismissed,
            )

    def on_theme_picker_screen_theme_highlighted(
        self, event: ThemePickerScreen.ThemeHighlighted
    ) -> None:
        """Preview the highlighted theme."""
        if self.navigator.highlight_theme(event.theme).kind == "success":
            self.theme = event.theme

    def _on_theme_dismissed(self, result: str | None) -> None:
        navigator = self.navigator
        if result is None:
            navigator.cancel()
        else:
            self._report(navigator.pick_theme(result))
        if navigator.theme:
            self.theme = navigator.theme

    def action_help(self) -> None:
        self._report(self.navigator.show_help())
        if self.navigator.mode is AppMode.HELP:
            self.push_screen(HelpScreen(), self._on_help_dismissed)

    def _on_help_dismissed(self, result: None) -> None:
        self.navigator.cancel()
