"""Outline and history action handlers for MdnavApp."""

from __future__ import annotations

from ..modes import AppMode
from ..navigation import page_step
from ..widgets import Outline, SectionView


class NavigationActionsMixin:
    """Mixin providing outline movement, folding, filtering and history."""

    async def action_cursor_down(self) -> None:
        """Next heading, or next link in link mode."""
        if self.navigator.mode is AppMode.LINK_FOLLOW:
            self.navigator.cycle_link(1)
        else:
            self.navigator.move(1)
        await self._refresh_view()

    async def action_cursor_up(self) -> None:
        """Previous heading, or previous link in link mode."""
        if self.navigator.mode is AppMode.LINK_FOLLOW:
            self.navigator.cycle_link(-1)
        else:
            self.navigator.move(-1)
        await self._refresh_view()

    async def action_first_heading(self) -> None:
        if self.navigator.mode is AppMode.NORMAL:
            self.navigator.engine.select_first()
            await self._refresh_view()

    async def action_activate(self) -> None:
        """Enter: follow the link in link mode, otherwise fold the heading."""
        if self.navigator.mode is AppMode.LINK_FOLLOW:
            self._report(self.navigator.follow_link())
        else:
            self._report(self.navigator.toggle_collapse())
        await self._refresh_view()

    async def action_expand_all(self) -> None:
        self._report(self.navigator.expand_all())
        await self._refresh_view()

    async def action_collapse_all(self) -> None:
        self._report(self.navigator.collapse_all())
        await self._refresh_view()

    async def action_parent(self) -> None:
        self._report(self.navigator.jump_to_parent())
        await self._refresh_view()

    async def action_go_back(self) -> None:
        self._report(self.navigator.go_back())
        await self._refresh_view()

    async def action_go_forward(self) -> None:
        self._report(self.navigator.go_forward())
        await self._refresh_view()

    async def _scroll(self, pages: float) -> None:
        engine = self.navigator.engine
        height = self.query_one("#content", SectionView).viewport_height
        engine.viewport_height = height
        self.navigator.scroll(page_step(height, pages))
        await self._refresh_view()

    async def action_scroll_down(self) -> None:
        await self._scroll(0.5)

    async def action_scroll_up(self) -> None:
        await self._scroll(-0.5)

    async def action_escape(self) -> None:
        """Leave link mode, or clear the filter in normal mode."""
        navigator = self.navigator
        if navigator.mode is AppMode.NORMAL:
            if navigator.engine.filter_query:
                self._report(navigator.clear_filter())
        else:
            navigator.cancel()
        await self._refresh_view()

    def action_search(self) -> None:
        """Enter search mode."""
        navigator = self.navigator
        self._report(navigator.enter_search())
        if navigator.mode is AppMode.SEARCH:
            outline = self.query_one("#outline", Outline)
            outline.enter_search_mode(navigator.engine.filter_query or "")

    async def on_outline_search_changed(self, event: Outline.SearchChanged) -> None:
        self.navigator.update_search(event.query)
        await self._refresh_view()

    async def on_outline_search_submitted(self, event: Outline.SearchSubmitted) -> None:
        navigator = self.navigator
        navigator.update_search(event.query)
        self._report(navigator.commit_search())
        self.query_one("#outline", Outline).exit_search_mode()
        await self._refresh_view()

    async def on_outline_search_cancelled(self, event: Outline.SearchCancelled) -> None:
        self.navigator.cancel()
        self.query_one("#outline", Outline).exit_search_mode()
        await self._refresh_view()

    async def on_outline_heading_clicked(self, event: Outline.HeadingClicked) -> None:
        self.navigator.select_heading(event.identity)
        await self._refresh_view()
