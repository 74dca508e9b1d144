"""Link mode action handlers for MdnavApp."""

from __future__ import annotations

from ..modes import AppMode


class LinkActionsMixin:
    """Mixin providing link mode: entering it, cycling and following links."""

    async def action_link_mode(self) -> None:
        self._report(self.navigator.enter_link_mode())
        await self._refresh_view()

    async def action_next_link(self) -> None:
        if self.navigator.mode is AppMode.LINK_FOLLOW:
            self.navigator.cycle_link(1)
            await self._refresh_view()

    async def action_previous_link(self) -> None:
        if self.navigator.mode is AppMode.LINK_FOLLOW:
            self.navigator.cycle_link(-1)
            await self._refresh_view()

    async def action_pick_link(self, index: int) -> None:
        """Select a link by its number and follow it."""
        navigator = self.navigator
        if navigator.mode is not AppMode.LINK_FOLLOW:
            return
        status = navigator.select_link(index)
        if status.kind == "success":
            status = navigator.follow_link()
        self._report(status)
        await self._refresh_view()
