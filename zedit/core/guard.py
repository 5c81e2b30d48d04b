"""Navigation guard: stop the user from silently losing unsaved edits."""

from __future__ import annotations

from typing import Protocol

from zedit.core.session import EditSession


class UserInteraction(Protocol):
    """What the session layer may ask of the UI."""

    async def confirm_discard(self) -> bool:
        """Ask whether unsaved changes may be discarded."""
        ...

    def notify(self, message: str) -> None:
        ...

    def report_error(self, error: BaseException) -> None:
        ...


class NavigationGuard:
    def __init__(self, interaction: UserInteraction) -> None:
        self.interaction = interaction

    async def can_leave(self, session: EditSession) -> bool:
        # Clean sessions never prompt. Otherwise the user's answer is final.
        if not session.is_dirty():
            return True
        return await self.interaction.confirm_discard()
