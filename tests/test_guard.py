from __future__ import annotations

import asyncio

from zedit.core.guard import NavigationGuard
from zedit.core.session import EditSession
from zedit.core.store import InMemoryTreeStore


class ScriptedInteraction:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.prompts = 0
        self.messages: list[str] = []
        self.errors: list[BaseException] = []

    async def confirm_discard(self) -> bool:
        self.prompts += 1
        return self.answer

    def notify(self, message: str) -> None:
        self.messages.append(message)

    def report_error(self, error: BaseException) -> None:
        self.errors.append(error)


async def _loaded_session() -> EditSession:
    s = EditSession(InMemoryTreeStore({"/config": "{}"}))
    await s.load("/config")
    return s


def test_clean_session_leaves_without_prompt():
    async def _run() -> None:
        ui = ScriptedInteraction(answer=False)
        s = await _loaded_session()
        assert await NavigationGuard(ui).can_leave(s) is True
        assert ui.prompts == 0

    asyncio.run(_run())


def test_session_without_node_leaves_without_prompt():
    async def _run() -> None:
        ui = ScriptedInteraction(answer=False)
        s = EditSession(InMemoryTreeStore())
        s.set_buffer("typed before anything loaded")
        assert await NavigationGuard(ui).can_leave(s) is True
        assert ui.prompts == 0

    asyncio.run(_run())


def test_dirty_session_confirmed_discard_allows_leaving():
    async def _run() -> None:
        ui = ScriptedInteraction(answer=True)
        s = await _loaded_session()
        s.set_buffer('{"a": 1}')
        assert await NavigationGuard(ui).can_leave(s) is True
        assert ui.prompts == 1

    asyncio.run(_run())


def test_dirty_session_declined_discard_blocks_and_keeps_session():
    async def _run() -> None:
        ui = ScriptedInteraction(answer=False)
        s = await _loaded_session()
        s.set_buffer('{"a": 1}')
        node_before = s.node

        assert await NavigationGuard(ui).can_leave(s) is False
        assert ui.prompts == 1
        assert s.buffer == '{"a": 1}'
        assert s.node is node_before
        assert s.is_dirty()

    asyncio.run(_run())
