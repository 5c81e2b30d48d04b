"""
Per-path mode memory.

PreferencesService remembers which editor mode was last used for a node path.
It is best-effort: the editing session treats every failure here as "nothing
remembered" (reads) or ignores it (writes).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

from zedit.core.mode import Mode, parse_mode
from zedit.ui.state import UIState, add_recent, load_state, save_state, set_mode

logger = logging.getLogger(__name__)


class PreferencesStore(Protocol):
    async def get_mode_for(self, path: str) -> Optional[Mode]:
        ...

    async def set_mode_for(self, path: str, mode: Mode) -> None:
        ...


@runtime_checkable
class RecentPathsStore(Protocol):
    async def add_recent(self, path: str) -> None:
        ...

    async def recent_paths(self) -> List[str]:
        ...


class PreferencesService:
    """File-backed PreferencesStore (JSON state file in the user state dir)."""

    def __init__(self, state_path: Optional[Path] = None) -> None:
        self.state_path = state_path
        self._lock = asyncio.Lock()

    def _read(self) -> UIState:
        return load_state(self.state_path)

    def _update(self, path: str, mode: Mode) -> None:
        state = load_state(self.state_path)
        set_mode(state, path, mode.value)
        save_state(state, self.state_path)

    def _touch_recent(self, path: str) -> None:
        state = load_state(self.state_path)
        add_recent(state, path)
        save_state(state, self.state_path)

    async def get_mode_for(self, path: str) -> Optional[Mode]:
        state = await asyncio.to_thread(self._read)
        return parse_mode(state.modes.get(path))

    async def set_mode_for(self, path: str, mode: Mode) -> None:
        # Serialize read-modify-write cycles within this process.
        async with self._lock:
            await asyncio.to_thread(self._update, path, mode)

    async def add_recent(self, path: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._touch_recent, path)

    async def recent_paths(self) -> List[str]:
        state = await asyncio.to_thread(self._read)
        return list(state.recent_paths)


class MemoryPreferences:
    """In-process PreferencesStore (tests, --demo)."""

    def __init__(self, modes: Optional[Dict[str, Mode]] = None) -> None:
        self.modes: Dict[str, Mode] = dict(modes or {})
        self.recent: List[str] = []

    async def get_mode_for(self, path: str) -> Optional[Mode]:
        return self.modes.get(path)

    async def set_mode_for(self, path: str, mode: Mode) -> None:
        self.modes[path] = mode

    async def add_recent(self, path: str) -> None:
        self.recent = [p for p in self.recent if p != path]
        self.recent.insert(0, path)

    async def recent_paths(self) -> List[str]:
        return list(self.recent)
