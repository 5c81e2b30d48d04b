"""
Node-data editing session.

One EditSession backs one open node view. It owns the editable buffer and
keeps the last known-persisted node (the baseline) to compare against and to
take the data version from when saving.

State:
  node      baseline ZNode, or None when nothing usable is loaded
  buffer    editable text
  mode      editor mode (remembered per path, else the default)

`is_dirty()` and `is_format_available()` are computed from that state on every
call; there are no separately maintained flags.

Concurrency: every await point is a store / preferences call. Mode recall runs
as its own task next to the node fetch, and it only applies if the user hasn't
picked a mode by the time it resolves. Saves are serialized per session.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set, Union

from zedit.core.errors import LoadError, SaveError, StoreError, VersionConflictError
from zedit.core.formatter import FormatterRegistry, default_registry
from zedit.core.mode import DEFAULT_MODE, Mode
from zedit.core.preferences import PreferencesStore
from zedit.core.store import TreeStore
from zedit.core.zpath import ZPath, parse
from zedit.model import ZNode

logger = logging.getLogger(__name__)

SessionListener = Callable[[str], None]


class EditSession:
    def __init__(
        self,
        store: TreeStore,
        *,
        preferences: Optional[PreferencesStore] = None,
        formatters: Optional[FormatterRegistry] = None,
        default_mode: Mode = DEFAULT_MODE,
    ) -> None:
        self.store = store
        self.preferences = preferences
        self.formatters = formatters if formatters is not None else default_registry()
        self.default_mode = default_mode

        self.zpath: Optional[ZPath] = None
        self.node: Optional[ZNode] = None
        self.buffer: str = ""
        self.mode: Mode = default_mode
        self.load_error: Optional[LoadError] = None

        # Events: "loaded", "mode", "saved", "buffer".
        self.listener: Optional[SessionListener] = None

        self._mode_chosen = False
        # Bumped on every load(); async results from an older load are dropped.
        self._generation = 0
        self._save_lock = asyncio.Lock()
        self._tasks: Set["asyncio.Task[Any]"] = set()

    # --- derived state -----------------------------------------------------

    @property
    def path(self) -> Optional[str]:
        return self.zpath.path if self.zpath is not None else None

    def is_dirty(self) -> bool:
        if self.node is None:
            return False
        return self.buffer != self.node.data

    def is_format_available(self) -> bool:
        return self.formatters.get_formatter(self.mode) is not None

    @property
    def can_save(self) -> bool:
        return self.node is not None and self.path is not None

    @property
    def is_saving(self) -> bool:
        return self._save_lock.locked()

    # --- loading -----------------------------------------------------------

    async def load(self, path: Union[str, ZPath, None], *, keep_mode: bool = False) -> ZNode:
        """
        Fetch the node at `path` and make it the baseline.

        On failure the session is left empty (no baseline, empty buffer) and
        LoadError is raised. With keep_mode=True (reload) the current mode is
        kept and no recall is started.
        """
        zp = path if isinstance(path, ZPath) else parse(path)
        self._generation += 1
        gen = self._generation

        self.zpath = zp
        self.node = None
        self.buffer = ""
        self.load_error = None
        if not keep_mode:
            self._mode_chosen = False
            self.mode = self.default_mode

        if zp.path is None:
            self.load_error = LoadError(zp.raw, ValueError(zp.error or "invalid path"))
            logger.warning("Refusing to load invalid path %r: %s", zp.raw, zp.error)
            if not keep_mode:
                # No recall will run to announce the reset.
                self._emit("mode")
            self._emit("loaded")
            raise self.load_error

        if not keep_mode:
            self._spawn(self._recall_mode(zp.path, gen))

        try:
            node = await self.store.get(zp.path)
        except StoreError as e:
            err = LoadError(zp.path, e)
            if gen == self._generation:
                self.load_error = err
                self._emit("loaded")
            logger.warning("Loading %s failed: %s", zp.path, e)
            raise err from e

        if gen == self._generation:
            self.node = node
            self.buffer = node.data
            self._emit("loaded")
        return node

    async def reload(self) -> ZNode:
        """Re-fetch the current path (e.g. after a version conflict), keeping the mode."""
        return await self.load(self.zpath, keep_mode=True)

    async def _recall_mode(self, path: str, gen: int) -> None:
        mode: Optional[Mode] = None
        if self.preferences is not None:
            try:
                mode = await self.preferences.get_mode_for(path)
            except Exception as e:
                logger.warning("Could not recall mode for %s: %s", path, e)
                mode = None

        if gen != self._generation or self._mode_chosen:
            return
        self.mode = mode or self.default_mode
        self._emit("mode")

    # --- editing -----------------------------------------------------------

    def set_buffer(self, text: str) -> None:
        self.buffer = text

    def switch_mode(self, mode: Mode) -> None:
        """Select `mode` and remember it for this path (fire-and-forget)."""
        self.mode = mode
        self._mode_chosen = True
        self._emit("mode")

        path = self.path
        if path is None or self.preferences is None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No running event loop; the in-memory choice still stands.
            logger.debug("No event loop; not persisting mode for %s", path)
            return
        self._spawn(self._remember_mode(path, mode))

    async def _remember_mode(self, path: str, mode: Mode) -> None:
        assert self.preferences is not None
        try:
            await self.preferences.set_mode_for(path, mode)
        except Exception as e:
            logger.warning("Could not remember mode %s for %s: %s", mode.value, path, e)

    def format_buffer(self) -> str:
        """
        Replace the buffer with its canonical rendering for the current mode.

        Raises UnsupportedFormatError / FormatValidationError and leaves the
        buffer untouched on failure.
        """
        formatted = self.formatters.format(self.mode, self.buffer)
        self.buffer = formatted
        self._emit("buffer")
        return formatted

    # --- saving ------------------------------------------------------------

    async def save(self, expected_version: Optional[int] = None, content: Optional[str] = None) -> ZNode:
        """
        Write `content` (default: the buffer) using the baseline's current version.

        A save requested while another is in flight waits for it and then uses
        the version that save produced. `expected_version`, if given, must
        match the baseline's version or the save fails as a conflict without
        touching the store.

        On success the baseline is replaced and returned. On failure SaveError
        is raised and neither baseline nor buffer changes.
        """
        async with self._save_lock:
            node = self.node
            path = self.path
            if node is None or path is None:
                raise SaveError("No node is loaded; nothing to save")

            version = node.meta.data_version
            if expected_version is not None and expected_version != version:
                conflict = VersionConflictError(
                    path, expected_version=expected_version, actual_version=version
                )
                raise SaveError(str(conflict), cause=conflict)

            new_data = self.buffer if content is None else content
            gen = self._generation
            try:
                new_meta = await self.store.set_data(path, version, new_data)
            except StoreError as e:
                logger.warning("Saving %s at version %d failed: %s", path, version, e)
                raise SaveError(str(e), cause=e) from e

            new_node = ZNode(
                path=node.path,
                data=new_data,
                meta=new_meta,
                acl=node.acl,
                children=node.children,
            )
            if gen == self._generation:
                self.node = new_node
                self._emit("saved")
            logger.info("Saved %s (version %d -> %d)", path, version, new_meta.data_version)
            return new_node

    # --- housekeeping --------------------------------------------------------

    def _emit(self, event: str) -> None:
        if self.listener is None:
            return
        try:
            self.listener(event)
        except Exception:
            logger.exception("Session listener failed on %r", event)

    def _spawn(self, coro: Awaitable[None]) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(coro)  # type: ignore[arg-type]
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def settle(self) -> None:
        """Wait for background work (mode recall / persistence) to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
