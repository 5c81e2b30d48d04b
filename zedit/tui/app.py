"""
zedit full-screen node editor (Textual).

The app is a thin shell around EditSession: widgets mirror session state and
user actions call into the session. Anything that awaits the store (load,
save, guarded navigation) runs in a worker so the UI keeps processing input,
including the answer to a discard confirmation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input, Select, Static, TextArea

from zedit.core.config import ZeditConfig
from zedit.core.errors import FormatError, LoadError, SaveError
from zedit.core.formatter import FormatterRegistry
from zedit.core.guard import NavigationGuard
from zedit.core.mode import Mode
from zedit.core.preferences import PreferencesStore, RecentPathsStore
from zedit.core.session import EditSession
from zedit.core.store import TreeStore
from zedit.core.zpath import ROOT_PATH
from zedit.tui.debug import DebugLogger
from zedit.tui.overlays import ConfirmOverlay

logger = logging.getLogger(__name__)


class ZeditApp(App):
    """Edit one node at a time; ctrl+s saves with the node's current version."""

    CSS_PATH = "theme.tcss"
    TITLE = "zedit"

    BINDINGS = [
        # priority=True: TextArea binds several ctrl keys itself.
        Binding("ctrl+s", "save", "Save", priority=True),
        Binding("ctrl+f", "format", "Format", priority=True),
        Binding("ctrl+w", "toggle_wrap", "Wrap", priority=True),
        Binding("ctrl+r", "reload", "Reload", priority=True),
        Binding("ctrl+g", "focus_path", "Go to", priority=True),
        Binding("ctrl+q", "request_quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        store: TreeStore,
        *,
        path: str = ROOT_PATH,
        preferences: Optional[PreferencesStore] = None,
        formatters: Optional[FormatterRegistry] = None,
        config: Optional[ZeditConfig] = None,
    ) -> None:
        super().__init__()
        self.config = config or ZeditConfig()
        self.session = EditSession(
            store,
            preferences=preferences,
            formatters=formatters,
            default_mode=self.config.default_mode,
        )
        self.preferences = preferences
        self.session.listener = self._on_session_event
        self.guard = NavigationGuard(self)
        self._debug_logger = DebugLogger(self)
        self.initial_path = path
        self._pending_confirm: Optional[asyncio.Future[bool]] = None

    # --- layout ------------------------------------------------------------

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="path_bar"):
            yield Static("Path", classes="label")
            yield Input(value=self.initial_path, placeholder="/", id="path_input")
            yield Select(
                [(m.label, m) for m in Mode],
                value=self.session.mode,
                allow_blank=False,
                id="mode_select",
            )
        yield TextArea(
            "",
            id="editor",
            soft_wrap=self.config.wrap,
            show_line_numbers=True,
            read_only=True,
        )
        yield Static("", id="children")
        yield Static("", id="status")
        yield ConfirmOverlay(id="confirm_overlay")
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(self._load(self.initial_path), group="load", exclusive=True)

    @property
    def editor(self) -> TextArea:
        return self.query_one("#editor", TextArea)

    # --- UserInteraction ---------------------------------------------------

    async def confirm_discard(self) -> bool:
        if self._pending_confirm is not None and not self._pending_confirm.done():
            # One prompt at a time; the open one keeps its waiter.
            self.notify("Answer the open prompt first", severity="warning")
            self._debug_logger.log(event="confirm_discard.busy")
            return False
        fut: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._pending_confirm = fut
        self.query_one("#confirm_overlay", ConfirmOverlay).open(
            title="Discard changes?",
            message="This node has unsaved changes. Discard them?",
        )
        self._debug_logger.log(event="confirm_discard.open")
        return await fut

    def report_error(self, error: BaseException) -> None:
        self._debug_logger.log(event="error", data={"type": type(error).__name__, "message": str(error)})
        self.notify(escape(str(error)), title="Error", severity="error", timeout=8)

    def on_confirm_overlay_result(self, message: ConfirmOverlay.Result) -> None:
        fut, self._pending_confirm = self._pending_confirm, None
        self._debug_logger.log(event="confirm_discard.result", data={"confirmed": message.confirmed})
        if fut is not None and not fut.done():
            fut.set_result(message.confirmed)

    # --- session -> widgets -------------------------------------------------

    def _on_session_event(self, event: str) -> None:
        self._debug_logger.log(event=f"session.{event}")
        if not self.is_running:
            return
        if event in ("loaded", "buffer"):
            self._sync_editor()
        if event == "mode":
            self._sync_mode()
        self._refresh_status()

    def _sync_editor(self) -> None:
        editor = self.editor
        if editor.text != self.session.buffer:
            editor.load_text(self.session.buffer)
        # No baseline -> nothing to edit.
        editor.read_only = self.session.node is None

        children = self.query_one("#children", Static)
        node = self.session.node
        if node is not None and node.children:
            children.update(Text("Children: " + "  ".join(node.children)))
        else:
            children.update("")

        path_input = self.query_one("#path_input", Input)
        if self.session.path is not None and path_input.value != self.session.path:
            path_input.value = self.session.path

    def _sync_mode(self) -> None:
        mode = self.session.mode
        select = self.query_one("#mode_select", Select)
        if select.value != mode:
            select.value = mode
        editor = self.editor
        language = mode.language
        editor.language = language if language in editor.available_languages else None

    def status_line(self) -> str:
        s = self.session
        parts: list[str] = []
        if s.node is not None:
            parts.append(s.node.path)
            parts.append(f"v{s.node.meta.data_version}")
            parts.append("● modified" if s.is_dirty() else "saved")
        elif s.load_error is not None:
            parts.append(f"[load failed] {s.load_error}")
        else:
            parts.append("loading…")
        parts.append(s.mode.label)
        if not s.is_format_available():
            parts.append("(no formatter)")
        if s.is_saving:
            parts.append("saving…")
        return "  ·  ".join(parts)

    def _refresh_status(self) -> None:
        self.query_one("#status", Static).update(Text(self.status_line()))
        self.sub_title = self.session.path or ""

    # --- widgets -> session -------------------------------------------------

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.session.node is None:
            return
        self.session.set_buffer(event.text_area.text)
        self._refresh_status()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "mode_select":
            return
        value = event.value
        if isinstance(value, Mode) and value != self.session.mode:
            self.session.switch_mode(value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "path_input":
            return
        self.run_worker(self.navigate(event.value), group="load", exclusive=False)

    # --- flows ----------------------------------------------------------------

    async def _load(self, raw: Optional[str], *, reload: bool = False) -> None:
        try:
            if reload:
                await self.session.reload()
            else:
                await self.session.load(raw)
        except LoadError as e:
            self.report_error(e)
        else:
            await self._remember_visit()
        self._refresh_status()

    async def _remember_visit(self) -> None:
        prefs = self.preferences
        path = self.session.path
        if path is None or not isinstance(prefs, RecentPathsStore):
            return
        try:
            await prefs.add_recent(path)
        except Exception as e:
            logger.warning("Could not record recent path %s: %s", path, e)

    async def navigate(self, raw: str) -> bool:
        """Load another path, asking first if that would drop unsaved edits."""
        if not await self.guard.can_leave(self.session):
            self.notify("Navigation cancelled", severity="warning")
            if self.session.path is not None:
                self.query_one("#path_input", Input).value = self.session.path
            return False
        await self._load(raw)
        return True

    async def _save(self) -> None:
        try:
            await self.session.save()
        except SaveError as e:
            if e.is_conflict:
                self.notify(
                    f"{escape(str(e))}\nPress ctrl+r to reload (your edits will be discarded).",
                    title="Version conflict",
                    severity="error",
                    timeout=10,
                )
            else:
                self.report_error(e)
        else:
            self.notify("Changes saved")
        self._refresh_status()

    async def _leave(self) -> None:
        if await self.guard.can_leave(self.session):
            self._debug_logger.close_debug_file()
            await self._close_store()
            self.exit()

    async def _close_store(self) -> None:
        close = getattr(self.session.store, "close", None)
        if close is None:
            return
        try:
            await close()
        except Exception as e:
            logger.warning("Closing the store failed: %s", e)

    async def on_unmount(self) -> None:
        await self._close_store()

    async def _reload_guarded(self) -> None:
        if await self.guard.can_leave(self.session):
            await self._load(None, reload=True)

    # --- actions ------------------------------------------------------------

    def action_save(self) -> None:
        if not self.session.can_save:
            self.notify("Nothing to save: no node is loaded", severity="warning")
            return
        self.run_worker(self._save(), group="save")
        self._refresh_status()

    def action_format(self) -> None:
        if not self.session.is_format_available():
            self.notify(f"No formatter for {self.session.mode.label}", severity="warning")
            return
        try:
            self.session.format_buffer()
        except FormatError as e:
            self.notify(f"Error: {escape(str(e))}", severity="error")

    def action_toggle_wrap(self) -> None:
        editor = self.editor
        editor.soft_wrap = not editor.soft_wrap

    def action_reload(self) -> None:
        self.run_worker(self._reload_guarded(), group="load")

    def action_focus_path(self) -> None:
        self.query_one("#path_input", Input).focus()

    def action_request_quit(self) -> None:
        self.run_worker(self._leave(), group="quit", exclusive=True)
