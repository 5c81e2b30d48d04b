"""Discard confirmation shown over the editor (no screen push)."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Label

_YES = "confirm_yes_btn"
_NO = "confirm_no_btn"


class ConfirmOverlay(Container):
    """Yes/No prompt layered over the screen; hidden until opened.

    The answer is posted as ConfirmOverlay.Result. No is focused on open so an
    accidental enter never discards anything.
    """

    can_focus = True

    class Result(Message):
        bubble = True

        def __init__(self, confirmed: bool) -> None:
            super().__init__()
            self.confirmed = confirmed

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm_dialog"):
            yield Label("", id="confirm_title")
            yield Label("", id="confirm_message")
            with Horizontal(classes="confirm_buttons"):
                yield Button("Yes (y)", id=_YES, variant="warning", classes="confirm_button")
                yield Button("No (n)", id=_NO, variant="primary", classes="confirm_button")

    @property
    def is_open(self) -> bool:
        return self.has_class("open")

    def open(self, *, title: str, message: str) -> None:
        self.query_one("#confirm_title", Label).update(title or "Confirm")
        self.query_one("#confirm_message", Label).update(message)
        self.add_class("open")
        # The buttons can't take focus until the overlay is displayed.
        self.call_after_refresh(self._focus, _NO)

    def close(self) -> None:
        self.remove_class("open")

    def _focus(self, button_id: str) -> None:
        if self.is_open:
            self.query_one(f"#{button_id}", Button).focus()

    def _answer(self, confirmed: bool) -> None:
        self.close()
        self.post_message(self.Result(confirmed))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id in (_YES, _NO):
            event.stop()
            self._answer(event.button.id == _YES)

    def on_key(self, event) -> None:  # type: ignore[override]
        if not self.is_open:
            return
        if event.key in ("tab", "shift+tab", "left", "right"):
            on_yes = getattr(self.app.focused, "id", None) == _YES
            self._focus(_NO if on_yes else _YES)
        elif event.key == "escape" or (event.character or "").lower() == "n":
            self._answer(False)
        elif (event.character or "").lower() == "y":
            self._answer(True)
        else:
            return
        event.stop()
