"""Debug event logging for the TUI.

Events are kept in memory (bounded) and, when ZEDIT_TUI_DEBUG_FILE is set,
streamed as NDJSON so a session can be replayed/inspected afterwards.
"""

import json
import os
import threading
import time
from typing import Optional, TextIO


class DebugLogger:
    """Thread-safe debug event logger with optional file streaming.

    Enabled by ZEDIT_TUI_DEBUG. Never raises: a broken debug sink must not take
    the editor down with it.
    """

    MAX_EVENTS = 500

    def __init__(self, app) -> None:
        # app.session.path stamps each event
        self.app = app
        self._events: list[dict[str, object]] = []
        self._sink_path: Optional[str] = None
        self._sink: Optional[TextIO] = None
        self._sink_lock = threading.Lock()

    @staticmethod
    def enabled() -> bool:
        v = (os.getenv("ZEDIT_TUI_DEBUG") or "").strip().lower()
        return v in {"1", "true", "yes", "y", "on"}

    def log(self, *, event: str, data: Optional[dict[str, object]] = None) -> None:
        """Record a debug event (no-op unless ZEDIT_TUI_DEBUG is set)."""
        if not self.enabled():
            return
        session = getattr(self.app, "session", None)
        payload: dict[str, object] = {
            "t": float(time.time()),
            "event": str(event),
            "path": str(getattr(session, "path", "") or ""),
            "data": data or {},
        }
        self._events.append(payload)
        # Prevent unbounded growth during long sessions/tests.
        if len(self._events) > self.MAX_EVENTS:
            self._events = self._events[-(self.MAX_EVENTS // 2):]

        debug_file_path = os.getenv("ZEDIT_TUI_DEBUG_FILE")
        if not debug_file_path:
            return
        with self._sink_lock:
            try:
                if self._sink is None or self._sink_path != debug_file_path:
                    self._close_locked()
                    self._sink_path = debug_file_path
                    # Line-buffered append.
                    self._sink = open(debug_file_path, "a", encoding="utf-8", buffering=1)
                line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
                self._sink.write(line + "\n")
                self._sink.flush()
            except OSError:
                self._close_locked()

    def _close_locked(self) -> None:
        try:
            if self._sink is not None:
                self._sink.close()
        except OSError:
            pass
        finally:
            self._sink = None
            self._sink_path = None

    def close_debug_file(self) -> None:
        """Flush/close the debug file handle (if open)."""
        with self._sink_lock:
            self._close_locked()

    @property
    def debug_events(self) -> list[dict[str, object]]:
        return list(self._events)


__all__ = ["DebugLogger"]
