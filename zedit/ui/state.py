"""
Persistent editor state: remembered mode per node path and recently opened nodes.

Stored as a small JSON document in the per-user state dir. A missing, corrupt or
foreign file reads as an empty state; it is rewritten on the next change.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional


STATE_VERSION = 1
RECENT_LIMIT = 20


def user_state_dir(app_name: str = "zedit") -> Path:
    """
    Per-user directory for zedit's config and state files.

    macOS uses Application Support, Windows %APPDATA% when set, everything else
    $XDG_CONFIG_HOME (falling back to ~/.config).
    """
    platform = sys.platform.lower()
    if platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    if platform.startswith("win"):
        base = os.environ.get("APPDATA")
        return Path(base) / app_name if base else Path.home() / app_name
    config_home = os.environ.get("XDG_CONFIG_HOME")
    return (Path(config_home) if config_home else Path.home() / ".config") / app_name


def default_state_path() -> Path:
    return user_state_dir("zedit") / "state.json"


@dataclass
class UIState:
    version: int = STATE_VERSION
    # node path -> mode value ("json", "yaml", ...)
    modes: Dict[str, str] = field(default_factory=dict)
    # most recent first
    recent_paths: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "modes": dict(sorted(self.modes.items())),
            "recent_paths": list(self.recent_paths),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "UIState":
        raw_modes = d.get("modes")
        modes: Dict[str, str] = {}
        if isinstance(raw_modes, Mapping):
            modes = {str(k): str(v) for k, v in raw_modes.items() if k and v}
        raw_recent = d.get("recent_paths")
        recent = [str(p) for p in raw_recent if p] if isinstance(raw_recent, list) else []
        try:
            version = int(d.get("version") or STATE_VERSION)
        except (TypeError, ValueError):
            version = STATE_VERSION
        return cls(version=version, modes=modes, recent_paths=recent)


def _state_file(path: Optional[Path]) -> Path:
    return default_state_path() if path is None else Path(path)


def load_state(path: Optional[Path] = None) -> UIState:
    p = _state_file(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return UIState()
    return UIState.from_dict(data) if isinstance(data, dict) else UIState()


def save_state(state: UIState, path: Optional[Path] = None) -> None:
    """Write atomically: readers never see a half-written file."""
    p = _state_file(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    staging = p.with_name(f"{p.name}.tmp")
    payload = json.dumps(state.to_dict(), ensure_ascii=False, indent=2)
    staging.write_text(payload + "\n", encoding="utf-8")
    staging.replace(p)


def add_recent(state: UIState, node_path: str, *, limit: int = RECENT_LIMIT) -> UIState:
    recent = [node_path] + [p for p in state.recent_paths if p != node_path]
    state.recent_paths = recent[:limit] if limit > 0 else recent
    return state


def set_mode(state: UIState, node_path: str, mode: str) -> UIState:
    state.modes[node_path] = mode
    return state
