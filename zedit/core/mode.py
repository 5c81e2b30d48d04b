"""Editor modes (the text format a node's data is viewed and formatted as)."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Mode(str, Enum):
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"
    XML = "xml"

    @property
    def label(self) -> str:
        return self.value.upper() if self is not Mode.TEXT else "Text"

    @property
    def language(self) -> Optional[str]:
        """TextArea syntax highlighting language (None for plain text)."""
        return None if self is Mode.TEXT else self.value


DEFAULT_MODE = Mode.TEXT


def parse_mode(value: object) -> Optional[Mode]:
    """
    Lenient Mode lookup: accepts a Mode, its value or its name (any case).

    Returns None for anything unrecognized so callers can fall back to a default.
    """
    if isinstance(value, Mode):
        return value
    s = str(value or "").strip().lower()
    if not s:
        return None
    try:
        return Mode(s)
    except ValueError:
        pass
    if s in ("yml",):
        return Mode.YAML
    if s in ("txt", "plain", "plaintext"):
        return Mode.TEXT
    return None
