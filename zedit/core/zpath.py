"""
ZooKeeper-style path parsing.

parse() never raises: anything that can't be made into a valid node path
comes back as a ZPath with `path=None` (the "no path" state), which callers
treat as "nothing to save to".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


ROOT_PATH = "/"

_RESERVED_SEGMENTS = frozenset([".", ".."])


def _invalid_char(ch: str) -> bool:
    # ZooKeeper rejects null, control chars and a few unicode ranges in paths.
    cp = ord(ch)
    return (
        cp == 0
        or 0x0001 <= cp <= 0x001F
        or 0x007F <= cp <= 0x009F
        or 0xD800 <= cp <= 0xF8FF
        or 0xFFF0 <= cp <= 0xFFFF
    )


@dataclass(frozen=True)
class ZPath:
    raw: str
    segments: Tuple[str, ...] = ()
    error: Optional[str] = None
    path: Optional[str] = field(default=None)

    @property
    def is_valid(self) -> bool:
        return self.path is not None

    @property
    def is_root(self) -> bool:
        return self.path == ROOT_PATH

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ""

    @property
    def parent(self) -> Optional["ZPath"]:
        if not self.is_valid or self.is_root:
            return None
        return _from_segments(self.segments[:-1])

    def child(self, name: str) -> "ZPath":
        if not self.is_valid:
            return self
        return parse("/".join(self.segments + (name,)))


def _from_segments(segments: Tuple[str, ...]) -> ZPath:
    path = ROOT_PATH + "/".join(segments)
    return ZPath(raw=path, segments=segments, path=path)


def parse(raw: Optional[str]) -> ZPath:
    """
    Parse a raw navigation token into a canonical path.

    - None / empty / whitespace -> root
    - repeated and trailing slashes are collapsed ("a//b/" -> "/a/b")
    - a missing leading slash is added
    - "." / ".." segments and control characters make the path invalid
    """
    s = "" if raw is None else str(raw).strip()
    if not s:
        return _from_segments(())

    segments: List[str] = [seg for seg in s.split("/") if seg]
    for seg in segments:
        if seg in _RESERVED_SEGMENTS:
            return ZPath(raw=s, error=f"Relative path segment '{seg}' is not allowed")
        bad = next((ch for ch in seg if _invalid_char(ch)), None)
        if bad is not None:
            return ZPath(raw=s, error=f"Invalid character U+{ord(bad):04X} in path")
    return _from_segments(tuple(segments))


def resolve(raw: Optional[str]) -> Optional[str]:
    """Canonical path string for `raw`, or None if it's invalid."""
    return parse(raw).path
