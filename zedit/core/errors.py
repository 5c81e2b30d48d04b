"""
Exception types for zedit.

Store errors come from a TreeStore implementation. The editing session wraps
them into LoadError / SaveError so callers can tell *which* operation failed,
while `cause` keeps the original store error for presentation.
"""

from __future__ import annotations

from typing import Optional


class ZeditError(Exception):
    """Base class for all zedit errors."""


# --- Tree store ------------------------------------------------------------


class StoreError(ZeditError):
    """A tree store read or write failed."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class NodeNotFoundError(StoreError):
    def __init__(self, path: str, message: str = "Node does not exist") -> None:
        super().__init__(f"{message}: {path}", path=path)


class VersionConflictError(StoreError):
    """The store's data version no longer matches the version the write was based on."""

    def __init__(
        self,
        path: str,
        *,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ) -> None:
        msg = f"Node was modified by someone else: {path}"
        if expected_version is not None:
            msg += f" (expected version {expected_version}"
            if actual_version is not None:
                msg += f", found {actual_version}"
            msg += ")"
        msg += ". Reload the node before saving again."
        super().__init__(msg, path=path)
        self.expected_version = expected_version
        self.actual_version = actual_version


class PermissionDeniedError(StoreError):
    def __init__(self, path: str, message: str = "Permission denied") -> None:
        super().__init__(f"{message}: {path}", path=path)


class TransportError(StoreError):
    """Network / protocol failure talking to the store."""


# --- Editing session -------------------------------------------------------


class LoadError(ZeditError):
    """Fetching the node failed; the session is unusable until a reload succeeds."""

    def __init__(self, path: Optional[str], cause: Optional[BaseException] = None) -> None:
        reason = str(cause) if cause is not None else "no valid path"
        super().__init__(f"Could not load {path or '<invalid path>'}: {reason}")
        self.path = path
        self.cause = cause


class SaveError(ZeditError):
    """
    Saving failed. Baseline and buffer are left exactly as they were.

    `kind` is one of: "version_conflict", "permission_denied", "transport",
    "not_found", "no_node".
    """

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause

    @property
    def kind(self) -> str:
        c = self.cause
        if isinstance(c, VersionConflictError):
            return "version_conflict"
        if isinstance(c, PermissionDeniedError):
            return "permission_denied"
        if isinstance(c, NodeNotFoundError):
            return "not_found"
        if isinstance(c, StoreError):
            return "transport"
        return "no_node"

    @property
    def is_conflict(self) -> bool:
        return self.kind == "version_conflict"


# --- Formatting ------------------------------------------------------------


class FormatError(ZeditError):
    """Formatting failed; the buffer was not changed."""


class UnsupportedFormatError(FormatError):
    def __init__(self, mode: object) -> None:
        label = getattr(mode, "label", None) or str(mode)
        super().__init__(f"Unsupported mode '{str(label).upper()}'")
        self.mode = mode


class FormatValidationError(FormatError):
    """Content is not valid for the selected mode."""
