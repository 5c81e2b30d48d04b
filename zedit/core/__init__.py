"""Core functionality modules for zedit."""

__all__ = [
    "config",
    "errors",
    "formatter",
    "guard",
    "http_store",
    "mode",
    "preferences",
    "session",
    "store",
    "zpath",
]
