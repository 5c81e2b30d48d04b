"""zedit - editor for node data in ZooKeeper-style tree stores."""

__version__ = "1.0.0"
__description__ = "Edit ZooKeeper-style node data with versioned, conflict-safe saves"

from zedit.cli import app, main

__all__ = ["app", "main", "__version__"]
