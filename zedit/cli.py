#!/usr/bin/env python3
"""
zedit - ZooKeeper-style node data editor
Main CLI entry point
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

# Import command modules
from zedit.commands import config_cmd, node_cmd, tui_cmd

app = typer.Typer(
    name="zedit",
    help="View and edit node data in a ZooKeeper-style tree store",
    no_args_is_help=True,
    add_completion=True,
)

# Node commands are registered directly (not as a sub-app)
app.command(name="get", help="Print a node's data")(node_cmd.get)
app.command(name="set", help="Write a node's data (versioned)")(node_cmd.set_data)
app.command(name="format", help="Validate and pretty-print a file as json/yaml/xml")(node_cmd.format_file)

# Full-screen Textual editor
app.command(name="edit", help="Open the full-screen node editor")(tui_cmd.edit)
app.command(name="recent", help="List recently edited nodes")(tui_cmd.recent)

# Register command groups
app.add_typer(config_cmd.app, name="config", help="Manage configuration settings")


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=verbose)],
        force=True,
    )


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    zedit - ZooKeeper-style node data editor

    Primary workflow:
      edit [PATH]             - Full-screen editor with versioned saves
      recent                  - Nodes recently opened in the editor

    Scripting:
      get PATH                - Print node data (and metadata with --meta)
      set PATH                - Write node data with optimistic concurrency
      format FILE             - Validate/pretty-print json, yaml or xml

    Utilities:
      config                  - Manage configuration settings
    """
    setup_logging(verbose)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
