"""
Textual full-screen editor entrypoint.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from zedit.core.config import load_config
from zedit.core.preferences import MemoryPreferences, PreferencesService
from zedit.core.store import DEMO_NODES, InMemoryTreeStore, load_seed
from zedit.core.zpath import parse

console = Console(stderr=True)


def edit(
    path: str = typer.Argument("/", help="Node to open"),
    demo: bool = typer.Option(False, "--demo", help="Use an in-memory store with sample nodes"),
    seed: Optional[Path] = typer.Option(None, "--seed", help="YAML/JSON {path: data} file for --demo"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Launch the zedit node editor."""
    try:
        from zedit.tui.app import ZeditApp
    except Exception as e:  # pragma: no cover
        raise typer.Exit(f"Failed to import TUI dependencies: {e}")

    zp = parse(path)
    if zp.path is None:
        console.print(f"[bold red]❌ Invalid path:[/] {escape(path)} ({zp.error})")
        raise typer.Exit(2)

    try:
        cfg = load_config(config_file)
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/] {escape(str(e))}")
        raise typer.Exit(1)

    if demo or seed is not None:
        nodes = dict(DEMO_NODES)
        try:
            if seed is not None:
                nodes = load_seed(seed)
            store = InMemoryTreeStore(nodes)
        except (OSError, ValueError) as e:
            console.print(f"[bold red]❌ Could not read seed file:[/] {escape(str(e))}")
            raise typer.Exit(1)
        preferences = MemoryPreferences()
        ZeditApp(store, path=zp.path, preferences=preferences, config=cfg).run()
        return

    from zedit.commands.node_cmd import store_from_config

    store = store_from_config(cfg)
    preferences = PreferencesService(cfg.preferences_path)
    ZeditApp(store, path=zp.path, preferences=preferences, config=cfg).run()


def recent(
    limit: int = typer.Option(10, "--limit", "-n", help="How many paths to show"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List nodes recently opened in the editor (most recent first)."""
    try:
        cfg = load_config(config_file)
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/] {escape(str(e))}")
        raise typer.Exit(1)

    paths = asyncio.run(PreferencesService(cfg.preferences_path).recent_paths())
    if not paths:
        typer.echo("No recent nodes.")
        return
    for p in paths[: max(limit, 0)]:
        typer.echo(p)
