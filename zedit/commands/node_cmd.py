"""Node commands (get / set / format) for the zedit CLI."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from zedit.core.config import ZeditConfig, load_config
from zedit.core.errors import FormatError, StoreError, VersionConflictError
from zedit.core.formatter import default_registry
from zedit.core.http_store import HttpTreeStore
from zedit.core.mode import Mode, parse_mode
from zedit.core.store import TreeStore
from zedit.core.zpath import parse
from zedit.model import ZNode

console = Console()
err_console = Console(stderr=True)


def store_from_config(cfg: ZeditConfig) -> TreeStore:
    return HttpTreeStore(cfg.api_url, timeout=cfg.timeout, headers=cfg.headers)


async def _close(store: Any) -> None:
    close = getattr(store, "close", None)
    if close is not None:
        await close()


def _resolve_or_exit(raw: str) -> str:
    zp = parse(raw)
    if zp.path is None:
        err_console.print(f"[bold red]❌ Invalid path:[/] {raw} ({zp.error})")
        raise typer.Exit(2)
    return zp.path


def _config_or_exit(config_file: Optional[Path]) -> ZeditConfig:
    try:
        return load_config(config_file)
    except ValueError as e:
        err_console.print(f"[bold red]❌ Invalid configuration:[/] {escape(str(e))}")
        raise typer.Exit(1)


def _fmt_ms(ms: Optional[int]) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat(timespec="seconds")


def _meta_table(node: ZNode) -> Table:
    m = node.meta
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("path", node.path)
    table.add_row("dataVersion", str(m.data_version))
    table.add_row("aclVersion", str(m.acl_version))
    table.add_row("childrenVersion", str(m.children_version))
    table.add_row("dataLength", str(m.data_length))
    table.add_row("numChildren", str(m.num_children))
    table.add_row("created", _fmt_ms(m.creation_time))
    table.add_row("modified", _fmt_ms(m.modified_time))
    if m.ephemeral_owner:
        table.add_row("ephemeralOwner", hex(m.ephemeral_owner))
    for acl in node.acl:
        table.add_row("acl", escape(f"{acl.scheme}:{acl.id} [{','.join(acl.permissions)}]"))
    return table


def get(
    path: str = typer.Argument("/", help="Node path"),
    meta: bool = typer.Option(False, "--meta", "-m", help="Also print node metadata"),
    as_json: bool = typer.Option(False, "--json", help="Print the whole node as JSON"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Print a node's data."""
    node_path = _resolve_or_exit(path)
    cfg = _config_or_exit(config_file)
    store = store_from_config(cfg)

    async def _run() -> ZNode:
        try:
            return await store.get(node_path)
        finally:
            await _close(store)

    try:
        node = asyncio.run(_run())
    except StoreError as e:
        err_console.print(f"[bold red]❌ Error:[/] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(node.to_dict(), ensure_ascii=False))
        return
    if meta:
        console.print(_meta_table(node))
        console.print()
    # Raw payload, unrendered so the output can be piped back into `set`.
    typer.echo(node.data)


def set_data(
    path: str = typer.Argument(..., help="Node path"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="New data (string)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read new data from a file"),
    version: Optional[int] = typer.Option(
        None, "--version", help="Expected data version (default: current version from a fresh read)"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Write a node's data using optimistic concurrency."""
    if (data is None) == (file is None):
        err_console.print("[bold red]❌ Error:[/] pass exactly one of --data or --file")
        raise typer.Exit(2)
    if file is not None:
        if not file.exists():
            err_console.print(f"[bold red]❌ Error:[/] file not found: {file}")
            raise typer.Exit(2)
        content = file.read_text(encoding="utf-8")
    else:
        content = data or ""

    node_path = _resolve_or_exit(path)
    cfg = _config_or_exit(config_file)
    store = store_from_config(cfg)

    async def _run() -> tuple[int, int]:
        try:
            expected = version
            if expected is None:
                expected = (await store.get(node_path)).meta.data_version
            new_meta = await store.set_data(node_path, expected, content)
            return expected, new_meta.data_version
        finally:
            await _close(store)

    try:
        old_v, new_v = asyncio.run(_run())
    except VersionConflictError as e:
        err_console.print(f"[bold red]❌ Version conflict:[/] {escape(str(e))}")
        raise typer.Exit(1)
    except StoreError as e:
        err_console.print(f"[bold red]❌ Error:[/] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[bold green]✔[/] Saved [cyan]{node_path}[/] (version {old_v} → {new_v})")


_SUFFIX_MODES = {
    ".json": Mode.JSON,
    ".yaml": Mode.YAML,
    ".yml": Mode.YAML,
    ".xml": Mode.XML,
}


def format_file(
    file: Path = typer.Argument(..., help="File to format"),
    mode: Optional[str] = typer.Option(None, "--mode", help="json | yaml | xml (default: from file extension)"),
    write: bool = typer.Option(False, "--write", "-w", help="Rewrite the file in place"),
) -> None:
    """Validate and pretty-print a file."""
    if not file.exists():
        err_console.print(f"[bold red]❌ Error:[/] file not found: {file}")
        raise typer.Exit(2)

    resolved = parse_mode(mode) if mode else _SUFFIX_MODES.get(file.suffix.lower())
    if resolved is None:
        err_console.print(f"[bold red]❌ Error:[/] cannot determine mode for {file.name}; pass --mode")
        raise typer.Exit(2)

    text = file.read_text(encoding="utf-8")
    try:
        formatted = default_registry().format(resolved, text)
    except FormatError as e:
        err_console.print(f"[bold red]❌ {escape(str(e))}[/]")
        raise typer.Exit(1)

    if write:
        file.write_text(formatted if formatted.endswith("\n") else formatted + "\n", encoding="utf-8")
        console.print(f"[bold green]✔[/] Formatted [underline]{file}[/] as {resolved.label}")
        return
    typer.echo(formatted)
