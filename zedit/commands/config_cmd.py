"""Config command for zedit CLI."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from zedit.core.config import load_config, save_setting
from zedit.core.mode import Mode, parse_mode

app = typer.Typer()
console = Console()

_DEFAULT_CONFIG_PATH = Path("zedit_config.yaml")


@app.command("show")
def show(config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file")):
    """Show current configuration."""
    try:
        cfg = load_config(config_file)
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/] {escape(str(e))}")
        raise typer.Exit(1)
    summary = cfg.get_config_summary()

    console.print("\n[bold]Current Configuration:[/]")
    console.print(f"  Source: [cyan]{summary['source'] or '(defaults)'}[/]")
    console.print(f"  API URL: [cyan]{summary['api_url']}[/]")
    console.print(f"  Timeout: [cyan]{summary['timeout']:g}s[/]")
    console.print(f"  Extra headers: [cyan]{summary['headers_count']}[/]")
    console.print(f"  Default mode: [cyan]{summary['default_mode']}[/]")
    console.print(f"  Wrap lines: [cyan]{'Enabled' if summary['wrap'] else 'Disabled'}[/]")
    console.print(f"  Preferences: [cyan]{summary['preferences_path'] or '(user state dir)'}[/]")
    console.print()


@app.command("export")
def export(output: Path = typer.Option(_DEFAULT_CONFIG_PATH, "--output", "-o", help="Where to write the template")):
    """Export configuration template."""
    try:
        cfg = load_config(apply_env=False)
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/] {escape(str(e))}")
        raise typer.Exit(1)
    cfg.export_template(output)
    console.print(f"[bold green]✔[/] Configuration template exported to [underline]{output}[/]")


@app.command("validate")
def validate(config_file: Path = typer.Argument(..., help="Config file to validate")):
    """Validate a configuration file."""
    if not config_file.exists():
        console.print(f"[bold red]❌ Config file not found:[/] {config_file}")
        raise typer.Exit(1)
    try:
        cfg = load_config(config_file, apply_env=False)
    except ValueError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/] {escape(str(e))}")
        raise typer.Exit(1)
    console.print(f"[bold green]✔[/] Configuration file is valid: [underline]{config_file}[/]")
    console.print(f"  API URL: {cfg.api_url}")
    console.print(f"  Default mode: {cfg.default_mode.value}")


@app.command("set-api-url")
def set_api_url(
    url: str = typer.Argument(..., help="Base URL of the REST gateway"),
    config_file: Path = typer.Option(_DEFAULT_CONFIG_PATH, "--config", "-c", help="Config file to update"),
):
    """Set the tree store API URL."""
    if not url.lower().startswith(("http://", "https://")):
        console.print("[bold red]❌ Error:[/] URL must start with http:// or https://")
        raise typer.Exit(1)
    save_setting("api_url", url.rstrip("/"), config_file)
    console.print(f"[bold green]✔[/] API URL set to: [cyan]{url.rstrip('/')}[/] (saved to {config_file})")


@app.command("set-default-mode")
def set_default_mode(
    mode: str = typer.Argument(..., help="text | json | yaml | xml"),
    config_file: Path = typer.Option(_DEFAULT_CONFIG_PATH, "--config", "-c", help="Config file to update"),
):
    """Set the mode used for nodes without a remembered mode."""
    resolved = parse_mode(mode)
    if resolved is None:
        console.print(f"[bold red]❌ Error:[/] '{mode}' is not a valid mode")
        console.print(f"[dim]Expected one of: {', '.join(m.value for m in Mode)}[/]")
        raise typer.Exit(1)
    save_setting("default_mode", resolved.value, config_file)
    console.print(f"[bold green]✔[/] Default mode set to: [cyan]{resolved.value}[/] (saved to {config_file})")
