"""Config management commands for quotabar."""

from __future__ import annotations

import typer
import tomli_w
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from quotabar.cli.app import ExitCode
from quotabar.cli.app import fail
from quotabar.cli.app import output_json
from quotabar.config.paths import cache_dir
from quotabar.config.paths import config_dir
from quotabar.config.paths import config_file
from quotabar.config.paths import sessions_dir
from quotabar.config.settings import get_config
from quotabar.config.settings import write_default_config
from quotabar.errors import QuotabarError

# Create config group
config_app = typer.Typer(help="Manage configuration settings.", no_args_is_help=True)


@config_app.command("show")
def config_show_command(
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output in JSON format"
    ),
) -> None:
    """Display current settings (file values plus environment overrides)."""
    try:
        config = get_config()
    except QuotabarError as e:
        fail(e.message, json_output)
    path = config_file()

    # Spelled out, since the structs omit default values when encoded
    data = {
        "enabled_providers": config.enabled_providers,
        "cache": {"ttl_seconds": config.cache.ttl_seconds},
        "providers": {
            pid: {"enabled": cfg.enabled} for pid, cfg in config.providers.items()
        },
    }

    if json_output:
        output_json({**data, "path": str(path)})
        return

    Console().print(
        Panel(Syntax(tomli_w.dumps(data), "toml"), title=f"Config: {path}")
    )


@config_app.command("path")
def config_path_command(
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output in JSON format"
    ),
) -> None:
    """Show directory paths used by quotabar."""
    paths = {
        "config_dir": str(config_dir()),
        "config_file": str(config_file()),
        "cache_dir": str(cache_dir()),
        "sessions_dir": str(sessions_dir()),
    }

    if json_output:
        output_json(paths)
        return

    console = Console()
    for name, value in paths.items():
        console.print(f"[bold]{name}[/bold]  {value}", highlight=False)


@config_app.command("init")
def config_init_command(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config file"
    ),
) -> None:
    """Write a config file with default settings."""
    console = Console()
    path = config_file()

    if path.exists() and not force:
        console.print(
            f"[yellow]Config already exists:[/yellow] {path} (use --force to overwrite)",
            highlight=False,
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    write_default_config(path)
    console.print(f"[green]✓[/green] Wrote {path}", highlight=False)
