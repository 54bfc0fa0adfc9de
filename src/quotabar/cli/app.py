"""Main CLI application for quotabar."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from enum import IntEnum
from pathlib import Path
from typing import Any
from typing import TypeVar

import msgspec
import typer
from rich.console import Console

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Create the main app
app = typer.Typer(
    name="quotabar",
    help="Usage limits for AI coding CLIs, with a recommendation",
    add_completion=False,
    no_args_is_help=True,
)


class ExitCode(IntEnum):
    """Exit codes for quotabar."""

    SUCCESS = 0
    GENERAL_ERROR = 1


def output_json(data: Any) -> None:
    """Print ``data`` as indented JSON on stdout."""
    typer.echo(msgspec.json.format(msgspec.json.encode(data), indent=2).decode())


def fail(message: str, json_mode: bool = False) -> None:
    """Report a single-line error and exit non-zero."""
    if json_mode:
        output_json({"error": message})
    else:
        Console(stderr=True).print(f"[red]Error:[/red] {message}", highlight=False)
    raise typer.Exit(ExitCode.GENERAL_ERROR)


def run_async(coro: Awaitable[T], json_mode: bool = False) -> T:
    """Run a command body; unexpected failures become a one-line error."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        raise
    except Exception as e:
        logger.debug("command failed", exc_info=True)
        fail(str(e) or type(e).__name__, json_mode)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging on stderr"
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """quotabar - Usage limits for Claude, Codex, Gemini and z.ai."""
    if version:
        from quotabar import __version__

        typer.echo(f"quotabar {__version__}")
        raise typer.Exit()

    from quotabar.logs import configure_logging

    configure_logging(verbose)
    ctx.meta["verbose"] = verbose


async def _collect_report():
    from quotabar.config.settings import get_config
    from quotabar.core.http import create_http_client
    from quotabar.core.report import collect_usage
    from quotabar.providers import create_providers

    config = get_config()
    async with create_http_client() as client:
        providers = create_providers(client)
        return await collect_usage(providers, config.cache.ttl_seconds)


@app.command("check")
def check_command(
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output in JSON format"
    ),
) -> None:
    """Check usage for every installed CLI and recommend one."""
    from quotabar.cli.display import render_report

    report = run_async(_collect_report(), json_output)

    if json_output:
        output_json(report.to_builtins())
        return

    render_report(Console(), report)


async def _parse_transcript(path: Path):
    from quotabar.transcript import TranscriptParser

    return await TranscriptParser().parse(path)


@app.command("transcript")
def transcript_command(
    path: Path = typer.Argument(..., help="Path to a transcript .jsonl file"),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="Output in JSON format"
    ),
) -> None:
    """Show tool, todo and agent activity from a Claude Code transcript."""
    from quotabar.cli.display import render_transcript
    from quotabar.transcript import agent_status
    from quotabar.transcript import completed_tool_count
    from quotabar.transcript import running_tools
    from quotabar.transcript import session_duration
    from quotabar.transcript import todo_progress

    state = run_async(_parse_transcript(path), json_output)
    if state is None:
        fail(f"cannot read transcript: {path}", json_output)

    now = datetime.now(UTC)
    running = running_tools(state, now)
    completed = completed_tool_count(state)
    todos = todo_progress(state)
    agents = agent_status(state)
    duration = session_duration(state, now)

    if json_output:
        output_json(
            {
                "entries": len(state.entries),
                "runningTools": running,
                "completedToolCount": completed,
                "todoProgress": todos,
                "agentStatus": agents,
                "sessionDurationSeconds": duration.total_seconds()
                if duration is not None
                else None,
            }
        )
        return

    render_transcript(Console(), running, completed, todos, agents, duration, now)


@app.command("session")
def session_command(
    session_id: str = typer.Argument("default", help="Claude Code session id"),
) -> None:
    """Show how long a session has been running (starts it if new)."""
    from quotabar.cli.display import format_duration
    from quotabar.session import SessionClock

    clock = SessionClock()
    minutes = run_async(clock.elapsed_minutes(session_id, min_minutes=0))
    typer.echo(format_duration(timedelta(minutes=minutes or 0)))


def run_app() -> None:
    """Run the CLI app."""
    app()


# Register the config command group
from quotabar.cli import config as config_cmd  # noqa: E402

app.add_typer(config_cmd.config_app, name="config")
