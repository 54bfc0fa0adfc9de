"""Rich rendering for quotabar CLI output."""

from __future__ import annotations

from datetime import UTC
from datetime import datetime
from datetime import timedelta

from rich.console import Console
from rich.table import Table
from rich.text import Text

from quotabar.core.report import UsageReport
from quotabar.models import ProviderSummary
from quotabar.models import parse_timestamp
from quotabar.transcript.models import AgentStatus
from quotabar.transcript.models import RunningTool
from quotabar.transcript.models import TodoProgress


def usage_color(percent: int) -> str:
    """Threshold color for a usage percentage."""
    if percent < 50:
        return "green"
    elif percent < 80:
        return "yellow"
    else:
        return "red"


def format_duration(delta: timedelta) -> str:
    """Compact duration, e.g. ``2d 3h``, ``1h 5m``, ``42m``."""
    total_minutes = max(0, int(delta.total_seconds() // 60))
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_reset(reset: str | None, now: datetime | None = None) -> str:
    """Time until ``reset`` (ISO string), or empty if unknown or past."""
    resets_at = parse_timestamp(reset)
    if resets_at is None:
        return ""
    delta = resets_at - (now or datetime.now(UTC))
    if delta.total_seconds() <= 0:
        return ""
    return format_duration(delta)


def _percent_text(label: str, percent: int | None, reset: str | None) -> Text:
    text = Text(f"{label}: ")
    if percent is None:
        text.append("--", style="dim")
        return text
    text.append(f"{percent}%", style=usage_color(percent))
    if remaining := format_reset(reset):
        text.append(f" ({remaining})", style="dim")
    return text


def render_summary(provider_id: str, summary: ProviderSummary) -> list[Text]:
    """Lines for one provider section."""
    label = Text(f"[{summary.name}]", style="bold cyan")

    if not summary.available:
        return [label + Text(" (not installed)", style="dim")]
    if summary.error:
        return [label + Text(" ⚠ error fetching usage", style="yellow")]

    primary_label, secondary_label = ("Tokens", "MCP") if provider_id == "zai" else ("5h", "7d")
    parts = [_percent_text(primary_label, summary.fiveHourPercent, summary.fiveHourReset)]
    if summary.sevenDayPercent is not None or provider_id in ("claude", "codex"):
        parts.append(
            _percent_text(secondary_label, summary.sevenDayPercent, summary.sevenDayReset)
        )
    if summary.plan:
        parts.append(Text(f"Plan: {summary.plan}"))
    if summary.model:
        parts.append(Text(f"Model: {summary.model}"))

    lines = [label, Text("  ") + Text("  |  ").join(parts)]
    for bucket in summary.buckets or ():
        lines.append(
            Text("    ") + _percent_text(bucket.modelId, bucket.usedPercent, bucket.resetAt)
        )
    return lines


def render_report(console: Console, report: UsageReport) -> None:
    """Print every provider section followed by the recommendation."""
    console.print(Text("AI CLI Usage", style="bold"))
    console.print(Text("━" * 40, style="dim"))

    for provider_id, summary in report.summaries.items():
        for line in render_summary(provider_id, summary):
            console.print(line)
        console.print()

    recommendation = report.recommendation
    if recommendation.name is None:
        console.print(Text(recommendation.reason, style="dim"))
    else:
        name = report.summaries[recommendation.name].name
        console.print(
            Text("Recommended: ", style="bold")
            + Text(name, style="bold green")
            + Text(f" ({recommendation.reason})", style="dim")
        )


def render_transcript(
    console: Console,
    running: list[RunningTool],
    completed: int,
    todos: TodoProgress | None,
    agents: AgentStatus,
    duration: timedelta | None,
    now: datetime | None = None,
) -> None:
    """Print the activity derived from a transcript."""
    now = now or datetime.now(UTC)

    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold", min_width=10)
    grid.add_column()

    if duration is not None:
        grid.add_row("Session", format_duration(duration))
    grid.add_row("Completed", f"{completed} tool calls")

    if running:
        grid.add_row(
            "Running",
            ", ".join(f"{t.name} ({format_duration(now - t.start_time)})" for t in running),
        )

    if todos is not None:
        todo_line = f"{todos.completed}/{todos.total}"
        if todos.current is not None:
            todo_line += f"  {todos.current.content}"
        grid.add_row("Todos", todo_line)

    if agents.active or agents.completed:
        agent_line = ", ".join(
            f"{a.name}: {a.description}" if a.description else a.name
            for a in agents.active
        )
        if agents.completed:
            done = f"{agents.completed} done"
            agent_line = f"{agent_line} ({done})" if agent_line else done
        grid.add_row("Agents", agent_line)

    console.print(grid)
