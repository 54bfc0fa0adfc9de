"""Derived views over a parsed transcript. Pure functions, no I/O."""

from __future__ import annotations

from datetime import UTC
from datetime import datetime
from datetime import timedelta

import msgspec

from quotabar.transcript.models import ActiveAgent
from quotabar.transcript.models import AgentStatus
from quotabar.transcript.models import RunningTool
from quotabar.transcript.models import TodoItem
from quotabar.transcript.models import TodoProgress
from quotabar.transcript.models import TranscriptState
from quotabar.validation import decode_as

TODO_TOOL = "TodoWrite"
AGENT_TOOL = "Task"
DEFAULT_AGENT_NAME = "Agent"


class _Todo(msgspec.Struct):
    content: str = ""
    status: str = ""


class _TodoInput(msgspec.Struct):
    todos: list[_Todo]


class _TaskInput(msgspec.Struct):
    subagent_type: str | None = None
    description: str | None = None


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def running_tools(
    state: TranscriptState, now: datetime | None = None
) -> list[RunningTool]:
    """Tools invoked but not yet returned.

    An invocation without a timestamp reports ``now`` as its start time.
    """
    start_fallback = _now(now)
    return [
        RunningTool(id=inv.id, name=inv.name, start_time=inv.timestamp or start_fallback)
        for inv in state.ledger.running()
    ]


def completed_tool_count(state: TranscriptState) -> int:
    return state.ledger.completed_count


def todo_progress(state: TranscriptState) -> TodoProgress | None:
    """Progress of the last todo-list write whose result has arrived."""
    writes = [inv for inv in state.ledger.named(TODO_TOOL) if not inv.is_running]
    if not writes:
        return None

    decoded = decode_as(writes[-1].input, _TodoInput)
    if not decoded.success:
        return None

    todos: list[_Todo] = decoded.value.todos
    current = next(
        (t for t in todos if t.status in ("in_progress", "pending")),
        None,
    )
    return TodoProgress(
        completed=sum(1 for t in todos if t.status == "completed"),
        total=len(todos),
        current=TodoItem(content=current.content, status=current.status)
        if current
        else None,
    )


def agent_status(state: TranscriptState) -> AgentStatus:
    """Sub-agents launched through the Task tool."""
    active = []
    completed = 0
    for inv in state.ledger.named(AGENT_TOOL):
        if not inv.is_running:
            completed += 1
            continue
        decoded = decode_as(inv.input, _TaskInput)
        task = decoded.value if decoded.success else _TaskInput()
        active.append(
            ActiveAgent(
                name=task.subagent_type or DEFAULT_AGENT_NAME,
                description=task.description,
            )
        )
    return AgentStatus(active=tuple(active), completed=completed)


def session_duration(
    state: TranscriptState, now: datetime | None = None
) -> timedelta | None:
    """Time since the first timestamped record, or None."""
    if state.session_start_time is None:
        return None
    return max(timedelta(0), _now(now) - state.session_start_time)
