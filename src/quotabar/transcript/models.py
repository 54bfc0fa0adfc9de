"""Data models for parsed Claude Code transcripts."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

import msgspec


class ToolStatus(StrEnum):
    """Whether a tool invocation has produced its result yet."""

    PENDING = "pending"
    RESOLVED = "resolved"


class ToolInvocation(msgspec.Struct):
    """A tool_use block seen in an assistant turn."""

    id: str
    name: str
    timestamp: datetime | None = None
    input: Any = None
    status: ToolStatus = ToolStatus.PENDING

    @property
    def is_running(self) -> bool:
        return self.status is ToolStatus.PENDING


class ToolLedger:
    """Correlates tool invocations with their results.

    A single association ``id -> ToolInvocation`` tagged pending/resolved,
    plus the set of every result id seen. Results can arrive before their
    invocation; such an invocation is recorded as resolved when it appears.
    """

    def __init__(self) -> None:
        self._invocations: dict[str, ToolInvocation] = {}
        self._result_ids: set[str] = set()

    def record_use(
        self,
        tool_id: str,
        name: str,
        timestamp: datetime | None = None,
        input: Any = None,
    ) -> ToolInvocation:
        """Insert or overwrite an invocation, keeping its position."""
        status = (
            ToolStatus.RESOLVED if tool_id in self._result_ids else ToolStatus.PENDING
        )
        invocation = ToolInvocation(
            id=tool_id, name=name, timestamp=timestamp, input=input, status=status
        )
        self._invocations[tool_id] = invocation
        return invocation

    def record_result(self, tool_id: str) -> None:
        """Mark ``tool_id`` resolved. Idempotent."""
        self._result_ids.add(tool_id)
        invocation = self._invocations.get(tool_id)
        if invocation is not None:
            invocation.status = ToolStatus.RESOLVED

    def get(self, tool_id: str) -> ToolInvocation | None:
        return self._invocations.get(tool_id)

    def is_resolved(self, tool_id: str) -> bool:
        return tool_id in self._result_ids

    def running(self) -> list[ToolInvocation]:
        """Invocations without a result, in first-seen order."""
        return [inv for inv in self._invocations.values() if inv.is_running]

    def resolved(self) -> list[ToolInvocation]:
        """Invocations with a result, in first-seen order."""
        return [inv for inv in self._invocations.values() if not inv.is_running]

    def named(self, name: str) -> list[ToolInvocation]:
        return [inv for inv in self._invocations.values() if inv.name == name]

    @property
    def completed_count(self) -> int:
        """Number of distinct result ids seen."""
        return len(self._result_ids)

    def __len__(self) -> int:
        return len(self._invocations)

    def __iter__(self) -> Iterator[ToolInvocation]:
        return iter(self._invocations.values())


@dataclass
class TranscriptState:
    """Incremental parse state for one transcript file."""

    source_path: Path
    last_offset: int = 0
    entries: list[dict[str, Any]] = field(default_factory=list)
    ledger: ToolLedger = field(default_factory=ToolLedger)
    session_start_time: datetime | None = None


# Derived views


class RunningTool(msgspec.Struct, frozen=True):
    id: str
    name: str
    start_time: datetime


class TodoItem(msgspec.Struct, frozen=True):
    content: str
    status: str


class TodoProgress(msgspec.Struct, frozen=True):
    """Progress of the latest todo list whose write has completed."""

    completed: int
    total: int
    current: TodoItem | None = None


class ActiveAgent(msgspec.Struct, frozen=True):
    name: str
    description: str | None = None


class AgentStatus(msgspec.Struct, frozen=True):
    """Sub-agents still running and how many have finished."""

    active: tuple[ActiveAgent, ...] = ()
    completed: int = 0
