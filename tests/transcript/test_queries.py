"""Tests for derived transcript views."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from quotabar.transcript import TodoItem
from quotabar.transcript import TranscriptState
from quotabar.transcript import agent_status
from quotabar.transcript import completed_tool_count
from quotabar.transcript import running_tools
from quotabar.transcript import session_duration
from quotabar.transcript import todo_progress

T0 = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

TODOS = [
    {"content": "Write parser", "status": "completed", "activeForm": "Writing parser"},
    {"content": "Write tests", "status": "in_progress", "activeForm": "Writing tests"},
    {"content": "Ship it", "status": "pending", "activeForm": "Shipping"},
]


@pytest.fixture
def state():
    return TranscriptState(source_path=Path("transcript.jsonl"))


class TestRunningTools:
    """Tests for running_tools and completed_tool_count."""

    def test_running_and_completed(self, state):
        state.ledger.record_use("a", "Bash", timestamp=T0)
        state.ledger.record_use("b", "Read", timestamp=T0 + timedelta(seconds=1))
        state.ledger.record_result("a")

        running = running_tools(state)
        assert [(t.id, t.name, t.start_time) for t in running] == [
            ("b", "Read", T0 + timedelta(seconds=1))
        ]
        assert completed_tool_count(state) == 1

    def test_missing_timestamp_uses_now(self, state):
        state.ledger.record_use("a", "Bash")
        assert running_tools(state, now=T0)[0].start_time == T0

    def test_orphan_results_counted(self, state):
        state.ledger.record_result("never-seen")
        assert running_tools(state) == []
        assert completed_tool_count(state) == 1


class TestTodoProgress:
    """Tests for todo_progress."""

    def test_no_todo_writes(self, state):
        assert todo_progress(state) is None

    def test_progress(self, state):
        state.ledger.record_use("t1", "TodoWrite", input={"todos": TODOS})
        state.ledger.record_result("t1")

        progress = todo_progress(state)
        assert progress.completed == 1
        assert progress.total == 3
        assert progress.current == TodoItem(content="Write tests", status="in_progress")

    def test_pending_write_ignored(self, state):
        state.ledger.record_use("t1", "TodoWrite", input={"todos": TODOS[:1]})
        state.ledger.record_result("t1")
        state.ledger.record_use("t2", "TodoWrite", input={"todos": TODOS})

        progress = todo_progress(state)
        assert (progress.completed, progress.total, progress.current) == (1, 1, None)

    def test_latest_completed_write_wins(self, state):
        done = [dict(todo, status="completed") for todo in TODOS]
        state.ledger.record_use("t1", "TodoWrite", input={"todos": TODOS})
        state.ledger.record_use("t2", "TodoWrite", input={"todos": done})
        state.ledger.record_result("t1")
        state.ledger.record_result("t2")

        progress = todo_progress(state)
        assert (progress.completed, progress.total, progress.current) == (3, 3, None)

    def test_malformed_input(self, state):
        state.ledger.record_use("t1", "TodoWrite", input={"todos": "lots"})
        state.ledger.record_result("t1")
        assert todo_progress(state) is None


class TestAgentStatus:
    """Tests for agent_status."""

    def test_active_and_completed(self, state):
        state.ledger.record_use(
            "a1", "Task", input={"subagent_type": "Explore", "description": "Find callers"}
        )
        state.ledger.record_use("a2", "Task", input={"prompt": "do it"})
        state.ledger.record_use("a3", "Task", input={"subagent_type": "Plan"})
        state.ledger.record_use("x", "Bash")
        state.ledger.record_result("a3")

        status = agent_status(state)
        assert [(a.name, a.description) for a in status.active] == [
            ("Explore", "Find callers"),
            ("Agent", None),
        ]
        assert status.completed == 1

    def test_malformed_input_uses_default_name(self, state):
        state.ledger.record_use("a1", "Task", input=["not", "an", "object"])
        assert agent_status(state).active[0].name == "Agent"

    def test_no_agents(self, state):
        status = agent_status(state)
        assert status.active == ()
        assert status.completed == 0


class TestSessionDuration:
    """Tests for session_duration."""

    def test_no_timestamps(self, state):
        assert session_duration(state, now=T0) is None

    def test_duration(self, state):
        state.session_start_time = T0
        assert session_duration(state, now=T0 + timedelta(minutes=5)) == timedelta(minutes=5)

    def test_clock_skew_clamped(self, state):
        state.session_start_time = T0
        assert session_duration(state, now=T0 - timedelta(seconds=3)) == timedelta(0)
