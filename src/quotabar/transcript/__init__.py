"""Incremental transcript parsing and derived activity views."""

from quotabar.transcript.models import ActiveAgent
from quotabar.transcript.models import AgentStatus
from quotabar.transcript.models import RunningTool
from quotabar.transcript.models import TodoItem
from quotabar.transcript.models import TodoProgress
from quotabar.transcript.models import ToolInvocation
from quotabar.transcript.models import ToolLedger
from quotabar.transcript.models import ToolStatus
from quotabar.transcript.models import TranscriptState
from quotabar.transcript.parser import TranscriptParser
from quotabar.transcript.parser import apply_records
from quotabar.transcript.parser import parse_lines
from quotabar.transcript.queries import agent_status
from quotabar.transcript.queries import completed_tool_count
from quotabar.transcript.queries import running_tools
from quotabar.transcript.queries import session_duration
from quotabar.transcript.queries import todo_progress

__all__ = [
    "ActiveAgent",
    "AgentStatus",
    "RunningTool",
    "TodoItem",
    "TodoProgress",
    "ToolInvocation",
    "ToolLedger",
    "ToolStatus",
    "TranscriptParser",
    "TranscriptState",
    "agent_status",
    "apply_records",
    "completed_tool_count",
    "parse_lines",
    "running_tools",
    "session_duration",
    "todo_progress",
]
