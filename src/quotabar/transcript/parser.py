"""Incremental parser for Claude Code transcript.jsonl files.

The transcript is append-only, so after the first full read only the bytes
written since the previous parse are read. A file smaller than the tracked
offset (truncation or rotation) or a different path triggers a full rebuild.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

import msgspec

from quotabar.models import parse_timestamp
from quotabar.transcript.models import TranscriptState

logger = logging.getLogger(__name__)


def _file_size(path: Path) -> int:
    return path.stat().st_size


def _read_range(path: Path, start: int, end: int) -> bytes:
    if end <= start:
        return b""
    with path.open("rb") as f:
        f.seek(start)
        return f.read(end - start)


def parse_lines(chunk: bytes) -> list[dict[str, Any]]:
    """Decode newline-delimited JSON records, skipping malformed lines."""
    records = []
    for lineno, line in enumerate(chunk.split(b"\n"), start=1):
        if not line.strip():
            continue
        try:
            record = msgspec.json.decode(line)
        except (msgspec.DecodeError, UnicodeDecodeError, RecursionError):
            logger.debug("skipping malformed transcript line %d", lineno)
            continue
        if not isinstance(record, dict):
            logger.debug("skipping non-object transcript line %d", lineno)
            continue
        records.append(record)
    return records


def _content_blocks(record: dict[str, Any]) -> list[dict[str, Any]]:
    message = record.get("message")
    if not isinstance(message, dict):
        return []
    content = message.get("content")
    if not isinstance(content, list):
        return []
    return [block for block in content if isinstance(block, dict)]


def apply_records(state: TranscriptState, records: list[dict[str, Any]]) -> None:
    """Merge records into ``state`` strictly in append order."""
    for record in records:
        state.entries.append(record)

        timestamp = parse_timestamp(record.get("timestamp"))
        if state.session_start_time is None and timestamp is not None:
            state.session_start_time = timestamp

        kind = record.get("type")
        if kind == "assistant":
            for block in _content_blocks(record):
                if block.get("type") != "tool_use":
                    continue
                tool_id, name = block.get("id"), block.get("name")
                if isinstance(tool_id, str) and tool_id and isinstance(name, str) and name:
                    state.ledger.record_use(
                        tool_id, name, timestamp=timestamp, input=block.get("input")
                    )
        elif kind == "user":
            for block in _content_blocks(record):
                if block.get("type") != "tool_result":
                    continue
                tool_id = block.get("tool_use_id")
                if isinstance(tool_id, str) and tool_id:
                    state.ledger.record_result(tool_id)


class TranscriptParser:
    """Keeps parse state for the most recently requested transcript."""

    def __init__(self) -> None:
        self._state: TranscriptState | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> TranscriptState | None:
        return self._state

    async def parse(self, path: str | os.PathLike[str]) -> TranscriptState | None:
        """Parse ``path``, reading only new bytes when possible.

        Returns None if the file cannot be read.
        """
        async with self._lock:
            return await self._parse(Path(path))

    async def _parse(self, path: Path) -> TranscriptState | None:
        try:
            size = await asyncio.to_thread(_file_size, path)
        except OSError as e:
            logger.debug("cannot stat transcript %s: %s", path, e)
            return None

        state = self._state
        if state is not None and state.source_path == path:
            if size == state.last_offset:
                return state
            if size > state.last_offset:
                return await self._extend(state, size)
            logger.debug(
                "transcript %s shrank (%d < %d), rebuilding",
                path,
                size,
                state.last_offset,
            )
        elif state is not None:
            logger.debug("transcript path changed, rebuilding")

        self._state = None
        fresh = TranscriptState(source_path=path)
        if await self._extend(fresh, size) is None:
            return None
        self._state = fresh
        return fresh

    async def _extend(self, state: TranscriptState, size: int) -> TranscriptState | None:
        start = state.last_offset
        try:
            chunk = await asyncio.to_thread(_read_range, state.source_path, start, size)
        except OSError as e:
            logger.debug("cannot read transcript %s: %s", state.source_path, e)
            return None

        apply_records(state, parse_lines(chunk))
        state.last_offset = start + len(chunk)
        return state

    def reset(self) -> None:
        """Discard all parse state."""
        self._state = None
