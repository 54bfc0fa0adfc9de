"""Session start-time bookkeeping.

The start time of each Claude Code session is written once to
``<cache>/sessions/<id>.json`` so short-lived invocations agree on how long
the session has been running.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from pathlib import Path

import msgspec

from quotabar.config.paths import sessions_dir
from quotabar.validation import decode_json_as

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class SessionRecord(msgspec.Struct, rename="camel"):
    start_time: float  # epoch milliseconds


def _read_bytes(path: Path) -> bytes:
    return path.read_bytes()


def _write_record(path: Path, record: SessionRecord) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(msgspec.json.encode(record))


class SessionClock:
    """Resolves and remembers session start times.

    Args:
        directory: Where session files live (defaults to the cache dir)
        clock: Wall clock returning epoch seconds, injectable for tests
    """

    def __init__(
        self,
        directory: Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._directory = directory
        self._clock = clock
        self._starts: dict[str, float] = {}

    @property
    def directory(self) -> Path:
        return self._directory if self._directory is not None else sessions_dir()

    def session_path(self, session_id: str) -> Path:
        safe_id = _UNSAFE_CHARS.sub("_", session_id) or DEFAULT_SESSION_ID
        return self.directory / f"{safe_id}.json"

    def _now_ms(self) -> float:
        return self._clock() * 1000

    async def start_time(self, session_id: str) -> float:
        """Start time of ``session_id`` in epoch milliseconds.

        A session seen for the first time starts now.
        """
        if session_id in self._starts:
            return self._starts[session_id]

        path = self.session_path(session_id)
        start = await self._load(path)
        if start is None:
            start = self._now_ms()
            try:
                await asyncio.to_thread(_write_record, path, SessionRecord(start_time=start))
            except OSError as e:
                logger.debug("could not persist session %s: %s", session_id, e)

        self._starts[session_id] = start
        return start

    async def _load(self, path: Path) -> float | None:
        try:
            content = await asyncio.to_thread(_read_bytes, path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug("could not read session file %s: %s", path, e)
            return None

        decoded = decode_json_as(content, SessionRecord)
        if not decoded.success:
            logger.debug("invalid session file %s: %s", path, decoded.error)
            return None
        return decoded.value.start_time

    async def elapsed_ms(self, session_id: str) -> float:
        return self._now_ms() - await self.start_time(session_id)

    async def elapsed_minutes(
        self, session_id: str, min_minutes: float = 1
    ) -> float | None:
        """Minutes since the session started, or None below ``min_minutes``."""
        minutes = await self.elapsed_ms(session_id) / 60_000
        if minutes < min_minutes:
            return None
        return minutes

    def clear(self) -> None:
        """Forget in-memory start times."""
        self._starts.clear()
