"""Tests for session start-time bookkeeping."""

from __future__ import annotations

import msgspec
import pytest
from conftest import FakeClock
from conftest import write_json

from quotabar.config.paths import sessions_dir
from quotabar.session import SessionClock

START = 1_736_942_400.0  # 2025-01-15T12:00:00Z


@pytest.fixture
def wall_clock():
    return FakeClock(start=START)


@pytest.fixture
def sessions(tmp_path, wall_clock):
    return SessionClock(directory=tmp_path / "sessions", clock=wall_clock)


class TestSessionPath:
    """Tests for session file naming."""

    def test_default_directory(self):
        assert SessionClock().directory == sessions_dir()

    def test_unsafe_characters_replaced(self, sessions):
        path = sessions.session_path("../etc/passwd")
        assert path.parent == sessions.directory
        assert path.name == ".._etc_passwd.json"

    def test_plain_id(self, sessions):
        assert sessions.session_path("abc-123").name == "abc-123.json"


class TestStartTime:
    """Tests for resolving session start times."""

    @pytest.mark.asyncio
    async def test_new_session_is_persisted(self, sessions):
        start = await sessions.start_time("s1")
        assert start == START * 1000

        record = msgspec.json.decode(sessions.session_path("s1").read_bytes())
        assert record == {"startTime": START * 1000}

    @pytest.mark.asyncio
    async def test_existing_session_is_read(self, sessions):
        write_json(sessions.session_path("s1"), {"startTime": 1000.0})
        assert await sessions.start_time("s1") == 1000.0

    @pytest.mark.asyncio
    async def test_shared_across_instances(self, tmp_path, wall_clock):
        first = SessionClock(directory=tmp_path, clock=wall_clock)
        start = await first.start_time("s1")

        wall_clock.advance(300)
        second = SessionClock(directory=tmp_path, clock=wall_clock)
        assert await second.start_time("s1") == start

    @pytest.mark.parametrize("content", [b"{oops", b'{"startTime": "yesterday"}', b"[]"])
    @pytest.mark.asyncio
    async def test_invalid_file_is_replaced(self, sessions, content):
        path = sessions.session_path("s1")
        path.parent.mkdir(parents=True)
        path.write_bytes(content)

        assert await sessions.start_time("s1") == START * 1000
        assert msgspec.json.decode(path.read_bytes()) == {"startTime": START * 1000}

    @pytest.mark.asyncio
    async def test_remembered_in_memory(self, sessions):
        start = await sessions.start_time("s1")
        sessions.session_path("s1").unlink()
        assert await sessions.start_time("s1") == start

        sessions.clear()
        assert sessions.session_path("s1").exists() is False
        await sessions.start_time("s1")
        assert sessions.session_path("s1").exists()

    @pytest.mark.asyncio
    async def test_unwritable_directory(self, tmp_path, wall_clock):
        blocker = tmp_path / "file"
        blocker.write_text("")
        sessions = SessionClock(directory=blocker / "sessions", clock=wall_clock)
        assert await sessions.start_time("s1") == START * 1000


class TestElapsed:
    """Tests for elapsed time."""

    @pytest.mark.asyncio
    async def test_elapsed_ms(self, sessions, wall_clock):
        await sessions.start_time("s1")
        wall_clock.advance(90)
        assert await sessions.elapsed_ms("s1") == 90_000

    @pytest.mark.asyncio
    async def test_elapsed_minutes_threshold(self, sessions, wall_clock):
        await sessions.start_time("s1")
        wall_clock.advance(59)
        assert await sessions.elapsed_minutes("s1") is None

        wall_clock.advance(61)
        assert await sessions.elapsed_minutes("s1") == 2

    @pytest.mark.asyncio
    async def test_custom_threshold(self, sessions, wall_clock):
        await sessions.start_time("s1")
        wall_clock.advance(30)
        assert await sessions.elapsed_minutes("s1", min_minutes=0) == 0.5
