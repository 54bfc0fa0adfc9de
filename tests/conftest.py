"""Pytest configuration and shared fixtures for quotabar tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import httpx
import msgspec
import pytest

from quotabar.config import settings

# Environment variables that change quotabar behaviour
_ENV_VARS = (
    "ANTHROPIC_BASE_URL",
    "ANTHROPIC_AUTH_TOKEN",
    "CLAUDE_CODE_OAUTH_TOKEN",
    "GEMINI_MODEL",
    "GOOGLE_CLOUD_PROJECT",
    "QUOTABAR_ENABLED_PROVIDERS",
    "QUOTABAR_TTL_SECONDS",
    "QUOTABAR_DEBUG",
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every config/credential location at a temp dir."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("QUOTABAR_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("QUOTABAR_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("CLAUDE_CONFIG_DIR", str(tmp_path / ".claude"))
    monkeypatch.setenv("CODEX_HOME", str(tmp_path / ".codex"))
    monkeypatch.setenv("GEMINI_HOME", str(tmp_path / ".gemini"))

    # No keychain lookups from tests
    monkeypatch.setattr(
        "quotabar.providers.claude.read_keychain_password",
        _no_keychain,
    )

    monkeypatch.setattr(settings, "_config", None)
    return tmp_path


async def _no_keychain(service: str) -> None:
    return None


@pytest.fixture
def utc_now() -> datetime:
    """Fixed UTC datetime for consistent testing."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for clients whose requests are answered by ``handler``."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


def json_response(data: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=msgspec.json.encode(data))


def write_json(path: Path, data: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(msgspec.json.encode(data))
    return path
