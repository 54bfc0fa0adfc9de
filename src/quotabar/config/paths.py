"""Platform-specific paths for quotabar and the CLIs it reads from."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_cache_dir
from platformdirs import user_config_dir

PACKAGE_NAME = "quotabar"


def _get_env_path(env_var: str, fallback: Path) -> Path:
    """Get path from environment variable or fallback."""
    if env_value := os.environ.get(env_var):
        return Path(env_value).expanduser()
    return fallback


def config_dir() -> Path:
    """Get user config directory.

    Respects QUOTABAR_CONFIG_DIR environment variable.
    """
    base_dir = Path(user_config_dir(PACKAGE_NAME))
    return _get_env_path("QUOTABAR_CONFIG_DIR", base_dir)


def cache_dir() -> Path:
    """Get user cache directory.

    Respects QUOTABAR_CACHE_DIR environment variable.
    """
    base_dir = Path(user_cache_dir(PACKAGE_NAME))
    return _get_env_path("QUOTABAR_CACHE_DIR", base_dir)


def sessions_dir() -> Path:
    """Get session start-time bookkeeping directory."""
    return cache_dir() / "sessions"


def codex_model_cache_file() -> Path:
    """Get cached Codex model detection path."""
    return cache_dir() / "codex-model-cache.json"


def config_file() -> Path:
    """Get main config.toml path."""
    return config_dir() / "config.toml"


# Provider CLI homes
def claude_home() -> Path:
    """Claude Code config directory (CLAUDE_CONFIG_DIR or ~/.claude)."""
    return _get_env_path("CLAUDE_CONFIG_DIR", Path.home() / ".claude")


def codex_home() -> Path:
    """Codex CLI home (CODEX_HOME or ~/.codex)."""
    return _get_env_path("CODEX_HOME", Path.home() / ".codex")


def gemini_home() -> Path:
    """Gemini CLI home (GEMINI_HOME or ~/.gemini)."""
    return _get_env_path("GEMINI_HOME", Path.home() / ".gemini")
