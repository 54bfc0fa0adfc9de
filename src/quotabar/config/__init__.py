"""Configuration management for quotabar."""

from quotabar.config.paths import cache_dir
from quotabar.config.paths import claude_home
from quotabar.config.paths import codex_home
from quotabar.config.paths import codex_model_cache_file
from quotabar.config.paths import config_dir
from quotabar.config.paths import config_file
from quotabar.config.paths import gemini_home
from quotabar.config.paths import sessions_dir
from quotabar.config.settings import CacheConfig
from quotabar.config.settings import Config
from quotabar.config.settings import ProviderConfig
from quotabar.config.settings import get_config
from quotabar.config.settings import load_config
from quotabar.config.settings import reload_config
from quotabar.config.settings import write_default_config

__all__ = [
    # Paths
    "config_dir",
    "cache_dir",
    "sessions_dir",
    "codex_model_cache_file",
    "config_file",
    "claude_home",
    "codex_home",
    "gemini_home",
    # Settings
    "Config",
    "CacheConfig",
    "ProviderConfig",
    "get_config",
    "load_config",
    "reload_config",
    "write_default_config",
]
