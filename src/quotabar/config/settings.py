"""Configuration structures and loading for quotabar."""

import os
import tomllib
from pathlib import Path

import msgspec
import tomli_w

from quotabar.errors import ErrorCategory
from quotabar.errors import QuotabarError

# Default values
DEFAULT_TTL_SECONDS = 60


class CacheConfig(msgspec.Struct, omit_defaults=True):
    """In-process usage cache settings."""

    ttl_seconds: int = DEFAULT_TTL_SECONDS


# Per-provider configuration
class ProviderConfig(msgspec.Struct, omit_defaults=True):
    """Configuration for a specific provider."""

    enabled: bool = True


# Main configuration
class Config(msgspec.Struct, omit_defaults=True):
    """Main configuration structure."""

    enabled_providers: list[str] = []
    cache: CacheConfig = msgspec.field(default_factory=CacheConfig)
    providers: dict[str, ProviderConfig] = msgspec.field(default_factory=dict)

    def get_provider_config(self, provider_id: str) -> ProviderConfig:
        """Get config for a provider, with defaults."""
        return self.providers.get(provider_id, ProviderConfig())

    def is_provider_enabled(self, provider_id: str) -> bool:
        """Check if a provider is enabled.

        A provider is enabled if:
        1. It's not explicitly disabled in providers config
        2. It's either in enabled_providers list OR enabled_providers is empty (all enabled)
        """
        provider_cfg = self.get_provider_config(provider_id)
        if not provider_cfg.enabled:
            return False
        if not self.enabled_providers:
            return True
        return provider_id in self.enabled_providers


def _load_from_toml(path: Path) -> dict:
    """Load configuration from TOML file."""
    if not path.exists():
        return {}

    with path.open("rb") as f:
        return tomllib.load(f)


def _save_to_toml(data: dict, path: Path) -> None:
    """Save configuration to TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(data, f)


def convert_config(data: dict) -> Config:
    """Convert raw dict to Config struct."""
    return msgspec.convert(data, type=Config)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config.

    QUOTABAR_ENABLED_PROVIDERS: Comma-separated list of providers
    QUOTABAR_TTL_SECONDS: Cache time-to-live in seconds
    """
    if "QUOTABAR_ENABLED_PROVIDERS" in os.environ:
        providers_str = os.environ["QUOTABAR_ENABLED_PROVIDERS"]
        enabled = [p.strip() for p in providers_str.split(",") if p.strip()]
        config = msgspec.structs.replace(config, enabled_providers=enabled)

    if ttl := os.environ.get("QUOTABAR_TTL_SECONDS"):
        try:
            cache = msgspec.structs.replace(config.cache, ttl_seconds=int(ttl))
        except ValueError:
            pass
        else:
            config = msgspec.structs.replace(config, cache=cache)

    return config


# Config state storage
_config: Config | None = None


def get_config() -> Config:
    """Get the current configuration (singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from disk."""
    global _config
    _config = load_config()
    return _config


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file with defaults."""
    from .paths import config_file

    config_path = path or config_file()

    try:
        raw_data = _load_from_toml(config_path)
        config = convert_config(raw_data) if raw_data else Config()
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise QuotabarError(
            f"cannot read config {config_path}: {e}", ErrorCategory.PARSE
        ) from e
    except msgspec.ValidationError as e:
        raise QuotabarError(
            f"invalid config {config_path}: {e}", ErrorCategory.INVALID_RESPONSE
        ) from e

    return _apply_env_overrides(config)


def write_default_config(path: Path | None = None) -> Path:
    """Write a config file with every default spelled out."""
    from .paths import config_file

    config_path = path or config_file()
    data = {
        "enabled_providers": [],
        "cache": {"ttl_seconds": DEFAULT_TTL_SECONDS},
    }
    _save_to_toml(data, config_path)
    return config_path
