"""Provider registry for quotabar."""

from __future__ import annotations

import time
from collections.abc import Callable

import httpx

# Provider registry, in display order
_PROVIDERS: dict[str, type] = {}


def register_provider(cls: type) -> type:
    """Decorator to register a provider class.

    Usage:
        @register_provider
        class ClaudeProvider(Provider):
            ...
    """
    if not hasattr(cls, "metadata"):
        raise ValueError(f"Provider {cls.__name__} must define metadata ClassVar")

    provider_id = cls.metadata.id
    _PROVIDERS[provider_id] = cls
    return cls


def get_provider(provider_id: str) -> type | None:
    """Get a provider class by ID.

    Returns:
        Provider class or None if not found
    """
    return _PROVIDERS.get(provider_id)


def list_provider_ids() -> list[str]:
    """List all registered provider IDs."""
    return list(_PROVIDERS.keys())


def create_provider(
    provider_id: str,
    client: httpx.AsyncClient,
    clock: Callable[[], float] = time.monotonic,
):
    """Create an instance of a provider.

    Raises:
        ValueError: If provider not found
    """
    provider_cls = get_provider(provider_id)
    if provider_cls is None:
        raise ValueError(f"Unknown provider: {provider_id}")
    return provider_cls(client, clock=clock)


def create_providers(
    client: httpx.AsyncClient,
    clock: Callable[[], float] = time.monotonic,
) -> list:
    """Instantiate every provider enabled in configuration.

    All providers share ``client``; each gets its own fetch coordinator.
    """
    providers = [create_provider(pid, client, clock) for pid in list_provider_ids()]
    return [p for p in providers if p.is_enabled()]


# Import and register providers
from quotabar.providers.base import Credential  # noqa: E402
from quotabar.providers.base import Provider  # noqa: E402
from quotabar.providers.base import ProviderMetadata  # noqa: E402
from quotabar.providers.claude import ClaudeProvider  # noqa: E402
from quotabar.providers.codex import CodexProvider  # noqa: E402
from quotabar.providers.gemini import GeminiProvider  # noqa: E402
from quotabar.providers.zai import ZaiProvider  # noqa: E402

# Register providers
register_provider(ClaudeProvider)
register_provider(CodexProvider)
register_provider(GeminiProvider)
register_provider(ZaiProvider)

__all__ = [
    "Credential",
    "Provider",
    "ProviderMetadata",
    "ClaudeProvider",
    "CodexProvider",
    "GeminiProvider",
    "ZaiProvider",
    "register_provider",
    "get_provider",
    "list_provider_ids",
    "create_provider",
    "create_providers",
]
