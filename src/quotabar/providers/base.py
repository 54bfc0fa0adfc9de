"""Base provider protocol and metadata for quotabar."""

from __future__ import annotations

import logging
import time
from abc import ABC
from abc import abstractmethod
from collections.abc import Callable
from typing import Any
from typing import ClassVar
from typing import Generic
from typing import TypeVar

import httpx
from msgspec import Struct

from quotabar.config.settings import DEFAULT_TTL_SECONDS
from quotabar.core.coordinator import FetchCoordinator
from quotabar.hashing import cache_key
from quotabar.models import ProviderSummary
from quotabar.validation import Decoded

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProviderMetadata(Struct, frozen=True):
    """Metadata about a provider."""

    id: str
    name: str
    description: str
    endpoint: str
    homepage: str


class Credential(Struct, frozen=True):
    """Opaque bearer credential for one provider account."""

    token: str
    account_id: str | None = None


class Provider(ABC, Generic[T]):
    """Abstract base class for all usage providers.

    Each provider must:
    1. Define metadata as a ClassVar
    2. Implement load_credential() (None means "not configured")
    3. Implement fetch_remote() and validate() for its usage endpoint
    4. Implement summarize() to normalize its snapshot

    Each instance owns its own FetchCoordinator, so cached data and in-flight
    requests are never shared across providers.
    """

    # Subclasses must define this
    metadata: ClassVar[ProviderMetadata]

    def __init__(
        self,
        client: httpx.AsyncClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.coordinator: FetchCoordinator[T] = FetchCoordinator(
            self.metadata.id, clock=clock
        )

    @property
    def id(self) -> str:
        """Get provider ID."""
        return self.metadata.id

    @property
    def name(self) -> str:
        """Get provider display name."""
        return self.metadata.name

    def endpoint(self) -> str:
        """Endpoint identity used in the cache key."""
        return self.metadata.endpoint

    async def is_installed(self) -> bool:
        """Check whether the provider's CLI is configured on this machine."""
        return await self.load_credential() is not None

    @abstractmethod
    async def load_credential(self) -> Credential | None:
        """Return the bearer credential, or None if unavailable."""

    @abstractmethod
    async def fetch_remote(self, credential: Credential) -> T | None:
        """Perform one network fetch. Returns None on any failure."""

    @abstractmethod
    def validate(self, body: Any) -> Decoded:
        """Check the minimal response shape before any field is trusted."""

    @abstractmethod
    def summarize(self, usage: T | None, installed: bool = True) -> ProviderSummary:
        """Normalize a snapshot (or its absence) into a ProviderSummary."""

    async def fetch_usage(self, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> T | None:
        """Fetch usage limits, served from cache within ``ttl_seconds``.

        Returns None when the provider is unavailable or the fetch failed.
        """
        credential = await self.load_credential()
        if credential is None:
            logger.debug("%s: no credential, skipping fetch", self.id)
            return None

        key = cache_key(self.endpoint(), credential.token)
        return await self.coordinator.fetch(
            key, ttl_seconds, lambda: self.fetch_remote(credential)
        )

    def reset_cache(self) -> None:
        """Clear cached usage and in-flight state (test isolation)."""
        self.coordinator.reset()

    def is_enabled(self) -> bool:
        """Check if this provider is enabled in configuration."""
        from quotabar.config.settings import get_config

        return get_config().is_provider_enabled(self.id)
