"""Tests for the provider registry."""

from __future__ import annotations

import pytest

from quotabar.providers import ClaudeProvider
from quotabar.providers import CodexProvider
from quotabar.providers import create_provider
from quotabar.providers import create_providers
from quotabar.providers import get_provider
from quotabar.providers import list_provider_ids
from quotabar.providers import register_provider
from quotabar.providers.base import ProviderMetadata


class TestProviderMetadata:
    """Tests for ProviderMetadata."""

    def test_metadata_immutability(self):
        """ProviderMetadata is immutable."""
        metadata = ProviderMetadata(
            id="test",
            name="Test",
            description="Test",
            endpoint="https://example.com/usage",
            homepage="https://example.com",
        )
        with pytest.raises(AttributeError):
            metadata.id = "other"


class TestRegistry:
    """Tests for provider registration and lookup."""

    def test_registration_order(self):
        """Providers are listed in display order."""
        assert list_provider_ids() == ["claude", "codex", "gemini", "zai"]

    def test_get_provider(self):
        assert get_provider("claude") is ClaudeProvider
        assert get_provider("nope") is None

    def test_register_requires_metadata(self):
        class NoMetadata:
            pass

        with pytest.raises(ValueError, match="metadata"):
            register_provider(NoMetadata)

    def test_ids_match_metadata(self):
        for provider_id in list_provider_ids():
            assert get_provider(provider_id).metadata.id == provider_id


class TestCreateProviders:
    """Tests for provider instantiation."""

    @pytest.mark.asyncio
    async def test_create_provider(self, make_client, clock):
        async with make_client(lambda request: None) as client:
            provider = create_provider("codex", client, clock)
        assert isinstance(provider, CodexProvider)
        assert provider.client is client

    @pytest.mark.asyncio
    async def test_create_unknown_provider(self, make_client):
        async with make_client(lambda request: None) as client:
            with pytest.raises(ValueError, match="Unknown provider"):
                create_provider("cursor", client)

    @pytest.mark.asyncio
    async def test_each_provider_has_own_coordinator(self, make_client, clock):
        async with make_client(lambda request: None) as client:
            providers = create_providers(client, clock)
        assert [p.id for p in providers] == ["claude", "codex", "gemini", "zai"]
        coordinators = {id(p.coordinator) for p in providers}
        assert len(coordinators) == len(providers)

    @pytest.mark.asyncio
    async def test_filtered_by_config(self, monkeypatch, make_client, clock):
        monkeypatch.setenv("QUOTABAR_ENABLED_PROVIDERS", "gemini, claude")
        async with make_client(lambda request: None) as client:
            providers = create_providers(client, clock)
        assert [p.id for p in providers] == ["claude", "gemini"]
