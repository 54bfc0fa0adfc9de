"""Check usage across every provider and combine the results."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import msgspec

from quotabar.config.settings import DEFAULT_TTL_SECONDS
from quotabar.core.recommend import recommend
from quotabar.models import ProviderSummary
from quotabar.models import Recommendation
from quotabar.providers.base import Provider

logger = logging.getLogger(__name__)

# Keys always present in JSON output, in order
REPORT_PROVIDER_IDS = ("claude", "codex", "gemini", "zai")

# Reported as null rather than "not installed" when absent
OPTIONAL_PROVIDER_IDS = frozenset({"codex", "gemini", "zai"})


class UsageReport(msgspec.Struct, frozen=True):
    """Per-provider summaries plus the recommendation derived from them."""

    summaries: dict[str, ProviderSummary]
    recommendation: Recommendation

    def to_builtins(self) -> dict[str, Any]:
        """JSON shape of ``quotabar check --json``.

        Optional providers that were not checked or are not installed map to
        None.
        """
        data: dict[str, Any] = {}
        for provider_id in REPORT_PROVIDER_IDS:
            summary = self.summaries.get(provider_id)
            if summary is None or (
                provider_id in OPTIONAL_PROVIDER_IDS and not summary.available
            ):
                data[provider_id] = None
            else:
                data[provider_id] = msgspec.to_builtins(summary)
        data["recommendation"] = self.recommendation.name
        data["recommendationReason"] = self.recommendation.reason
        return data


async def check_provider(
    provider: Provider, ttl_seconds: float = DEFAULT_TTL_SECONDS
) -> ProviderSummary:
    """Summarize one provider. Never raises for expected failures."""
    if not await provider.is_installed():
        logger.debug("%s: not installed", provider.id)
        return provider.summarize(None, installed=False)

    usage = await provider.fetch_usage(ttl_seconds)
    return provider.summarize(usage)


async def collect_usage(
    providers: list[Provider], ttl_seconds: float = DEFAULT_TTL_SECONDS
) -> UsageReport:
    """Check all providers concurrently and recommend one."""
    results = await asyncio.gather(
        *(check_provider(p, ttl_seconds) for p in providers),
        return_exceptions=True,
    )

    summaries: dict[str, ProviderSummary] = {}
    for provider, result in zip(providers, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.debug("%s: unexpected error: %s", provider.id, result, exc_info=result)
            result = ProviderSummary.failed(provider.name)
        summaries[provider.id] = result

    return UsageReport(summaries=summaries, recommendation=recommend(summaries))
