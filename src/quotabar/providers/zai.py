"""z.ai / ZHIPU quota provider.

Active only when Claude Code is pointed at a z.ai or ZHIPU endpoint through
ANTHROPIC_BASE_URL; the same bearer token then authorizes the quota API.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

import msgspec

from quotabar.core.http import default_headers
from quotabar.core.http import get_json
from quotabar.models import ProviderSummary
from quotabar.models import ZaiUsage
from quotabar.models import normalize_to_iso
from quotabar.models import parse_timestamp
from quotabar.models import parse_usage_percent
from quotabar.providers.base import Credential
from quotabar.providers.base import Provider
from quotabar.providers.base import ProviderMetadata
from quotabar.providers.detect import is_zai_backend
from quotabar.providers.detect import zai_api_base_url
from quotabar.validation import Decoded
from quotabar.validation import decode_as

logger = logging.getLogger(__name__)

QUOTA_PATH = "/api/monitor/usage/quota/limit"

TOKENS_LIMIT = "TOKENS_LIMIT"
TIME_LIMIT = "TIME_LIMIT"


class _QuotaData(msgspec.Struct):
    limits: list[dict[str, Any]]


class _QuotaBody(msgspec.Struct):
    data: _QuotaData


def parse_limits(limits: list[Mapping[str, Any]]) -> ZaiUsage:
    """Reduce the quota ``limits`` array to token and MCP usage."""
    tokens_percent = tokens_reset = mcp_percent = mcp_reset = None

    for limit in limits:
        kind = limit.get("type")
        if kind == TOKENS_LIMIT:
            tokens_percent = parse_usage_percent(limit)
            tokens_reset = parse_timestamp(limit.get("nextResetTime"))
        elif kind == TIME_LIMIT:
            mcp_percent = parse_usage_percent(limit)
            mcp_reset = parse_timestamp(limit.get("nextResetTime"))

    return ZaiUsage(
        tokens_percent=tokens_percent,
        tokens_reset_at=tokens_reset,
        mcp_percent=mcp_percent,
        mcp_reset_at=mcp_reset,
    )


class ZaiProvider(Provider[ZaiUsage]):
    """Provider for z.ai (and ZHIPU bigmodel.cn) GLM coding plan quotas."""

    metadata = ProviderMetadata(
        id="zai",
        name="z.ai",
        description="z.ai / ZHIPU GLM coding plan",
        endpoint="https://api.z.ai",
        homepage="https://z.ai",
    )

    def endpoint(self) -> str:
        """The configured origin, so each backend/account has its own key."""
        return zai_api_base_url() or self.metadata.endpoint

    async def load_credential(self) -> Credential | None:
        if not is_zai_backend() or zai_api_base_url() is None:
            return None
        token = os.environ.get("ANTHROPIC_AUTH_TOKEN")
        if not token:
            return None
        return Credential(token=token)

    def validate(self, body: Any) -> Decoded:
        return decode_as(body, _QuotaBody)

    async def fetch_remote(self, credential: Credential) -> ZaiUsage | None:
        url = f"{self.endpoint()}{QUOTA_PATH}"
        response = await get_json(
            self.client, url, headers=default_headers(credential.token)
        )
        if not response.ok:
            return None

        decoded = self.validate(response.data)
        if not decoded.success:
            logger.debug("zai: invalid quota response: %s", decoded.error)
            return None

        limits = decoded.value.data.limits
        logger.debug("zai: got %d limits", len(limits))
        return parse_limits(limits)

    def summarize(
        self, usage: ZaiUsage | None, installed: bool = True
    ) -> ProviderSummary:
        if not installed:
            return ProviderSummary.not_installed(self.name)
        if usage is None:
            return ProviderSummary.failed(self.name)

        return ProviderSummary(
            name=self.name,
            available=True,
            error=False,
            fiveHourPercent=usage.tokens_percent,
            sevenDayPercent=usage.mcp_percent,
            fiveHourReset=normalize_to_iso(usage.tokens_reset_at),
            sevenDayReset=normalize_to_iso(usage.mcp_reset_at),
            model=usage.model,
        )
