"""Gemini CLI usage provider.

Gemini reports per-model daily quota buckets through the Cloud Code API used
by the Gemini CLI. Each bucket carries the fraction of quota remaining.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import msgspec

from quotabar.config.credentials import credential_exists
from quotabar.config.credentials import read_credential
from quotabar.config.paths import gemini_home
from quotabar.core.http import default_headers
from quotabar.core.http import post_json
from quotabar.models import BucketSummary
from quotabar.models import GeminiBucket
from quotabar.models import GeminiUsage
from quotabar.models import ProviderSummary
from quotabar.models import clamp_percent
from quotabar.models import normalize_to_iso
from quotabar.models import parse_timestamp
from quotabar.providers.base import Credential
from quotabar.providers.base import Provider
from quotabar.providers.base import ProviderMetadata
from quotabar.validation import Decoded
from quotabar.validation import decode_as
from quotabar.validation import decode_json_as

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-pro"


class _OAuthCreds(msgspec.Struct):
    access_token: str


class _Bucket(msgspec.Struct, rename="camel"):
    model_id: str | None = None
    remaining_fraction: float | None = None
    reset_time: str | None = None


class _QuotaBody(msgspec.Struct):
    buckets: list[_Bucket]


class _CodeAssistBody(msgspec.Struct, rename="camel"):
    cloudaicompanion_project: str | None = None


class _ModelSettings(msgspec.Struct):
    name: str | None = None


def _model_name(model_id: str) -> str:
    # "models/gemini-2.5-pro" -> "gemini-2.5-pro"
    return model_id.rsplit("/", 1)[-1]


def _to_bucket(bucket: _Bucket) -> GeminiBucket:
    used = None
    if bucket.remaining_fraction is not None:
        used = clamp_percent((1 - bucket.remaining_fraction) * 100)
    return GeminiBucket(
        model_id=_model_name(bucket.model_id or "unknown"),
        used_percent=used,
        resets_at=parse_timestamp(bucket.reset_time),
    )


def merge_buckets(buckets: list[GeminiBucket]) -> tuple[GeminiBucket, ...]:
    """Keep one bucket per model: the most used one."""
    merged: dict[str, GeminiBucket] = {}
    for bucket in buckets:
        existing = merged.get(bucket.model_id)
        if existing is None or (bucket.used_percent or 0) > (existing.used_percent or 0):
            merged[bucket.model_id] = bucket
    return tuple(merged.values())


def pick_headline(
    buckets: tuple[GeminiBucket, ...], model: str
) -> GeminiBucket | None:
    """The bucket for ``model``, else the most used bucket."""
    for bucket in buckets:
        if bucket.model_id == model:
            return bucket
    known = [b for b in buckets if b.used_percent is not None]
    if not known:
        return None
    return max(known, key=lambda b: b.used_percent)


class GeminiProvider(Provider[GeminiUsage]):
    """Provider for Google Gemini CLI usage."""

    metadata = ProviderMetadata(
        id="gemini",
        name="Gemini",
        description="Google's Gemini CLI",
        endpoint="https://cloudcode-pa.googleapis.com/v1internal:retrieveUserQuota",
        homepage="https://github.com/google-gemini/gemini-cli",
    )

    CODE_ASSIST_URL = "https://cloudcode-pa.googleapis.com/v1internal:loadCodeAssist"

    def credential_path(self):
        return gemini_home() / "oauth_creds.json"

    def settings_path(self):
        return gemini_home() / "settings.json"

    async def is_installed(self) -> bool:
        """Gemini is installed when its OAuth credential file exists."""
        return await credential_exists(self.credential_path())

    async def load_credential(self) -> Credential | None:
        content = await read_credential(self.credential_path())
        if content is None:
            return None

        decoded = decode_json_as(content, _OAuthCreds)
        if not decoded.success or not decoded.value.access_token:
            logger.debug("gemini: invalid oauth_creds.json: %s", decoded.error)
            return None
        return Credential(token=decoded.value.access_token)

    async def get_model(self) -> str:
        """Current model from GEMINI_MODEL or settings.json."""
        if model := os.environ.get("GEMINI_MODEL"):
            return model

        content = await read_credential(self.settings_path())
        if content is None:
            return DEFAULT_MODEL

        decoded = decode_json_as(content)
        if not decoded.success or not isinstance(decoded.value, dict):
            return DEFAULT_MODEL

        model = decoded.value.get("model")
        if isinstance(model, str) and model:
            return model
        if isinstance(model, dict):
            settings = decode_as(model, _ModelSettings)
            if settings.success and settings.value.name:
                return settings.value.name
        return DEFAULT_MODEL

    async def _get_project(self, headers: dict[str, str]) -> str | None:
        if project := os.environ.get("GOOGLE_CLOUD_PROJECT"):
            return project

        response = await post_json(
            self.client,
            self.CODE_ASSIST_URL,
            headers=headers,
            json={"metadata": {"pluginType": "GEMINI"}},
        )
        if not response.ok:
            return None
        decoded = decode_as(response.data, _CodeAssistBody)
        if not decoded.success:
            return None
        return decoded.value.cloudaicompanion_project

    def validate(self, body: Any) -> Decoded:
        return decode_as(body, _QuotaBody)

    async def fetch_remote(self, credential: Credential) -> GeminiUsage | None:
        headers = default_headers(credential.token)

        project = await self._get_project(headers)
        payload = {"project": project} if project else {}

        response = await post_json(
            self.client, self.endpoint(), headers=headers, json=payload
        )
        if not response.ok:
            return None

        decoded = self.validate(response.data)
        if not decoded.success:
            logger.debug("gemini: invalid quota response: %s", decoded.error)
            return None

        buckets = merge_buckets([_to_bucket(b) for b in decoded.value.buckets])
        model = await self.get_model()
        headline = pick_headline(buckets, model)

        return GeminiUsage(
            model=model,
            used_percent=headline.used_percent if headline else None,
            resets_at=headline.resets_at if headline else None,
            buckets=buckets,
        )

    def summarize(
        self, usage: GeminiUsage | None, installed: bool = True
    ) -> ProviderSummary:
        if not installed:
            return ProviderSummary.not_installed(self.name)
        if usage is None:
            return ProviderSummary.failed(self.name)

        return ProviderSummary(
            name=self.name,
            available=True,
            error=False,
            fiveHourPercent=usage.used_percent,
            sevenDayPercent=None,
            fiveHourReset=normalize_to_iso(usage.resets_at),
            sevenDayReset=None,
            model=usage.model,
            buckets=tuple(
                BucketSummary(
                    modelId=b.model_id,
                    usedPercent=b.used_percent,
                    resetAt=normalize_to_iso(b.resets_at),
                )
                for b in usage.buckets
            ),
        )
