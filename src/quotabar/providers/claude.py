"""Claude (Anthropic OAuth) usage provider."""

from __future__ import annotations

import logging
import os
from typing import Any

import msgspec

from quotabar.config.credentials import read_credential
from quotabar.config.credentials import read_keychain_password
from quotabar.config.paths import claude_home
from quotabar.core.http import default_headers
from quotabar.core.http import get_json
from quotabar.models import ClaudeUsage
from quotabar.models import ProviderSummary
from quotabar.models import UsageWindow
from quotabar.models import clamp_percent
from quotabar.models import normalize_to_iso
from quotabar.models import parse_timestamp
from quotabar.providers.base import Credential
from quotabar.providers.base import Provider
from quotabar.providers.base import ProviderMetadata
from quotabar.providers.detect import is_zai_backend
from quotabar.validation import Decoded
from quotabar.validation import decode_as
from quotabar.validation import decode_json_as

logger = logging.getLogger(__name__)

KEYCHAIN_SERVICE = "Claude Code-credentials"


class _OAuthToken(msgspec.Struct, rename="camel"):
    access_token: str
    subscription_type: str | None = None


class _CredentialsFile(msgspec.Struct, rename="camel"):
    claude_ai_oauth: _OAuthToken


class _Window(msgspec.Struct):
    utilization: float
    resets_at: str | None = None


class _UsageBody(msgspec.Struct):
    five_hour: _Window | None = None
    seven_day: _Window | None = None
    seven_day_sonnet: _Window | None = None


def _to_window(window: _Window | None) -> UsageWindow | None:
    if window is None:
        return None
    return UsageWindow(
        used_percent=clamp_percent(window.utilization),
        resets_at=parse_timestamp(window.resets_at),
    )


class ClaudeProvider(Provider[ClaudeUsage]):
    """Provider for Claude Code subscription usage."""

    metadata = ProviderMetadata(
        id="claude",
        name="Claude",
        description="Anthropic's Claude Code",
        endpoint="https://api.anthropic.com/api/oauth/usage",
        homepage="https://claude.ai",
    )

    BETA_HEADER = "oauth-2025-04-20"

    def credential_path(self):
        return claude_home() / ".credentials.json"

    async def is_installed(self) -> bool:
        """Claude limits are hidden when z.ai serves the Anthropic API."""
        if is_zai_backend():
            return False
        return await super().is_installed()

    async def load_credential(self) -> Credential | None:
        """Load the OAuth token.

        Priority: CLAUDE_CODE_OAUTH_TOKEN, ~/.claude/.credentials.json,
        then the macOS keychain.
        """
        if token := os.environ.get("CLAUDE_CODE_OAUTH_TOKEN"):
            return Credential(token=token)

        content = await read_credential(self.credential_path())
        if content is None:
            content = await read_keychain_password(KEYCHAIN_SERVICE)
        if content is None:
            return None

        decoded = decode_json_as(content, _CredentialsFile)
        if not decoded.success:
            logger.debug("claude: invalid credentials file: %s", decoded.error)
            return None
        return Credential(token=decoded.value.claude_ai_oauth.access_token)

    def validate(self, body: Any) -> Decoded:
        return decode_as(body, _UsageBody)

    async def fetch_remote(self, credential: Credential) -> ClaudeUsage | None:
        headers = default_headers(credential.token)
        headers["anthropic-beta"] = self.BETA_HEADER

        response = await get_json(self.client, self.endpoint(), headers=headers)
        if not response.ok:
            return None

        decoded = self.validate(response.data)
        if not decoded.success:
            logger.debug("claude: invalid usage response: %s", decoded.error)
            return None

        body: _UsageBody = decoded.value
        return ClaudeUsage(
            five_hour=_to_window(body.five_hour),
            seven_day=_to_window(body.seven_day),
            seven_day_sonnet=_to_window(body.seven_day_sonnet),
        )

    def summarize(
        self, usage: ClaudeUsage | None, installed: bool = True
    ) -> ProviderSummary:
        if not installed:
            return ProviderSummary.not_installed(self.name)
        if usage is None:
            return ProviderSummary.failed(self.name)

        five_hour = usage.five_hour or UsageWindow()
        seven_day = usage.seven_day or UsageWindow()
        return ProviderSummary(
            name=self.name,
            available=True,
            error=False,
            fiveHourPercent=five_hour.used_percent,
            sevenDayPercent=seven_day.used_percent,
            fiveHourReset=normalize_to_iso(five_hour.resets_at),
            sevenDayReset=normalize_to_iso(seven_day.resets_at),
        )
