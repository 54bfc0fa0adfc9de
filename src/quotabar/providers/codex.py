"""Codex (ChatGPT backend) usage provider."""

from __future__ import annotations

import asyncio
import logging
import re
import tomllib
from typing import Any

import msgspec
from msgspec import structs

from quotabar.config.credentials import credential_exists
from quotabar.config.credentials import credential_mtime
from quotabar.config.credentials import read_credential
from quotabar.config.paths import codex_home
from quotabar.config.paths import codex_model_cache_file
from quotabar.config.settings import DEFAULT_TTL_SECONDS
from quotabar.core.http import default_headers
from quotabar.core.http import get_json
from quotabar.models import CodexUsage
from quotabar.models import ProviderSummary
from quotabar.models import UsageWindow
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

UNKNOWN_MODEL = "unknown"
MODEL_DETECT_TIMEOUT_SECONDS = 10.0

_MODEL_LINE = re.compile(r"^model:\s*(.+)$", re.MULTILINE)


class _Tokens(msgspec.Struct):
    access_token: str
    account_id: str


class _AuthFile(msgspec.Struct):
    tokens: _Tokens


class _Window(msgspec.Struct):
    used_percent: float
    reset_at: float | None = None


class _RateLimit(msgspec.Struct):
    primary_window: _Window | None = None
    secondary_window: _Window | None = None


class _UsageBody(msgspec.Struct):
    plan_type: str
    rate_limit: _RateLimit


class _ModelCache(msgspec.Struct, rename="camel"):
    model: str
    config_mtime: float


def _to_window(window: _Window | None) -> UsageWindow | None:
    if window is None:
        return None
    return UsageWindow(
        used_percent=clamp_percent(window.used_percent),
        resets_at=parse_timestamp(window.reset_at),
    )


def parse_model_line(output: str) -> str | None:
    """Extract the model name from the ``model: ...`` header of codex output."""
    match = _MODEL_LINE.search(output)
    if not match:
        return None
    return match.group(1).strip() or None


class CodexProvider(Provider[CodexUsage]):
    """Provider for OpenAI Codex CLI usage."""

    metadata = ProviderMetadata(
        id="codex",
        name="Codex",
        description="OpenAI's Codex CLI",
        endpoint="https://chatgpt.com/backend-api/wham/usage",
        homepage="https://chatgpt.com/codex",
    )

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._auth_cache: tuple[float, Credential] | None = None

    def auth_path(self):
        return codex_home() / "auth.json"

    def config_path(self):
        return codex_home() / "config.toml"

    async def is_installed(self) -> bool:
        """Codex is installed when its auth file exists."""
        return await credential_exists(self.auth_path())

    async def load_credential(self) -> Credential | None:
        """Load access token and account id, memoized by auth file mtime."""
        path = self.auth_path()
        mtime = await credential_mtime(path)
        if mtime is None:
            return None

        if self._auth_cache is not None and self._auth_cache[0] == mtime:
            return self._auth_cache[1]

        content = await read_credential(path)
        if content is None:
            return None

        decoded = decode_json_as(content, _AuthFile)
        if not decoded.success:
            logger.debug("codex: invalid auth file: %s", decoded.error)
            return None

        tokens: _Tokens = decoded.value.tokens
        if not tokens.access_token or not tokens.account_id:
            return None

        credential = Credential(token=tokens.access_token, account_id=tokens.account_id)
        self._auth_cache = (mtime, credential)
        return credential

    def validate(self, body: Any) -> Decoded:
        return decode_as(body, _UsageBody)

    async def fetch_remote(self, credential: Credential) -> CodexUsage | None:
        headers = default_headers(credential.token)
        if credential.account_id:
            headers["ChatGPT-Account-Id"] = credential.account_id

        response = await get_json(self.client, self.endpoint(), headers=headers)
        if not response.ok:
            return None

        decoded = self.validate(response.data)
        if not decoded.success:
            logger.debug("codex: invalid usage response: %s", decoded.error)
            return None

        body: _UsageBody = decoded.value
        return CodexUsage(
            model=UNKNOWN_MODEL,
            plan_type=body.plan_type,
            primary=_to_window(body.rate_limit.primary_window),
            secondary=_to_window(body.rate_limit.secondary_window),
        )

    async def fetch_usage(
        self, ttl_seconds: float = DEFAULT_TTL_SECONDS
    ) -> CodexUsage | None:
        """Fetch usage and attach the currently configured model.

        Model detection may spawn ``codex`` itself, so it runs outside the
        bounded usage fetch.
        """
        usage = await super().fetch_usage(ttl_seconds)
        if usage is None:
            return None
        return structs.replace(usage, model=await self.get_model())

    # Model detection

    async def get_model(self) -> str:
        """Resolve the current model.

        Priority: config.toml ``model`` key, cached detection (valid while
        config.toml is unchanged), ``codex exec`` output header.
        """
        if model := await self._model_from_config():
            logger.debug("codex: model from config: %s", model)
            return model

        config_mtime = await credential_mtime(self.config_path()) or 0.0
        if model := await self._cached_model(config_mtime):
            logger.debug("codex: model from cache: %s", model)
            return model

        if model := await self._detect_model():
            await asyncio.to_thread(self._save_model_cache, model, config_mtime)
            return model

        return UNKNOWN_MODEL

    async def _model_from_config(self) -> str | None:
        content = await read_credential(self.config_path())
        if content is None:
            return None
        try:
            data = tomllib.loads(content.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError):
            logger.debug("codex: unreadable config.toml")
            return None
        model = data.get("model")
        return model if isinstance(model, str) and model else None

    async def _cached_model(self, config_mtime: float) -> str | None:
        content = await read_credential(codex_model_cache_file())
        if content is None:
            return None
        decoded = decode_json_as(content, _ModelCache)
        if not decoded.success:
            return None
        cache: _ModelCache = decoded.value
        if cache.config_mtime != config_mtime or not cache.model:
            logger.debug("codex: model cache stale")
            return None
        return cache.model

    def _save_model_cache(self, model: str, config_mtime: float) -> None:
        path = codex_model_cache_file()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(
                msgspec.json.encode(_ModelCache(model=model, config_mtime=config_mtime))
            )
        except OSError as e:
            logger.debug("codex: could not save model cache: %s", e)

    async def _detect_model(self) -> str | None:
        """Run ``codex exec`` and read the model from its output header."""
        try:
            proc = await asyncio.create_subprocess_exec(
                "codex",
                "exec",
                "1+1=",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            logger.debug("codex: cannot run codex exec: %s", e)
            return None

        try:
            stdout, _ = await asyncio.wait_for(
                proc.communicate(), timeout=MODEL_DETECT_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.debug("codex: codex exec timed out")
            return None

        model = parse_model_line(stdout.decode("utf-8", errors="replace"))
        if model is None:
            logger.debug("codex: no model line in codex exec output")
        return model

    def reset_cache(self) -> None:
        super().reset_cache()
        self._auth_cache = None

    def summarize(
        self, usage: CodexUsage | None, installed: bool = True
    ) -> ProviderSummary:
        if not installed:
            return ProviderSummary.not_installed(self.name)
        if usage is None:
            return ProviderSummary.failed(self.name)

        primary = usage.primary or UsageWindow()
        secondary = usage.secondary or UsageWindow()
        return ProviderSummary(
            name=self.name,
            available=True,
            error=False,
            fiveHourPercent=primary.used_percent,
            sevenDayPercent=secondary.used_percent,
            fiveHourReset=normalize_to_iso(primary.resets_at),
            sevenDayReset=normalize_to_iso(secondary.resets_at),
            model=usage.model,
            plan=usage.plan_type,
        )
