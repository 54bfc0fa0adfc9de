"""Data models for quotabar.

Defines the per-provider usage snapshots returned by the fetch layer and the
normalized summary every provider is reduced to before it is displayed or
ranked by the recommendation engine.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC
from datetime import datetime
from typing import Any

import msgspec


class UsageWindow(msgspec.Struct, frozen=True):
    """A single rate-limit window (e.g. 5-hour session, 7-day weekly)."""

    used_percent: int | None = None  # 0-100, None when indeterminate
    resets_at: datetime | None = None  # When the window resets (UTC)

    def remaining(self) -> int | None:
        """Return percentage remaining (100 - used_percent)."""
        if self.used_percent is None:
            return None
        return 100 - self.used_percent


class ClaudeUsage(msgspec.Struct, frozen=True):
    """Claude (Anthropic OAuth) usage limits."""

    five_hour: UsageWindow | None = None
    seven_day: UsageWindow | None = None
    seven_day_sonnet: UsageWindow | None = None


class CodexUsage(msgspec.Struct, frozen=True):
    """Codex (ChatGPT backend) usage limits."""

    model: str
    plan_type: str
    primary: UsageWindow | None = None  # 5-hour window
    secondary: UsageWindow | None = None  # 7-day window


class GeminiBucket(msgspec.Struct, frozen=True):
    """Per-model quota bucket reported by the Gemini quota API."""

    model_id: str
    used_percent: int | None = None
    resets_at: datetime | None = None


class GeminiUsage(msgspec.Struct, frozen=True):
    """Gemini CLI usage limits."""

    model: str
    used_percent: int | None = None  # Headline percent for the current model
    resets_at: datetime | None = None
    buckets: tuple[GeminiBucket, ...] = ()


class ZaiUsage(msgspec.Struct, frozen=True):
    """z.ai / ZHIPU quota limits."""

    model: str = "GLM"
    tokens_percent: int | None = None  # 5-hour token quota
    tokens_reset_at: datetime | None = None
    mcp_percent: int | None = None  # Monthly MCP quota
    mcp_reset_at: datetime | None = None


class BucketSummary(msgspec.Struct, frozen=True):
    """Normalized per-model bucket for output."""

    modelId: str
    usedPercent: int | None
    resetAt: str | None


class ProviderSummary(msgspec.Struct, frozen=True, omit_defaults=True):
    """Normalized usage summary shared by every provider.

    Field names follow the JSON output shape of ``quotabar check --json``.
    """

    name: str
    available: bool
    error: bool
    fiveHourPercent: int | None
    sevenDayPercent: int | None
    fiveHourReset: str | None
    sevenDayReset: str | None
    model: str | None = None
    plan: str | None = None
    buckets: tuple[BucketSummary, ...] | None = None

    @classmethod
    def not_installed(cls, name: str) -> ProviderSummary:
        """Summary for a provider whose CLI is not configured."""
        return cls(
            name=name,
            available=False,
            error=False,
            fiveHourPercent=None,
            sevenDayPercent=None,
            fiveHourReset=None,
            sevenDayReset=None,
        )

    @classmethod
    def failed(cls, name: str) -> ProviderSummary:
        """Summary for an installed provider whose fetch failed."""
        return cls(
            name=name,
            available=True,
            error=True,
            fiveHourPercent=None,
            sevenDayPercent=None,
            fiveHourReset=None,
            sevenDayReset=None,
        )

    @property
    def is_eligible(self) -> bool:
        """Whether this summary can take part in a recommendation."""
        return self.available and not self.error and self.fiveHourPercent is not None


class Recommendation(msgspec.Struct, frozen=True):
    """Which provider to use next, and why."""

    name: str | None
    reason: str


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: float) -> int:
    """Round a percentage and clamp it to [0, 100]."""
    return min(100, max(0, round_half_up(value)))


def calculate_usage_percent(current_value: float, remaining: float) -> int | None:
    """Derive a usage percentage from a used amount and a remaining amount.

    Returns None when the total is not positive.
    """
    total = current_value + remaining
    if total <= 0:
        return None
    return clamp_percent(current_value / total * 100)


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def parse_usage_percent(limit: Mapping[str, Any]) -> int | None:
    """Extract a usage percentage from a quota limit object.

    Precedence:
    1. ``percentage`` (already a percent)
    2. ``currentValue`` with ``remaining``
    3. ``currentValue`` with ``usage`` (the total limit)
    """
    percentage = _number(limit.get("percentage"))
    if percentage is not None:
        return clamp_percent(percentage)

    current = _number(limit.get("currentValue"))
    if current is None:
        return None

    remaining = _number(limit.get("remaining"))
    if remaining is not None:
        return calculate_usage_percent(current, remaining)

    total = _number(limit.get("usage"))
    if total is not None:
        if total <= 0:
            return None
        return clamp_percent(current / total * 100)

    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a datetime, ISO-8601 string or epoch number into aware UTC.

    Epoch numbers above 1e11 are treated as milliseconds.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    if isinstance(value, int | float):
        try:
            seconds = value / 1000 if abs(value) > 1e11 else value
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return parsed.astimezone(UTC)
        except (OverflowError, ValueError):
            return None

    return None


def normalize_to_iso(value: Any) -> str | None:
    """Normalize a timestamp to ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"
