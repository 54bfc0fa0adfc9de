"""Detect which backend the Anthropic-compatible CLI is pointed at."""

from __future__ import annotations

import os
from enum import StrEnum
from urllib.parse import urlsplit


class Backend(StrEnum):
    """Backend serving Claude Code's Anthropic API calls."""

    ANTHROPIC = "anthropic"
    ZAI = "zai"
    ZHIPU = "zhipu"


def detect_backend() -> Backend:
    """Detect the backend from ANTHROPIC_BASE_URL."""
    base_url = os.environ.get("ANTHROPIC_BASE_URL", "")

    if "api.z.ai" in base_url:
        return Backend.ZAI
    if "bigmodel.cn" in base_url:
        return Backend.ZHIPU

    return Backend.ANTHROPIC


def is_zai_backend() -> bool:
    """Check whether z.ai or ZHIPU is serving requests."""
    return detect_backend() in (Backend.ZAI, Backend.ZHIPU)


def zai_api_base_url() -> str | None:
    """Return scheme + host of ANTHROPIC_BASE_URL, or None if unparseable."""
    base_url = os.environ.get("ANTHROPIC_BASE_URL")
    if not base_url:
        return None

    try:
        parts = urlsplit(base_url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"
