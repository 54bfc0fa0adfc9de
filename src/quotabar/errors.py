"""Error categories and classification for quotabar.

Expected failures (provider not configured, network trouble, malformed
bodies, bad log lines) are converted to sentinel values where they happen and
only classified here for logging. ``QuotabarError`` is reserved for failures
the top-level command cannot recover from.
"""

from __future__ import annotations

import asyncio
import json
from enum import StrEnum

import httpx
import msgspec


class ErrorCategory(StrEnum):
    """Failure categories for logging and handling decisions."""

    UNAVAILABLE = "unavailable"  # No credential / provider not configured
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"  # Non-2xx response
    INVALID_RESPONSE = "invalid_response"  # Body failed shape validation
    PARSE = "parse"  # Undecodable JSON
    UNKNOWN = "unknown"


class QuotabarError(Exception):
    """Unexpected failure that terminates the current invocation."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN):
        super().__init__(message)
        self.message = message
        self.category = category


def classify_status(status_code: int) -> ErrorCategory | None:
    """Classify an HTTP status code; None for success codes."""
    if 200 <= status_code < 300:
        return None
    return ErrorCategory.HTTP_STATUS


def classify_exception(e: BaseException) -> ErrorCategory:
    """Classify any exception raised during a fetch or parse."""
    if isinstance(e, httpx.TimeoutException | asyncio.TimeoutError | TimeoutError):
        return ErrorCategory.TIMEOUT

    if isinstance(e, httpx.HTTPStatusError):
        return ErrorCategory.HTTP_STATUS

    if isinstance(e, httpx.TransportError | ConnectionError):
        return ErrorCategory.NETWORK

    if isinstance(e, msgspec.ValidationError):
        return ErrorCategory.INVALID_RESPONSE

    if isinstance(e, msgspec.DecodeError | json.JSONDecodeError | UnicodeDecodeError):
        return ErrorCategory.PARSE

    if isinstance(e, QuotabarError):
        return e.category

    return ErrorCategory.UNKNOWN
