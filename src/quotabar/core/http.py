"""HTTP helpers for quotabar provider adapters."""

from __future__ import annotations

import logging
from typing import Any

import httpx
import msgspec

from quotabar import __version__
from quotabar.core.coordinator import API_TIMEOUT_SECONDS
from quotabar.errors import ErrorCategory
from quotabar.errors import classify_exception
from quotabar.errors import classify_status

logger = logging.getLogger(__name__)

USER_AGENT = f"quotabar/{__version__}"


class FetchResponse(msgspec.Struct, frozen=True):
    """Outcome of a single HTTP request with a JSON body."""

    ok: bool
    status_code: int | None = None
    data: Any = None
    error: ErrorCategory | None = None

    @classmethod
    def success(cls, status_code: int, data: Any) -> FetchResponse:
        return cls(ok=True, status_code=status_code, data=data)

    @classmethod
    def failure(
        cls, error: ErrorCategory, status_code: int | None = None
    ) -> FetchResponse:
        return cls(ok=False, status_code=status_code, error=error)


def get_timeout_config() -> httpx.Timeout:
    """Timeout applied to every request made by quotabar."""
    return httpx.Timeout(API_TIMEOUT_SECONDS)


def create_http_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create the HTTP client shared by all providers for one invocation.

    Extra keyword arguments (e.g. ``transport``) are passed to
    ``httpx.AsyncClient``.
    """
    limits = httpx.Limits(
        max_connections=20,
        max_keepalive_connections=5,
    )
    kwargs.setdefault("timeout", get_timeout_config())
    kwargs.setdefault("limits", limits)
    kwargs.setdefault("follow_redirects", True)
    return httpx.AsyncClient(**kwargs)


def default_headers(token: str) -> dict[str, str]:
    """Headers sent with every usage request."""
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
        "Authorization": f"Bearer {token}",
    }


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    json: Any = None,
) -> FetchResponse:
    """Issue a request and decode its JSON body.

    Network errors, timeouts, non-2xx statuses and undecodable bodies all
    produce a failed ``FetchResponse``; nothing is raised.
    """
    try:
        response = await client.request(method, url, headers=headers, json=json)
    except httpx.HTTPError as e:
        category = classify_exception(e)
        logger.debug("%s %s failed (%s): %s", method, url, category, e)
        return FetchResponse.failure(category)

    if (category := classify_status(response.status_code)) is not None:
        logger.debug("%s %s returned %s", method, url, response.status_code)
        return FetchResponse.failure(category, status_code=response.status_code)

    try:
        data = msgspec.json.decode(response.content)
    except (msgspec.DecodeError, UnicodeDecodeError, RecursionError):
        logger.debug("%s %s returned invalid JSON", method, url)
        return FetchResponse.failure(ErrorCategory.PARSE, response.status_code)

    return FetchResponse.success(response.status_code, data)


async def get_json(
    client: httpx.AsyncClient, url: str, headers: dict[str, str] | None = None
) -> FetchResponse:
    """GET ``url`` and decode its JSON body."""
    return await request_json(client, "GET", url, headers=headers)


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str] | None = None,
    json: Any = None,
) -> FetchResponse:
    """POST ``json`` to ``url`` and decode the JSON body."""
    return await request_json(client, "POST", url, headers=headers, json=json)
