"""Core fetch coordination and utilities for quotabar."""

from quotabar.core.coordinator import API_TIMEOUT_SECONDS
from quotabar.core.coordinator import CacheEntry
from quotabar.core.coordinator import FetchCoordinator
from quotabar.core.http import FetchResponse
from quotabar.core.http import create_http_client
from quotabar.core.http import get_json
from quotabar.core.http import get_timeout_config
from quotabar.core.http import post_json
from quotabar.core.recommend import recommend

__all__ = [
    # coordinator
    "API_TIMEOUT_SECONDS",
    "CacheEntry",
    "FetchCoordinator",
    # http
    "FetchResponse",
    "create_http_client",
    "get_json",
    "get_timeout_config",
    "post_json",
    # recommend
    "recommend",
]
