"""Tests for error classification."""

from __future__ import annotations

import asyncio

import httpx
import msgspec
import pytest

from quotabar.errors import ErrorCategory
from quotabar.errors import QuotabarError
from quotabar.errors import classify_exception
from quotabar.errors import classify_status


def _validation_error() -> msgspec.ValidationError:
    try:
        msgspec.convert({"a": "x"}, type=dict[str, int])
    except msgspec.ValidationError as e:
        return e
    raise AssertionError("expected ValidationError")


class TestClassifyStatus:
    """Tests for classify_status."""

    @pytest.mark.parametrize("code", [200, 201, 204])
    def test_success_codes(self, code):
        assert classify_status(code) is None

    @pytest.mark.parametrize("code", [301, 401, 403, 404, 429, 500, 503])
    def test_failure_codes(self, code):
        assert classify_status(code) is ErrorCategory.HTTP_STATUS


class TestClassifyException:
    """Tests for classify_exception."""

    def test_timeouts(self):
        request = httpx.Request("GET", "https://example.test")
        assert classify_exception(httpx.ReadTimeout("t", request=request)) is ErrorCategory.TIMEOUT
        assert classify_exception(asyncio.TimeoutError()) is ErrorCategory.TIMEOUT

    def test_network(self):
        request = httpx.Request("GET", "https://example.test")
        assert classify_exception(httpx.ConnectError("c", request=request)) is ErrorCategory.NETWORK
        assert classify_exception(ConnectionResetError()) is ErrorCategory.NETWORK

    def test_validation_before_decode(self):
        assert classify_exception(_validation_error()) is ErrorCategory.INVALID_RESPONSE

    def test_decode(self):
        assert classify_exception(msgspec.DecodeError("bad")) is ErrorCategory.PARSE

    def test_quotabar_error_keeps_category(self):
        error = QuotabarError("bad config", ErrorCategory.PARSE)
        assert classify_exception(error) is ErrorCategory.PARSE
        assert error.message == "bad config"

    def test_unknown(self):
        assert classify_exception(RuntimeError("?")) is ErrorCategory.UNKNOWN
