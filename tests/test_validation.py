"""Tests for schema validation of untrusted JSON."""

from __future__ import annotations

import msgspec

from quotabar.validation import decode_as
from quotabar.validation import decode_json_as


class _Body(msgspec.Struct):
    plan_type: str
    rate_limit: dict


class TestDecodeAs:
    """Tests for decode_as."""

    def test_valid(self):
        result = decode_as({"plan_type": "plus", "rate_limit": {}}, _Body)
        assert result.success
        assert result.value.plan_type == "plus"

    def test_unknown_fields_ignored(self):
        result = decode_as({"plan_type": "plus", "rate_limit": {}, "extra": 1}, _Body)
        assert result.success

    def test_missing_field_fails(self):
        result = decode_as({"plan_type": "plus"}, _Body)
        assert not result.success
        assert "rate_limit" in result.error

    def test_wrong_type_fails(self):
        result = decode_as({"plan_type": "plus", "rate_limit": None}, _Body)
        assert not result.success

    def test_non_object_fails(self):
        assert not decode_as([1, 2], _Body).success


class TestDecodeJsonAs:
    """Tests for decode_json_as."""

    def test_untyped(self):
        result = decode_json_as(b'{"a": 1}')
        assert result.success
        assert result.value == {"a": 1}

    def test_malformed_json(self):
        result = decode_json_as(b"{not json")
        assert not result.success
        assert result.error

    def test_schema_mismatch(self):
        assert not decode_json_as(b'{"plan_type": 1}', _Body).success

    def test_invalid_utf8(self):
        result = decode_json_as(b'{"x": "\xff"}')
        assert not result.success
        assert result.error

    def test_deeply_nested(self):
        assert not decode_json_as(b"[" * 100_000).success
