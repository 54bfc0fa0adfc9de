"""Tests for data models and percentage helpers."""

from __future__ import annotations

from datetime import datetime, timezone

import msgspec
import pytest

from quotabar.hashing import cache_key
from quotabar.hashing import hash_token
from quotabar.models import ProviderSummary
from quotabar.models import UsageWindow
from quotabar.models import calculate_usage_percent
from quotabar.models import clamp_percent
from quotabar.models import normalize_to_iso
from quotabar.models import parse_timestamp
from quotabar.models import parse_usage_percent
from quotabar.models import round_half_up


class TestPercentHelpers:
    """Tests for percentage derivation."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (1.5, 2), (2.4, 2), (-3.0, 0), (100.4, 100), (250.0, 100)],
    )
    def test_clamp_percent(self, value, expected):
        assert clamp_percent(value) == expected

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(49.5) == 50

    @pytest.mark.parametrize(
        "current,remaining",
        [(0, 1), (1, 0), (30, 70), (1, 2), (999, 1), (-5, 10), (10, -5), (0.001, 1e6)],
    )
    def test_calculated_percent_in_range(self, current, remaining):
        """Any positive total yields a percent inside [0, 100]."""
        result = calculate_usage_percent(current, remaining)
        assert result is not None
        assert 0 <= result <= 100

    @pytest.mark.parametrize("current,remaining", [(0, 0), (5, -5), (-1, 0)])
    def test_non_positive_total_is_none(self, current, remaining):
        assert calculate_usage_percent(current, remaining) is None

    def test_calculated_percent_value(self):
        assert calculate_usage_percent(30, 70) == 30
        assert calculate_usage_percent(1, 2) == 33


class TestParseUsagePercent:
    """Tests for parse_usage_percent precedence."""

    def test_direct_percentage(self):
        assert parse_usage_percent({"percentage": 42}) == 42

    def test_current_and_remaining(self):
        assert parse_usage_percent({"currentValue": 30, "remaining": 70}) == 30

    def test_current_and_total(self):
        assert parse_usage_percent({"currentValue": 25, "usage": 100}) == 25

    def test_percentage_wins(self):
        limit = {"percentage": 42, "currentValue": 30, "remaining": 70, "usage": 100}
        assert parse_usage_percent(limit) == 42

    def test_remaining_wins_over_total(self):
        limit = {"currentValue": 10, "remaining": 10, "usage": 100}
        assert parse_usage_percent(limit) == 50

    @pytest.mark.parametrize("total", [0, -100])
    def test_non_positive_total_is_none(self, total):
        assert parse_usage_percent({"currentValue": 50, "usage": total}) is None

    def test_nothing_usable(self):
        assert parse_usage_percent({}) is None
        assert parse_usage_percent({"currentValue": 5}) is None
        assert parse_usage_percent({"percentage": "42"}) is None

    def test_booleans_are_not_numbers(self):
        assert parse_usage_percent({"percentage": True}) is None


class TestTimestamps:
    """Tests for timestamp parsing and normalization."""

    def test_iso_with_z(self):
        parsed = parse_timestamp("2025-01-15T12:00:00Z")
        assert parsed == datetime(2025, 1, 15, 12, tzinfo=timezone.utc)

    def test_epoch_seconds_and_millis_agree(self):
        assert parse_timestamp(1736942400) == parse_timestamp(1736942400000)

    def test_invalid_values(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(True) is None
        assert parse_timestamp(int("9" * 400)) is None
        assert parse_timestamp(float("inf")) is None
        assert parse_timestamp("9999-12-31T23:59:59-05:00") is None
        assert normalize_to_iso("0001-01-01T00:00:00+01:00") is None

    def test_naive_datetime_is_utc(self):
        parsed = parse_timestamp(datetime(2025, 1, 15, 12))
        assert parsed.tzinfo is not None

    def test_normalize_to_iso(self):
        assert normalize_to_iso("2025-01-15T12:00:00+00:00") == "2025-01-15T12:00:00.000Z"
        assert normalize_to_iso(1736942400000) == "2025-01-15T12:00:00.000Z"
        assert normalize_to_iso("garbage") is None
        assert normalize_to_iso(None) is None


class TestSummaries:
    """Tests for UsageWindow and ProviderSummary."""

    def test_window_remaining(self):
        assert UsageWindow(used_percent=30).remaining() == 70
        assert UsageWindow().remaining() is None

    def test_not_installed_is_ineligible(self):
        summary = ProviderSummary.not_installed("Codex")
        assert not summary.available
        assert not summary.error
        assert not summary.is_eligible

    def test_failed_is_ineligible(self):
        summary = ProviderSummary.failed("Codex")
        assert summary.available
        assert summary.error
        assert not summary.is_eligible

    def test_encoding_omits_unset_optional_fields(self):
        data = msgspec.to_builtins(ProviderSummary.failed("Codex"))
        assert "model" not in data
        assert data["fiveHourPercent"] is None


class TestHashing:
    """Tests for credential fingerprints."""

    def test_hash_is_short_and_stable(self):
        assert hash_token("secret") == hash_token("secret")
        assert len(hash_token("secret")) == 16
        assert hash_token("secret") != hash_token("other")

    def test_cache_key_hides_secret(self):
        key = cache_key("https://api.example", "super-secret-token")
        assert key.startswith("https://api.example:")
        assert "super-secret-token" not in key
