"""Tests for expiration timestamps and timezone detection."""

from datetime import datetime, timedelta

import pytest

from ghosttransfer.models.share import Lifetime
from ghosttransfer.services import expiration
from ghosttransfer.services.expiration import (
    LIFETIME_DURATIONS,
    NAIVE_FORMAT,
    calculate_expiration,
    detect_timezone,
)

NOW = datetime(2025, 9, 27, 15, 40, 59, 987654)


class TestCalculateExpiration:
    @pytest.mark.parametrize(
        "lifetime, expected",
        [
            ("5m", "2025-09-27T15:45:59"),
            ("30m", "2025-09-27T16:10:59"),
            ("1h", "2025-09-27T16:40:59"),
            ("4h", "2025-09-27T19:40:59"),
            ("12h", "2025-09-28T03:40:59"),
            ("1d", "2025-09-28T15:40:59"),
            ("3d", "2025-09-30T15:40:59"),
            ("7d", "2025-10-04T15:40:59"),
        ],
    )
    def test_fixed_now(self, lifetime, expected):
        result = calculate_expiration(lifetime, now=NOW)
        assert result.expires_at == expected
        assert result.timezone

    def test_none_has_no_expiry_but_a_timezone(self):
        result = calculate_expiration(Lifetime.NONE, now=NOW)
        assert result.expires_at is None
        assert result.timezone

    def test_empty_and_missing_selector(self):
        assert calculate_expiration("").expires_at is None
        assert calculate_expiration(None).expires_at is None

    def test_unknown_selector_is_treated_as_none(self):
        assert calculate_expiration("2w", now=NOW).expires_at is None

    def test_accepts_enum_members(self):
        result = calculate_expiration(Lifetime.ONE_HOUR, now=NOW)
        assert result.expires_at == "2025-09-27T16:40:59"

    def test_tz_aware_now_is_formatted_naive(self):
        from datetime import timezone

        aware = NOW.replace(tzinfo=timezone(timedelta(hours=5)))
        result = calculate_expiration("5m", now=aware)
        assert result.expires_at == "2025-09-27T15:45:59"

    @pytest.mark.parametrize("lifetime", [lt for lt in Lifetime if lt is not Lifetime.NONE])
    def test_current_time_within_tolerance(self, lifetime):
        before = datetime.now().replace(microsecond=0)
        result = calculate_expiration(lifetime)
        after = datetime.now()

        assert "+" not in result.expires_at
        assert not result.expires_at.endswith("Z")
        assert len(result.expires_at) == 19

        parsed = datetime.strptime(result.expires_at, NAIVE_FORMAT)
        duration = LIFETIME_DURATIONS[lifetime]
        assert before + duration <= parsed <= after + duration


class TestDetectTimezone:
    def test_returns_detected_zone(self, monkeypatch):
        monkeypatch.setattr(expiration, "get_localzone_name", lambda: "Europe/Berlin")
        assert detect_timezone() == "Europe/Berlin"

    def test_falls_back_when_detection_fails(self, monkeypatch):
        def boom():
            raise OSError("no /etc/localtime")

        monkeypatch.setattr(expiration, "get_localzone_name", boom)
        assert detect_timezone() == "Asia/Karachi"

    def test_falls_back_on_unknown_zone_name(self, monkeypatch):
        monkeypatch.setattr(expiration, "get_localzone_name", lambda: "Mars/Olympus_Mons")
        assert detect_timezone() == "Asia/Karachi"

    def test_falls_back_on_empty_name(self, monkeypatch):
        monkeypatch.setattr(expiration, "get_localzone_name", lambda: None)
        assert detect_timezone() == "Asia/Karachi"

    def test_expiration_uses_fallback(self, monkeypatch):
        monkeypatch.setattr(expiration, "get_localzone_name", lambda: "")
        result = calculate_expiration("none")
        assert result.expires_at is None
        assert result.timezone == "Asia/Karachi"
