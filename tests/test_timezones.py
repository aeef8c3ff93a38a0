"""Time zone resolution and conversion tests."""

from datetime import datetime, timedelta, timezone

import pytest

from osdtimestamp._errors import InvalidTimeZoneError
from osdtimestamp.timezones import (
    convert,
    iana_key_for,
    resolve_timezone,
    validate_timezones,
    windows_id_for,
)


class TestResolve:
    def test_windows_id(self):
        assert resolve_timezone("Eastern Standard Time").key == "America/New_York"

    def test_iana_key(self):
        assert resolve_timezone("Europe/Berlin").key == "Europe/Berlin"

    def test_utc(self):
        zone = resolve_timezone("UTC")
        assert datetime(2024, 1, 1, tzinfo=zone).utcoffset() == timedelta(0)

    def test_unknown_id(self):
        with pytest.raises(InvalidTimeZoneError):
            resolve_timezone("Atlantis Standard Time")

    def test_empty_id(self):
        with pytest.raises(InvalidTimeZoneError):
            resolve_timezone("  ")

    def test_iana_key_for_passthrough(self):
        assert iana_key_for("Asia/Tokyo") == "Asia/Tokyo"


class TestValidate:
    def test_all_valid(self):
        validate_timezones("Eastern Standard Time", "UTC", "Asia/Tokyo")

    def test_fails_on_first_unknown(self):
        with pytest.raises(InvalidTimeZoneError) as exc_info:
            validate_timezones("UTC", "Nowhere/Special")
        assert "Nowhere/Special" in exc_info.value.internal()


class TestWindowsId:
    def test_windows_id_passthrough(self):
        assert windows_id_for("Eastern Standard Time") == "Eastern Standard Time"

    def test_from_iana(self):
        assert windows_id_for("America/New_York") == "Eastern Standard Time"

    def test_unknown(self):
        with pytest.raises(InvalidTimeZoneError):
            windows_id_for("Nowhere/Special")


class TestConvert:
    NOW = datetime(2024, 7, 1, 12, 30, 15, 123000, tzinfo=timezone.utc)

    def test_deterministic(self):
        first = convert(self.NOW, "Eastern Standard Time", "UTC")
        second = convert(self.NOW, "Eastern Standard Time", "UTC")
        assert first == second
        assert first.isoformat() == second.isoformat()

    def test_preserves_instant(self):
        result = convert(self.NOW, "Eastern Standard Time", "UTC")
        assert result == self.NOW
        assert result.utcoffset() == timedelta(0)

    def test_final_zone_offset_with_dst(self):
        result = convert(self.NOW, "UTC", "Eastern Standard Time")
        assert result.utcoffset() == timedelta(hours=-4)
        assert (result.hour, result.minute) == (8, 30)

    def test_final_zone_offset_without_dst(self):
        winter = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
        result = convert(winter, "UTC", "Eastern Standard Time")
        assert result.utcoffset() == timedelta(hours=-5)

    def test_naive_is_local_time(self):
        naive = datetime(2024, 7, 1, 12, 0)
        assert convert(naive, "UTC", "UTC") == naive.astimezone()

    def test_invalid_destination(self):
        with pytest.raises(InvalidTimeZoneError):
            convert(self.NOW, "Bogus", "UTC")
