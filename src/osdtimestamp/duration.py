"""Instant serialization and elapsed-time formatting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_ONE_MS = timedelta(milliseconds=1)


def format_instant(value: datetime) -> str:
    """Serialize an aware instant as ISO 8601 with millisecond precision."""
    if value.tzinfo is None:
        raise ValueError("instant must be timezone-aware")
    return value.isoformat(timespec="milliseconds")


def parse_instant(text: str) -> datetime:
    """Parse a stored instant. Values without an offset are taken as UTC."""
    value = datetime.fromisoformat(text.strip())
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class DurationBreakdown:
    """Elapsed time split into whole hours, minutes, seconds and milliseconds."""

    hours: int
    minutes: int
    seconds: int
    milliseconds: int
    negative: bool = False

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> DurationBreakdown:
        total_ms = delta // _ONE_MS
        negative = total_ms < 0
        total_ms = abs(total_ms)
        total_s, ms = divmod(total_ms, 1000)
        total_m, s = divmod(total_s, 60)
        h, m = divmod(total_m, 60)
        return cls(hours=h, minutes=m, seconds=s, milliseconds=ms, negative=negative)

    def __str__(self) -> str:
        sign = "-" if self.negative else ""
        return (
            f"{sign}{self.hours} hours, {self.minutes} minutes, "
            f"{self.seconds} seconds, and {self.milliseconds} milliseconds"
        )


def format_duration(delta: timedelta) -> str:
    return str(DurationBreakdown.from_timedelta(delta))
