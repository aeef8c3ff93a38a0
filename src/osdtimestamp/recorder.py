"""Start/end timestamp recording.

State lives only in the variable store: Start writes the start time, End
reads it back, writes the end time and the elapsed total. There is no
lock; Start and End for one prefix must not run concurrently.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from osdtimestamp._constants import (
    DEFAULT_DESTINATION_TIMEZONE,
    DEFAULT_FINAL_TIMEZONE,
    SUFFIX_CONVERSION_TIMEZONE,
    SUFFIX_DESTINATION_TIMEZONE,
    SUFFIX_END_TIME,
    SUFFIX_ORIGINAL_TIMEZONE,
    SUFFIX_START_TIME,
    SUFFIX_TOTAL_TIME,
)
from osdtimestamp._errors import ERR_MSG_MISSING_START, MissingStartTimestampError
from osdtimestamp.duration import format_duration, format_instant, parse_instant
from osdtimestamp.store import VariableStore
from osdtimestamp.system import SystemInfo
from osdtimestamp.timezones import convert, validate_timezones

__all__ = ["Mode", "RecordResult", "TimestampRecorder", "VariableNames"]

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Mode(enum.StrEnum):
    START = "start"
    END = "end"


@dataclass(frozen=True)
class VariableNames:
    """Store variable names for one deployment run."""

    original_timezone: str
    destination_timezone: str
    conversion_timezone: str
    start_time: str
    end_time: str
    total_time: str

    @classmethod
    def from_prefix(
        cls,
        prefix: str = "",
        *,
        start_name: str | None = None,
        end_name: str | None = None,
    ) -> VariableNames:
        return cls(
            original_timezone=prefix + SUFFIX_ORIGINAL_TIMEZONE,
            destination_timezone=prefix + SUFFIX_DESTINATION_TIMEZONE,
            conversion_timezone=prefix + SUFFIX_CONVERSION_TIMEZONE,
            start_time=start_name or prefix + SUFFIX_START_TIME,
            end_time=end_name or prefix + SUFFIX_END_TIME,
            total_time=prefix + SUFFIX_TOTAL_TIME,
        )


@dataclass(frozen=True)
class RecordResult:
    """What a Start or End call captured."""

    mode: Mode
    timestamp: datetime
    start: datetime | None = None
    duration: timedelta | None = None

    @property
    def duration_text(self) -> str | None:
        if self.duration is None:
            return None
        return format_duration(self.duration)


class TimestampRecorder:
    """Captures converted timestamps into a variable store."""

    def __init__(
        self,
        store: VariableStore,
        system: SystemInfo,
        *,
        names: VariableNames | None = None,
        destination_tz: str = DEFAULT_DESTINATION_TIMEZONE,
        final_tz: str = DEFAULT_FINAL_TIMEZONE,
        clock: Clock | None = None,
    ) -> None:
        validate_timezones(destination_tz, final_tz)
        self.store = store
        self.system = system
        self.names = names or VariableNames.from_prefix()
        self.destination_tz = destination_tz
        self.final_tz = final_tz
        self._clock = clock or _utc_now

    def capture(self) -> datetime:
        return convert(self._clock(), self.destination_tz, self.final_tz)

    def start(self) -> RecordResult:
        """Record the start time, overwriting any earlier one."""
        now = self.capture()
        self.store.set(self.names.start_time, format_instant(now))
        self.store.set(self.names.original_timezone, self.system.timezone_id)
        self.store.set(self.names.destination_timezone, self.destination_tz)
        self.store.set(self.names.conversion_timezone, self.final_tz)
        logger.info("%s = %s", self.names.start_time, format_instant(now))
        return RecordResult(mode=Mode.START, timestamp=now)

    def read_start(self) -> datetime:
        """Read the stored start time.

        Raises:
            MissingStartTimestampError: If it is absent or unparseable.
        """
        raw = self.store.get(self.names.start_time)
        if not raw:
            raise MissingStartTimestampError(
                ERR_MSG_MISSING_START,
                f"variable {self.names.start_time!r} is not set",
            )
        try:
            return parse_instant(raw)
        except ValueError as exc:
            raise MissingStartTimestampError(
                ERR_MSG_MISSING_START,
                f"variable {self.names.start_time!r} holds {raw!r}, not a timestamp",
                wrapped=exc,
            ) from exc

    def end(self) -> RecordResult:
        """Record the end time and, when a start time exists, the total.

        May be called repeatedly; each call recomputes from the same start.
        """
        now = self.capture()
        self.store.set(self.names.end_time, format_instant(now))
        logger.info("%s = %s", self.names.end_time, format_instant(now))
        try:
            started = self.read_start()
        except MissingStartTimestampError as exc:
            logger.warning("%s: %s", exc.user_message, exc.internal())
            return RecordResult(mode=Mode.END, timestamp=now)

        duration = now - started
        if duration < timedelta(0):
            logger.warning("End time %s precedes start time %s", now, started)
        text = format_duration(duration)
        self.store.set(self.names.total_time, text)
        logger.info("%s = %s", self.names.total_time, text)
        return RecordResult(mode=Mode.END, timestamp=now, start=started, duration=duration)

    def record(self, mode: Mode | str) -> RecordResult:
        if Mode(mode) is Mode.START:
            return self.start()
        return self.end()
