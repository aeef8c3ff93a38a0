"""Time zone resolution and conversion.

Time zones are named the way deployment tooling names them: Windows IDs
such as ``"Eastern Standard Time"``. IANA keys (``"America/New_York"``)
are accepted as well. Windows IDs are mapped to IANA keys with the CLDR
table that ``tzlocal`` ships, then loaded through :mod:`zoneinfo`.
"""

from __future__ import annotations

import sys
from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import tzlocal
from tzlocal.windows_tz import tz_win, win_tz

from osdtimestamp._errors import ERR_MSG_INVALID_TIMEZONE, InvalidTimeZoneError

__all__ = [
    "convert",
    "iana_key_for",
    "local_timezone_id",
    "resolve_timezone",
    "validate_timezones",
    "windows_id_for",
]


def iana_key_for(tz_id: str) -> str:
    """Return the IANA key for a Windows or IANA time zone ID."""
    return win_tz.get(tz_id, tz_id)


def windows_id_for(tz_id: str) -> str:
    """Return the Windows ID for a Windows or IANA time zone ID.

    Raises:
        InvalidTimeZoneError: If no Windows zone corresponds to ``tz_id``.
    """
    if tz_id in win_tz:
        return tz_id
    resolve_timezone(tz_id)
    windows_id = tz_win.get(tz_id)
    if windows_id is None:
        raise InvalidTimeZoneError(
            ERR_MSG_INVALID_TIMEZONE,
            f"time zone {tz_id!r} has no Windows equivalent",
        )
    return windows_id


@lru_cache(maxsize=64)
def resolve_timezone(tz_id: str) -> ZoneInfo:
    """Load the zone for a Windows or IANA time zone ID.

    Raises:
        InvalidTimeZoneError: If the ID is not in the time zone database.
    """
    if not tz_id or not tz_id.strip():
        raise InvalidTimeZoneError(ERR_MSG_INVALID_TIMEZONE, "empty time zone ID")
    key = iana_key_for(tz_id)
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimeZoneError(
            ERR_MSG_INVALID_TIMEZONE,
            f"time zone {tz_id!r} (key {key!r}) not found in the time zone database",
            wrapped=exc,
        ) from exc


def validate_timezones(*tz_ids: str) -> None:
    """Resolve every ID, failing on the first unknown one."""
    for tz_id in tz_ids:
        resolve_timezone(tz_id)


def convert(now: datetime, destination_tz: str, final_tz: str) -> datetime:
    """Convert ``now`` into ``destination_tz``, then into ``final_tz``.

    A naive ``now`` is taken as system local time. The destination step
    yields the wall-clock value seen in the organizational zone; the
    final step expresses that same instant in the zone it is stored in.
    """
    if now.tzinfo is None:
        now = now.astimezone()
    intermediate = now.astimezone(resolve_timezone(destination_tz))
    return intermediate.astimezone(resolve_timezone(final_tz))


def local_timezone_id() -> str:
    """Return the system's current time zone ID.

    Windows hosts report the Windows ID, matching what ``tzutil /g``
    prints; other hosts report the IANA key.
    """
    name = tzlocal.get_localzone_name()
    if sys.platform == "win32":
        return tz_win.get(name, name)
    return name
