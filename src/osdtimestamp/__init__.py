"""osdtimestamp - Record deployment start/end timestamps into task sequence variables."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("osdtimestamp")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0.dev0"

from osdtimestamp._errors import (
    AccessDeniedError,
    ConfigurationError,
    ExternalToolExitError,
    InvalidRegistryKeyError,
    InvalidTimeZoneError,
    MissingStartTimestampError,
    OSDTimestampError,
    SyncUnreachableError,
    VariableStoreUnavailableError,
)
from osdtimestamp.duration import format_duration, format_instant, parse_instant
from osdtimestamp.recorder import Mode, RecordResult, TimestampRecorder, VariableNames
from osdtimestamp.store import (
    JsonFileVariableStore,
    MemoryVariableStore,
    RegistryVariableStore,
    TaskSequenceStore,
    VariableStore,
    open_store,
)
from osdtimestamp.system import SystemInfo, collect_system_info
from osdtimestamp.timezones import convert, resolve_timezone, validate_timezones

__all__ = [
    "convert",
    "collect_system_info",
    "format_duration",
    "format_instant",
    "open_store",
    "parse_instant",
    "resolve_timezone",
    "validate_timezones",
    "Mode",
    "RecordResult",
    "SystemInfo",
    "TimestampRecorder",
    "VariableNames",
    "VariableStore",
    "JsonFileVariableStore",
    "MemoryVariableStore",
    "RegistryVariableStore",
    "TaskSequenceStore",
    "OSDTimestampError",
    "AccessDeniedError",
    "ConfigurationError",
    "ExternalToolExitError",
    "InvalidRegistryKeyError",
    "InvalidTimeZoneError",
    "MissingStartTimestampError",
    "SyncUnreachableError",
    "VariableStoreUnavailableError",
]
