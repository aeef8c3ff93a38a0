"""Run configuration, validated before anything touches the host."""

from __future__ import annotations

import argparse
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from osdtimestamp._constants import (
    DEFAULT_DESTINATION_TIMEZONE,
    DEFAULT_FINAL_TIMEZONE,
    DEFAULT_NTP_SERVER,
    DEFAULT_REGISTRY_KEY,
    DEFAULT_SERVICES,
    DEFAULT_VARIABLE_PREFIX,
    ENV_LOG_DIR,
    ENV_NTP_SERVER,
    PREFIX_SEPARATORS,
)
from osdtimestamp._errors import (
    ERR_MSG_INVALID_PREFIX,
    ERR_MSG_MODE_SELECTION,
    ConfigurationError,
)
from osdtimestamp.recorder import Mode, VariableNames
from osdtimestamp.registry import parse_key
from osdtimestamp.store import StoreKind
from osdtimestamp.timezones import validate_timezones, windows_id_for


def parse_services(value: str | None) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_SERVICES
    return tuple(s.strip() for s in value.split(",") if s.strip())


def resolve_log_dir(
    value: str | None, environ: Mapping[str, str] | None = None
) -> Path | None:
    environ = os.environ if environ is None else environ
    value = value or environ.get(ENV_LOG_DIR)
    return Path(value) if value else None


@dataclass(frozen=True)
class RunConfig:
    """Validated settings for one invocation."""

    mode: Mode
    variable_prefix: str = DEFAULT_VARIABLE_PREFIX
    start_variable_name: str | None = None
    end_variable_name: str | None = None
    sync_time: bool = False
    ntp_server: str = DEFAULT_NTP_SERVER
    destination_timezone: str = DEFAULT_DESTINATION_TIMEZONE
    final_timezone: str = DEFAULT_FINAL_TIMEZONE
    services: tuple[str, ...] = DEFAULT_SERVICES
    log_dir: Path | None = None
    continue_on_error: bool = False
    store: StoreKind = StoreKind.TSENV
    registry_key: str = DEFAULT_REGISTRY_KEY
    store_file: Path | None = None
    verbose: bool = False

    def __post_init__(self) -> None:
        prefix = self.variable_prefix
        if prefix and not prefix.endswith(PREFIX_SEPARATORS):
            raise ConfigurationError(
                ERR_MSG_INVALID_PREFIX,
                f"prefix {prefix!r} must end with one of {' '.join(PREFIX_SEPARATORS)}",
            )
        validate_timezones(self.destination_timezone, self.final_timezone)
        if self.sync_time:
            # tzutil only accepts Windows IDs
            windows_id_for(self.destination_timezone)
        if self.store == StoreKind.REGISTRY:
            parse_key(self.registry_key)
        if self.store == StoreKind.JSON and self.store_file is None:
            raise ConfigurationError(
                "missing store file",
                "--store json requires --store-file",
            )

    @property
    def names(self) -> VariableNames:
        return VariableNames.from_prefix(
            self.variable_prefix,
            start_name=self.start_variable_name,
            end_name=self.end_variable_name,
        )

    @classmethod
    def from_args(
        cls,
        args: argparse.Namespace,
        environ: Mapping[str, str] | None = None,
    ) -> RunConfig:
        """Build a config from parsed command-line flags.

        Raises:
            ConfigurationError: If the mode selection or prefix is invalid.
            InvalidTimeZoneError: If a time zone ID is unknown.
        """
        environ = os.environ if environ is None else environ
        if args.start == args.end:
            raise ConfigurationError(
                ERR_MSG_MODE_SELECTION,
                f"--start={args.start} --end={args.end}",
            )
        return cls(
            mode=Mode.START if args.start else Mode.END,
            variable_prefix=args.variable_prefix or DEFAULT_VARIABLE_PREFIX,
            start_variable_name=args.start_variable_name,
            end_variable_name=args.end_variable_name,
            sync_time=args.sync_time,
            ntp_server=args.ntp_server or environ.get(ENV_NTP_SERVER) or DEFAULT_NTP_SERVER,
            destination_timezone=args.destination_timezone,
            final_timezone=args.final_timezone,
            services=parse_services(args.services),
            log_dir=resolve_log_dir(args.log_dir, environ),
            continue_on_error=args.continue_on_error,
            store=StoreKind(args.store),
            registry_key=args.registry_key,
            store_file=Path(args.store_file) if args.store_file else None,
            verbose=args.verbose,
        )
