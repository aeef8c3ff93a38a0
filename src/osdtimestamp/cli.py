"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from osdtimestamp import __version__
from osdtimestamp._constants import (
    DEFAULT_DESTINATION_TIMEZONE,
    DEFAULT_FINAL_TIMEZONE,
    DEFAULT_NTP_SERVER,
    DEFAULT_REGISTRY_KEY,
    DEFAULT_SERVICES,
)
from osdtimestamp._errors import (
    ConfigurationError,
    OSDTimestampError,
    SyncUnreachableError,
)
from osdtimestamp.config import RunConfig, resolve_log_dir
from osdtimestamp.logs import configure_logging
from osdtimestamp.recorder import TimestampRecorder
from osdtimestamp.store import StoreKind, open_store
from osdtimestamp.sync import TimeSync
from osdtimestamp.system import collect_system_info

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osdtimestamp",
        description="Record deployment start/end timestamps into task sequence variables.",
    )
    mode = parser.add_argument_group("mode")
    mode.add_argument("--start", action="store_true", help="record the start time")
    mode.add_argument("--end", action="store_true", help="record the end time and total")

    names = parser.add_argument_group("variables")
    names.add_argument(
        "--variable-prefix",
        default="",
        help="prefix for every variable name; must end with a separator such as '_'",
    )
    names.add_argument("--start-variable-name", help="override the start time variable name")
    names.add_argument("--end-variable-name", help="override the end time variable name")

    tz = parser.add_argument_group("time")
    tz.add_argument("--sync-time", action="store_true", help="force an NTP sync first")
    tz.add_argument("--ntp-server", help=f"NTP server (default: {DEFAULT_NTP_SERVER})")
    tz.add_argument(
        "--destination-timezone",
        default=DEFAULT_DESTINATION_TIMEZONE,
        help="time zone captured times are normalized into (default: %(default)s)",
    )
    tz.add_argument(
        "--final-timezone",
        default=DEFAULT_FINAL_TIMEZONE,
        help="time zone of the stored instant (default: %(default)s)",
    )
    tz.add_argument(
        "--services",
        help=f"comma-separated services to keep running (default: {','.join(DEFAULT_SERVICES)})",
    )

    store = parser.add_argument_group("store")
    store.add_argument(
        "--store",
        choices=[k.value for k in StoreKind],
        default=StoreKind.TSENV.value,
        help="where variables are written (default: %(default)s)",
    )
    store.add_argument(
        "--registry-key",
        default=DEFAULT_REGISTRY_KEY,
        help="key for the registry store (default: %(default)s)",
    )
    store.add_argument("--store-file", help="file for the json store")

    parser.add_argument("--log-dir", help="directory for run logs, created if absent")
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="exit successfully even when a step fails",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run(config: RunConfig) -> int:
    """Execute one configured invocation.

    Raises:
        OSDTimestampError: On store, registry or sync tool failures.
    """
    system = collect_system_info()
    logger.info(
        "Host %s, time zone %s%s",
        system.hostname,
        system.timezone_id,
        " (Windows PE)" if system.is_windows_pe else "",
    )
    store = open_store(
        config.store, registry_key=config.registry_key, store_file=config.store_file
    )

    sync_result = None
    if config.sync_time:
        sync = TimeSync(system, services=config.services)
        sync_result = sync.run(config.ntp_server, config.destination_timezone)

    recorder = TimestampRecorder(
        store,
        system,
        names=config.names,
        destination_tz=config.destination_timezone,
        final_tz=config.final_timezone,
    )
    result = recorder.record(config.mode)
    if result.duration_text is not None:
        logger.info("Total time: %s", result.duration_text)

    # The timestamp is recorded either way; a failed sync tool still fails the run.
    if (
        sync_result is not None
        and sync_result.error is not None
        and not isinstance(sync_result.error, SyncUnreachableError)
    ):
        raise sync_result.error
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    log_file = configure_logging(resolve_log_dir(args.log_dir), verbose=args.verbose)
    if log_file is not None:
        logger.debug("Logging to %s", log_file)

    try:
        config = RunConfig.from_args(args)
    except ConfigurationError as exc:
        logger.error("%s: %s", exc.user_message, exc.internal())
        return EXIT_CONFIG

    try:
        return run(config)
    except OSDTimestampError as exc:
        logger.error("%s: %s", exc.user_message, exc.internal())
        if config.continue_on_error:
            logger.warning("Continuing despite the error (--continue-on-error)")
            return EXIT_OK
        return EXIT_FAILURE
    except Exception:
        logger.exception("Unexpected error")
        if config.continue_on_error:
            return EXIT_OK
        raise


if __name__ == "__main__":
    sys.exit(main())
