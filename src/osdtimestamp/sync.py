"""Time sync pre-step.

Makes sure the time service is running, probes the NTP server, forces a
``w32tm`` resync against it and switches the system time zone. Nothing is
retried; failures are reported in the returned :class:`SyncResult` so the
timestamp can still be recorded with whatever clock the host has.
"""

from __future__ import annotations

import logging
import socket
import subprocess
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import ntplib

from osdtimestamp._constants import (
    DEFAULT_NTP_TIMEOUT,
    DEFAULT_SERVICES,
    DEFAULT_SETTLE_SECONDS,
)
from osdtimestamp._errors import (
    ERR_MSG_ACCESS_DENIED,
    ERR_MSG_SYNC_UNREACHABLE,
    ERR_MSG_TOOL_FAILED,
    AccessDeniedError,
    ExternalToolExitError,
    OSDTimestampError,
    SyncUnreachableError,
)
from osdtimestamp.system import SystemInfo
from osdtimestamp.timezones import windows_id_for

__all__ = ["Runner", "SyncResult", "TimeSync", "default_runner"]

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]
"""Runs a command to completion and returns its captured output."""

# ERROR_ACCESS_DENIED as a plain code and as an HRESULT (unsigned, signed)
_ACCESS_DENIED_CODES = {5, 0x80070005, -2147024891}

# net start: "The requested service has already been started."
_NET_ALREADY_STARTED = 2


def default_runner(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(list(args), capture_output=True, text=True, check=False)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of the sync pre-step."""

    success: bool
    exit_code: int
    output: str = ""
    offset: float | None = None
    error: OSDTimestampError | None = None


class TimeSync:
    """Forces an NTP sync and a time zone change through OS tools."""

    def __init__(
        self,
        system: SystemInfo,
        *,
        services: Sequence[str] = DEFAULT_SERVICES,
        runner: Runner | None = None,
        ntp_client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        ntp_timeout: float = DEFAULT_NTP_TIMEOUT,
    ) -> None:
        self.system = system
        self.services = tuple(services)
        self._runner = runner or default_runner
        self._ntp = ntp_client if ntp_client is not None else ntplib.NTPClient()
        self._sleep = sleep
        self.settle_seconds = settle_seconds
        self.ntp_timeout = ntp_timeout

    # --- Commands ---

    def _run(self, args: Sequence[str], step: str) -> subprocess.CompletedProcess[str]:
        logger.debug("%s: running %s", step, " ".join(args))
        try:
            return self._runner(args)
        except FileNotFoundError as exc:
            raise ExternalToolExitError(
                ERR_MSG_TOOL_FAILED,
                f"{step}: {args[0]} not found",
                wrapped=exc,
            ) from exc

    def _check(
        self,
        result: subprocess.CompletedProcess[str],
        step: str,
        ok_codes: Sequence[int] = (0,),
    ) -> None:
        if result.returncode in ok_codes:
            return
        stdout = (result.stdout or "").strip()
        stderr = (result.stderr or "").strip()
        if result.returncode in _ACCESS_DENIED_CODES or "access is denied" in (
            f"{stdout} {stderr}".lower()
        ):
            raise AccessDeniedError(
                ERR_MSG_ACCESS_DENIED,
                f"{step}: exit code {result.returncode}: {stderr or stdout}",
            )
        raise ExternalToolExitError(
            ERR_MSG_TOOL_FAILED,
            f"{step}: exit code {result.returncode}: {stderr or stdout}",
            exit_code=result.returncode,
            stderr=stderr,
        )

    # --- Steps ---

    def ensure_services(self) -> None:
        """Start every configured service that is not already running."""
        for service in self.services:
            query = self._run(["sc", "query", service], f"query service {service}")
            if query.returncode == 0 and "RUNNING" in (query.stdout or ""):
                logger.debug("Service %s is running", service)
                continue
            logger.info("Starting service %s", service)
            started = self._run(["net", "start", service], f"start service {service}")
            self._check(started, f"start service {service}", ok_codes=(0, _NET_ALREADY_STARTED))

    def probe(self, server: str) -> float:
        """Query the NTP server and return the local clock offset in seconds.

        Raises:
            SyncUnreachableError: If the server does not answer.
        """
        try:
            response = self._ntp.request(server, version=3, timeout=self.ntp_timeout)
        except (ntplib.NTPException, socket.gaierror, OSError) as exc:
            raise SyncUnreachableError(
                ERR_MSG_SYNC_UNREACHABLE,
                f"NTP query to {server!r} failed: {exc}",
                wrapped=exc,
            ) from exc
        logger.info("NTP server %s reports offset %.3f s", server, response.offset)
        return response.offset

    def request_sync(self, server: str) -> SyncResult:
        """Point the time service at ``server`` and force a resync.

        Raises:
            SyncUnreachableError: If the NTP probe fails.
            ExternalToolExitError: If ``w32tm`` exits non-zero.
            AccessDeniedError: If ``w32tm`` is refused.
        """
        offset = self.probe(server)
        config = self._run(
            [
                "w32tm",
                "/config",
                f"/manualpeerlist:{server}",
                "/syncfromflags:manual",
                "/update",
            ],
            "w32tm /config",
        )
        self._check(config, "w32tm /config")
        resync = self._run(["w32tm", "/resync", "/force"], "w32tm /resync")
        self._check(resync, "w32tm /resync")
        output = (resync.stdout or "").strip()
        logger.info("Time resync against %s completed", server)
        if self.settle_seconds > 0:
            logger.debug("Waiting %.1f s for the clock to settle", self.settle_seconds)
            self._sleep(self.settle_seconds)
        return SyncResult(success=True, exit_code=resync.returncode, output=output, offset=offset)

    def set_timezone(self, tz_id: str) -> None:
        """Switch the system time zone with ``tzutil``."""
        windows_id = windows_id_for(tz_id)
        if windows_id == self.system.timezone_id:
            logger.debug("Time zone already %s", windows_id)
            return
        logger.info("Changing time zone from %s to %s", self.system.timezone_id, windows_id)
        result = self._run(["tzutil", "/s", windows_id], "tzutil /s")
        self._check(result, "tzutil /s")

    def run(self, server: str, timezone_id: str) -> SyncResult:
        """Run the whole pre-step, reporting rather than raising tool failures.

        The time zone change is attempted even when the clock sync fails.
        """
        if not self.system.is_elevated:
            logger.warning("Not running elevated, time sync will likely be refused")
        try:
            self.ensure_services()
            result = self.request_sync(server)
            # w32tm /config /update can restart the time service
            self.ensure_services()
        except SyncUnreachableError as exc:
            logger.warning("Time sync skipped: %s", exc.internal())
            result = SyncResult(success=False, exit_code=-1, error=exc)
        except (ExternalToolExitError, AccessDeniedError) as exc:
            result = self._failure("Time sync failed", exc)

        try:
            self.set_timezone(timezone_id)
        except (ExternalToolExitError, AccessDeniedError) as exc:
            failed = self._failure("Time zone change failed", exc)
            if result.error is None or isinstance(result.error, SyncUnreachableError):
                result = failed
        return result

    def _failure(
        self, what: str, exc: ExternalToolExitError | AccessDeniedError
    ) -> SyncResult:
        logger.error("%s: %s", what, exc.internal())
        if isinstance(exc, AccessDeniedError):
            return SyncResult(success=False, exit_code=5, error=exc)
        if exc.stderr:
            logger.error("stderr: %s", exc.stderr)
        return SyncResult(success=False, exit_code=exc.exit_code, output=exc.stderr, error=exc)
