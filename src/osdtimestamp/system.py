"""Host snapshot taken once per run."""

from __future__ import annotations

import ctypes
import logging
import os
import platform
import socket
import sys
from dataclasses import dataclass
from typing import Any

from osdtimestamp import registry
from osdtimestamp._errors import OSDTimestampError
from osdtimestamp.timezones import local_timezone_id

logger = logging.getLogger(__name__)

MININT_KEY = "HKLM:\\SYSTEM\\CurrentControlSet\\Control\\MiniNT"
"""Present only when running under Windows PE."""


@dataclass(frozen=True)
class SystemInfo:
    """What the run needs to know about the host."""

    hostname: str
    platform: str
    timezone_id: str
    is_windows: bool = False
    is_windows_pe: bool = False
    is_elevated: bool = False


def _is_elevated() -> bool:
    if sys.platform == "win32":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return hasattr(os, "geteuid") and os.geteuid() == 0


def _is_windows_pe(registry_backend: Any) -> bool:
    try:
        return registry.key_exists(MININT_KEY, backend=registry_backend)
    except OSDTimestampError as exc:
        logger.debug("MiniNT check failed: %s", exc.internal())
        return False


def collect_system_info(*, registry_backend: Any = None) -> SystemInfo:
    """Assemble the host snapshot passed to the sync step and the recorder."""
    is_windows = sys.platform == "win32"
    info = SystemInfo(
        hostname=socket.gethostname(),
        platform=platform.platform(),
        timezone_id=local_timezone_id(),
        is_windows=is_windows,
        is_windows_pe=is_windows and _is_windows_pe(registry_backend),
        is_elevated=_is_elevated(),
    )
    logger.debug("System info: %s", info)
    return info
