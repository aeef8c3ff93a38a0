"""Shared test fixtures."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from datetime import datetime, timezone

import pytest

from osdtimestamp.store import MemoryVariableStore
from osdtimestamp.system import SystemInfo


class FixedClock:
    """Clock returning queued instants, repeating the last one."""

    def __init__(self, *instants: datetime) -> None:
        self._instants = list(instants)

    def __call__(self) -> datetime:
        if len(self._instants) > 1:
            return self._instants.pop(0)
        return self._instants[0]


class FakeRunner:
    """Records commands and answers them from a table of results."""

    def __init__(self, results: dict[str, tuple[int, str, str]] | None = None) -> None:
        self.results = results or {}
        self.calls: list[list[str]] = []

    def __call__(self, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        args = list(args)
        self.calls.append(args)
        key = " ".join(args[:2])
        code, out, err = self.results.get(key, (0, "", ""))
        return subprocess.CompletedProcess(args, code, out, err)

    def commands(self) -> list[str]:
        return [" ".join(c[:2]) for c in self.calls]


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return MemoryVariableStore()


@pytest.fixture
def system():
    return SystemInfo(
        hostname="MININT-TEST",
        platform="Windows-10",
        timezone_id="Pacific Standard Time",
        is_windows=True,
        is_windows_pe=True,
        is_elevated=True,
    )
