"""End-to-end command-line tests using the json store."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from osdtimestamp import cli
from osdtimestamp._errors import ExternalToolExitError, SyncUnreachableError
from osdtimestamp.sync import SyncResult


@pytest.fixture(autouse=True)
def host(monkeypatch, system):
    monkeypatch.setattr(cli, "collect_system_info", lambda: system)


def _vars(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestStartEnd:
    def test_start_then_end(self, tmp_path):
        store = tmp_path / "vars.json"
        assert cli.main(["--start", "--store", "json", "--store-file", str(store)]) == 0
        assert "OSDStartTime" in _vars(store)
        assert cli.main(["--end", "--store", "json", "--store-file", str(store)]) == 0
        values = _vars(store)
        assert values["OSDTotalTime"].endswith("milliseconds")
        assert values["OSDOriginalTimeZoneID"] == "Pacific Standard Time"

    def test_end_without_start(self, tmp_path):
        store = tmp_path / "vars.json"
        assert cli.main(["--end", "--store", "json", "--store-file", str(store)]) == 0
        values = _vars(store)
        assert "OSDEndTime" in values
        assert "OSDTotalTime" not in values

    def test_log_dir_created(self, tmp_path):
        log_dir = tmp_path / "logs" / "nested"
        cli.main(["--start", "--store", "memory", "--log-dir", str(log_dir)])
        assert (log_dir / "osdtimestamp.log").exists()


class TestConfigurationErrors:
    def test_no_mode(self, tmp_path):
        assert cli.main(["--store", "memory"]) == cli.EXIT_CONFIG

    def test_invalid_timezone_no_store_mutation(self, tmp_path):
        store = tmp_path / "vars.json"
        code = cli.main(
            ["--start", "--destination-timezone", "Bogus", "--store", "json", "--store-file", str(store)]
        )
        assert code == cli.EXIT_CONFIG
        assert not store.exists()


class TestSync:
    def _patch_sync(self, monkeypatch, result):
        sync = MagicMock()
        sync.return_value.run.return_value = result
        monkeypatch.setattr(cli, "TimeSync", sync)
        return sync

    def test_unreachable_still_records(self, tmp_path, monkeypatch):
        self._patch_sync(
            monkeypatch,
            SyncResult(success=False, exit_code=-1, error=SyncUnreachableError("unreachable")),
        )
        store = tmp_path / "vars.json"
        code = cli.main(["--start", "--sync-time", "--store", "json", "--store-file", str(store)])
        assert code == 0
        assert "OSDStartTime" in _vars(store)

    def test_tool_failure_records_then_fails(self, tmp_path, monkeypatch):
        self._patch_sync(
            monkeypatch,
            SyncResult(success=False, exit_code=1, error=ExternalToolExitError("failed", exit_code=1)),
        )
        store = tmp_path / "vars.json"
        code = cli.main(["--start", "--sync-time", "--store", "json", "--store-file", str(store)])
        assert code == cli.EXIT_FAILURE
        assert "OSDStartTime" in _vars(store)

    def test_tool_failure_continue_on_error(self, tmp_path, monkeypatch):
        self._patch_sync(
            monkeypatch,
            SyncResult(success=False, exit_code=1, error=ExternalToolExitError("failed", exit_code=1)),
        )
        code = cli.main(["--start", "--sync-time", "--store", "memory", "--continue-on-error"])
        assert code == 0

    def test_sync_arguments(self, monkeypatch, system):
        sync = self._patch_sync(monkeypatch, SyncResult(success=True, exit_code=0))
        cli.main(
            ["--start", "--sync-time", "--store", "memory", "--ntp-server", "ntp.corp", "--services", "A,B"]
        )
        sync.assert_called_once_with(system, services=("A", "B"))
        sync.return_value.run.assert_called_once_with("ntp.corp", "Eastern Standard Time")


class TestStoreUnavailable:
    def test_tsenv_off_box(self, monkeypatch):
        def unavailable():
            from osdtimestamp._errors import VariableStoreUnavailableError

            raise VariableStoreUnavailableError("variable store unavailable")

        monkeypatch.setattr("osdtimestamp.store._dispatch_ts_environment", unavailable)
        assert cli.main(["--start"]) == cli.EXIT_FAILURE
        assert cli.main(["--start", "--continue-on-error"]) == 0


class TestConfigurationExitCodes:
    def test_sync_destination_without_windows_id(self, tmp_path, monkeypatch):
        sync = MagicMock()
        monkeypatch.setattr(cli, "TimeSync", sync)
        store = tmp_path / "vars.json"
        code = cli.main(
            [
                "--start",
                "--sync-time",
                "--destination-timezone",
                "CET",
                "--store",
                "json",
                "--store-file",
                str(store),
            ]
        )
        assert code == cli.EXIT_CONFIG
        sync.assert_not_called()
        assert not store.exists()

    def test_bad_registry_key(self):
        assert cli.main(["--start", "--store", "registry", "--registry-key", "HKZZ:\\X"]) == cli.EXIT_CONFIG
