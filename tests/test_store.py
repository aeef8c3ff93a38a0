"""Variable store adapter tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from osdtimestamp._errors import InvalidRegistryKeyError, VariableStoreUnavailableError
from osdtimestamp.store import (
    JsonFileVariableStore,
    MemoryVariableStore,
    RegistryVariableStore,
    StoreKind,
    TaskSequenceStore,
    VariableStore,
    open_store,
)


class TestMemoryVariableStore:
    def test_get_set(self):
        store = MemoryVariableStore()
        assert store.get("x") is None
        store.set("x", "1")
        assert store.get("x") == "1"

    def test_protocol(self):
        assert isinstance(MemoryVariableStore(), VariableStore)


class TestTaskSequenceStore:
    def test_get(self):
        env = MagicMock()
        env.Value.return_value = "2024-01-01T00:00:00.000+00:00"
        store = TaskSequenceStore(env)
        assert store.get("OSDStartTime") == "2024-01-01T00:00:00.000+00:00"
        env.Value.assert_called_once_with("OSDStartTime")

    def test_empty_is_none(self):
        env = MagicMock()
        env.Value.return_value = ""
        assert TaskSequenceStore(env).get("missing") is None

    def test_set_uses_property_put(self):
        env = MagicMock()
        env._oleobj_.GetIDsOfNames.return_value = 7
        TaskSequenceStore(env).set("OSDEndTime", "value")
        env._oleobj_.Invoke.assert_called_once_with(7, 0, 4, 0, "OSDEndTime", "value")

    def test_protocol(self):
        assert isinstance(TaskSequenceStore(MagicMock()), VariableStore)


class TestJsonFileVariableStore:
    def test_persists_between_instances(self, tmp_path):
        path = tmp_path / "vars" / "run.json"
        JsonFileVariableStore(path).set("OSDStartTime", "t0")
        assert JsonFileVariableStore(path).get("OSDStartTime") == "t0"

    def test_missing_file(self, tmp_path):
        assert JsonFileVariableStore(tmp_path / "none.json").get("x") is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(VariableStoreUnavailableError):
            JsonFileVariableStore(path).get("x")

    def test_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(VariableStoreUnavailableError):
            JsonFileVariableStore(path).get("x")


class TestRegistryVariableStore:
    def test_round_trip(self):
        backend = MagicMock()
        backend.QueryValueEx.return_value = ("t0", 1)
        store = RegistryVariableStore("HKLM:\\SOFTWARE\\OSD", backend=backend)
        store.set("OSDStartTime", "t0")
        assert store.get("OSDStartTime") == "t0"
        assert backend.SetValueEx.call_args.args[1:] == ("OSDStartTime", 0, backend.REG_SZ, "t0")

    def test_missing_value(self):
        backend = MagicMock()
        backend.OpenKey.side_effect = FileNotFoundError
        store = RegistryVariableStore("HKLM:\\SOFTWARE\\OSD", backend=backend)
        assert store.get("OSDStartTime") is None

    def test_rejects_bad_key(self):
        with pytest.raises(InvalidRegistryKeyError):
            RegistryVariableStore("HKXX:\\SOFTWARE\\OSD", backend=MagicMock())


class TestOpenStore:
    def test_memory(self):
        assert isinstance(open_store(StoreKind.MEMORY), MemoryVariableStore)

    def test_json(self, tmp_path):
        store = open_store("json", store_file=tmp_path / "v.json")
        assert isinstance(store, JsonFileVariableStore)

    def test_json_requires_file(self):
        with pytest.raises(VariableStoreUnavailableError):
            open_store("json")

    def test_unknown(self):
        with pytest.raises(ValueError, match="unknown store"):
            open_store("carrier-pigeon")
