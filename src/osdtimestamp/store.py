"""Variable store adapters.

The recorder only needs string get/set by name. Task sequences expose
their variables through the ``Microsoft.SMS.TSEnvironment`` COM object;
the registry and JSON file stores cover runs outside a task sequence.
"""

from __future__ import annotations

import enum
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from osdtimestamp import registry
from osdtimestamp._constants import DEFAULT_REGISTRY_KEY
from osdtimestamp._errors import (
    ERR_MSG_STORE_UNAVAILABLE,
    VariableStoreUnavailableError,
)

__all__ = [
    "JsonFileVariableStore",
    "MemoryVariableStore",
    "RegistryVariableStore",
    "StoreKind",
    "TaskSequenceStore",
    "VariableStore",
    "open_store",
]

logger = logging.getLogger(__name__)

TS_ENVIRONMENT_PROGID = "Microsoft.SMS.TSEnvironment"

# pythoncom.DISPATCH_PROPERTYPUT
_DISPATCH_PROPERTYPUT = 4


@runtime_checkable
class VariableStore(Protocol):
    """Minimal key/value protocol for task sequence variables."""

    def get(self, name: str) -> str | None: ...
    def set(self, name: str, value: str) -> None: ...


class MemoryVariableStore:
    """Dict-backed store for dry runs and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, name: str) -> str | None:
        return self._values.get(name)

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)


def _dispatch_ts_environment() -> Any:
    try:
        import pywintypes
        import win32com.client
    except ImportError as exc:
        raise VariableStoreUnavailableError(
            ERR_MSG_STORE_UNAVAILABLE,
            "pywin32 is required for the task sequence store",
            wrapped=exc,
        ) from exc
    try:
        return win32com.client.Dispatch(TS_ENVIRONMENT_PROGID)
    except pywintypes.com_error as exc:
        raise VariableStoreUnavailableError(
            ERR_MSG_STORE_UNAVAILABLE,
            f"{TS_ENVIRONMENT_PROGID} could not be created, "
            f"not running inside a task sequence? ({exc})",
            wrapped=exc,
        ) from exc


class TaskSequenceStore:
    """Task sequence variables through the TSEnvironment COM object."""

    def __init__(self, environment: Any = None) -> None:
        self._env = environment if environment is not None else _dispatch_ts_environment()

    def get(self, name: str) -> str | None:
        value = self._env.Value(name)
        # Unset task sequence variables read back as an empty string.
        return str(value) if value else None

    def set(self, name: str, value: str) -> None:
        ole = self._env._oleobj_
        dispid = ole.GetIDsOfNames("Value")
        ole.Invoke(dispid, 0, _DISPATCH_PROPERTYPUT, 0, name, value)


class RegistryVariableStore:
    """Variables stored as string values under one registry key."""

    def __init__(self, key: str = DEFAULT_REGISTRY_KEY, *, backend: Any = None) -> None:
        registry.parse_key(key)
        self.key = key
        self._backend = backend

    def get(self, name: str) -> str | None:
        value = registry.get_value(self.key, name, backend=self._backend)
        return None if value in (None, "") else str(value)

    def set(self, name: str, value: str) -> None:
        result = registry.set_value(
            self.key, name, value, registry.ValueKind.STRING, backend=self._backend
        )
        logger.debug("Wrote %s to %s", name, result.resolved_root_path)


class JsonFileVariableStore:
    """Variables stored in a JSON object on disk.

    The file is re-read on every access so separate Start and End
    processes see each other's writes.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            raise VariableStoreUnavailableError(
                ERR_MSG_STORE_UNAVAILABLE,
                f"cannot read {self.path}: {exc}",
                wrapped=exc,
            ) from exc
        if not isinstance(data, dict):
            raise VariableStoreUnavailableError(
                ERR_MSG_STORE_UNAVAILABLE,
                f"{self.path} does not contain a JSON object",
            )
        return {str(k): str(v) for k, v in data.items()}

    def get(self, name: str) -> str | None:
        return self._load().get(name)

    def set(self, name: str, value: str) -> None:
        data = self._load()
        data[name] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp, self.path)


class StoreKind(enum.StrEnum):
    TSENV = "tsenv"
    REGISTRY = "registry"
    JSON = "json"
    MEMORY = "memory"


def open_store(
    kind: str,
    *,
    registry_key: str = DEFAULT_REGISTRY_KEY,
    store_file: str | os.PathLike[str] | None = None,
) -> VariableStore:
    """Open a variable store by kind name.

    Raises:
        VariableStoreUnavailableError: If the store cannot be opened.
        ValueError: If the kind is unknown.
    """
    if kind == StoreKind.TSENV:
        return TaskSequenceStore()
    if kind == StoreKind.REGISTRY:
        return RegistryVariableStore(registry_key)
    if kind == StoreKind.JSON:
        if store_file is None:
            raise VariableStoreUnavailableError(
                ERR_MSG_STORE_UNAVAILABLE,
                "the json store requires a store file",
            )
        return JsonFileVariableStore(store_file)
    if kind == StoreKind.MEMORY:
        return MemoryVariableStore()

    raise ValueError(
        f"unknown store: {kind!r}. "
        f"Available: {', '.join(sorted(k.value for k in StoreKind))}"
    )
