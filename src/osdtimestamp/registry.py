"""Registry key/value setter.

Key paths are written the way deployment scripts write them:
``HKLM:\\SOFTWARE\\Vendor``, ``HKEY_LOCAL_MACHINE\\SOFTWARE\\Vendor`` or
``Registry::HKEY_LOCAL_MACHINE\\SOFTWARE\\Vendor``. The root is looked up
in a fixed table rather than pattern matched.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from osdtimestamp._errors import (
    ERR_MSG_ACCESS_DENIED,
    ERR_MSG_INVALID_REGISTRY_KEY,
    AccessDeniedError,
    InvalidRegistryKeyError,
    OSDTimestampError,
)

__all__ = [
    "RegistryKey",
    "RegistryResult",
    "Root",
    "ValueKind",
    "get_value",
    "key_exists",
    "parse_key",
    "set_value",
]


class Root(enum.StrEnum):
    HKLM = "HKLM"
    HKCU = "HKCU"
    HKCR = "HKCR"
    HKU = "HKU"
    HKCC = "HKCC"


ROOT_PATHS: dict[Root, str] = {
    Root.HKLM: "HKEY_LOCAL_MACHINE",
    Root.HKCU: "HKEY_CURRENT_USER",
    Root.HKCR: "HKEY_CLASSES_ROOT",
    Root.HKU: "HKEY_USERS",
    Root.HKCC: "HKEY_CURRENT_CONFIG",
}
"""Canonical root path per root. Also the ``winreg`` handle attribute name."""

_ROOT_LOOKUP: dict[str, Root] = {
    **{root.value: root for root in Root},
    **{path: root for root, path in ROOT_PATHS.items()},
}


class ValueKind(enum.StrEnum):
    STRING = "String"
    EXPAND_STRING = "ExpandString"
    DWORD = "DWord"
    QWORD = "QWord"
    MULTI_STRING = "MultiString"
    BINARY = "Binary"


_KIND_TYPES: dict[ValueKind, str] = {
    ValueKind.STRING: "REG_SZ",
    ValueKind.EXPAND_STRING: "REG_EXPAND_SZ",
    ValueKind.DWORD: "REG_DWORD",
    ValueKind.QWORD: "REG_QWORD",
    ValueKind.MULTI_STRING: "REG_MULTI_SZ",
    ValueKind.BINARY: "REG_BINARY",
}

_PROVIDER_PREFIX = "REGISTRY::"


@dataclass(frozen=True)
class RegistryKey:
    """A registry key split into its root and subkey."""

    root: Root
    subkey: str

    @property
    def path(self) -> str:
        return f"{self.root.value}:\\{self.subkey}"

    @property
    def resolved_root_path(self) -> str:
        return f"{ROOT_PATHS[self.root]}\\{self.subkey}"


@dataclass(frozen=True)
class RegistryResult:
    """Result of a registry write."""

    key_path: str
    resolved_root_path: str


def parse_key(key: str) -> RegistryKey:
    """Split a key path into root and subkey.

    Raises:
        InvalidRegistryKeyError: If the root is unknown or the subkey empty.
    """
    text = key.strip().replace("/", "\\")
    if text.upper().startswith(_PROVIDER_PREFIX):
        text = text[len(_PROVIDER_PREFIX):]
    head, _, subkey = text.partition("\\")
    root = _ROOT_LOOKUP.get(head.rstrip(":").upper())
    if root is None:
        raise InvalidRegistryKeyError(
            ERR_MSG_INVALID_REGISTRY_KEY,
            f"key {key!r} has unknown root {head!r}. "
            f"Available: {', '.join(sorted(_ROOT_LOOKUP))}",
        )
    subkey = subkey.strip("\\")
    if not subkey:
        raise InvalidRegistryKeyError(
            ERR_MSG_INVALID_REGISTRY_KEY,
            f"key {key!r} has no subkey below {root.value}",
        )
    return RegistryKey(root=root, subkey=subkey)


def _load_backend() -> Any:
    try:
        import winreg
    except ImportError as exc:
        raise OSDTimestampError(
            "registry unavailable",
            "winreg is only available on Windows",
            wrapped=exc,
        ) from exc
    return winreg


def _coerce(value: Any, kind: ValueKind) -> Any:
    if kind in (ValueKind.DWORD, ValueKind.QWORD):
        return int(value)
    if kind is ValueKind.MULTI_STRING:
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]
    if kind is ValueKind.BINARY:
        return bytes(value)
    return str(value)


def set_value(
    key: str,
    name: str,
    value: Any,
    kind: ValueKind = ValueKind.STRING,
    *,
    backend: Any = None,
) -> RegistryResult:
    """Write a value, creating the key path if it does not exist.

    Args:
        key: Key path under a known root, e.g. ``HKLM:\\SOFTWARE\\Vendor``.
        name: Value name.
        value: Value data, coerced to match ``kind``.
        kind: Registry value type.
        backend: Module with the ``winreg`` interface. Defaults to ``winreg``.

    Returns:
        RegistryResult with the short and fully resolved key paths.

    Raises:
        AccessDeniedError: If the process lacks privilege for the key.
        InvalidRegistryKeyError: If the key root is unknown.
    """
    parsed = parse_key(key)
    reg = backend if backend is not None else _load_backend()
    root_handle = getattr(reg, ROOT_PATHS[parsed.root])
    reg_type = getattr(reg, _KIND_TYPES[kind])
    data = _coerce(value, kind)
    try:
        with reg.CreateKeyEx(root_handle, parsed.subkey, 0, reg.KEY_WRITE) as handle:
            reg.SetValueEx(handle, name, 0, reg_type, data)
    except PermissionError as exc:
        raise AccessDeniedError(
            ERR_MSG_ACCESS_DENIED,
            f"writing {name!r} under {parsed.resolved_root_path}: {exc}",
            wrapped=exc,
        ) from exc
    except OSError as exc:
        raise OSDTimestampError(
            "registry write failed",
            f"writing {name!r} under {parsed.resolved_root_path}: {exc}",
            wrapped=exc,
        ) from exc
    return RegistryResult(
        key_path=parsed.path,
        resolved_root_path=parsed.resolved_root_path,
    )


def get_value(key: str, name: str, *, backend: Any = None) -> Any | None:
    """Read a value. Returns None if the key or value does not exist."""
    parsed = parse_key(key)
    reg = backend if backend is not None else _load_backend()
    root_handle = getattr(reg, ROOT_PATHS[parsed.root])
    try:
        with reg.OpenKey(root_handle, parsed.subkey, 0, reg.KEY_READ) as handle:
            return reg.QueryValueEx(handle, name)[0]
    except FileNotFoundError:
        return None
    except PermissionError as exc:
        raise AccessDeniedError(
            ERR_MSG_ACCESS_DENIED,
            f"reading {name!r} under {parsed.resolved_root_path}: {exc}",
            wrapped=exc,
        ) from exc


def key_exists(key: str, *, backend: Any = None) -> bool:
    parsed = parse_key(key)
    reg = backend if backend is not None else _load_backend()
    root_handle = getattr(reg, ROOT_PATHS[parsed.root])
    try:
        with reg.OpenKey(root_handle, parsed.subkey, 0, reg.KEY_READ):
            return True
    except FileNotFoundError:
        return False
    except PermissionError as exc:
        raise AccessDeniedError(
            ERR_MSG_ACCESS_DENIED,
            f"opening {parsed.resolved_root_path}: {exc}",
            wrapped=exc,
        ) from exc
