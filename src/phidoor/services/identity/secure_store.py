"""Keyed opaque storage for the device identifier, shared secret and key pair."""
from __future__ import annotations

import base64
import binascii
import os
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from phidoor.config import const
from phidoor.services.errors import ConfigurationError, SecureStoreUnavailableError

__all__ = [
    "SecureStore",
    "KeyringSecureStore",
    "FileSecureStore",
    "MemorySecureStore",
    "open_secure_store",
]


@runtime_checkable
class SecureStore(Protocol):
    def get(self, name: str) -> bytes | None: ...

    def put(self, name: str, value: bytes) -> None: ...

    def delete(self, name: str) -> None: ...


def _require_keyring():
    try:
        import keyring  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise SecureStoreUnavailableError("system keyring is unavailable") from exc
    return keyring


class KeyringSecureStore:
    """Values kept in the OS keyring as Base64 text."""

    def __init__(self, service: str = f"{const.KEYRING_SERVICE_PREFIX}/{const.KEY_TAG}") -> None:
        self.service = service

    def get(self, name: str) -> bytes | None:
        keyring = _require_keyring()
        try:
            stored = keyring.get_password(self.service, name)
        except Exception as exc:  # pragma: no cover - backend specific errors
            raise SecureStoreUnavailableError(f"failed to read {name!r} from keyring") from exc
        if not stored:
            return None
        try:
            return base64.b64decode(stored, validate=True)
        except binascii.Error as exc:
            raise SecureStoreUnavailableError(f"keyring entry {name!r} is corrupted") from exc

    def put(self, name: str, value: bytes) -> None:
        keyring = _require_keyring()
        try:
            keyring.set_password(self.service, name, base64.b64encode(value).decode("ascii"))
        except Exception as exc:  # pragma: no cover
            raise SecureStoreUnavailableError(f"failed to write {name!r} to keyring") from exc

    def delete(self, name: str) -> None:
        keyring = _require_keyring()
        try:
            keyring.delete_password(self.service, name)
        except keyring.errors.PasswordDeleteError:  # type: ignore[attr-defined]
            return
        except Exception as exc:  # pragma: no cover
            raise SecureStoreUnavailableError(f"failed to delete {name!r} from keyring") from exc


class FileSecureStore:
    """One file per entry under ``base_dir``, readable by the owner only."""

    _UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")

    def __init__(self, base_dir: Path) -> None:
        self._base = Path(base_dir)

    def _path(self, name: str) -> Path:
        return self._base / self._UNSAFE.sub("_", name)

    def get(self, name: str) -> bytes | None:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            raise SecureStoreUnavailableError(f"failed to read {path}") from exc

    def put(self, name: str, value: bytes) -> None:
        path = self._path(name)
        tmp = path.with_name(path.name + ".tmp")
        try:
            self._base.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(value)
            try:
                tmp.chmod(0o600)
            except PermissionError:
                # best effort on platforms that do not support chmod
                pass
            os.replace(tmp, path)
        except OSError as exc:
            raise SecureStoreUnavailableError(f"failed to write {path}") from exc

    def delete(self, name: str) -> None:
        try:
            self._path(name).unlink(missing_ok=True)
        except OSError as exc:
            raise SecureStoreUnavailableError(f"failed to delete {name!r}") from exc


class MemorySecureStore:
    """Process-local store for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get(self, name: str) -> bytes | None:
        return self._data.get(name)

    def put(self, name: str, value: bytes) -> None:
        self._data[name] = bytes(value)

    def delete(self, name: str) -> None:
        self._data.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._data)


def open_secure_store(kind: str, *, base_dir: Path, key_tag: str = const.KEY_TAG) -> SecureStore:
    if kind == "keyring":
        return KeyringSecureStore(f"{const.KEYRING_SERVICE_PREFIX}/{key_tag}")
    if kind == "file":
        return FileSecureStore(Path(base_dir) / "secure")
    if kind == "memory":
        return MemorySecureStore()
    raise ConfigurationError(f"unknown secure store backend: {kind}")
