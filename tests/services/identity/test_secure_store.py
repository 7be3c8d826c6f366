from __future__ import annotations

import os
import stat

import keyring
import keyring.backend
import keyring.errors
import pytest

from phidoor.services.errors import ConfigurationError
from phidoor.services.identity.secure_store import (
    FileSecureStore,
    KeyringSecureStore,
    MemorySecureStore,
    SecureStore,
    open_secure_store,
)


class InMemoryKeyring(keyring.backend.KeyringBackend):
    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}

    def get_password(self, service, username):
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise keyring.errors.PasswordDeleteError("not found") from None


@pytest.fixture()
def memory_keyring():
    previous = keyring.get_keyring()
    backend = InMemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture(params=["memory", "file", "keyring"])
def store(request, tmp_path, memory_keyring) -> SecureStore:
    if request.param == "memory":
        return MemorySecureStore()
    if request.param == "file":
        return FileSecureStore(tmp_path / "secure")
    return KeyringSecureStore("phidoor/test")


def test_put_get_delete(store):
    assert store.get("totpSecret") is None
    store.put("totpSecret", b"\x00\x01secret")
    assert store.get("totpSecret") == b"\x00\x01secret"
    store.put("totpSecret", b"replaced")
    assert store.get("totpSecret") == b"replaced"
    store.delete("totpSecret")
    assert store.get("totpSecret") is None


def test_delete_missing_entry_is_success(store):
    store.delete("never-written")
    store.delete("never-written")


def test_stores_satisfy_protocol(store):
    assert isinstance(store, SecureStore)


def test_keyring_values_are_base64_text(memory_keyring):
    KeyringSecureStore("phidoor/test").put("deviceUUID", b"\xffraw")
    assert memory_keyring.entries[("phidoor/test", "deviceUUID")] == "/3Jhdw=="


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_file_entries_are_owner_only(tmp_path):
    store = FileSecureStore(tmp_path / "secure")
    store.put("key:phidoor.keypair", b"material")
    path = tmp_path / "secure" / "key_phidoor.keypair"
    assert path.read_bytes() == b"material"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_open_secure_store(tmp_path):
    assert isinstance(open_secure_store("memory", base_dir=tmp_path), MemorySecureStore)
    assert isinstance(open_secure_store("file", base_dir=tmp_path), FileSecureStore)
    keyring_store = open_secure_store("keyring", base_dir=tmp_path, key_tag="door.test")
    assert isinstance(keyring_store, KeyringSecureStore)
    assert keyring_store.service == "phidoor/door.test"
    with pytest.raises(ConfigurationError):
        open_secure_store("enclave", base_dir=tmp_path)
