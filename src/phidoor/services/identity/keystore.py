"""Tagged RSA key pair kept in the secure store.

The private half never leaves this module: callers receive a :class:`KeyPair`
exposing the public key and a signing capability only.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from cryptography.hazmat.primitives.asymmetric import rsa

from phidoor.config import const
from phidoor.services.crypto.pki import (
    decrypt_pkcs1v15,
    generate_rsa_key,
    load_private_key,
    load_public_key_pkcs1,
    private_key_to_der,
    public_key_to_pkcs1,
    sign_pkcs1v15,
)
from phidoor.services.crypto.spki import encode_public_key_pem
from phidoor.services.errors import KeyNotFoundError, KeyStoreError

from .secure_store import SecureStore

__all__ = ["KeyPair", "KeyPairStore"]

_log = logging.getLogger("phidoor.keystore")


@dataclass(frozen=True)
class KeyPair:
    tag: str
    public_key: rsa.RSAPublicKey
    _signer: Callable[[bytes], bytes] = field(repr=False)

    def public_key_pkcs1(self) -> bytes:
        return public_key_to_pkcs1(self.public_key)

    def public_key_pem(self) -> str:
        return encode_public_key_pem(self.public_key_pkcs1())

    def sign(self, message: bytes) -> bytes:
        return self._signer(message)


class KeyPairStore:
    """Generates, persists, uses and deletes one RSA key pair per tag."""

    def __init__(self, store: SecureStore, *, key_size: int = const.KEY_SIZE) -> None:
        self._store = store
        self._key_size = key_size
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @staticmethod
    def _private_name(tag: str) -> str:
        return f"key:{tag}"

    @staticmethod
    def _public_name(tag: str) -> str:
        return f"key:{tag}.pub"

    def _lock_for(self, tag: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(tag)
            if lock is None:
                lock = self._locks[tag] = threading.Lock()
            return lock

    def _load_private(self, tag: str) -> rsa.RSAPrivateKey:
        data = self._store.get(self._private_name(tag))
        if data is None:
            raise KeyNotFoundError(f"no key pair stored under tag {tag!r}")
        return load_private_key(data)

    def _wrap(self, tag: str, public_key: rsa.RSAPublicKey) -> KeyPair:
        return KeyPair(tag=tag, public_key=public_key, _signer=lambda message: self.sign(tag, message))

    def exists(self, tag: str) -> bool:
        return self._store.get(self._private_name(tag)) is not None

    def get_or_create(self, tag: str) -> KeyPair:
        with self._lock_for(tag):
            if self._store.get(self._private_name(tag)) is not None:
                public = self._store.get(self._public_name(tag))
                if public is None:
                    raise KeyStoreError(f"public key for tag {tag!r} is missing while its private key exists")
                _log.debug("keystore: reusing key pair", extra={"tag": tag})
                return self._wrap(tag, load_public_key_pkcs1(public))

            private_key = generate_rsa_key(self._key_size)
            public_key = private_key.public_key()
            self._store.put(self._public_name(tag), public_key_to_pkcs1(public_key))
            self._store.put(self._private_name(tag), private_key_to_der(private_key))
            _log.info("keystore: generated key pair", extra={"tag": tag, "bits": self._key_size})
            return self._wrap(tag, public_key)

    def sign(self, tag: str, message: bytes) -> bytes:
        return sign_pkcs1v15(self._load_private(tag), message)

    def decrypt(self, tag: str, ciphertext: bytes) -> bytes:
        return decrypt_pkcs1v15(self._load_private(tag), ciphertext)

    def delete(self, tag: str) -> None:
        with self._lock_for(tag):
            self._store.delete(self._private_name(tag))
            self._store.delete(self._public_name(tag))
        _log.info("keystore: deleted key pair", extra={"tag": tag})
