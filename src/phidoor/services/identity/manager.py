"""Registration, unlock and reset flows for one device identity.

A :class:`DeviceIdentity` is built once per process (see
:meth:`DeviceIdentity.from_settings`) and handed to whatever front end drives
it. It never talks to the network itself except through its ``transport``.

Unlocking without a provisioned secret is allowed: the code is computed from an
empty key and sent anyway, leaving the authorisation decision to the server.
"""
from __future__ import annotations

import base64
import binascii
import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Protocol

from pydantic import ValidationError

from phidoor.config import const
from phidoor.services.crypto import base32
from phidoor.services.crypto.spki import encode_public_key_pem
from phidoor.services.crypto.totp import TotpGenerator
from phidoor.services.errors import DecryptionError, DoorAuthError, EncodingError, KeyNotFoundError

from .client import DoorHttpClient
from .ids import generate_device_id
from .keystore import KeyPairStore
from .models import RegistrationRequest, RegistrationResponse, UnlockChallenge, UnlockRequest
from .secure_store import SecureStore, open_secure_store

__all__ = ["DeviceIdentity", "DoorTransport", "IdentityState", "OperationResult"]

_log = logging.getLogger("phidoor.identity")


class _StrEnum(str, Enum):
    def __str__(self) -> str:  # rendered by `phidoor door status`
        return str(self.value)


class IdentityState(_StrEnum):
    UNREGISTERED = "unregistered"
    REGISTERING = "registering"
    REGISTERED = "registered"
    UNLOCKING = "unlocking"


class DoorTransport(Protocol):
    def register(self, payload: Mapping[str, Any]) -> Any: ...

    def operate(self, payload: Mapping[str, Any]) -> Any: ...


@dataclass(frozen=True, slots=True)
class OperationResult:
    operation: str
    ok: bool
    error: DoorAuthError | None = None

    @property
    def error_kind(self) -> str | None:
        return self.error.kind if self.error is not None else None


class DeviceIdentity:
    def __init__(
        self,
        *,
        store: SecureStore,
        keys: KeyPairStore,
        transport: DoorTransport | None = None,
        totp: TotpGenerator | None = None,
        key_tag: str = const.KEY_TAG,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        self._store = store
        self._keys = keys
        self._transport = transport
        self._totp = totp or TotpGenerator()
        self.key_tag = key_tag
        self._random_bytes = random_bytes
        self._busy: IdentityState | None = None

    @classmethod
    def from_settings(cls, settings: Any, *, transport: DoorTransport | None = None) -> "DeviceIdentity":
        store = open_secure_store(settings.store, base_dir=settings.base_dir, key_tag=settings.key_tag)
        return cls(
            store=store,
            keys=KeyPairStore(store, key_size=settings.key_size),
            transport=transport if transport is not None else DoorHttpClient.from_settings(settings),
            totp=TotpGenerator(
                algorithm=settings.totp_algorithm,
                digits=settings.totp_digits,
                period=settings.totp_period,
            ),
            key_tag=settings.key_tag,
        )

    # ------------------------------------------------------------------
    # persisted state
    # ------------------------------------------------------------------
    @property
    def device_id(self) -> str | None:
        raw = self._store.get(const.DEVICE_ID_NAME)
        if not raw:
            return None
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError("stored device identifier is not UTF-8") from exc

    def ensure_device_id(self) -> str:
        existing = self.device_id
        if existing:
            return existing
        device_id = generate_device_id()
        self._store.put(const.DEVICE_ID_NAME, device_id.encode("utf-8"))
        _log.info("identity: created device identifier", extra={"device_id": device_id})
        return device_id

    def shared_secret(self) -> bytes:
        return self._store.get(const.SHARED_SECRET_NAME) or b""

    @property
    def state(self) -> IdentityState:
        if self._busy is not None:
            return self._busy
        if self.device_id and self.has_key_pair() and self._store.get(const.SHARED_SECRET_NAME):
            return IdentityState.REGISTERED
        return IdentityState.UNREGISTERED

    def has_key_pair(self) -> bool:
        return self._keys.exists(self.key_tag)

    def public_key_pem(self) -> str:
        keypair = self._keys.get_or_create(self.key_tag)
        return encode_public_key_pem(keypair.public_key_pkcs1())

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------
    def build_registration_request(self) -> RegistrationRequest:
        device_id = self.ensure_device_id()
        return RegistrationRequest(id=device_id, pem_public_key=self.public_key_pem())

    def provision_secret(self, response: Any) -> bytes:
        """Decrypt and store the shared secret carried by a registration response.

        Nothing is written unless every decoding step succeeds.
        """
        try:
            parsed = RegistrationResponse.model_validate(response)
        except ValidationError as exc:
            raise EncodingError("registration response has no usable encrypted_secret") from exc
        try:
            ciphertext = base64.b64decode(parsed.encrypted_secret, validate=True)
        except binascii.Error as exc:
            raise EncodingError("encrypted_secret is not valid base64") from exc

        plaintext = self._keys.decrypt(self.key_tag, ciphertext)
        # PKCS#1 v1.5 implicit rejection returns random bytes for a wrong key,
        # so undecodable plaintext counts as a failed decryption
        try:
            secret = base32.decode(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, EncodingError) as exc:
            raise DecryptionError("decrypted secret is not Base32 text") from exc
        if not secret:
            raise DecryptionError("decrypted secret is empty")

        self._store.put(const.SHARED_SECRET_NAME, secret)
        _log.info("identity: stored shared secret", extra={"device_id": self.device_id, "secret_bytes": len(secret)})
        return secret

    def register(self, on_result: Callable[[bool], None] | None = None) -> OperationResult:
        def flow() -> None:
            request = self.build_registration_request()
            _log.info("identity: sending registration", extra={"device_id": request.id})
            response = self._require_transport().register(request.model_dump())
            self.provision_secret(response)

        return self._run("register", IdentityState.REGISTERING, flow, on_result)

    # ------------------------------------------------------------------
    # unlock
    # ------------------------------------------------------------------
    def build_unlock_request(self, timestamp: float | None = None) -> UnlockRequest:
        device_id = self.device_id
        if not device_id:
            raise KeyNotFoundError("device has no identifier; register first")
        secret = self.shared_secret()
        token = self._totp.now(secret) if timestamp is None else self._totp.at(secret, timestamp)
        salt = base64.b64encode(self._random_bytes(const.SALT_BYTES)).decode("ascii")

        message = UnlockChallenge(token=token, salt=salt).serialize()
        signature = self._keys.sign(self.key_tag, message.encode("utf-8"))
        return UnlockRequest(
            id=device_id,
            totp_message=message,
            signature=base64.b64encode(signature).decode("ascii"),
        )

    def unlock(self, on_result: Callable[[bool], None] | None = None) -> OperationResult:
        def flow() -> None:
            request = self.build_unlock_request()
            _log.info("identity: sending unlock request", extra={"device_id": request.id})
            self._require_transport().operate(request.model_dump())

        return self._run("unlock", IdentityState.UNLOCKING, flow, on_result)

    # ------------------------------------------------------------------
    # reset
    # ------------------------------------------------------------------
    def reset(self, on_result: Callable[[bool], None] | None = None) -> OperationResult:
        steps: list[tuple[str, Callable[[], None]]] = [
            ("device_id", lambda: self._store.delete(const.DEVICE_ID_NAME)),
            ("shared_secret", lambda: self._store.delete(const.SHARED_SECRET_NAME)),
            ("key_pair", lambda: self._keys.delete(self.key_tag)),
        ]
        failures: list[DoorAuthError] = []
        for name, step in steps:
            try:
                step()
            except DoorAuthError as exc:
                _log.warning("identity: reset step failed", extra={"step": name, "kind": exc.kind, "error": str(exc)})
                failures.append(exc)

        result = OperationResult("reset", not failures, failures[0] if failures else None)
        if result.ok:
            _log.info("identity: reset complete")
        if on_result is not None:
            on_result(result.ok)
        return result

    # ------------------------------------------------------------------
    def _require_transport(self) -> DoorTransport:
        if self._transport is None:
            raise RuntimeError("DeviceIdentity was built without a transport")
        return self._transport

    def _run(
        self,
        operation: str,
        phase: IdentityState,
        flow: Callable[[], None],
        on_result: Callable[[bool], None] | None,
    ) -> OperationResult:
        self._busy = phase
        try:
            flow()
        except DoorAuthError as exc:
            _log.warning(
                "identity: operation failed",
                extra={"operation": operation, "kind": exc.kind, "error": str(exc)},
            )
            result = OperationResult(operation, False, exc)
        else:
            _log.info("identity: operation succeeded", extra={"operation": operation})
            result = OperationResult(operation, True)
        finally:
            self._busy = None
        if on_result is not None:
            on_result(result.ok)
        return result
