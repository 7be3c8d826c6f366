from __future__ import annotations

import base64
import json

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from phidoor.services.crypto import base32
from phidoor.services.errors import ServerRejection

RFC6238_SHA1_SECRET = b"12345678901234567890"


class FakeDoorServer:
    """In-process stand-in for the door server's /register and /operate endpoints."""

    def __init__(self, secret: bytes = RFC6238_SHA1_SECRET) -> None:
        self.secret = secret
        self.public_keys: dict[str, object] = {}
        self.registrations: list[dict] = []
        self.operations: list[dict] = []

    def register(self, payload):
        self.registrations.append(dict(payload))
        key = serialization.load_pem_public_key((payload["pem_public_key"] + "\n").encode("ascii"))
        self.public_keys[payload["id"]] = key
        plaintext = base32.encode(self.secret).encode("utf-8")
        ciphertext = key.encrypt(plaintext, padding.PKCS1v15())
        return {"encrypted_secret": base64.b64encode(ciphertext).decode("ascii")}

    def operate(self, payload):
        key = self.public_keys.get(payload["id"])
        if key is None:
            raise ServerRejection("unknown device", status_code=404)
        try:
            key.verify(
                base64.b64decode(payload["signature"]),
                payload["totp_message"].encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
        except InvalidSignature:
            raise ServerRejection("bad signature", status_code=403) from None
        self.operations.append(json.loads(payload["totp_message"]))
        return {"status": "ok"}


@pytest.fixture()
def fake_server() -> FakeDoorServer:
    return FakeDoorServer()
