# services/identity/models.py
from __future__ import annotations

import json
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class RegistrationRequest(BaseModel):
    """Body of ``POST /register``."""

    id: str
    pem_public_key: str


class RegistrationResponse(BaseModel):
    """Server answer to a registration: the shared secret, encrypted to the device key."""

    model_config = ConfigDict(extra="ignore")

    encrypted_secret: str


class UnlockRequest(BaseModel):
    """Body of ``POST /operate``; ``totp_message`` is the exact text that was signed."""

    id: str
    totp_message: str
    signature: str


@dataclass(frozen=True, slots=True)
class UnlockChallenge:
    token: str
    salt: str

    def serialize(self) -> str:
        """Canonical JSON: sorted keys, no whitespace."""
        return json.dumps({"_salt": self.salt, "token": self.token}, sort_keys=True, separators=(",", ":"))


__all__ = ["RegistrationRequest", "RegistrationResponse", "UnlockRequest", "UnlockChallenge"]
