"""Error kinds raised by the device identity core.

Every error carries a stable ``kind`` string so the orchestration layer can log
what failed without inspecting exception types.
"""
from __future__ import annotations

from typing import Any

__all__ = [
    "DoorAuthError",
    "ConfigurationError",
    "SecureStoreUnavailableError",
    "KeyStoreError",
    "KeyGenerationError",
    "KeyNotFoundError",
    "DecryptionError",
    "EncodingError",
    "InvalidCharacterError",
    "NetworkError",
    "ServerRejection",
]


class DoorAuthError(RuntimeError):
    """Base class for recoverable failures of the door authentication flows."""

    kind = "door_auth_error"


class ConfigurationError(DoorAuthError):
    kind = "configuration_error"


class SecureStoreUnavailableError(DoorAuthError):
    """Raised when the secure storage backend cannot be reached."""

    kind = "secure_store_unavailable"


class KeyStoreError(DoorAuthError):
    """Raised when stored key material exists but cannot be used."""

    kind = "key_store_error"


class KeyGenerationError(KeyStoreError):
    kind = "key_generation_error"


class KeyNotFoundError(KeyStoreError):
    """No key pair (or no device identifier): the device is not registered."""

    kind = "key_not_found"


class DecryptionError(DoorAuthError):
    kind = "decryption_error"


class EncodingError(DoorAuthError, ValueError):
    """Malformed Base32, Base64, UTF-8 or JSON input."""

    kind = "encoding_error"


class InvalidCharacterError(EncodingError):
    kind = "invalid_character"

    def __init__(self, character: str, position: int):
        super().__init__(f"invalid base32 character {character!r} at position {position}")
        self.character = character
        self.position = position


class NetworkError(DoorAuthError):
    """Transport failure; the request may not have reached the server."""

    kind = "network_error"


class ServerRejection(DoorAuthError):
    """The server answered, but with an error response."""

    kind = "server_rejection"

    def __init__(self, message: str, *, status_code: int, error_code: str | None = None, payload: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.payload = payload
