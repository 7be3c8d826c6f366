"""Device identity: key pair, shared secret provisioning and signed unlock requests."""
from .client import DoorHttpClient
from .ids import DeviceId, generate_device_id, uuid7
from .keystore import KeyPair, KeyPairStore
from .manager import DeviceIdentity, DoorTransport, IdentityState, OperationResult
from .models import RegistrationRequest, RegistrationResponse, UnlockChallenge, UnlockRequest
from .secure_store import FileSecureStore, KeyringSecureStore, MemorySecureStore, SecureStore, open_secure_store

__all__ = [
    "DoorHttpClient",
    "DeviceId",
    "generate_device_id",
    "uuid7",
    "KeyPair",
    "KeyPairStore",
    "DeviceIdentity",
    "DoorTransport",
    "IdentityState",
    "OperationResult",
    "RegistrationRequest",
    "RegistrationResponse",
    "UnlockChallenge",
    "UnlockRequest",
    "FileSecureStore",
    "KeyringSecureStore",
    "MemorySecureStore",
    "SecureStore",
    "open_secure_store",
]
