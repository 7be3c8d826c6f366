from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from phidoor.config import const
from phidoor.services.crypto.spki import encode_spki
from phidoor.services.errors import DecryptionError, KeyGenerationError, KeyStoreError


def generate_rsa_key(bits: int = const.KEY_SIZE) -> rsa.RSAPrivateKey:
    try:
        return rsa.generate_private_key(public_exponent=65537, key_size=bits)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyGenerationError(f"RSA key generation rejected: {exc}") from exc


def private_key_to_der(key: rsa.RSAPrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def load_private_key(data: bytes) -> rsa.RSAPrivateKey:
    try:
        key = serialization.load_der_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyStoreError("stored private key is unreadable") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyStoreError("stored private key is not an RSA key")
    return key


def public_key_to_pkcs1(key: rsa.RSAPublicKey) -> bytes:
    """Raw ``RSAPublicKey`` (modulus, exponent) DER, without algorithm identifier."""

    return key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.PKCS1)


def load_public_key_pkcs1(data: bytes) -> rsa.RSAPublicKey:
    try:
        key = serialization.load_der_public_key(encode_spki(data))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyStoreError("stored public key is unreadable") from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyStoreError("stored public key is not an RSA key")
    return key


def sign_pkcs1v15(key: rsa.RSAPrivateKey, message: bytes) -> bytes:
    return key.sign(message, padding.PKCS1v15(), hashes.SHA256())


def decrypt_pkcs1v15(key: rsa.RSAPrivateKey, ciphertext: bytes) -> bytes:
    try:
        return key.decrypt(ciphertext, padding.PKCS1v15())
    except ValueError as exc:
        raise DecryptionError("ciphertext could not be decrypted with the device key") from exc


__all__ = [
    "generate_rsa_key",
    "private_key_to_der",
    "load_private_key",
    "public_key_to_pkcs1",
    "load_public_key_pkcs1",
    "sign_pkcs1v15",
    "decrypt_pkcs1v15",
]
