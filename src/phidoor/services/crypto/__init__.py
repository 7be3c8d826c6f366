"""Cryptographic building blocks: key handling, SPKI/PEM, Base32 and TOTP."""
from . import base32
from .pki import (
    decrypt_pkcs1v15,
    generate_rsa_key,
    load_private_key,
    load_public_key_pkcs1,
    private_key_to_der,
    public_key_to_pkcs1,
    sign_pkcs1v15,
)
from .spki import der_decode_length, der_encode_length, encode_pem, encode_public_key_pem, encode_spki
from .totp import TotpGenerator, generate_totp, hotp, time_counter

__all__ = [
    "base32",
    "decrypt_pkcs1v15",
    "generate_rsa_key",
    "load_private_key",
    "load_public_key_pkcs1",
    "private_key_to_der",
    "public_key_to_pkcs1",
    "sign_pkcs1v15",
    "der_decode_length",
    "der_encode_length",
    "encode_pem",
    "encode_public_key_pem",
    "encode_spki",
    "TotpGenerator",
    "generate_totp",
    "hotp",
    "time_counter",
]
