"""Ed25519 signing helpers."""
from typing import Tuple

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)


def generate_keypair() -> Tuple[bytes, bytes]:
    private_key = Ed25519PrivateKey.generate()
    private_bytes = private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    return private_bytes, public_key_for(private_bytes)


def public_key_for(private_bytes: bytes) -> bytes:
    private_key = Ed25519PrivateKey.from_private_bytes(private_bytes)
    return private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def sign_message(private_bytes: bytes, message: bytes) -> bytes:
    return Ed25519PrivateKey.from_private_bytes(private_bytes).sign(message)


def verify_signature(public_bytes: bytes, message: bytes, signature: bytes) -> None:
    """Raise cryptography's InvalidSignature when the signature does not match."""
    Ed25519PublicKey.from_public_bytes(public_bytes).verify(signature, message)
