import logging
from typing import Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

logger = logging.getLogger(__name__)

_PUBKEY_LEN = 32


def _hex(b: bytes) -> str: return b.hex()

def _public_bytes(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def generate_keypair() -> Tuple[Ed25519PrivateKey, str]:
    """Generate an Ed25519 key-pair; the address is the raw public key in hex."""
    private_key = Ed25519PrivateKey.generate()
    return private_key, address_from_private_key(private_key)

def address_from_private_key(private_key: Ed25519PrivateKey) -> str:
    return _hex(_public_bytes(private_key))

def private_key_to_hex(private_key: Ed25519PrivateKey) -> str:
    return _hex(private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    ))

def private_key_from_hex(priv_hex: str) -> Ed25519PrivateKey:
    return Ed25519PrivateKey.from_private_bytes(bytes.fromhex(priv_hex))


def sign_message(private_key: Ed25519PrivateKey, message: bytes) -> str:
    return _hex(private_key.sign(message))

def verify_signature(address: str, message: bytes, signature_hex: str) -> bool:
    """
    Check ``signature_hex`` over ``message`` against the public key encoded in
    ``address``. Malformed keys or signatures verify as False.
    """
    if not address or not signature_hex:
        return False
    try:
        pub = bytes.fromhex(address)
        sig = bytes.fromhex(signature_hex)
    except (ValueError, TypeError):
        logger.debug("Signature or address is not valid hex")
        return False
    if len(pub) != _PUBKEY_LEN:
        return False
    try:
        Ed25519PublicKey.from_public_bytes(pub).verify(sig, message)
        return True
    except InvalidSignature:
        return False
    except ValueError as e:
        logger.debug(f"Could not load public key {address[:16]}…: {e}")
        return False
