"""
Ephemeral key agreement and symmetric transport primitives.

X25519 ephemeral keys produce a shared secret; HKDF-SHA256 turns it,
salted with the handshake nonce, into one ChaCha20-Poly1305 key per
direction.
"""

from .constants import (
    AUTH_TAG_SIZE,
    KEY_SIZE,
    MAX_NONCE,
    PROTOCOL_NAME,
    TRANSPORT_KEY_INFO,
    CipherKey,
    SharedSecret,
)
from .crypto import decrypt, derive_transport_keys, encrypt, hkdf_expand, hkdf_extract, x25519_dh
from .ephemeral import EphemeralKeyPair, HandshakeNonce
from .types import CipherState

__all__ = [
    # Constants
    "AUTH_TAG_SIZE",
    "KEY_SIZE",
    "MAX_NONCE",
    "PROTOCOL_NAME",
    "TRANSPORT_KEY_INFO",
    # Types
    "CipherKey",
    "CipherState",
    "EphemeralKeyPair",
    "HandshakeNonce",
    "SharedSecret",
    # Functions
    "decrypt",
    "derive_transport_keys",
    "encrypt",
    "hkdf_expand",
    "hkdf_extract",
    "x25519_dh",
]
