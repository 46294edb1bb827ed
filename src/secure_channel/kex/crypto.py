"""
Cryptographic primitives for key agreement and transport.

The channel uses:
    - X25519 for ephemeral Diffie-Hellman key agreement
    - HKDF-SHA256 to turn the DH output into transport keys
    - ChaCha20-Poly1305 for authenticated encryption

Wire format notes:
    - ChaCha20-Poly1305 nonce: 12 bytes, first 4 are zeros, last 8 are LE counter
    - Ciphertext includes 16-byte authentication tag appended
    - HKDF salt is the encoded handshake nonce, so keys are bound to one handshake

References:
    - https://datatracker.ietf.org/doc/html/rfc7748 (X25519)
    - https://datatracker.ietf.org/doc/html/rfc5869 (HKDF)
    - https://datatracker.ietf.org/doc/html/rfc8439 (ChaCha20-Poly1305)
"""

from __future__ import annotations

import hashlib
import hmac
import struct

from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from ..types import Bytes32, Uint64
from .constants import KEY_SIZE, TRANSPORT_KEY_INFO, CipherKey, SharedSecret


def x25519_dh(private_key: x25519.X25519PrivateKey, public_key: Bytes32) -> SharedSecret:
    """
    Perform X25519 Diffie-Hellman key exchange.

    Args:
        private_key: Our X25519 private key
        public_key: Peer's raw 32-byte X25519 public key

    Returns:
        32-byte shared secret

    Raises:
        ValueError: If the peer key is a low-order point (all-zero output).
    """
    peer = x25519.X25519PublicKey.from_public_bytes(bytes(public_key))
    shared = private_key.exchange(peer)

    # A low-order peer point forces the output to zero regardless of our key.
    if not any(shared):
        raise ValueError("X25519 produced an all-zero shared secret")

    return SharedSecret(shared)


def _aead_nonce(counter: int) -> bytes:
    # 4 zero bytes + 8-byte LE counter.
    return b"\x00\x00\x00\x00" + struct.pack("<Q", counter)


def encrypt(key: CipherKey, nonce: int, ad: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt with ChaCha20-Poly1305 AEAD.

    Args:
        key: 32-byte encryption key
        nonce: 64-bit counter value (will be converted to 12-byte nonce)
        ad: Associated data (authenticated but not encrypted)
        plaintext: Data to encrypt

    Returns:
        Ciphertext with 16-byte authentication tag appended
    """
    return ChaCha20Poly1305(bytes(key)).encrypt(_aead_nonce(nonce), plaintext, ad)


def decrypt(key: CipherKey, nonce: int, ad: bytes, ciphertext: bytes) -> bytes:
    """
    Decrypt with ChaCha20-Poly1305 AEAD.

    Raises:
        cryptography.exceptions.InvalidTag: If authentication fails.
            Tampering, a wrong key, a wrong nonce and wrong associated
            data are indistinguishable.
    """
    return ChaCha20Poly1305(bytes(key)).decrypt(_aead_nonce(nonce), ciphertext, ad)


def hkdf_extract(salt: bytes, input_key_material: bytes) -> bytes:
    """HKDF-Extract: PRK = HMAC-SHA256(salt, IKM)."""
    return hmac.new(salt, input_key_material, hashlib.sha256).digest()


def hkdf_expand(prk: bytes, info: bytes, length: int) -> bytes:
    """HKDF-Expand: T(i) = HMAC-SHA256(PRK, T(i-1) || info || i)."""
    if length > 255 * hashlib.sha256().digest_size:
        raise ValueError(f"Cannot expand to {length} bytes")

    output = b""
    block = b""
    counter = 1
    while len(output) < length:
        block = hmac.new(prk, block + info + bytes([counter]), hashlib.sha256).digest()
        output += block
        counter += 1
    return output[:length]


def derive_transport_keys(
    shared_secret: SharedSecret,
    nonce: Uint64,
    initiator_ephemeral: Bytes32,
    responder_ephemeral: Bytes32,
) -> tuple[CipherKey, CipherKey]:
    """
    Derive the two transport keys of a handshake.

    Both parties derive the same pair of keys from:
    - The X25519 shared secret
    - The initiator's handshake nonce (binds keys to this handshake)
    - Both ephemeral public keys (binds keys to this key exchange)

    Key derivation:
        info = TRANSPORT_KEY_INFO || initiator_ephemeral || responder_ephemeral
        prk = HKDF-Extract(salt=nonce (8 bytes LE), ikm=shared_secret)
        okm = HKDF-Expand(prk, info, 64)
        initiator_key = okm[:32]
        responder_key = okm[32:64]

    Returns:
        Tuple of (initiator_key, responder_key).

    The initiator encrypts with initiator_key and decrypts with responder_key.
    The responder does the opposite.
    """
    prk = hkdf_extract(nonce.encode_bytes(), bytes(shared_secret))
    info = TRANSPORT_KEY_INFO + initiator_ephemeral + responder_ephemeral
    okm = hkdf_expand(prk, info, 2 * KEY_SIZE)
    return CipherKey(okm[:KEY_SIZE]), CipherKey(okm[KEY_SIZE:])
