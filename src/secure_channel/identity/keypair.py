"""
Ed25519 long-term identities.

An `Identity` owns a signing key and never leaves the process. Its
`PeerIdentity` is the 32-byte public half: it is what travels in
`ServerHello`, what callers pin, and what `SecureConnection.other_id`
reports.

Ed25519 signatures are deterministic, so signing needs no randomness and
the same message always produces the same 64 bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ed25519

from ..rand import SYSTEM_RANDOM, RandomSource
from ..types import Bytes32, Bytes64, WireType

__all__ = [
    "Identity",
    "PeerIdentity",
    "verify_signature",
]

SEED_LENGTH = 32
"""Length of an Ed25519 private key seed."""


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """
    Verify an Ed25519 signature.

    Malformed public keys and signatures verify as False.

    Args:
        public_key: 32-byte Ed25519 public key.
        message: Original message that was signed.
        signature: 64-byte signature.

    Returns:
        True if signature is valid, False otherwise.
    """
    try:
        key = ed25519.Ed25519PublicKey.from_public_bytes(bytes(public_key))
        key.verify(bytes(signature), bytes(message))
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False


@dataclass(frozen=True, slots=True)
class PeerIdentity:
    """
    The public half of an identity.

    Hashable and comparable by key bytes, so it works directly as a pin
    or as an allow-list entry.
    """

    public_key: Bytes32
    """Raw 32-byte Ed25519 public key."""

    def __post_init__(self) -> None:
        if not isinstance(self.public_key, Bytes32):
            object.__setattr__(self, "public_key", Bytes32(self.public_key))

    @classmethod
    def from_hex(cls, value: str) -> PeerIdentity:
        """
        Parse a hex-encoded public key (with or without '0x').

        Raises:
            ValueError: If the string is not 32 bytes of hex.
        """
        return cls(Bytes32(value))

    def hex(self) -> str:
        """Hex encoding of the public key."""
        return self.public_key.hex()

    def short_id(self) -> str:
        """First 16 hex digits of the key, for logs."""
        return self.hex()[:16]

    def verify(self, message: WireType, signature: bytes) -> bool:
        """Verify `signature` over the canonical encoding of `message`."""
        return verify_signature(self.public_key, message.encode_bytes(), signature)

    def verify_bytes(self, data: bytes, signature: bytes) -> bool:
        """Verify `signature` over raw bytes."""
        return verify_signature(self.public_key, data, signature)

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Ed25519 keypair for long-term identity.

    The caller creates and stores identities; the library only borrows
    one per connection to sign the key exchange.

    Attributes:
        private_key: The Ed25519 private key.
    """

    private_key: ed25519.Ed25519PrivateKey = field(repr=False)

    @classmethod
    def generate(cls, rng: RandomSource | None = None) -> Identity:
        """
        Generate a new identity.

        Args:
            rng: Source of the 32-byte seed. Defaults to the OS CSPRNG.

        Returns:
            A fresh identity.
        """
        return cls.from_bytes((rng or SYSTEM_RANDOM).token_bytes(SEED_LENGTH))

    @classmethod
    def from_bytes(cls, seed: bytes) -> Identity:
        """
        Load an identity from its 32-byte private seed.

        Raises:
            ValueError: If seed is not 32 bytes.
        """
        if len(seed) != SEED_LENGTH:
            raise ValueError(f"Expected {SEED_LENGTH} bytes, got {len(seed)}")
        return cls(private_key=ed25519.Ed25519PrivateKey.from_private_bytes(bytes(seed)))

    def private_bytes(self) -> bytes:
        """Return the raw 32-byte private seed, for the caller to persist."""
        return self.private_key.private_bytes_raw()

    def public(self) -> PeerIdentity:
        """Return the public half."""
        return PeerIdentity(Bytes32(self.private_key.public_key().public_bytes_raw()))

    def sign(self, message: WireType) -> Bytes64:
        """Sign the canonical encoding of `message`."""
        return self.sign_bytes(message.encode_bytes())

    def sign_bytes(self, data: bytes) -> Bytes64:
        """Sign raw bytes."""
        return Bytes64(self.private_key.sign(bytes(data)))

    def __repr__(self) -> str:
        return f"Identity(public={self.public().short_id()})"
