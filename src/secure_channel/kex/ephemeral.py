"""
Per-handshake ephemeral values.

Each handshake uses a fresh X25519 key pair on both sides and a fresh
64-bit nonce drawn by the initiator. The private half of the key pair is
used for exactly one Diffie-Hellman computation and then dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import x25519
from typing_extensions import Self

from ..rand import SYSTEM_RANDOM, RandomSource
from ..types import Bytes32, Uint64
from .constants import SharedSecret
from .crypto import x25519_dh


class HandshakeNonce(Uint64):
    """64-bit random value chosen by the initiator and echoed by the responder."""

    @classmethod
    def generate(cls, rng: RandomSource | None = None) -> Self:
        """Draw 64 random bits."""
        return cls(int.from_bytes((rng or SYSTEM_RANDOM).token_bytes(8), "little"))


@dataclass(slots=True)
class EphemeralKeyPair:
    """
    One-shot X25519 key pair.

    Usage:
        ephemeral = EphemeralKeyPair.generate()
        # send ephemeral.public(), receive the peer's public key
        shared = ephemeral.dh(peer_public)
        # ephemeral.dh() now raises: the private key is gone
    """

    _private_key: x25519.X25519PrivateKey | None = field(repr=False)
    """Private half. Set to None by `dh()`."""

    _public_key: Bytes32
    """Raw 32-byte public half."""

    @classmethod
    def generate(cls, rng: RandomSource | None = None) -> EphemeralKeyPair:
        """
        Create a key pair from 32 random bytes.

        Args:
            rng: Source of the private key. Defaults to the OS CSPRNG.
        """
        private_key = x25519.X25519PrivateKey.from_private_bytes(
            (rng or SYSTEM_RANDOM).token_bytes(32)
        )
        public_key = Bytes32(private_key.public_key().public_bytes_raw())
        return cls(private_key, public_key)

    def public(self) -> Bytes32:
        """Raw public key, as sent on the wire."""
        return self._public_key

    @property
    def consumed(self) -> bool:
        """Whether `dh()` has already been called."""
        return self._private_key is None

    def dh(self, peer_public: Bytes32) -> SharedSecret:
        """
        Compute the shared secret with the peer's ephemeral key.

        The private key is discarded before this returns, whether or not
        the computation succeeded.

        Raises:
            RuntimeError: If called a second time.
            ValueError: If the peer key is malformed or low-order.
        """
        private_key = self._private_key
        if private_key is None:
            raise RuntimeError("Ephemeral key already used")
        self._private_key = None
        return x25519_dh(private_key, peer_public)
