"""
Per-direction cipher state.

After the handshake each side holds two `CipherState`s: one keyed for
sending and one for receiving. Each pairs a 32-byte key with a 64-bit
message counter that doubles as the AEAD nonce.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import NonceExhaustedError
from .constants import MAX_NONCE, CipherKey
from .crypto import decrypt, encrypt


@dataclass(slots=True)
class CipherState:
    """
    Encryption state for one direction of communication.

    The counter starts at 0 and increments after each successful
    operation. It never wraps: once it reaches `MAX_NONCE` the direction
    is exhausted and the connection must be closed.
    """

    key: CipherKey = field(repr=False)
    """32-byte ChaCha20-Poly1305 key."""

    nonce: int = 0
    """64-bit counter, increments after each operation."""

    def _check_nonce(self) -> None:
        if self.nonce >= MAX_NONCE:
            raise NonceExhaustedError("Nonce exhausted, connection must be closed")

    def encrypt_with_ad(self, ad: bytes, plaintext: bytes) -> bytes:
        """
        Encrypt plaintext with associated data.

        Args:
            ad: Associated data (authenticated, not encrypted).
            plaintext: Data to encrypt.

        Returns:
            Ciphertext with 16-byte auth tag.

        Raises:
            NonceExhaustedError: If the counter has reached `MAX_NONCE`.
        """
        # Check before encryption so an exhausted nonce is never used.
        self._check_nonce()
        ciphertext = encrypt(self.key, self.nonce, ad, plaintext)
        self.nonce += 1
        return ciphertext

    def decrypt_with_ad(self, ad: bytes, ciphertext: bytes) -> bytes:
        """
        Decrypt ciphertext with associated data.

        Raises:
            cryptography.exceptions.InvalidTag: If authentication fails.
            NonceExhaustedError: If the counter has reached `MAX_NONCE`.
        """
        self._check_nonce()
        plaintext = decrypt(self.key, self.nonce, ad, ciphertext)
        # Increment only on success.
        self.nonce += 1
        return plaintext
