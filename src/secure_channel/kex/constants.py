"""
Constants and type aliases for key agreement.

Separated to avoid circular imports between crypto.py and types.py.
"""

from __future__ import annotations

from typing import Final, TypeAlias

from ..types import Bytes32

# =============================================================================
# Protocol Constants
# =============================================================================

PROTOCOL_NAME: Final[bytes] = b"secure-channel/v1/X25519-Ed25519-ChaChaPoly-SHA256"
"""Names the primitives of this protocol version. Prefixes the HKDF info."""

TRANSPORT_KEY_INFO: Final[bytes] = PROTOCOL_NAME + b" transport keys"
"""Info string used in HKDF expansion for the two transport keys."""

KEY_SIZE: Final[int] = 32
"""Size of each transport key in bytes (ChaCha20-Poly1305)."""

AUTH_TAG_SIZE: Final[int] = 16
"""ChaCha20-Poly1305 authentication tag overhead."""

# A counter must never be reused under one key. The last value is
# reserved so that the counter never wraps.
MAX_NONCE: Final[int] = (1 << 64) - 1
"""Counter value at which a direction is exhausted (2^64 - 1)."""

# =============================================================================
# Domain-Specific Types
# =============================================================================


class SharedSecret(Bytes32):
    """
    32-byte X25519 Diffie-Hellman output.

    Never used as a cipher key directly; see `derive_transport_keys`.
    The repr hides the value.
    """

    def __repr__(self) -> str:
        return "SharedSecret(<redacted>)"


CipherKey: TypeAlias = Bytes32
"""32-byte ChaCha20-Poly1305 encryption key."""
