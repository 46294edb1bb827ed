"""
Injectable source of randomness.

Ephemeral keys, handshake nonces and fresh identities all draw from a
`RandomSource`. Production code uses the operating system's CSPRNG; tests
can pass a seeded source to make a handshake reproducible.
"""

from __future__ import annotations

import secrets
from typing import Final, Protocol


class RandomSource(Protocol):
    """Anything that can produce uniformly random bytes."""

    def token_bytes(self, n: int) -> bytes:
        """Return `n` random bytes."""
        ...


class SystemRandom:
    """Random bytes from the operating system's CSPRNG."""

    def token_bytes(self, n: int) -> bytes:
        """Return `n` cryptographically secure random bytes."""
        return secrets.token_bytes(n)

    def __repr__(self) -> str:
        return "SystemRandom()"


SYSTEM_RANDOM: Final = SystemRandom()
"""Shared default random source."""
