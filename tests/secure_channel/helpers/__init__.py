"""Test helpers for secure channel unit tests."""

from __future__ import annotations

from .builders import (
    encrypt_frames,
    make_identity,
    make_session,
    run_handshake_until_signed,
    upgrade_pair,
)
from .mocks import MockStreamWriter, SeededRandom

__all__ = [
    # Builders
    "encrypt_frames",
    "make_identity",
    "make_session",
    "run_handshake_until_signed",
    "upgrade_pair",
    # Mocks
    "MockStreamWriter",
    "SeededRandom",
]
