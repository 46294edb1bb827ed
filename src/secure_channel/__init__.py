"""
Secure channel over an arbitrary byte stream.

Upgrades an ordered, reliable, bidirectional stream into an encrypted,
integrity-protected channel bound to the responder's long-term Ed25519
identity:

    conn = Connection(identity, reader, writer)
    secure = await conn.client_side_upgrade(pinned=expected_peer)
    await secure.send(b"hello")
"""

from .config import DEFAULT_MAX_FRAME_SIZE, PROTOCOL_VERSION, ChannelConfig, reply
from .connection import Connection
from .errors import (
    ChannelClosedError,
    ChannelError,
    ConnectionConsumedError,
    DecodeError,
    HandshakeStateError,
    IntegrityError,
    NonceExhaustedError,
    RejectedError,
    TransportError,
    UnexpectedMessageError,
    VersionMismatchError,
)
from .handshake import Handshake, HandshakeRole, HandshakeState
from .identity import Identity, PeerIdentity
from .memory import open_memory_pipe
from .rand import RandomSource, SystemRandom
from .session import SecureConnection

__all__ = [
    # Connections
    "Connection",
    "SecureConnection",
    "Handshake",
    "HandshakeRole",
    "HandshakeState",
    # Identity
    "Identity",
    "PeerIdentity",
    # Configuration
    "ChannelConfig",
    "DEFAULT_MAX_FRAME_SIZE",
    "PROTOCOL_VERSION",
    "reply",
    # Streams and randomness
    "open_memory_pipe",
    "RandomSource",
    "SystemRandom",
    # Errors
    "ChannelError",
    "TransportError",
    "DecodeError",
    "VersionMismatchError",
    "UnexpectedMessageError",
    "RejectedError",
    "IntegrityError",
    "NonceExhaustedError",
    "HandshakeStateError",
    "ConnectionConsumedError",
    "ChannelClosedError",
]
