"""
Error taxonomy for the secure channel.

Every failure is fatal to the connection it happens on. Nothing here is
retried internally: a caller that wants to try again opens a new
`Connection` and runs a new handshake.
"""

from __future__ import annotations


class ChannelError(Exception):
    """
    Base exception for every handshake and transport failure.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class TransportError(ChannelError, ConnectionError):
    """
    The underlying stream failed or ended early.

    Also a `ConnectionError`, so callers that already handle `OSError`
    keep working. The original exception is chained as `__cause__`.
    """


class DecodeError(ChannelError):
    """Received bytes are not a valid frame or message."""


class VersionMismatchError(ChannelError):
    """
    The peer speaks a different protocol version.

    Attributes:
        expected: The version (or version reply) this side required.
        actual: The value the peer sent.
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Protocol version mismatch: expected {expected:#x}, got {actual:#x}")


class UnexpectedMessageError(ChannelError):
    """
    A well-formed message broke the protocol.

    Covers messages of the wrong kind or sequence, a nonce that does not
    match, an invalid signature and a degenerate key exchange.
    """


class RejectedError(ChannelError):
    """A trust decision failed: the peer is not the identity we accept."""


class IntegrityError(ChannelError):
    """An encrypted frame failed authentication. No plaintext is returned."""


class NonceExhaustedError(ChannelError):
    """A direction's message counter reached its limit and cannot be reused."""


class HandshakeStateError(ChannelError):
    """A handshake step was called in the wrong state or by the wrong role."""


class ConnectionConsumedError(ChannelError):
    """The connection was already upgraded (or tried to be) once."""


class ChannelClosedError(ChannelError):
    """The secure connection has been closed."""
