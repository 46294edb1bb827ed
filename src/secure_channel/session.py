"""
Encrypted transport session after the handshake.

After the handshake completes, both parties hold one cipher state per
direction. This module wraps those ciphers in an async-friendly session
interface.

Wire format (post-handshake):
    [4-byte length (little-endian)][ChaCha20-Poly1305 ciphertext]

The length prefix is NOT encrypted. It contains the size of the
ciphertext including the 16-byte auth tag, so the largest plaintext per
frame is `max_frame_size - 16`.

Any integrity failure or counter exhaustion closes the session: the
stream is no longer in a state anyone should trust.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from types import TracebackType

from cryptography.exceptions import InvalidTag

from .codec import FrameCodec
from .errors import ChannelClosedError, ChannelError, IntegrityError, NonceExhaustedError
from .identity import Identity, PeerIdentity
from .kex import AUTH_TAG_SIZE, CipherState, SharedSecret

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SecureConnection:
    """
    Bidirectional encrypted channel over a byte stream.

    Sends are serialised by one lock and receives by another, so
    concurrent writers cannot interleave frames and concurrent readers
    cannot split one.

    Usage:
        async with secure:
            await secure.send(b"hello")
            response = await secure.recv()
    """

    identity: Identity = field(repr=False)
    """Our long-term identity."""

    other_id: PeerIdentity | None
    """
    The peer's verified identity.

    Set on the initiator side only: the responder never authenticates the
    initiator, so its `other_id` is None.
    """

    _codec: FrameCodec = field(repr=False)
    """Framed stream."""

    _shared_secret: SharedSecret = field(repr=False)
    """Raw handshake secret. Never leaves this object."""

    _send_cipher: CipherState = field(repr=False)
    """Cipher for encrypting outbound messages."""

    _recv_cipher: CipherState = field(repr=False)
    """Cipher for decrypting inbound messages."""

    _send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    """Serialises `send`."""

    _recv_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    """Serialises `recv`."""

    _closed: bool = field(default=False, repr=False)
    """Whether the session has been closed."""

    @property
    def max_plaintext_size(self) -> int:
        """Largest plaintext `send` accepts."""
        return self._codec.max_frame_size - AUTH_TAG_SIZE

    @property
    def is_closed(self) -> bool:
        """Check if session has been closed."""
        return self._closed

    def _peer_name(self) -> str:
        return self.other_id.short_id() if self.other_id is not None else "anonymous"

    async def send(self, plaintext: bytes) -> None:
        """
        Encrypt and send a message.

        Args:
            plaintext: Data to send (at most `max_plaintext_size` bytes).

        Raises:
            ChannelClosedError: If the session is closed.
            ValueError: If the message is too large.
            NonceExhaustedError: If the send counter is used up; the session is closed.
            TransportError: If the underlying stream fails; the session is closed.
        """
        if len(plaintext) > self.max_plaintext_size:
            raise ValueError(f"Message too large: {len(plaintext)} > {self.max_plaintext_size}")

        async with self._send_lock:
            if self._closed:
                raise ChannelClosedError("Session is closed")
            try:
                # Encrypt with empty associated data.
                ciphertext = self._send_cipher.encrypt_with_ad(b"", bytes(plaintext))
                await self._codec.send_bytes(ciphertext)
            except ChannelError as e:
                await self._teardown(e)
                raise

    async def recv(self) -> bytes:
        """
        Read and decrypt a message.

        Returns:
            Decrypted plaintext.

        Raises:
            ChannelClosedError: If the session is closed.
            IntegrityError: If the frame fails authentication; the session is closed.
            NonceExhaustedError: If the receive counter is used up; the session is closed.
            DecodeError: If the frame is too large; the session is closed.
            TransportError: If the underlying stream fails; the session is closed.
        """
        async with self._recv_lock:
            if self._closed:
                raise ChannelClosedError("Session is closed")
            try:
                ciphertext = await self._codec.recv_bytes()
                return self._recv_cipher.decrypt_with_ad(b"", ciphertext)
            except InvalidTag as e:
                error = IntegrityError("Frame failed authentication")
                await self._teardown(error)
                raise error from e
            except ChannelError as e:
                await self._teardown(e)
                raise

    async def _teardown(self, reason: ChannelError) -> None:
        if isinstance(reason, (IntegrityError, NonceExhaustedError)):
            logger.warning("Closing session with %s: %s", self._peer_name(), reason.message)
        else:
            logger.debug("Closing session with %s: %s", self._peer_name(), reason.message)
        try:
            await self.close()
        except ChannelError as close_error:
            logger.debug("Error while closing session: %s", close_error.message)

    async def close(self) -> None:
        """
        Close the session and underlying connection.

        This is a graceful close - it waits for pending writes to flush.
        After close, send/recv will raise ChannelClosedError. Closing twice
        is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        logger.debug("Session with %s closed", self._peer_name())
        await self._codec.close()

    async def __aenter__(self) -> SecureConnection:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
