"""
Length-prefixed framing and handshake message codec.

Wire format (every frame, handshake and transport alike):

    [4-byte length (little-endian)][length bytes of payload]

During the handshake the payload is one encoded `HandshakeMessage`.
After it the payload is a ChaCha20-Poly1305 ciphertext (see `session`).

The length is checked against the configured limit before any payload
byte is read or written, so a hostile peer cannot make us allocate an
arbitrarily large buffer.
"""

from __future__ import annotations

import asyncio
import struct
from dataclasses import dataclass
from typing import Final, Type, TypeVar, overload

from .config import DEFAULT_MAX_FRAME_SIZE, FRAME_LENGTH_PREFIX_SIZE, MAX_FRAME_SIZE_LIMIT
from .errors import DecodeError, TransportError, UnexpectedMessageError
from .messages import HandshakeMessage, Message
from .protocols import StreamReaderProtocol, StreamWriterProtocol
from .types import WireError

M = TypeVar("M", bound=Message)

_LENGTH_FORMAT: Final = "<I"
"""Frame length: unsigned 32-bit little-endian."""


def encode(message: Message) -> bytes:
    """
    Encode a handshake message into a frame payload.

    Args:
        message: Any handshake message body.

    Returns:
        Selector byte followed by the message's fixed-size fields.
    """
    return HandshakeMessage.wrap(message).encode_bytes()


def decode(data: bytes) -> Message:
    """
    Decode a frame payload into a handshake message.

    Args:
        data: Exactly one encoded message, nothing more.

    Returns:
        The decoded message body.

    Raises:
        DecodeError: On an unknown selector, a truncated body or trailing bytes.
    """
    try:
        return HandshakeMessage.decode_bytes(data).value
    except (WireError, ValueError) as e:
        raise DecodeError(f"Invalid handshake message: {e}") from e


def encode_frame(payload: bytes, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> bytes:
    """
    Prefix `payload` with its length.

    Raises:
        ValueError: If the payload exceeds `max_frame_size`.
    """
    if len(payload) > min(max_frame_size, MAX_FRAME_SIZE_LIMIT):
        raise ValueError(f"Frame too large: {len(payload)} > {max_frame_size}")
    return struct.pack(_LENGTH_FORMAT, len(payload)) + payload


@dataclass(slots=True)
class FrameCodec:
    """
    Frame reader and writer bound to one stream.

    Each `send_bytes` call performs exactly one framed write and each
    `recv_bytes` call exactly one framed read. Nothing is buffered across
    calls.
    """

    reader: StreamReaderProtocol
    """Inbound stream."""

    writer: StreamWriterProtocol
    """Outbound stream."""

    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
    """Largest payload accepted or sent."""

    async def send_bytes(self, payload: bytes) -> None:
        """
        Write one frame.

        Raises:
            ValueError: If the payload exceeds `max_frame_size`.
            TransportError: If the stream fails.
        """
        frame = encode_frame(payload, self.max_frame_size)
        try:
            self.writer.write(frame)
            await self.writer.drain()
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    async def recv_bytes(self) -> bytes:
        """
        Read one frame and return its payload.

        Raises:
            TransportError: If the stream fails or ends mid-frame.
            DecodeError: If the advertised length exceeds `max_frame_size`.
        """
        header = await self._read_exactly(FRAME_LENGTH_PREFIX_SIZE)
        (length,) = struct.unpack(_LENGTH_FORMAT, header)

        if length > self.max_frame_size:
            raise DecodeError(f"Frame too large: {length} > {self.max_frame_size}")

        return await self._read_exactly(length)

    async def _read_exactly(self, n: int) -> bytes:
        try:
            return await self.reader.readexactly(n)
        except asyncio.IncompleteReadError as e:
            raise TransportError(
                f"Stream ended after {len(e.partial)} of {e.expected} bytes"
            ) from e
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

    async def send(self, message: Message) -> None:
        """Encode and write one handshake message."""
        await self.send_bytes(encode(message))

    @overload
    async def recv(self) -> Message: ...

    @overload
    async def recv(self, expected: Type[M]) -> M: ...

    async def recv(self, expected: Type[Message] | None = None) -> Message:
        """
        Read and decode one handshake message.

        Args:
            expected: If given, the only message kind acceptable here.

        Raises:
            TransportError: If the stream fails.
            DecodeError: If the payload is not a valid message.
            UnexpectedMessageError: If the message is not of the expected kind.
        """
        message = decode(await self.recv_bytes())
        if expected is not None and type(message) is not expected:
            raise UnexpectedMessageError(
                f"Expected {expected.__name__}, got {type(message).__name__}"
            )
        return message

    async def close(self) -> None:
        """
        Close the outbound stream and wait for it to finish.

        Raises:
            TransportError: If the stream fails while closing.
        """
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            raise TransportError(f"Close failed: {e}") from e
