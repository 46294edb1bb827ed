"""
In-memory byte streams.

`open_memory_pipe()` returns two connected (reader, writer) pairs: bytes
written on one end are read from the other. Useful for running both
sides of a handshake in one process, in tests and elsewhere.

The readers are plain `asyncio.StreamReader`s, so `open_memory_pipe()`
must be called while an event loop is running.
"""

from __future__ import annotations

import asyncio

StreamPair = tuple[asyncio.StreamReader, "MemoryStreamWriter"]


class MemoryStreamWriter:
    """
    Writer that feeds bytes straight into the peer's reader.

    Implements write() + drain() + close() like `asyncio.StreamWriter`.
    Closing feeds EOF to the peer, which then sees
    `asyncio.IncompleteReadError` on any pending `readexactly`.
    """

    __slots__ = ("_peer", "_closed")

    def __init__(self, peer: asyncio.StreamReader) -> None:
        self._peer = peer
        self._closed = False

    def write(self, data: bytes) -> None:
        """Deliver data to the peer reader."""
        if self._closed:
            raise ConnectionResetError("Write on closed memory stream")
        self._peer.feed_data(bytes(data))

    async def drain(self) -> None:
        """Yield to the event loop so the peer can read."""
        if self._closed:
            raise ConnectionResetError("Drain on closed memory stream")
        await asyncio.sleep(0)

    def close(self) -> None:
        """Signal EOF to the peer."""
        if not self._closed:
            self._closed = True
            self._peer.feed_eof()

    async def wait_closed(self) -> None:
        """Nothing to flush."""

    def is_closing(self) -> bool:
        return self._closed


def open_memory_pipe() -> tuple[StreamPair, StreamPair]:
    """
    Create two connected stream pairs.

    Returns:
        ((reader_a, writer_a), (reader_b, writer_b)) where writer_a
        delivers to reader_b and writer_b delivers to reader_a.
    """
    reader_a = asyncio.StreamReader()
    reader_b = asyncio.StreamReader()
    return (reader_a, MemoryStreamWriter(reader_b)), (reader_b, MemoryStreamWriter(reader_a))
