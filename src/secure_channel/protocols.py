"""Stream interfaces the channel runs over.

StreamReaderProtocol / StreamWriterProtocol
    The subset of `asyncio.StreamReader` / `asyncio.StreamWriter` used by
    the codec and the encrypted session. Real TCP streams, the in-memory
    pipe and test mocks all satisfy them.
"""

from __future__ import annotations

from typing import Protocol


class StreamReaderProtocol(Protocol):
    """Ordered, reliable inbound byte stream."""

    async def readexactly(self, n: int) -> bytes:
        """
        Read exactly `n` bytes.

        Raises `asyncio.IncompleteReadError` if the stream ends first.
        """
        ...


class StreamWriterProtocol(Protocol):
    """Ordered, reliable outbound byte stream."""

    def write(self, data: bytes) -> None:
        """Buffer data for writing."""
        ...

    async def drain(self) -> None:
        """Wait until buffered data has been flushed."""
        ...

    def close(self) -> None:
        """Start closing the stream."""
        ...

    async def wait_closed(self) -> None:
        """Wait until the stream is closed."""
        ...

    def is_closing(self) -> bool:
        """Whether the stream is closed or closing."""
        ...
