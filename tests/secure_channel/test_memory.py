"""Tests for the in-memory stream pipe."""

from __future__ import annotations

import asyncio

import pytest

from secure_channel import open_memory_pipe


class TestMemoryPipe:
    """Tests for open_memory_pipe."""

    def test_bytes_cross_over(self) -> None:
        async def run_test() -> tuple[bytes, bytes]:
            (reader_a, writer_a), (reader_b, writer_b) = open_memory_pipe()
            writer_a.write(b"a->b")
            writer_b.write(b"b->a")
            await writer_a.drain()
            return await reader_b.readexactly(4), await reader_a.readexactly(4)

        assert asyncio.run(run_test()) == (b"a->b", b"b->a")

    def test_close_feeds_eof(self) -> None:
        async def run_test() -> None:
            (_, writer_a), (reader_b, _) = open_memory_pipe()
            writer_a.write(b"xy")
            writer_a.close()
            await writer_a.wait_closed()
            assert writer_a.is_closing()
            with pytest.raises(asyncio.IncompleteReadError) as exc_info:
                await reader_b.readexactly(4)
            assert exc_info.value.partial == b"xy"

        asyncio.run(run_test())

    def test_write_after_close(self) -> None:
        async def run_test() -> None:
            (_, writer_a), _ = open_memory_pipe()
            writer_a.close()
            writer_a.close()
            with pytest.raises(ConnectionResetError):
                writer_a.write(b"late")
            with pytest.raises(ConnectionResetError):
                await writer_a.drain()

        asyncio.run(run_test())
