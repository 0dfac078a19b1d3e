"""Splits an input byte stream into fixed-size blocks."""

import asyncio
import inspect
from typing import AsyncIterator, BinaryIO, Iterator

from common.constants import BLOCK_SIZE_BYTES
from common.exceptions import SourceReadError


def _check_block_size(block_size: int) -> None:
    if not isinstance(block_size, int) or isinstance(block_size, bool) or block_size <= 0:
        raise ValueError(f"block_size must be a positive integer, got {block_size!r}")


def split_blocks(stream: BinaryIO, block_size: int = BLOCK_SIZE_BYTES) -> Iterator[bytes]:
    """
    Lazily split a binary stream into blocks.

    Every block except possibly the last is exactly block_size bytes long;
    the last one holds the remaining 1..block_size bytes. An empty stream
    yields nothing. Short reads are accumulated, so sources that return
    fewer bytes than requested still produce full blocks, and sources that
    return more are split at block boundaries.

    Args:
        stream: Object with a read(n) method returning bytes
        block_size: Size of each block in bytes

    Yields:
        Block bytes in stream order

    Raises:
        SourceReadError: If reading from the stream fails
    """
    _check_block_size(block_size)

    buffer = bytearray()
    while True:
        try:
            piece = stream.read(block_size - len(buffer))
        except Exception as e:
            raise SourceReadError(f"Failed to read source stream: {e}") from e

        if not piece:
            break

        buffer.extend(piece)
        while len(buffer) >= block_size:
            yield bytes(buffer[:block_size])
            del buffer[:block_size]

    if buffer:
        yield bytes(buffer)


async def split_blocks_async(stream, block_size: int = BLOCK_SIZE_BYTES) -> AsyncIterator[bytes]:
    """
    Async variant of split_blocks for sources whose read(n) is awaitable,
    such as an uploaded multipart file.

    Synchronous readers are split by split_blocks, one block per worker
    thread call, so the event loop is not blocked.
    """
    _check_block_size(block_size)

    if not inspect.iscoroutinefunction(stream.read):
        blocks = split_blocks(stream, block_size)
        while True:
            block = await asyncio.to_thread(next, blocks, None)
            if block is None:
                return
            yield block

    buffer = bytearray()
    while True:
        try:
            piece = await stream.read(block_size - len(buffer))
        except Exception as e:
            raise SourceReadError(f"Failed to read source stream: {e}") from e

        if not piece:
            break

        buffer.extend(piece)
        while len(buffer) >= block_size:
            yield bytes(buffer[:block_size])
            del buffer[:block_size]

    if buffer:
        yield bytes(buffer)
