"""Tests for fixed-size block splitting."""

import io

import pytest

from common.exceptions import SourceReadError
from metadataservice.chunker import split_blocks, split_blocks_async


class TrickleReader:
    """Returns at most `step` bytes per read, like a slow socket."""

    def __init__(self, data: bytes, step: int):
        self._stream = io.BytesIO(data)
        self._step = step

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(min(size, self._step))


class FailingReader:
    def __init__(self, data: bytes, fail_after: int):
        self._stream = io.BytesIO(data)
        self._fail_after = fail_after
        self._read = 0

    def read(self, size: int = -1) -> bytes:
        if self._read >= self._fail_after:
            raise IOError("connection reset")
        chunk = self._stream.read(min(size, self._fail_after - self._read))
        self._read += len(chunk)
        return chunk


class GreedyReader:
    """Ignores the requested size and hands back up to `step` bytes."""

    def __init__(self, data: bytes, step: int):
        self._stream = io.BytesIO(data)
        self._step = step

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(self._step)


class AsyncGreedyReader(GreedyReader):
    async def read(self, size: int = -1) -> bytes:
        return self._stream.read(self._step)


class AsyncReader:
    def __init__(self, data: bytes):
        self._stream = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)


def test_split_megabyte_blocks():
    data = bytes(range(256)) * (2_500_000 // 256) + b'\x07' * (2_500_000 % 256)
    assert len(data) == 2_500_000

    blocks = list(split_blocks(io.BytesIO(data), 1_048_576))

    assert [len(b) for b in blocks] == [1_048_576, 1_048_576, 402_848]
    assert b''.join(blocks) == data


def test_exact_multiple_has_no_trailing_block():
    blocks = list(split_blocks(io.BytesIO(b'x' * 48), 16))
    assert [len(b) for b in blocks] == [16, 16, 16]


def test_empty_stream_yields_nothing():
    assert list(split_blocks(io.BytesIO(b''), 16)) == []


def test_short_reads_still_produce_full_blocks():
    data = b'abcdefghij' * 7
    blocks = list(split_blocks(TrickleReader(data, 3), 16))
    assert [len(b) for b in blocks] == [16, 16, 16, 16, 6]
    assert b''.join(blocks) == data


def test_read_error_becomes_source_read_error():
    gen = split_blocks(FailingReader(b'z' * 100, fail_after=20), 16)
    assert next(gen) == b'z' * 16
    with pytest.raises(SourceReadError):
        list(gen)


@pytest.mark.parametrize('block_size', [0, -1, 1.5, True])
def test_invalid_block_size_rejected(block_size):
    with pytest.raises(ValueError):
        list(split_blocks(io.BytesIO(b'data'), block_size))


@pytest.mark.asyncio
async def test_split_blocks_async_with_async_reader():
    data = b'0123456789' * 5
    blocks = [b async for b in split_blocks_async(AsyncReader(data), 16)]
    assert [len(b) for b in blocks] == [16, 16, 16, 2]
    assert b''.join(blocks) == data


@pytest.mark.asyncio
async def test_split_blocks_async_with_sync_reader():
    data = b'q' * 33
    blocks = [b async for b in split_blocks_async(io.BytesIO(data), 16)]
    assert [len(b) for b in blocks] == [16, 16, 1]


@pytest.mark.asyncio
async def test_split_blocks_async_read_error():
    with pytest.raises(SourceReadError):
        async for _ in split_blocks_async(FailingReader(b'z' * 100, fail_after=20), 16):
            pass


def test_oversized_reads_are_split_at_block_boundaries():
    data = bytes(range(40))
    blocks = list(split_blocks(GreedyReader(data, 40), 16))
    assert [len(b) for b in blocks] == [16, 16, 8]
    assert b''.join(blocks) == data


@pytest.mark.asyncio
@pytest.mark.parametrize('reader_cls', [GreedyReader, AsyncGreedyReader])
async def test_split_blocks_async_splits_oversized_reads(reader_cls):
    data = bytes(range(100))
    blocks = [b async for b in split_blocks_async(reader_cls(data, 40), 16)]
    assert [len(b) for b in blocks] == [16, 16, 16, 16, 16, 16, 4]
    assert b''.join(blocks) == data
