"""
Tests for the buffered chunk reader and the decompression stages.
"""

import bz2
import gzip

import pytest

from get_aria2.constants import MAX_DECOMPRESSED_CHUNK
from get_aria2.download.streams import ChunkReader, bunzip2, gunzip
from get_aria2.exceptions import CorruptedArchiveError
from tests.async_test_utils import chunked, make_async_iter

pytestmark = [pytest.mark.unit]


async def _collect(chunks):
    return b"".join([chunk async for chunk in chunks])


@pytest.mark.asyncio
class TestChunkReader:
    async def test_read_exactly_spans_chunks(self):
        reader = ChunkReader(make_async_iter([b"ab", b"cd", b"ef"]))

        assert await reader.read_exactly(3) == b"abc"
        assert reader.position == 3
        assert await reader.read_exactly(3) == b"def"
        assert reader.position == 6

    async def test_read_exactly_short_stream(self):
        reader = ChunkReader(make_async_iter([b"ab"]))

        with pytest.raises(CorruptedArchiveError) as exc_info:
            await reader.read_exactly(4)

        assert "Unexpected end" in str(exc_info.value)

    async def test_read_block_at_end_returns_none(self):
        reader = ChunkReader(make_async_iter([b"abcd"]))

        assert await reader.read_block(4) == b"abcd"
        assert await reader.read_block(4) is None

    async def test_read_block_partial_is_an_error(self):
        reader = ChunkReader(make_async_iter([b"ab"]))

        with pytest.raises(CorruptedArchiveError):
            await reader.read_block(4)

    async def test_read_some_respects_limit(self):
        reader = ChunkReader(make_async_iter([b"abcdef"]))

        assert await reader.read_some(4) == b"abcd"
        assert await reader.read_some() == b"ef"
        assert await reader.read_some() == b""

    async def test_peek_does_not_consume(self):
        reader = ChunkReader(make_async_iter([b"a", b"bc"]))

        assert await reader.peek(2) == b"ab"
        assert reader.position == 0
        assert await reader.read_exactly(3) == b"abc"

    async def test_unread_pushes_bytes_back(self):
        reader = ChunkReader(make_async_iter([b"abcd"]))

        data = await reader.read_exactly(4)
        reader.unread(data[2:])

        assert reader.position == 2
        assert await reader.read_exactly(2) == b"cd"

    async def test_iter_exactly(self):
        reader = ChunkReader(chunked(b"0123456789", 3))

        parts = [part async for part in reader.iter_exactly(7)]

        assert b"".join(parts) == b"0123456"
        assert all(len(part) <= 3 for part in parts)
        assert await reader.read_exactly(3) == b"789"

    async def test_iter_exactly_truncated(self):
        reader = ChunkReader(make_async_iter([b"abc"]))

        with pytest.raises(CorruptedArchiveError):
            async for _ in reader.iter_exactly(5):
                pass

    async def test_drain_counts_dropped_bytes(self):
        reader = ChunkReader(chunked(b"x" * 250, 100))
        await reader.read_exactly(10)

        assert await reader.drain() == 240
        assert reader.position == 250
        assert await reader.read_some() == b""

    async def test_aclose_closes_source(self):
        closed = []

        async def source():
            try:
                yield b"abc"
                yield b"def"
            finally:
                closed.append(True)

        reader = ChunkReader(source())
        await reader.read_exactly(1)
        await reader.aclose()

        assert closed == [True]

    async def test_aclose_without_generator(self):
        class Plain:
            def __aiter__(self):
                return self

            async def __anext__(self):
                raise StopAsyncIteration

        reader = ChunkReader(Plain())

        await reader.aclose()


@pytest.mark.asyncio
class TestGunzip:
    async def test_single_member(self):
        payload = b"hello aria2 " * 1000
        data = gzip.compress(payload)

        assert await _collect(gunzip(chunked(data, 37))) == payload

    async def test_multi_member(self):
        data = gzip.compress(b"first ") + gzip.compress(b"second")

        assert await _collect(gunzip(chunked(data, 5))) == b"first second"

    async def test_trailing_garbage_is_ignored(self):
        data = gzip.compress(b"payload") + b"garbage!"

        assert await _collect(gunzip(chunked(data, 4))) == b"payload"

    async def test_truncated(self):
        data = gzip.compress(b"payload" * 100)[:-6]

        with pytest.raises(CorruptedArchiveError) as exc_info:
            await _collect(gunzip(chunked(data, 16)))

        assert "Unexpected end of gzip stream" in str(exc_info.value)

    async def test_invalid_data(self):
        with pytest.raises(CorruptedArchiveError) as exc_info:
            await _collect(gunzip(make_async_iter([b"this is not gzip data"])))

        assert "Invalid gzip data" in str(exc_info.value)

    async def test_empty_input(self):
        with pytest.raises(CorruptedArchiveError):
            await _collect(gunzip(make_async_iter([])))

    async def test_output_is_bounded(self):
        payload = b"\0" * (4 * 1024 * 1024)
        data = gzip.compress(payload) + gzip.compress(b"tail")

        pieces = [piece async for piece in gunzip(make_async_iter([data]))]

        assert max(len(piece) for piece in pieces) <= MAX_DECOMPRESSED_CHUNK
        assert b"".join(pieces) == payload + b"tail"


@pytest.mark.asyncio
class TestBunzip2:
    async def test_single_stream(self):
        payload = bytes(range(256)) * 200
        data = bz2.compress(payload)

        assert await _collect(bunzip2(chunked(data, 512))) == payload

    async def test_multi_stream(self):
        data = bz2.compress(b"one,") + bz2.compress(b"two")

        assert await _collect(bunzip2(chunked(data, 9))) == b"one,two"

    async def test_truncated(self):
        data = bz2.compress(b"payload" * 100)[:-4]

        with pytest.raises(CorruptedArchiveError) as exc_info:
            await _collect(bunzip2(chunked(data, 16)))

        assert "bzip2" in str(exc_info.value)

    async def test_invalid_data(self):
        with pytest.raises(CorruptedArchiveError) as exc_info:
            await _collect(bunzip2(make_async_iter([b"definitely not bzip2"])))

        assert "Invalid bzip2 data" in str(exc_info.value)

    async def test_output_is_bounded(self):
        payload = b"\0" * (4 * 1024 * 1024)
        data = bz2.compress(payload) + bz2.compress(b"tail")

        pieces = [piece async for piece in bunzip2(make_async_iter([data]))]

        assert max(len(piece) for piece in pieces) <= MAX_DECOMPRESSED_CHUNK
        assert b"".join(pieces) == payload + b"tail"
