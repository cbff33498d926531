"""
Incremental byte-stream stages.

Every stage consumes an async iterator of byte chunks and never holds more
than the chunk in flight plus whatever a parser asked to look at.
"""

import bz2
import zlib
from typing import AsyncIterator, Callable, Optional, Tuple, Type

from get_aria2.constants import MAX_DECOMPRESSED_CHUNK
from get_aria2.exceptions import CorruptedArchiveError
from get_aria2.log_utils import logger

GZIP_WBITS = 16 + zlib.MAX_WBITS

Chunks = AsyncIterator[bytes]


class ChunkReader:
    """
    Pull-based reader over an async iterator of byte chunks.

    Lets container parsers read fixed-size headers, stream bounded bodies
    chunk by chunk and push back bytes they over-read.
    """

    def __init__(self, chunks: Chunks) -> None:
        self._chunks = chunks.__aiter__()
        self._buffer = bytearray()
        self._eof = False
        self.position = 0
        """Number of bytes handed out so far"""

    async def _fill(self) -> bool:
        if self._eof:
            return False
        try:
            chunk = await self._chunks.__anext__()
        except StopAsyncIteration:
            self._eof = True
            return False
        self._buffer += chunk
        return True

    def _take(self, size: int) -> bytes:
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        self.position += len(data)
        return data

    async def read_exactly(self, size: int) -> bytes:
        """
        Read exactly `size` bytes.

        Raises:
            CorruptedArchiveError: If the stream ends first.
        """
        while len(self._buffer) < size:
            if not await self._fill():
                raise CorruptedArchiveError(
                    "Unexpected end of archive stream",
                    details=f"needed {size} bytes at offset {self.position}, "
                    f"got {len(self._buffer)}",
                )
        return self._take(size)

    async def read_block(self, size: int) -> Optional[bytes]:
        """Like read_exactly(), but return None if the stream is already exhausted."""
        while not self._buffer:
            if not await self._fill():
                return None
        return await self.read_exactly(size)

    async def read_some(self, limit: Optional[int] = None) -> bytes:
        """Return whatever is buffered (or the next chunk), at most `limit` bytes; b"" at the end."""
        while not self._buffer:
            if not await self._fill():
                return b""
        size = len(self._buffer) if limit is None else min(limit, len(self._buffer))
        return self._take(size)

    async def peek(self, size: int) -> bytes:
        """Return up to `size` upcoming bytes without consuming them."""
        while len(self._buffer) < size:
            if not await self._fill():
                break
        return bytes(self._buffer[:size])

    def unread(self, data: bytes) -> None:
        """Push bytes back in front of the stream."""
        if data:
            self._buffer[:0] = data
            self.position -= len(data)

    async def iter_exactly(self, size: int) -> Chunks:
        """
        Yield chunks totalling exactly `size` bytes.

        Raises:
            CorruptedArchiveError: If the stream ends first.
        """
        remaining = size
        while remaining > 0:
            data = await self.read_some(remaining)
            if not data:
                raise CorruptedArchiveError(
                    "Unexpected end of archive stream",
                    details=f"{remaining} bytes of entry data missing",
                )
            remaining -= len(data)
            yield data

    async def skip(self, size: int) -> None:
        async for _ in self.iter_exactly(size):
            pass

    async def drain(self) -> int:
        """Consume and discard the rest of the stream, returning how many bytes were dropped."""
        dropped = len(self._buffer)
        self._buffer.clear()
        while await self._fill():
            dropped += len(self._buffer)
            self._buffer.clear()
        self.position += dropped
        return dropped

    async def aclose(self) -> None:
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()


def _zlib_more_input(decompressor, data: bytes) -> Optional[bytes]:
    tail = decompressor.unconsumed_tail
    # A full piece may leave output pending inside the decompressor
    if tail or len(data) >= MAX_DECOMPRESSED_CHUNK:
        return tail
    return None


def _bz2_more_input(decompressor, data: bytes) -> Optional[bytes]:
    return None if decompressor.needs_input else b""


async def _decompress(
    chunks: Chunks,
    new_decompressor: Callable[[], object],
    more_input: Callable[[object, bytes], Optional[bytes]],
    label: str,
    errors: Tuple[Type[Exception], ...],
) -> Chunks:
    """
    Run chunks through a zlib/bz2 style decompressor.

    Concatenated members (multi-member gzip, multi-stream bzip2) are decoded in
    sequence. Bytes that follow a complete member but do not start a new one
    are ignored, the way gzip and bzip2 tools treat trailing garbage.

    Output is produced in pieces of at most MAX_DECOMPRESSED_CHUNK bytes, so a
    highly compressed chunk never expands into one large buffer.
    """
    decompressor = new_decompressor()
    members = 0
    pending = False
    trailing = False

    async for chunk in chunks:
        if trailing:
            continue
        feed: Optional[bytes] = chunk or None
        while feed is not None:
            pending = True
            try:
                data = decompressor.decompress(  # type: ignore[attr-defined]
                    feed, MAX_DECOMPRESSED_CHUNK
                )
            except errors as e:
                if members:
                    logger.debug(f"Ignoring trailing data after {label} stream")
                    trailing = True
                    pending = False
                    break
                raise CorruptedArchiveError(
                    f"Invalid {label} data", details=str(e)
                ) from e
            if data:
                yield data
            if decompressor.eof:  # type: ignore[attr-defined]
                members += 1
                pending = False
                feed = decompressor.unused_data or None  # type: ignore[attr-defined]
                decompressor = new_decompressor()
            else:
                feed = more_input(decompressor, data)

    if pending or not members:
        raise CorruptedArchiveError(
            f"Unexpected end of {label} stream",
            details="the compressed data is truncated",
        )


def gunzip(chunks: Chunks) -> Chunks:
    """Gzip decompression stage."""
    return _decompress(
        chunks,
        lambda: zlib.decompressobj(GZIP_WBITS),
        _zlib_more_input,
        "gzip",
        (zlib.error,),
    )


def bunzip2(chunks: Chunks) -> Chunks:
    """Bzip2 decompression stage."""
    return _decompress(
        chunks, bz2.BZ2Decompressor, _bz2_more_input, "bzip2", (OSError, ValueError)
    )
