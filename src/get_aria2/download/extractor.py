"""
Streaming extraction of the aria2c binary.

The archive is read by a background task. As soon as the aria2c entry shows
up, the caller gets a BinaryStream over that entry's body while the task keeps
feeding it and, once the body is complete, drains the rest of the archive so
the transport is read to the end.
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Tuple

from get_aria2.constants import BINARY_PATH_PATTERN, CHANNEL_MAX_CHUNKS
from get_aria2.exceptions import BinaryNotFoundError, GetAria2Error
from get_aria2.log_utils import logger

from .containers import ArchiveEntry, iter_tar_entries, iter_zip_entries
from .interfaces import ArchiveFormat, ExtractionResult
from .streams import ChunkReader, Chunks, bunzip2, gunzip

Stage = Callable[[Chunks], Chunks]
ContainerParser = Callable[[ChunkReader], AsyncIterator[ArchiveEntry]]

PIPELINES: Dict[ArchiveFormat, Tuple[Tuple[Stage, ...], ContainerParser]] = {
    ArchiveFormat.TAR: ((), iter_tar_entries),
    ArchiveFormat.TAR_GZ: ((gunzip,), iter_tar_entries),
    ArchiveFormat.TAR_BZ2: ((bunzip2,), iter_tar_entries),
    ArchiveFormat.ZIP: ((), iter_zip_entries),
}

_EOF = object()


def is_binary_entry(entry: ArchiveEntry) -> bool:
    return entry.is_file and BINARY_PATH_PATTERN.search(entry.name) is not None


class BinaryStream:
    """
    Live byte stream of the extracted aria2c executable.

    Chunks arrive through a bounded queue filled by the extraction task, so a
    consumer that stops reading eventually stops the download too. Iterate it
    with ``async for``, collect it with ``read()``, and call ``aclose()`` (or
    use ``async with``) to abandon it early.
    """

    def __init__(
        self, name: str, size: Optional[int] = None, max_chunks: int = CHANNEL_MAX_CHUNKS
    ) -> None:
        self.name = name
        """Path of the entry inside the archive"""

        self.size = size
        """Uncompressed size when the archive records it up front"""

        self.drain_error: Optional[BaseException] = None
        """Error hit while draining the archive after the body was complete"""

        self._queue: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=max_chunks)
        self._task: Optional["asyncio.Task[None]"] = None
        self._finished = False
        self._iterating = False

    @property
    def complete(self) -> bool:
        """Whether the producer has delivered the whole body (or failed)."""
        return self._finished

    async def _put(self, chunk: bytes) -> None:
        await self._queue.put(chunk)

    async def _finish(self, error: Optional[BaseException] = None) -> None:
        self._finished = True
        await self._queue.put(_EOF if error is None else error)

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.iter_chunks()

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """
        Yield the binary's bytes as they are extracted.

        Raises:
            GetAria2Error: If the archive breaks before the body is complete.
            RuntimeError: If the stream is iterated a second time.
        """
        if self._iterating:
            raise RuntimeError("BinaryStream can only be iterated once")
        self._iterating = True
        while True:
            item = await self._queue.get()
            if item is _EOF:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def read(self) -> bytes:
        """Read the whole binary into memory."""
        return b"".join([chunk async for chunk in self.iter_chunks()])

    async def wait_drained(self) -> None:
        """Wait until the rest of the archive has been read and the connection released."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            # Stopped by aclose(); only a cancellation of the caller propagates
            if not task.cancelled():
                raise

    async def aclose(self) -> None:
        """Stop extracting and release the download."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "BinaryStream":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"BinaryStream(name={self.name!r}, size={self.size}, complete={self._finished})"


def build_pipeline(
    chunks: Chunks, archive_format: ArchiveFormat
) -> Tuple[ChunkReader, AsyncIterator[ArchiveEntry]]:
    """Chain the decompression stages and the container parser for a format."""
    stages, parser = PIPELINES[archive_format]
    for stage in stages:
        chunks = stage(chunks)
    reader = ChunkReader(chunks)
    return reader, parser(reader)


async def _pump(
    reader: ChunkReader,
    entries: AsyncIterator[ArchiveEntry],
    result: "asyncio.Future[ExtractionResult]",
    version: str,
    on_close: Optional[Callable[[], Awaitable[None]]],
) -> None:
    stream: Optional[BinaryStream] = None
    skipped = 0
    try:
        async for entry in entries:
            if stream is None and is_binary_entry(entry):
                logger.info(f"Found {entry.name} in archive")
                stream = BinaryStream(entry.name, entry.size)
                stream._task = asyncio.current_task()
                result.set_result(ExtractionResult(binary_stream=stream, version=version))
                async for chunk in entry.chunks():
                    await stream._put(chunk)
                await stream._finish()
            else:
                skipped += 1
                logger.debug(f"Draining archive entry {entry.name}")
                await entry.drain()

        trailing = await reader.drain()
        logger.debug(
            f"Archive fully read: {skipped} entries skipped, {trailing} trailing bytes"
        )
        if stream is None:
            raise BinaryNotFoundError(
                "aria2c binary not found in archive",
                details=f"checked {skipped} entries",
            )
    except asyncio.CancelledError:
        if not result.done():
            result.cancel()
        raise
    except Exception as e:
        if not result.done():
            result.set_exception(e)
        elif stream is not None and not stream.complete:
            await stream._finish(e)
        else:
            logger.warning(f"Error while draining archive after extraction: {e}")
            if stream is not None:
                stream.drain_error = e
        if not isinstance(e, GetAria2Error):
            logger.debug("Unexpected extraction error", exc_info=True)
    finally:
        await entries.aclose()  # type: ignore[attr-defined]
        await reader.aclose()
        if on_close is not None:
            await on_close()


async def extract_binary(
    chunks: Chunks,
    archive_format: ArchiveFormat,
    version: str,
    on_close: Optional[Callable[[], Awaitable[None]]] = None,
) -> ExtractionResult:
    """
    Find the aria2c entry in an archive stream and return it as a live stream.

    Returns as soon as the entry's header has been read; its body and the rest
    of the archive are read by a background task.

    Parameters:
        chunks (AsyncIterator[bytes]): The raw archive bytes.
        archive_format (ArchiveFormat): Container format of the archive.
        version (str): Version reported alongside the binary.
        on_close (Optional[Callable]): Coroutine function awaited once the archive
            is finished with, successfully or not.

    Returns:
        ExtractionResult: The binary stream and the version.

    Raises:
        BinaryNotFoundError: If the archive holds no aria2c entry.
        CorruptedArchiveError: If the archive or its compression is malformed.
        ArchiveError: If the archive uses an unsupported feature.
        DownloadError: If the transport fails before the entry is found.
    """
    reader, entries = build_pipeline(chunks, archive_format)
    loop = asyncio.get_running_loop()
    result: "asyncio.Future[ExtractionResult]" = loop.create_future()
    task = asyncio.create_task(_pump(reader, entries, result, version, on_close))

    try:
        return await asyncio.shield(result)
    except asyncio.CancelledError:
        task.cancel()
        raise
