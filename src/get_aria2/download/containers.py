"""
Streaming container parsers.

Both parsers walk an archive front to back, yielding one ArchiveEntry per
member while the bytes are still arriving. An entry's body must be consumed
before the next entry can be read; the parsers drain whatever the consumer
leaves behind before moving on.
"""

import struct
import tarfile
import zipfile
import zlib
from typing import AsyncIterator, Optional, Tuple

from get_aria2.constants import MAX_DECOMPRESSED_CHUNK, TAR_BLOCK_SIZE
from get_aria2.exceptions import ArchiveError, CorruptedArchiveError

from .streams import ChunkReader, Chunks

TAR_ENCODING = "utf-8"
TAR_END_BLOCK = b"\0" * TAR_BLOCK_SIZE

ZIP_LOCAL_HEADER_SIGNATURE = zipfile.stringFileHeader
ZIP_DATA_DESCRIPTOR_SIGNATURE = b"PK\x07\x08"
ZIP_END_SIGNATURES = (
    zipfile.stringCentralDir,
    zipfile.stringEndArchive,
    zipfile.stringEndArchive64,
    zipfile.stringEndArchive64Locator,
)
ZIP_FLAG_ENCRYPTED = 0x1
ZIP_FLAG_DATA_DESCRIPTOR = 0x8
ZIP_FLAG_UTF8 = 0x800
ZIP64_EXTRA_TAG = 0x0001
ZIP64_MARKER = 0xFFFFFFFF


class ArchiveEntry:
    """One member of an archive, with a body that can be read once."""

    def __init__(
        self,
        name: str,
        body: Chunks,
        is_file: bool = True,
        size: Optional[int] = None,
    ) -> None:
        self.name = name
        self.is_file = is_file
        self.size = size
        self._body = body

    def chunks(self) -> Chunks:
        """The entry body, chunk by chunk, as it comes off the archive stream."""
        return self._body

    async def drain(self) -> None:
        """Discard whatever is left of the body."""
        async for _ in self._body:
            pass

    def __repr__(self) -> str:
        return f"ArchiveEntry(name={self.name!r}, is_file={self.is_file}, size={self.size})"


# =============================================================================
# Tar
# =============================================================================


def _tar_padding(size: int) -> int:
    return -size % TAR_BLOCK_SIZE


def _pax_path(data: bytes) -> Optional[str]:
    """Return the ``path`` record of a pax extended header, if present."""
    path = None
    pos = 0
    while pos < len(data) and data[pos] != 0:
        space = data.find(b" ", pos)
        try:
            length = int(data[pos:space])
        except ValueError:
            length = 0
        if space == -1 or length <= 0:
            raise CorruptedArchiveError("Invalid pax extended header")
        key, _, value = data[space + 1 : pos + length - 1].partition(b"=")
        if key == b"path":
            path = value.decode("utf-8", "surrogateescape")
        pos += length
    return path


async def iter_tar_entries(reader: ChunkReader) -> AsyncIterator[ArchiveEntry]:
    """
    Yield the members of a tar stream.

    GNU long names and pax ``path`` records are applied to the member they
    precede. Iteration stops at the end-of-archive marker; anything after it
    is left in the reader.

    Raises:
        CorruptedArchiveError: On an invalid header or a truncated member.
    """
    long_name: Optional[str] = None
    pax_path: Optional[str] = None

    while True:
        header = await reader.read_block(TAR_BLOCK_SIZE)
        if header is None or header == TAR_END_BLOCK:
            return

        try:
            info = tarfile.TarInfo.frombuf(header, TAR_ENCODING, "surrogateescape")
        except tarfile.HeaderError as e:
            raise CorruptedArchiveError(
                "Invalid tar header",
                details=f"{e} at offset {reader.position - TAR_BLOCK_SIZE}",
            ) from e

        if info.type == tarfile.GNUTYPE_LONGNAME:
            data = await reader.read_exactly(info.size)
            await reader.skip(_tar_padding(info.size))
            long_name = data.rstrip(b"\0").decode(TAR_ENCODING, "surrogateescape")
            continue
        if info.type == tarfile.XHDTYPE:
            data = await reader.read_exactly(info.size)
            await reader.skip(_tar_padding(info.size))
            pax_path = _pax_path(data) or pax_path
            continue
        if info.type in (tarfile.XGLTYPE, tarfile.SOLARIS_XHDTYPE, tarfile.GNUTYPE_LONGLINK):
            await reader.skip(info.size + _tar_padding(info.size))
            continue

        name = pax_path or long_name or info.name
        long_name = pax_path = None

        # Only regular and unknown member types carry data
        if info.isreg() or info.type not in tarfile.SUPPORTED_TYPES:
            size = info.size
        else:
            size = 0

        entry = ArchiveEntry(
            name, reader.iter_exactly(size), is_file=info.isreg(), size=size
        )
        yield entry
        await entry.drain()
        await reader.skip(_tar_padding(size))


# =============================================================================
# Zip
# =============================================================================


def _zip64_sizes(
    extra: bytes, file_size: int, compressed_size: int
) -> Tuple[int, int, bool]:
    """Apply a Zip64 extra field to the sizes of a local header."""
    pos = 0
    while pos + 4 <= len(extra):
        tag, length = struct.unpack("<HH", extra[pos : pos + 4])
        if tag == ZIP64_EXTRA_TAG:
            field = extra[pos + 4 : pos + 4 + length]
            offset = 0
            try:
                if file_size == ZIP64_MARKER:
                    (file_size,) = struct.unpack_from("<Q", field, offset)
                    offset += 8
                if compressed_size == ZIP64_MARKER:
                    (compressed_size,) = struct.unpack_from("<Q", field, offset)
            except struct.error as e:
                raise CorruptedArchiveError("Invalid Zip64 extra field") from e
            return file_size, compressed_size, True
        pos += 4 + length
    return file_size, compressed_size, False


async def _inflate(reader: ChunkReader, compressed_size: Optional[int]) -> Chunks:
    """
    Inflate one deflated zip member.

    With an unknown compressed size the end of the member is found by the
    deflate stream itself and over-read bytes are pushed back into the reader.
    Output is produced in pieces of at most MAX_DECOMPRESSED_CHUNK bytes.
    """
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    remaining = compressed_size
    chunk = b""
    flush = False

    while not decompressor.eof:
        if not chunk and not flush:
            if remaining == 0:
                raise CorruptedArchiveError("Deflate stream longer than its zip entry")
            chunk = await reader.read_some(remaining)
            if not chunk:
                raise CorruptedArchiveError("Unexpected end of zip entry")
            if remaining is not None:
                remaining -= len(chunk)
        try:
            data = decompressor.decompress(chunk, MAX_DECOMPRESSED_CHUNK)
        except zlib.error as e:
            raise CorruptedArchiveError("Invalid deflate data", details=str(e)) from e
        chunk = decompressor.unconsumed_tail
        # A full piece may leave output pending inside the decompressor
        flush = len(data) == MAX_DECOMPRESSED_CHUNK
        if data:
            yield data

    if remaining is None:
        reader.unread(decompressor.unused_data)
    elif remaining:
        await reader.skip(remaining)


async def _stored_until_descriptor(reader: ChunkReader, zip64: bool) -> Chunks:
    """
    Stream a stored zip member whose size is only recorded after its data.

    The body ends at the first data descriptor signature whose recorded sizes
    equal the number of bytes seen before it. The descriptor itself is pushed
    back into the reader.
    """
    size_format = "<QQ" if zip64 else "<LL"
    descriptor_length = 8 + struct.calcsize(size_format)
    emitted = 0
    buffer = b""

    while True:
        chunk = await reader.read_some()
        if not chunk:
            raise CorruptedArchiveError(
                "Unexpected end of zip entry",
                details="no data descriptor found after stored entry",
            )
        buffer += chunk

        start = 0
        while True:
            index = buffer.find(ZIP_DATA_DESCRIPTOR_SIGNATURE, start)
            if index == -1 or index + descriptor_length > len(buffer):
                break
            compressed_size, file_size = struct.unpack_from(
                size_format, buffer, index + 8
            )
            if compressed_size == file_size == emitted + index:
                if index:
                    yield buffer[:index]
                reader.unread(buffer[index:])
                return
            start = index + 1

        # Hold back bytes that may still turn out to start the descriptor
        if index == -1:
            keep_from = max(0, len(buffer) - (descriptor_length - 1))
        else:
            keep_from = index
        if keep_from:
            yield buffer[:keep_from]
            emitted += keep_from
            buffer = buffer[keep_from:]


async def _skip_data_descriptor(reader: ChunkReader, zip64: bool) -> None:
    if await reader.peek(4) == ZIP_DATA_DESCRIPTOR_SIGNATURE:
        await reader.skip(4)
    # crc-32, compressed size, uncompressed size
    await reader.skip(4 + (16 if zip64 else 8))


async def iter_zip_entries(reader: ChunkReader) -> AsyncIterator[ArchiveEntry]:
    """
    Yield the members of a zip stream by walking its local file headers.

    Iteration stops at the central directory. Stored and deflated members are
    supported, including members whose sizes follow in a data descriptor.

    Raises:
        CorruptedArchiveError: On an unexpected record or a truncated member.
        ArchiveError: On encrypted members or unsupported compression methods.
    """
    while True:
        signature = await reader.read_block(4)
        if signature is None or signature in ZIP_END_SIGNATURES:
            return
        if signature == ZIP_DATA_DESCRIPTOR_SIGNATURE and reader.position == 4:
            # Spanned-archive marker at the very start
            continue
        if signature != ZIP_LOCAL_HEADER_SIGNATURE:
            raise CorruptedArchiveError(
                "Invalid zip record signature",
                details=f"{signature!r} at offset {reader.position - 4}",
            )

        header = signature + await reader.read_exactly(zipfile.sizeFileHeader - 4)
        (
            _signature,
            _extract_version,
            _extract_system,
            flags,
            method,
            _time,
            _date,
            _crc,
            compressed_size,
            file_size,
            name_length,
            extra_length,
        ) = struct.unpack(zipfile.structFileHeader, header)

        raw_name = await reader.read_exactly(name_length)
        extra = await reader.read_exactly(extra_length)
        try:
            name = raw_name.decode("utf-8" if flags & ZIP_FLAG_UTF8 else "cp437")
        except UnicodeDecodeError as e:
            raise CorruptedArchiveError(
                "Invalid zip entry name",
                details=f"{raw_name!r} at offset {reader.position - extra_length - name_length}",
            ) from e
        file_size, compressed_size, zip64 = _zip64_sizes(
            extra, file_size, compressed_size
        )
        has_descriptor = bool(flags & ZIP_FLAG_DATA_DESCRIPTOR)
        is_file = not name.endswith("/")

        if flags & ZIP_FLAG_ENCRYPTED:
            raise ArchiveError(f"Encrypted zip entry {name!r} is not supported")

        if method == zipfile.ZIP_STORED:
            if has_descriptor and compressed_size == 0:
                body = _stored_until_descriptor(reader, zip64)
            else:
                body = reader.iter_exactly(compressed_size)
        elif method == zipfile.ZIP_DEFLATED:
            body = _inflate(reader, None if has_descriptor else compressed_size)
        else:
            raise ArchiveError(
                f"Unsupported compression method {method} for zip entry {name!r}"
            )

        entry = ArchiveEntry(
            name,
            body,
            is_file=is_file,
            size=None if has_descriptor else file_size,
        )
        yield entry
        await entry.drain()
        if has_descriptor:
            await _skip_data_descriptor(reader, zip64)
