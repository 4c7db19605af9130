"""Sequential decoder for LP1C archives.

The reader owns the archive handle and its cursor. Metadata is decoded in
archive order from the current position; payloads live at absolute offsets
elsewhere in the file and are reached through :meth:`ArchiveReader.payload_detour`,
which always puts the cursor back where metadata scanning left off.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from .constants import (
    DEFAULT_NAME_ENCODING,
    ENTRY_FIXED_SUFFIX_SIZE,
    ENTRY_OFFSET_FIELD,
    ENTRY_SIZE_FIELD,
    HEADER_SIZE,
    MAGIC,
    NAME_LENGTH,
    SUPPORTED_VERSION,
    UINT32,
)
from .errors import (
    ArchiveIOError,
    BadEntryNameError,
    BadMagicError,
    InternalError,
    OffsetOutOfRangeError,
    OpenFailedError,
    RangeExceedsArchiveError,
    SeekFailedError,
    TooSmallError,
    TruncatedError,
    UnexpectedEOFError,
    UnsupportedVersionError,
    ZeroLengthNameError,
)
from .models import ArchiveHeader, EntryMetadata
from vfs_unpacker.common import normalize_entry_name

logger = logging.getLogger(__name__)


def validate_range(entry: EntryMetadata, total_size: int) -> None:
    """Check that an entry's payload lies inside the archive.

    Args:
        entry: Decoded entry
        total_size: Archive size in bytes

    Raises:
        OffsetOutOfRangeError: If the offset is past the end of the archive
        RangeExceedsArchiveError: If offset + size is past the end of the archive
    """
    if entry.offset > total_size:
        raise OffsetOutOfRangeError(
            f"invalid data offset {entry.offset} (0x{entry.offset:X}) - "
            f"exceeds archive size {total_size}",
            offset=entry.offset,
            archive_size=total_size,
        )

    # Python ints do not wrap, so two uint32 values near the limit are safe here
    if entry.end > total_size:
        raise RangeExceedsArchiveError(
            f"invalid data range - offset {entry.offset} + size {entry.size} "
            f"({entry.end}) exceeds archive size {total_size}",
            offset=entry.offset,
            size=entry.size,
            archive_size=total_size,
        )


class ArchiveReader:
    """Decodes the header and directory entries of one LP1C archive."""

    def __init__(
        self,
        stream: BinaryIO,
        total_size: int,
        name: str = "<stream>",
        name_encoding: str = DEFAULT_NAME_ENCODING,
    ):
        """Wrap an open, seekable binary stream.

        Args:
            stream: Archive byte source, positioned anywhere
            total_size: Archive size captured when it was opened
            name: Display name used in messages
            name_encoding: Codec for entry names
        """
        self._stream = stream
        self.total_size = total_size
        self.name = name
        self.name_encoding = name_encoding
        self.header: Optional[ArchiveHeader] = None

    @classmethod
    def open(cls, path: Path, name_encoding: str = DEFAULT_NAME_ENCODING) -> "ArchiveReader":
        """Open an archive file and check it can hold a header.

        Args:
            path: Archive path
            name_encoding: Codec for entry names

        Returns:
            Reader positioned at offset 0

        Raises:
            OpenFailedError: If the file cannot be opened or sized
            TooSmallError: If the file is shorter than the header
        """
        path = Path(path)
        try:
            stream = path.open('rb')
        except OSError as e:
            raise OpenFailedError(f"failed to open archive '{path}': {e}", path=str(path)) from e

        try:
            total_size = os.fstat(stream.fileno()).st_size
        except OSError as e:
            stream.close()
            raise OpenFailedError(f"failed to get size of archive '{path}': {e}", path=str(path)) from e

        if total_size < HEADER_SIZE:
            stream.close()
            raise TooSmallError(
                f"invalid archive: size ({total_size} bytes) is too small (minimum {HEADER_SIZE})",
                path=str(path),
                archive_size=total_size,
            )

        logger.debug(f"Opened {path} ({total_size} bytes)")
        return cls(stream, total_size, name=str(path), name_encoding=name_encoding)

    def close(self) -> None:
        if not self._stream.closed:
            self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def tell(self) -> int:
        try:
            return self._stream.tell()
        except OSError as e:
            raise SeekFailedError(f"failed to get current archive position: {e}") from e

    def seek(self, position: int) -> int:
        """Move the cursor to an absolute position."""
        try:
            return self._stream.seek(position, os.SEEK_SET)
        except OSError as e:
            raise SeekFailedError(
                f"failed to seek to offset {position} (0x{position:X}): {e}",
                offset=position,
            ) from e

    @contextmanager
    def payload_detour(self, offset: int) -> Iterator[int]:
        """Jump to ``offset`` for the body, then return to the resume position.

        The resume position is restored even if the body raises.

        Yields:
            The resume position
        """
        resume_pos = self.tell()
        self.seek(offset)
        try:
            yield resume_pos
        finally:
            self.seek(resume_pos)

    def _read_exact(self, count: int, what: str) -> bytes:
        start = self.tell()
        try:
            data = self._stream.read(count)
        except OSError as e:
            raise ArchiveIOError(f"failed to read {what} at offset {start}: {e}", offset=start) from e

        if len(data) < count:
            raise TruncatedError(
                f"archive ends while reading {what} at offset {start} "
                f"(expected {count} bytes, got {len(data)})",
                offset=start,
                field=what,
            )
        return data

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def read_header(self) -> ArchiveHeader:
        """Decode and verify the 12-byte header.

        Leaves the cursor at the first entry.

        Raises:
            BadMagicError: If the magic is not LP1C
            UnsupportedVersionError: If the version bytes are not all zero
            TruncatedError: If the source ends inside the header
        """
        self.seek(0)

        magic = self._read_exact(len(MAGIC), "magic bytes")
        if magic != MAGIC:
            raise BadMagicError(
                f"invalid magic bytes: got {magic!r}, expected {MAGIC!r}. "
                f"Is this an LP1C archive?",
                offset=0,
            )

        version = self._read_exact(len(SUPPORTED_VERSION), "version bytes")
        if version != SUPPORTED_VERSION:
            raise UnsupportedVersionError(
                f"unsupported format version: got {list(version)}, "
                f"expected {list(SUPPORTED_VERSION)}",
                offset=len(MAGIC),
            )
        logger.debug(f"Detected format version {list(version)} (supported)")

        (file_count,) = UINT32.unpack(self._read_exact(UINT32.size, "file count"))

        self.header = ArchiveHeader(magic=magic, version=version, file_count=file_count)
        return self.header

    def read_entry(self) -> EntryMetadata:
        """Decode one entry at the cursor, stopping before its reserved bytes.

        The caller skips the reserved bytes with :meth:`skip_fixed_suffix`
        once any payload detour is over.

        Raises:
            ZeroLengthNameError: If the name length byte is zero
            BadEntryNameError: If the name cannot be decoded
            TruncatedError: If the source ends inside the entry
        """
        entry_offset = self.tell()

        (name_length,) = NAME_LENGTH.unpack(self._read_exact(NAME_LENGTH.size, "name length"))
        if name_length == 0:
            raise ZeroLengthNameError(
                f"invalid name length (0) at offset {entry_offset}",
                offset=entry_offset,
            )

        raw_name = self._read_exact(name_length, "name")
        try:
            name = normalize_entry_name(raw_name.decode(self.name_encoding, errors="surrogateescape"))
        except UnicodeDecodeError as e:
            raise BadEntryNameError(
                f"cannot decode entry name {raw_name!r} at offset {entry_offset} "
                f"as {self.name_encoding}: {e.reason}",
                offset=entry_offset,
                encoding=self.name_encoding,
            ) from e

        try:
            (size,) = UINT32.unpack(self._read_exact(ENTRY_SIZE_FIELD, "file size"))
            (offset,) = UINT32.unpack(self._read_exact(ENTRY_OFFSET_FIELD, "file offset"))
        except TruncatedError as e:
            e.context.setdefault("entry_name", name)
            raise

        return EntryMetadata(name=name, size=size, offset=offset, entry_offset=entry_offset)

    def validate_range(self, entry: EntryMetadata) -> None:
        """Check ``entry`` against this archive's size."""
        validate_range(entry, self.total_size)

    def read_payload(self, entry: EntryMetadata) -> bytes:
        """Read exactly ``entry.size`` bytes at the cursor.

        Raises:
            UnexpectedEOFError: If fewer bytes are available than declared
        """
        start = self.tell()
        try:
            data = self._stream.read(entry.size)
        except OSError as e:
            raise ArchiveIOError(
                f"failed to read {entry.size} bytes of data from offset {start}: {e}",
                offset=start,
            ) from e

        if len(data) < entry.size:
            raise UnexpectedEOFError(
                f"failed to read full data (started at offset {start} [0x{start:X}], "
                f"expected size {entry.size}, read {len(data)}): unexpected end of file "
                f"(archive size: {self.total_size}) - archive might be corrupt",
                offset=start,
                expected=entry.size,
                actual=len(data),
            )
        return data

    def skip_fixed_suffix(self, suffix_size: int = ENTRY_FIXED_SUFFIX_SIZE) -> int:
        """Skip the reserved bytes that close the current entry.

        Size and offset were already consumed by :meth:`read_entry`, so
        ``suffix_size - 8`` bytes remain. Landing at or past the end of the
        archive is fine after the last entry.

        Returns:
            New cursor position

        Raises:
            InternalError: If the remaining byte count would be negative
        """
        bytes_to_skip = suffix_size - ENTRY_SIZE_FIELD - ENTRY_OFFSET_FIELD
        if bytes_to_skip < 0:
            raise InternalError(
                f"internal error: negative number of bytes to skip ({bytes_to_skip})",
                suffix_size=suffix_size,
            )

        position = self.tell()
        try:
            new_position = self._stream.seek(bytes_to_skip, os.SEEK_CUR)
        except OSError as e:
            raise SeekFailedError(
                f"failed to skip {bytes_to_skip} bytes to the next entry "
                f"(current offset {position}): {e}",
                offset=position,
            ) from e

        if new_position >= self.total_size:
            logger.debug(f"Reached end of archive after entry metadata (offset {new_position})")
        return new_position
