"""Tests for LP1C header and entry decoding."""

import io
import os

import pytest

from vfs_unpacker.archive.errors import (
    BadEntryNameError,
    BadMagicError,
    FormatError,
    InternalError,
    OffsetOutOfRangeError,
    OpenFailedError,
    RangeExceedsArchiveError,
    TooSmallError,
    TruncatedError,
    UnexpectedEOFError,
    UnsupportedVersionError,
    ZeroLengthNameError,
)
from vfs_unpacker.archive.models import EntryMetadata
from vfs_unpacker.archive.reader import ArchiveReader, validate_range


def reader_for(data: bytes, **kwargs) -> ArchiveReader:
    return ArchiveReader(io.BytesIO(data), total_size=kwargs.pop("total_size", len(data)), **kwargs)


class TestOpen:
    """Test opening and size-checking archives."""

    def test_open_reports_total_size(self, vfs, write_archive):
        """Test that the size captured at open matches the file."""
        data = vfs.pack([(b"a.txt", b"abc")])
        path = write_archive(data)

        with ArchiveReader.open(path) as reader:
            assert reader.total_size == len(data)
            assert reader.name == str(path)
            assert reader.tell() == 0

    def test_too_small(self, write_archive):
        """Test that a file shorter than the header is rejected by size."""
        path = write_archive(b"LP1C\x00\x00\x00\x00\x01\x00\x00")

        with pytest.raises(TooSmallError) as exc_info:
            ArchiveReader.open(path)

        assert exc_info.value.context["archive_size"] == 11
        assert "too small" in str(exc_info.value)

    def test_empty_file_is_too_small(self, write_archive):
        """Test that a zero-byte file is rejected by size."""
        with pytest.raises(TooSmallError):
            ArchiveReader.open(write_archive(b""))

    def test_missing_file(self, tmp_path):
        """Test that a missing archive raises OpenFailedError."""
        with pytest.raises(OpenFailedError):
            ArchiveReader.open(tmp_path / "missing.vfs")

    def test_directory_is_not_an_archive(self, tmp_path):
        """Test that a directory cannot be opened as an archive."""
        with pytest.raises(OpenFailedError):
            ArchiveReader.open(tmp_path)

    def test_context_manager_closes_on_error(self, vfs, write_archive):
        """Test that the handle is released when decoding fails."""
        path = write_archive(b"NOPE" + b"\x00" * 8)
        reader = ArchiveReader.open(path)

        with pytest.raises(BadMagicError):
            with reader:
                reader.read_header()

        assert reader.closed

    def test_close_is_idempotent(self, vfs, write_archive):
        """Test that closing twice is harmless."""
        reader = ArchiveReader.open(write_archive(vfs.header(0)))
        reader.close()
        reader.close()
        assert reader.closed


class TestReadHeader:
    """Test header decoding."""

    def test_valid_header(self, vfs):
        """Test decoding a valid header."""
        reader = reader_for(vfs.header(3) + b"\x00" * 40)
        header = reader.read_header()

        assert header.magic == b"LP1C"
        assert header.version == b"\x00\x00\x00\x00"
        assert header.file_count == 3
        assert reader.tell() == 12
        assert reader.header is header

    def test_file_count_is_little_endian(self, vfs):
        """Test that the file count is decoded little-endian."""
        reader = reader_for(b"LP1C\x00\x00\x00\x00\x01\x02\x00\x00")
        assert reader.read_header().file_count == 0x0201

    def test_bad_magic(self, vfs):
        """Test that a wrong magic is rejected."""
        reader = reader_for(vfs.header(1, magic=b"PK\x03\x04"))

        with pytest.raises(BadMagicError) as exc_info:
            reader.read_header()

        assert isinstance(exc_info.value, FormatError)
        assert exc_info.value.context["offset"] == 0

    def test_unsupported_version(self, vfs):
        """Test that a non-zero version is rejected."""
        reader = reader_for(vfs.header(1, version=b"\x01\x00\x00\x00"))

        with pytest.raises(UnsupportedVersionError) as exc_info:
            reader.read_header()

        assert exc_info.value.context["offset"] == 4
        assert "[1, 0, 0, 0]" in str(exc_info.value)

    def test_truncated_header_from_stream(self):
        """Test that a short stream fails with TruncatedError, not a crash."""
        reader = reader_for(b"LP1C\x00\x00\x00\x00\x05")

        with pytest.raises(TruncatedError) as exc_info:
            reader.read_header()

        assert exc_info.value.context["offset"] == 8
        assert exc_info.value.context["field"] == "file count"

    def test_reads_from_start_regardless_of_cursor(self, vfs):
        """Test that the header is always read from offset 0."""
        reader = reader_for(vfs.header(2) + b"\x00" * 20)
        reader.seek(17)

        assert reader.read_header().file_count == 2
        assert reader.tell() == 12


class TestReadEntry:
    """Test directory entry decoding."""

    def test_decodes_fields(self, vfs):
        """Test name, size and offset decoding."""
        data = vfs.header(1) + vfs.entry(b"music.ogg", 0x1234, 0x40) + b"\x00" * 0x2000
        reader = reader_for(data)
        reader.read_header()

        entry = reader.read_entry()

        assert entry.name == "music.ogg"
        assert entry.size == 0x1234
        assert entry.offset == 0x40
        assert entry.entry_offset == 12

    def test_stops_before_reserved_bytes(self, vfs):
        """Test that the reserved suffix is left for the caller."""
        data = vfs.header(1) + vfs.entry(b"x", 0, 0)
        reader = reader_for(data)
        reader.read_header()

        reader.read_entry()

        # 12 header + 1 length + 1 name + 4 size + 4 offset
        assert reader.tell() == 22
        assert reader.skip_fixed_suffix() == 30

    def test_backslashes_become_platform_separators(self, vfs):
        """Test that backslash separators are normalized."""
        data = vfs.header(1) + vfs.entry(b"Textures\\stone.dds", 0, 0)
        reader = reader_for(data)
        reader.read_header()

        entry = reader.read_entry()

        assert entry.name == os.path.join("Textures", "stone.dds")

    def test_zero_length_name(self, vfs):
        """Test that a zero name length is a decode error."""
        data = vfs.header(1) + b"\x00" + b"\x00" * 16
        reader = reader_for(data)
        reader.read_header()

        with pytest.raises(ZeroLengthNameError) as exc_info:
            reader.read_entry()

        assert exc_info.value.context["offset"] == 12

    def test_truncated_name(self, vfs):
        """Test that a name running past the end is reported with its offset."""
        data = vfs.header(1) + b"\x0Ashort"
        reader = reader_for(data)
        reader.read_header()

        with pytest.raises(TruncatedError) as exc_info:
            reader.read_entry()

        assert exc_info.value.context["offset"] == 13
        assert exc_info.value.context["field"] == "name"

    def test_truncated_size_field_keeps_name(self, vfs):
        """Test that truncation after the name carries the decoded name."""
        data = vfs.header(1) + b"\x05a.txt" + b"\x01\x00"
        reader = reader_for(data)
        reader.read_header()

        with pytest.raises(TruncatedError) as exc_info:
            reader.read_entry()

        assert exc_info.value.context["entry_name"] == "a.txt"
        assert exc_info.value.context["field"] == "file size"

    def test_truncated_at_name_length(self, vfs):
        """Test that a missing entry fails at the name length byte."""
        reader = reader_for(vfs.header(1))
        reader.read_header()

        with pytest.raises(TruncatedError) as exc_info:
            reader.read_entry()

        assert exc_info.value.context["field"] == "name length"

    def test_custom_name_encoding(self, vfs):
        """Test decoding names with a configured codec."""
        name = "Звуки\\шаг.wav".encode("cp1251")
        data = vfs.header(1) + vfs.entry(name, 0, 0)
        reader = reader_for(data, name_encoding="cp1251")
        reader.read_header()

        entry = reader.read_entry()

        assert entry.name == os.path.join("Звуки", "шаг.wav")

    def test_truncated_code_unit_is_format_error(self, vfs):
        """Test that a name the codec cannot split raises BadEntryNameError."""
        data = vfs.header(1) + vfs.entry(b"abc", 0, 0)
        reader = reader_for(data, name_encoding="utf-16-le")
        reader.read_header()

        with pytest.raises(BadEntryNameError) as exc_info:
            reader.read_entry()

        assert isinstance(exc_info.value, FormatError)
        assert exc_info.value.context["offset"] == 12
        assert exc_info.value.context["encoding"] == "utf-16-le"

    def test_undecodable_bytes_survive(self, vfs):
        """Test that raw bytes outside the codec are preserved."""
        data = vfs.header(1) + vfs.entry(b"\xffdata.bin", 0, 0)
        reader = reader_for(data)
        reader.read_header()

        entry = reader.read_entry()

        assert entry.name.encode("utf-8", "surrogateescape") == b"\xffdata.bin"


class TestValidateRange:
    """Test payload bounds validation."""

    def _entry(self, size, offset):
        return EntryMetadata(name="f", size=size, offset=offset, entry_offset=12)

    def test_range_inside_archive(self):
        """Test that an in-bounds range passes."""
        validate_range(self._entry(size=10, offset=90), total_size=100)

    def test_empty_payload_at_end(self):
        """Test that a zero-size payload at the very end passes."""
        validate_range(self._entry(size=0, offset=100), total_size=100)

    def test_offset_past_end(self):
        """Test that an offset beyond the archive is rejected."""
        with pytest.raises(OffsetOutOfRangeError) as exc_info:
            validate_range(self._entry(size=0, offset=101), total_size=100)

        assert exc_info.value.context["offset"] == 101

    def test_range_past_end(self):
        """Test that offset + size beyond the archive is rejected."""
        with pytest.raises(RangeExceedsArchiveError):
            validate_range(self._entry(size=11, offset=90), total_size=100)

    def test_no_32bit_overflow(self):
        """Test that values near the uint32 limit do not wrap around."""
        with pytest.raises(RangeExceedsArchiveError) as exc_info:
            validate_range(self._entry(size=0xFFFFFFFF, offset=2), total_size=100)

        assert "4294967297" in str(exc_info.value)

    def test_reader_method_uses_archive_size(self, vfs):
        """Test the reader-bound variant."""
        reader = reader_for(vfs.header(0))
        with pytest.raises(RangeExceedsArchiveError):
            reader.validate_range(self._entry(size=1, offset=12))


class TestCursor:
    """Test payload detours and suffix skipping."""

    def test_detour_restores_position(self, vfs):
        """Test that the resume position is restored after a payload read."""
        data = vfs.pack([(b"a.txt", b"payload!")])
        reader = reader_for(data)
        reader.read_header()
        entry = reader.read_entry()
        resume = reader.tell()

        with reader.payload_detour(entry.offset) as saved:
            assert saved == resume
            assert reader.read_payload(entry) == b"payload!"

        assert reader.tell() == resume

    def test_detour_restores_position_on_error(self, vfs):
        """Test that a failing body does not leave the cursor dangling."""
        reader = reader_for(vfs.header(0) + b"\x00" * 100)
        reader.seek(30)

        with pytest.raises(RuntimeError):
            with reader.payload_detour(90):
                assert reader.tell() == 90
                raise RuntimeError("boom")

        assert reader.tell() == 30

    def test_read_payload_short(self, vfs):
        """Test that a payload shorter than declared raises UnexpectedEOFError."""
        data = vfs.header(0) + b"abc"
        reader = reader_for(data)
        entry = EntryMetadata(name="f", size=4, offset=12, entry_offset=0)
        reader.seek(12)

        with pytest.raises(UnexpectedEOFError) as exc_info:
            reader.read_payload(entry)

        assert exc_info.value.context["expected"] == 4
        assert exc_info.value.context["actual"] == 3

    def test_skip_past_end_is_tolerated(self, vfs):
        """Test that the final skip may land beyond the end of the source."""
        data = vfs.header(1) + b"\x01x" + b"\x00" * 8  # reserved bytes missing
        reader = reader_for(data)
        reader.read_header()
        reader.read_entry()

        assert reader.skip_fixed_suffix() == len(data) + 8

    def test_negative_skip_is_internal_error(self, vfs):
        """Test the fixed-suffix arithmetic guard."""
        reader = reader_for(vfs.header(0))

        with pytest.raises(InternalError):
            reader.skip_fixed_suffix(suffix_size=4)
