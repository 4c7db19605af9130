"""Fixtures for building synthetic LP1C archives."""

import struct
from pathlib import Path

import pytest

RESERVED = b"\xAA" * 8


def header_bytes(file_count, magic=b"LP1C", version=b"\x00\x00\x00\x00"):
    """Raw 12-byte header."""
    return magic + version + struct.pack("<I", file_count)


def entry_record(name, size, offset, reserved=RESERVED):
    """Raw directory entry: length byte, name, size, offset, reserved bytes."""
    return struct.pack("<B", len(name)) + name + struct.pack("<II", size, offset) + reserved


def pack_archive(files):
    """Header, all entries, then payloads in the same order.

    Args:
        files: List of (name_bytes, payload_bytes)
    """
    data_offset = 12 + sum(1 + len(name) + 16 for name, _ in files)
    records = []
    for name, payload in files:
        records.append(entry_record(name, len(payload), data_offset))
        data_offset += len(payload)
    return header_bytes(len(files)) + b"".join(records) + b"".join(p for _, p in files)


@pytest.fixture
def vfs():
    """Archive byte builders."""
    class Builders:
        header = staticmethod(header_bytes)
        entry = staticmethod(entry_record)
        pack = staticmethod(pack_archive)
    return Builders


@pytest.fixture
def write_archive(tmp_path):
    """Write raw archive bytes under tmp_path and return the path."""
    def _write(data: bytes, name: str = "test.vfs") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write


@pytest.fixture
def sample_files():
    """A small set of entries with nested backslash paths."""
    return [
        (b"readme.txt", b"Hello from LP1C"),
        (b"Textures\\stone.dds", b"DDS " + bytes(range(64))),
        (b"a\\b\\c\\d.txt", b"deeply nested"),
        (b"empty.bin", b""),
    ]
