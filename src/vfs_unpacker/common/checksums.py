"""Checksum utilities for extracted file verification."""

import zlib
from pathlib import Path

CRC32_CHUNK_SIZE = 65536  # 64 KB chunks


def crc32_of_bytes(data: bytes) -> int:
    """Compute CRC32 of an in-memory buffer as an unsigned 32-bit integer."""
    return zlib.crc32(data) & 0xFFFFFFFF


def compute_crc32(file_path: Path) -> int:
    """
    Compute CRC32 checksum of entire file.

    Used to confirm an extracted file holds exactly the payload that was
    read from the archive.

    Args:
        file_path: Path to the file

    Returns:
        CRC32 checksum as unsigned 32-bit integer

    Raises:
        OSError: If file cannot be read
    """
    crc = 0

    with open(file_path, 'rb') as f:
        while chunk := f.read(CRC32_CHUNK_SIZE):
            crc = zlib.crc32(chunk, crc)

    return crc & 0xFFFFFFFF
