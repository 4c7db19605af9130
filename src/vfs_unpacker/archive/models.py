"""Decoded archive records and extraction results."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class ArchiveHeader:
    """Fixed 12-byte header at offset 0."""
    magic: bytes
    version: bytes
    file_count: int


@dataclass(frozen=True)
class EntryMetadata:
    """One directory entry, decoded up to (not including) its reserved bytes."""
    name: str  # Separator-normalized relative path
    size: int
    offset: int  # Absolute, from archive start
    entry_offset: int  # Where this entry's name-length byte sits

    @property
    def end(self) -> int:
        """First byte past the payload."""
        return self.offset + self.size

    def __str__(self) -> str:
        return f"{self.name} ({self.size} bytes @ {self.offset})"


@dataclass
class ExtractionSummary:
    """Outcome of extracting one archive."""
    archive_path: str
    output_root: Path
    file_count: int
    files_extracted: int = 0
    bytes_written: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.file_count == 0

    def record(self, entry: EntryMetadata) -> None:
        """Count an entry whose payload was written."""
        self.files_extracted += 1
        self.bytes_written += entry.size
