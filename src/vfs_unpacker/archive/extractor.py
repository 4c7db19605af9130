"""Extraction of LP1C archives to a directory tree."""

import contextlib
import logging
from pathlib import Path
from typing import Callable, Optional

from .constants import HEADER_SIZE
from .errors import (
    CreateDirFailedError,
    CreateFileFailedError,
    UnsafeEntryPathError,
    VerificationFailedError,
    WriteFailedError,
)
from .models import EntryMetadata, ExtractionSummary
from .reader import ArchiveReader
from vfs_unpacker.common import LogContext, VfsError, compute_crc32, crc32_of_bytes, resolve_entry_destination

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, EntryMetadata], None]


class ArchiveExtractor:
    """Extracts every entry of an open archive, in archive order.

    Any error aborts the run. Errors leaving :meth:`run` carry the 1-based
    entry index, the entry name when it was decoded, and the byte offset
    involved, in both the message and ``error.context``.
    """

    def __init__(
        self,
        reader: ArchiveReader,
        output_root: Path,
        verify_extracted_files: bool = True,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize archive extractor.

        Args:
            reader: Open archive reader; the caller owns and closes it
            output_root: Directory entries are extracted under
            verify_extracted_files: Compare CRC32 of each written file with its payload
            progress_callback: Optional callback(current, total, entry) after each file
        """
        self.reader = reader
        self.output_root = Path(output_root)
        self.verify_extracted_files = verify_extracted_files
        self.progress_callback = progress_callback

    def run(self) -> ExtractionSummary:
        """Extract all entries.

        Returns:
            Summary of what was written

        Raises:
            VfsError: Any decode, validation or I/O failure
        """
        header = self.reader.read_header()
        logger.info(f"Archive contains {header.file_count} files")

        summary = ExtractionSummary(
            archive_path=self.reader.name,
            output_root=self.output_root,
            file_count=header.file_count,
        )

        if header.file_count == 0:
            logger.info("No files to extract")
            return summary

        self._create_output_root()

        position = self.reader.seek(HEADER_SIZE)
        logger.debug(f"Reading file entries starting at offset {position} (0x{position:X})")

        for index in range(1, header.file_count + 1):
            with LogContext(entry_index=index):
                self._extract_entry(index, header.file_count, summary)

        logger.info(
            f"Unpacking finished successfully: {summary.files_extracted} files, "
            f"{summary.bytes_written} bytes"
        )
        return summary

    def _create_output_root(self) -> None:
        logger.info(f"Creating output directory: {self.output_root}")
        try:
            self.output_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CreateDirFailedError(
                f"failed to create base output directory '{self.output_root}': {e}",
                path=str(self.output_root),
            ) from e

    def _extract_entry(self, index: int, total: int, summary: ExtractionSummary) -> None:
        """Decode, validate and write one entry, leaving the cursor on the next."""
        entry: Optional[EntryMetadata] = None
        entry_offset = self.reader.tell()

        try:
            entry = self.reader.read_entry()
            logger.debug(f"Entry {index}/{total}: {entry}")
            self.reader.validate_range(entry)
            destination = self._destination_for(entry)

            with self.reader.payload_detour(entry.offset):
                payload = self.reader.read_payload(entry)

            self._write_file(destination, payload, summary)
            summary.record(entry)

            logger.debug(f"Wrote {destination} ({entry.size} bytes)")
            if self.progress_callback:
                self.progress_callback(index, total, entry)

            self.reader.skip_fixed_suffix()

        except VfsError as e:
            name = entry.name if entry else e.context.get("entry_name")
            prefix = f"entry {index} ('{name}')" if name else f"entry {index} (offset {entry_offset})"
            raise e.add_context(
                prefix,
                entry_index=index,
                entry_name=name,
                offset=entry_offset,
            )

    def _destination_for(self, entry: EntryMetadata) -> Path:
        try:
            return resolve_entry_destination(self.output_root, entry.name)
        except ValueError as e:
            raise UnsafeEntryPathError(str(e), entry_name=entry.name) from e

    def _write_file(self, destination: Path, payload: bytes, summary: ExtractionSummary) -> None:
        """Write ``payload`` to ``destination``, creating parent directories.

        A failed write removes the partial file. A failed close after a
        successful write and flush is only a warning.
        """
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CreateDirFailedError(
                f"failed to create output directory '{destination.parent}': {e}",
                path=str(destination.parent),
            ) from e

        try:
            out_file = open(destination, 'wb')
        except OSError as e:
            raise CreateFileFailedError(
                f"failed to create output file '{destination}': {e}",
                path=str(destination),
            ) from e

        try:
            out_file.write(payload)
            out_file.flush()
        except OSError as e:
            with contextlib.suppress(OSError):
                out_file.close()
            self._remove_partial(destination)
            raise WriteFailedError(
                f"failed to write data to '{destination}': {e}",
                path=str(destination),
            ) from e

        try:
            out_file.close()
        except OSError as e:
            message = f"failed to close output file '{destination}': {e}"
            logger.warning(message)
            summary.warnings.append(message)

        if self.verify_extracted_files:
            self._verify(destination, payload)

    def _verify(self, destination: Path, payload: bytes) -> None:
        expected = crc32_of_bytes(payload)
        try:
            actual = compute_crc32(destination)
        except OSError as e:
            raise VerificationFailedError(
                f"failed to re-read '{destination}' for verification: {e}",
                path=str(destination),
            ) from e

        if actual != expected:
            raise VerificationFailedError(
                f"CRC32 mismatch for '{destination}': expected {expected:08X}, got {actual:08X}",
                path=str(destination),
            )

    @staticmethod
    def _remove_partial(destination: Path) -> None:
        try:
            destination.unlink()
        except OSError as e:
            logger.debug(f"Could not remove partial file {destination}: {e}")
