"""LP1C archive decoding and extraction."""

from .extractor import ArchiveExtractor
from .models import ArchiveHeader, EntryMetadata, ExtractionSummary
from .reader import ArchiveReader, validate_range

__all__ = [
    'ArchiveExtractor',
    'ArchiveHeader',
    'ArchiveReader',
    'EntryMetadata',
    'ExtractionSummary',
    'validate_range',
]
