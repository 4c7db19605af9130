"""Archive decoding and extraction errors."""

from vfs_unpacker.common import VfsError


class FormatError(VfsError):
    """Archive bytes deviate from the LP1C layout."""
    pass


class TooSmallError(FormatError):
    """Archive is too small to hold a header."""
    pass


class BadMagicError(FormatError):
    """Archive does not start with the LP1C magic."""
    pass


class UnsupportedVersionError(FormatError):
    """Archive version is not understood."""
    pass


class ZeroLengthNameError(FormatError):
    """Directory entry declares an empty name."""
    pass


class BadEntryNameError(FormatError):
    """Entry name bytes cannot be decoded with the configured encoding."""
    pass


class TruncatedError(FormatError):
    """Archive ended while decoding a header or entry field."""
    pass


class OffsetOutOfRangeError(FormatError):
    """Entry data offset lies beyond the end of the archive."""
    pass


class RangeExceedsArchiveError(FormatError):
    """Entry data range runs past the end of the archive."""
    pass


class UnsafeEntryPathError(FormatError):
    """Entry name would resolve outside the output directory."""
    pass


class ArchiveIOError(VfsError):
    """I/O against the archive or the output tree failed."""
    pass


class OpenFailedError(ArchiveIOError):
    """Archive could not be opened or sized."""
    pass


class SeekFailedError(ArchiveIOError):
    """Repositioning the archive cursor failed."""
    pass


class CreateDirFailedError(ArchiveIOError):
    """Output directory could not be created."""
    pass


class CreateFileFailedError(ArchiveIOError):
    """Destination file could not be created."""
    pass


class WriteFailedError(ArchiveIOError):
    """Writing payload bytes to the destination failed."""
    pass


class UnexpectedEOFError(ArchiveIOError):
    """Fewer payload bytes were readable than the entry declares.

    The range already passed validation against the archive size, so this
    usually means the archive is corrupt or changed underneath us.
    """
    pass


class VerificationFailedError(ArchiveIOError):
    """Extracted file does not match the payload read from the archive."""
    pass


class InternalError(VfsError):
    """Fixed-format arithmetic produced an impossible value."""
    pass
