"""Common utilities shared by vfs_unpacker packages."""

from .config import ConfigLoader
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import VfsError
from .path_utils import normalize_entry_name, entry_path_parts, resolve_entry_destination
from .checksums import compute_crc32, crc32_of_bytes

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'VfsError',
    'normalize_entry_name',
    'entry_path_parts',
    'resolve_entry_destination',
    'compute_crc32',
    'crc32_of_bytes',
]
