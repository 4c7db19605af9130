"""LP1C container format constants.

All multi-byte integers are little-endian.
"""

from struct import Struct

MAGIC = b"LP1C"
SUPPORTED_VERSION = b"\x00\x00\x00\x00"

# magic (4) + version (4) + file count (4)
HEADER_SIZE = 12

UINT32 = Struct("<I")
NAME_LENGTH = Struct("<B")

# Size of the fixed block after each entry name:
# file size (4) + file offset (4) + reserved (8)
ENTRY_FIXED_SUFFIX_SIZE = 16
ENTRY_SIZE_FIELD = UINT32.size
ENTRY_OFFSET_FIELD = UINT32.size

DEFAULT_NAME_ENCODING = "utf-8"
