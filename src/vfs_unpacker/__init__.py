"""
vfs-unpacker - extract files from LP1C (.vfs) game asset archives.
"""

__version__ = "0.1.0"
__license__ = "MIT"
