"""Allow ``python -m vfs_unpacker``."""

import sys

from vfs_unpacker.archive.cli import main

sys.exit(main())
