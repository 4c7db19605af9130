"""Path utilities for mapping archive entry names onto the filesystem."""

import os
import re
from pathlib import Path
from typing import List

# Archive names use backslashes; forward slashes are accepted as well so that
# names already normalized on POSIX split the same way.
_SEPARATORS = re.compile(r'[\\/]')


def normalize_entry_name(name: str, sep: str = os.sep) -> str:
    """
    Translate the archive's backslash separators to the platform separator.

    Args:
        name: Raw entry name as decoded from the archive
        sep: Target separator (defaults to ``os.sep``)

    Returns:
        Name with every ``\\`` replaced by ``sep``

    Examples:
        >>> normalize_entry_name("Textures\\\\stone.dds", sep="/")
        'Textures/stone.dds'
    """
    return name.replace('\\', sep)


def entry_path_parts(name: str) -> List[str]:
    """Split an entry name into components, dropping empty and '.' parts."""
    return [part for part in _SEPARATORS.split(name) if part not in ('', '.')]


def resolve_entry_destination(root: Path, name: str) -> Path:
    """
    Join an entry name onto the output root, refusing to leave it.

    Leading separators do not make the name absolute; ``\\a.txt`` lands at
    ``root/a.txt``.

    Args:
        root: Output root directory
        name: Entry name (raw or separator-normalized)

    Returns:
        Destination path inside ``root``

    Raises:
        ValueError: If the name has no usable component, contains ``..``
            or a NUL character, or carries a drive prefix
    """
    parts = entry_path_parts(name)
    if not parts:
        raise ValueError(f"entry name {name!r} has no path components")

    for part in parts:
        if part == '..':
            raise ValueError(f"entry name {name!r} escapes the output directory")
        if '\x00' in part:
            raise ValueError(f"entry name {name!r} contains a NUL character")
        if Path(part).drive:
            raise ValueError(f"entry name {name!r} carries a drive prefix")

    return Path(root).joinpath(*parts)
