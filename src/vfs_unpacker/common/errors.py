"""Base error definitions for vfs_unpacker packages."""

from typing import Any, Dict


class VfsError(Exception):
    """Base exception for all vfs_unpacker errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def add_context(self, prefix: str, **context: Any) -> "VfsError":
        """Prefix the message and merge extra context into the error.

        Context already present on the error wins over the new values, so the
        innermost layer keeps the most precise offset.

        Args:
            prefix: Text prepended to the message (e.g. "entry 3 ('a.txt')")
            **context: Extra structured fields

        Returns:
            The same error instance, for use in a ``raise`` statement
        """
        self.message = f"{prefix}: {self.message}"
        self.args = (self.message,)
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self
