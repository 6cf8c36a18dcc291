"""Exception types shared across the integration core.

Filesystem failures are plain ``OSError``s. Asking for the digest of an image
type that carries none is not an error; the digest resolver returns ``None``.
"""

from __future__ import annotations


class IntegratorError(Exception):
    """Base class for integration errors."""


class FormatError(IntegratorError):
    """A launcher document (or digest section) could not be parsed."""

    def __init__(self, message: str, path: str | None = None, line: int | None = None):
        self.path = path
        self.line = line
        where = ""
        if path:
            where = f"{path}:{line}: " if line else f"{path}: "
        super().__init__(f"{where}{message}")


class UserAborted(IntegratorError):
    """The user declined at a confirmation point. Not a failure."""


class OperationFailed(IntegratorError):
    """Terminal failure during relocation or launcher entry synthesis."""
