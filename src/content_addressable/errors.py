"""Errors raised by content-addressable writers."""

from __future__ import annotations

import errno


class ContentAddressableError(Exception):
    """Base class for errors defined by this package."""


class FileConflictError(ContentAddressableError, FileExistsError):
    """The staging file is already held by another writer."""

    def __init__(self, filename: str) -> None:
        super().__init__(errno.EEXIST, "File open conflict", filename)


class AlreadyClosedError(ContentAddressableError):
    def __init__(self) -> None:
        super().__init__("Already closed.")


class ContentMismatchError(ContentAddressableError):
    """Written content does not hash to the expected OID."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Content mismatch. Expected OID {expected}, got {actual}")
        self.expected = expected
        self.actual = actual
