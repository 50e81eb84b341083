"""Atomic, content-verified file creation."""

from .errors import AlreadyClosedError, ContentAddressableError, ContentMismatchError, FileConflictError
from .file import DEFAULT_ALGORITHM, DEFAULT_SUFFIX, ContentAddressableFile, new_file, new_with_suffix

__all__ = [
    "DEFAULT_ALGORITHM",
    "DEFAULT_SUFFIX",
    "AlreadyClosedError",
    "ContentAddressableError",
    "ContentAddressableFile",
    "ContentMismatchError",
    "FileConflictError",
    "new_file",
    "new_with_suffix",
]
