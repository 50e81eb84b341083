"""Atomic writing of content addressable files.

Data goes to a staging file next to the destination and is hashed as it is
written. ``accept()`` renames the staging file to the destination only when
the digest matches the destination's base name.
"""

from __future__ import annotations

import hashlib
import os
import shutil
from pathlib import Path
from typing import Iterable

from .errors import AlreadyClosedError, ContentMismatchError, FileConflictError

DEFAULT_SUFFIX = "-temp"
DEFAULT_ALGORITHM = "sha256"

_DIR_MODE = 0o755
_FILE_MODE = 0o644


class ContentAddressableFile:
    """Writes a content addressable file through a staging file.

    The OID is the base name of *filename*. Construction fails with
    :class:`FileConflictError` if another writer already holds the staging
    file for the same destination.
    """

    def __init__(
        self,
        filename: str | os.PathLike[str],
        suffix: str = DEFAULT_SUFFIX,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        path = Path(filename)
        hasher = hashlib.new(algorithm)
        path.parent.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)

        temp_path = path.with_name(path.name + suffix)
        try:
            fd = os.open(str(temp_path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, _FILE_MODE)
        except FileExistsError as exc:
            raise FileConflictError(str(temp_path)) from exc

        self.oid = path.name
        self.filename = path
        self.temp_filename = temp_path
        self._fd: int | None = fd
        self._staged = True
        self._hasher = hasher

    def __enter__(self) -> ContentAddressableFile:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<ContentAddressableFile oid={self.oid!r} {state}>"

    @property
    def closed(self) -> bool:
        return self._fd is None

    def write(self, data: bytes) -> int:
        """Write *data* to the staging file.

        Returns the number of bytes written, which may be short. Only the
        written bytes are fed to the hasher.
        """
        if self._fd is None:
            raise AlreadyClosedError()
        view = memoryview(data).cast("B")
        n = os.write(self._fd, view)
        self._hasher.update(view[:n])
        return n

    def write_all(self, data: bytes) -> None:
        """Write all of *data*, retrying short writes."""
        view = memoryview(data).cast("B")
        while view:
            n = self.write(view)
            view = view[n:]

    def writelines(self, chunks: Iterable[bytes]) -> None:
        for chunk in chunks:
            self.write_all(chunk)

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()

    def accept(self) -> bool:
        """Verify the written content and publish it under ``filename``.

        Returns True if this call created the destination, or False if the
        destination already existed, in which case the staging file is
        discarded. Raises :class:`ContentMismatchError` if the digest does not
        match the OID; the staging file then stays until :meth:`close`.
        """
        if self._fd is None:
            raise AlreadyClosedError()

        fd, self._fd = self._fd, None
        os.close(fd)

        sig = self._hasher.hexdigest()
        if sig != self.oid:
            raise ContentMismatchError(self.oid, sig)

        # The digest matched, so an existing destination has the same content.
        try:
            os.stat(self.filename)
        except FileNotFoundError:
            pass
        else:
            self.close()
            return False

        os.rename(self.temp_filename, self.filename)
        self._staged = False
        return True

    def close(self) -> None:
        """Close the staging file and remove it. Safe to call repeatedly."""
        fd, self._fd = self._fd, None
        try:
            if fd is not None:
                os.close(fd)
        finally:
            if self._staged:
                _remove_all(self.temp_filename)
                self._staged = False


def _remove_all(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def new_file(filename: str | os.PathLike[str]) -> ContentAddressableFile:
    """Open a writer for *filename* using :data:`DEFAULT_SUFFIX`."""
    return new_with_suffix(filename, DEFAULT_SUFFIX)


def new_with_suffix(filename: str | os.PathLike[str], suffix: str) -> ContentAddressableFile:
    return ContentAddressableFile(filename, suffix=suffix)
