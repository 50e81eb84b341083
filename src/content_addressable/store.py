"""Helpers for writing and checking objects in a flat content addressed directory.

Objects live at ``<store_dir>/<oid>``. There is no index; the directory
listing is the only record of what is stored.
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterator

from .file import DEFAULT_ALGORITHM, DEFAULT_SUFFIX, ContentAddressableFile
from .config import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)


class ObjectState(str, Enum):
    OK = "ok"
    MISMATCH = "mismatch"
    STAGING = "staging"


@dataclass(frozen=True)
class ObjectStatus:
    path: Path
    oid: str
    state: ObjectState


def object_path(store_dir: Path, oid: str) -> Path:
    if not oid or oid in {".", ".."} or "/" in oid or os.sep in oid:
        raise ValueError(f"Invalid OID: {oid!r}")
    return Path(store_dir) / oid


def hash_stream(
    reader: BinaryIO,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    hasher = hashlib.new(algorithm)
    while chunk := reader.read(chunk_size):
        hasher.update(chunk)
    return hasher.hexdigest()


def hash_file(path: Path, algorithm: str = DEFAULT_ALGORITHM, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    with open(path, "rb") as f:
        return hash_stream(f, algorithm, chunk_size)


def put_stream(
    store_dir: Path,
    reader: BinaryIO,
    oid: str,
    *,
    suffix: str = DEFAULT_SUFFIX,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """Copy *reader* into the store under *oid*.

    Returns True if the object was created, False if it was already present.
    Raises FileConflictError if another writer is storing the same OID and
    ContentMismatchError if the data does not hash to *oid*. The staging file
    is removed in every case.
    """
    target = object_path(store_dir, oid)
    with ContentAddressableFile(target, suffix=suffix, algorithm=algorithm) as caf:
        total = 0
        while chunk := reader.read(chunk_size):
            caf.write_all(chunk)
            total += len(chunk)
        created = caf.accept()
    logger.debug("Stored %s (%d bytes, created=%s)", oid, total, created)
    return created


def put_file(
    store_dir: Path,
    path: Path,
    oid: str | None = None,
    *,
    suffix: str = DEFAULT_SUFFIX,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[str, bool]:
    """Store the file at *path*, hashing it first when *oid* is not given."""
    if oid is None:
        oid = hash_file(path, algorithm, chunk_size)
    with open(path, "rb") as f:
        created = put_stream(store_dir, f, oid, suffix=suffix, algorithm=algorithm, chunk_size=chunk_size)
    return oid, created


def verify_object(path: Path, algorithm: str = DEFAULT_ALGORITHM) -> bool:
    return hash_file(path, algorithm) == path.name


def iter_objects(
    store_dir: Path,
    suffix: str = DEFAULT_SUFFIX,
    algorithm: str = DEFAULT_ALGORITHM,
) -> Iterator[ObjectStatus]:
    """Yield the state of every file in *store_dir*, sorted by name.

    Staging files are reported, never removed.
    """
    store_dir = Path(store_dir)
    if not store_dir.is_dir():
        return
    for entry in sorted(store_dir.iterdir()):
        if not entry.is_file():
            continue
        if suffix and entry.name.endswith(suffix):
            yield ObjectStatus(entry, entry.name[: -len(suffix)], ObjectState.STAGING)
            continue
        ok = verify_object(entry, algorithm)
        if not ok:
            logger.warning("Object %s does not match its content", entry)
        yield ObjectStatus(entry, entry.name, ObjectState.OK if ok else ObjectState.MISMATCH)
