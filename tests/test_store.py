from __future__ import annotations

import tests._path_setup  # noqa: F401

import hashlib
import io
import tempfile
import unittest
from pathlib import Path

from content_addressable import ContentMismatchError, FileConflictError, new_file
from content_addressable.store import (
    ObjectState,
    hash_stream,
    iter_objects,
    object_path,
    put_file,
    put_stream,
    verify_object,
)

SUP_OID = hashlib.sha256(b"SUP").hexdigest()


class StoreTest(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.store = self.root / "objects"

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_object_path_rejects_path_like_oids(self) -> None:
        self.assertEqual(object_path(self.store, SUP_OID), self.store / SUP_OID)
        for bad in ("", ".", "..", "a/b"):
            with self.assertRaises(ValueError):
                object_path(self.store, bad)

    def test_hash_stream_reads_in_chunks(self) -> None:
        data = b"x" * 1000
        self.assertEqual(hash_stream(io.BytesIO(data), chunk_size=7), hashlib.sha256(data).hexdigest())

    def test_put_stream_creates_then_reports_present(self) -> None:
        self.assertTrue(put_stream(self.store, io.BytesIO(b"SUP"), SUP_OID, chunk_size=1))
        self.assertEqual((self.store / SUP_OID).read_bytes(), b"SUP")

        self.assertFalse(put_stream(self.store, io.BytesIO(b"SUP"), SUP_OID))
        self.assertEqual(sorted(p.name for p in self.store.iterdir()), [SUP_OID])

    def test_put_stream_mismatch_cleans_up(self) -> None:
        oid = hashlib.sha256(b"other").hexdigest()
        with self.assertRaises(ContentMismatchError):
            put_stream(self.store, io.BytesIO(b"SUP"), oid)
        self.assertEqual(list(self.store.iterdir()), [])

    def test_put_stream_conflicts_with_open_writer(self) -> None:
        aw = new_file(self.store / SUP_OID)
        try:
            with self.assertRaises(FileConflictError):
                put_stream(self.store, io.BytesIO(b"SUP"), SUP_OID)
            self.assertFalse(aw.closed)
        finally:
            aw.close()

    def test_put_file_hashes_when_oid_missing(self) -> None:
        src = self.root / "input.txt"
        src.write_bytes(b"SUP")

        oid, created = put_file(self.store, src)

        self.assertEqual(oid, SUP_OID)
        self.assertTrue(created)
        self.assertTrue(verify_object(self.store / SUP_OID))

    def test_iter_objects_reports_states(self) -> None:
        self.store.mkdir()
        (self.store / SUP_OID).write_bytes(b"SUP")
        bad = hashlib.sha256(b"nope").hexdigest()
        (self.store / bad).write_bytes(b"SUP")
        staging = new_file(self.store / hashlib.sha256(b"wip").hexdigest())
        try:
            states = {s.oid: s.state for s in iter_objects(self.store)}
        finally:
            staging.close()

        self.assertEqual(states[SUP_OID], ObjectState.OK)
        self.assertEqual(states[bad], ObjectState.MISMATCH)
        self.assertEqual(states[staging.oid], ObjectState.STAGING)

    def test_iter_objects_missing_store_is_empty(self) -> None:
        self.assertEqual(list(iter_objects(self.root / "missing")), [])


if __name__ == "__main__":
    unittest.main()
