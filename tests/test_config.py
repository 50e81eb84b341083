from __future__ import annotations

import tests._path_setup  # noqa: F401

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from content_addressable import config

_ENV_KEYS = [env for _, env in config._ENV_OVERRIDES]


class ConfigTest(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        clean_env = {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}
        self._patches = [
            patch.dict(os.environ, clean_env, clear=True),
            patch("content_addressable.config.Path.cwd", return_value=self.root),
            patch("content_addressable.config.Path.home", return_value=self.root),
        ]
        for p in self._patches:
            p.start()

    def tearDown(self) -> None:
        for p in reversed(self._patches):
            p.stop()
        self._td.cleanup()

    def _write_global(self, text: str) -> None:
        cfg_dir = self.root / ".config" / "content-addressable"
        cfg_dir.mkdir(parents=True, exist_ok=True)
        (cfg_dir / "config.json").write_text(text, encoding="utf-8")

    def test_defaults_without_files(self) -> None:
        merged = config.load_config()
        self.assertEqual(merged["suffix"], "-temp")
        self.assertEqual(merged["algorithm"], "sha256")
        self.assertEqual(merged["chunk_size"], config.DEFAULT_CHUNK_SIZE)
        self.assertFalse(merged["debug"])

    def test_project_overrides_global(self) -> None:
        self._write_global('{"suffix": ".g", "algorithm": "sha1"}')
        (self.root / ".content-addressable.json").write_text('{"suffix": ".p"}', encoding="utf-8")

        merged = config.load_config()

        self.assertEqual(merged["suffix"], ".p")
        self.assertEqual(merged["algorithm"], "sha1")

    def test_env_overrides_files(self) -> None:
        (self.root / ".content-addressable.json").write_text('{"suffix": ".p"}', encoding="utf-8")
        with patch.dict(os.environ, {
            "CONTENT_ADDRESSABLE_SUFFIX": ".env",
            "CONTENT_ADDRESSABLE_CHUNK_SIZE": "16",
            "CONTENT_ADDRESSABLE_DEBUG": "TRUE",
        }):
            merged = config.load_config()

        self.assertEqual(merged["suffix"], ".env")
        self.assertEqual(merged["chunk_size"], 16)
        self.assertTrue(merged["debug"])

    def test_invalid_chunk_size_is_ignored(self) -> None:
        for val in ("lots", "0"):
            with patch.dict(os.environ, {"CONTENT_ADDRESSABLE_CHUNK_SIZE": val}):
                with self.assertLogs("content_addressable.config", level="WARNING"):
                    merged = config.load_config()
            self.assertEqual(merged["chunk_size"], config.DEFAULT_CHUNK_SIZE)

    def test_malformed_json_names_the_file(self) -> None:
        self._write_global("{not json")
        with self.assertRaises(ValueError) as ctx:
            config.load_config()
        self.assertIn("config.json", str(ctx.exception))

    def test_save_config_writes_single_scope(self) -> None:
        config.save_config({"store_dir": "blobs"}, config.Scope.PROJECT)

        self.assertEqual(config.load_raw_config(config.Scope.PROJECT), {"store_dir": "blobs"})
        self.assertEqual(config.load_raw_config(config.Scope.GLOBAL), {})
        self.assertEqual(config.load_config()["store_dir"], "blobs")
        self.assertFalse((self.root / ".content-addressable.json.tmp").exists())


if __name__ == "__main__":
    unittest.main()
