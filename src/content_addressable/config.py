"""content-addressable configuration.

Config files:
  - Global:  ~/.config/content-addressable/config.json
  - Project: .content-addressable.json (current directory)

Merge order: defaults → global → project → environment variables (highest priority).
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from .file import DEFAULT_ALGORITHM, DEFAULT_SUFFIX
from .file_io import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class Scope(str, Enum):
    GLOBAL = "global"
    PROJECT = "project"


def config_dir() -> Path:
    return Path.home() / ".config" / "content-addressable"


def config_path(scope: Scope) -> Path:
    if scope is Scope.PROJECT:
        return Path.cwd() / ".content-addressable.json"
    return config_dir() / "config.json"


def default_config() -> Dict[str, Any]:
    return {
        "suffix": DEFAULT_SUFFIX,
        "algorithm": DEFAULT_ALGORITHM,
        "store_dir": "objects",
        "chunk_size": DEFAULT_CHUNK_SIZE,
        "debug": False,
        "log_file": str(config_dir() / "content-addressable.log"),
    }


def _read_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config in {path}: expected an object")
    return data


# Mapping: config key → env var name
_ENV_OVERRIDES: list[tuple[str, str]] = [
    ("suffix", "CONTENT_ADDRESSABLE_SUFFIX"),
    ("algorithm", "CONTENT_ADDRESSABLE_ALGORITHM"),
    ("store_dir", "CONTENT_ADDRESSABLE_STORE"),
    ("chunk_size", "CONTENT_ADDRESSABLE_CHUNK_SIZE"),
    ("debug", "CONTENT_ADDRESSABLE_DEBUG"),
    ("log_file", "CONTENT_ADDRESSABLE_LOG_FILE"),
]


def load_config() -> Dict[str, Any]:
    """Load merged config: defaults → global → project → env vars."""
    merged = default_config()
    merged.update(_read_json(config_path(Scope.GLOBAL)))
    merged.update(_read_json(config_path(Scope.PROJECT)))
    _apply_env_overrides(merged)
    return merged


def load_raw_config(scope: Scope) -> Dict[str, Any]:
    """Load config for a specific scope without merge/env overrides."""
    return _read_json(config_path(scope))


def _apply_env_overrides(merged: Dict[str, Any]) -> None:
    for config_key, env_var in _ENV_OVERRIDES:
        val = os.environ.get(env_var)
        if not val:
            continue
        if config_key == "chunk_size":
            try:
                size = int(val)
            except ValueError:
                logger.warning("Invalid %s value %r; ignoring", env_var, val)
                continue
            if size <= 0:
                logger.warning("Invalid %s value %r; ignoring", env_var, val)
                continue
            merged[config_key] = size
        elif config_key == "debug":
            merged[config_key] = val.lower() == "true"
        else:
            merged[config_key] = val


def save_config(data: Dict[str, Any], scope: Scope) -> None:
    """Save config to the specified scope."""
    atomic_write(config_path(scope), (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8"))
