"""Logging configuration for the content-addressable CLI.

The writer in :mod:`content_addressable.file` never logs. Only the store
helpers and the CLI write to the ``content_addressable`` logger.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Mapping

_PACKAGE = "content_addressable"
_LOG_BYTES = 1 * 1024 * 1024  # 1 MiB per file
_LOG_BACKUPS = 3

# Several processes may store into one directory; the pid tells their lines apart.
_FILE_FORMAT = "%(asctime)s [%(levelname)s] pid=%(process)d %(name)s: %(message)s"


def _file_handler(log_file: Path) -> logging.Handler | None:
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as exc:
        print(
            f"content-addressable: WARNING: could not open log file {log_file}: {exc}",
            file=sys.stderr,
        )
        return None
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return fh


def configure(log_file: Path, *, debug: bool = False, reconfigure: bool = False) -> None:
    """Attach a rotating file handler and a stderr handler to the package logger.

    Idempotent unless *reconfigure* is True. Stderr only shows warnings, or
    everything when *debug* is set.
    """
    pkg_logger = logging.getLogger(_PACKAGE)
    if pkg_logger.handlers and not reconfigure:
        return
    for handler in list(pkg_logger.handlers):
        handler.close()
    pkg_logger.handlers.clear()

    pkg_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    fh = _file_handler(log_file)
    if fh is not None:
        pkg_logger.addHandler(fh)

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logging.DEBUG if debug else logging.WARNING)
    sh.setFormatter(logging.Formatter("content-addressable: %(message)s"))
    pkg_logger.addHandler(sh)

    pkg_logger.propagate = False


def configure_from_config(config: Mapping[str, Any], *, reconfigure: bool = False) -> Path:
    """Configure logging from a merged config (see :func:`config.load_config`).

    Returns the resolved log file path.
    """
    log_file = Path(config["log_file"]).expanduser()
    configure(log_file, debug=bool(config.get("debug", False)), reconfigure=reconfigure)
    return log_file
