"""CLI for content-addressable."""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Dict

from rich.console import Console
from rich.markup import escape

from . import config as cfg
from . import logging_setup
from .errors import ContentMismatchError, FileConflictError
from .store import ObjectState, hash_file, hash_stream, iter_objects, object_path, put_file, put_stream, verify_object

logger = logging.getLogger(__name__)

console = Console(stderr=True)
stdout = Console(highlight=False)


def _settings(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge config with command-line flags; flags win."""
    settings = cfg.load_config()
    for key in ("suffix", "algorithm", "store_dir"):
        val = getattr(args, key, None)
        if val is not None:
            settings[key] = val
    if getattr(args, "debug", False):
        settings["debug"] = True
    return settings


def _setup_logging(settings: Dict[str, Any]) -> None:
    logging_setup.configure_from_config(settings)


def _fail(message: object, rc: int = 1) -> int:
    console.print(f"[red]{escape(str(message))}[/red]")
    return rc


def _emit(value: str) -> None:
    """Print a machine-readable value on stdout without wrapping."""
    stdout.print(escape(value), soft_wrap=True)


def cmd_put(args: argparse.Namespace) -> int:
    if args.source == "-" and not args.oid:
        return _fail("--oid is required when reading from stdin.", rc=2)

    try:
        settings = _settings(args)
        _setup_logging(settings)
        store_dir = Path(settings["store_dir"])
        opts = {
            "suffix": settings["suffix"],
            "algorithm": settings["algorithm"],
            "chunk_size": int(settings["chunk_size"]),
        }
        if args.source == "-":
            oid = args.oid
            created = put_stream(store_dir, sys.stdin.buffer, oid, **opts)
        else:
            oid, created = put_file(store_dir, Path(args.source), args.oid, **opts)
    except FileConflictError as e:
        return _fail(f"{e} (another writer is storing this object)")
    except ContentMismatchError as e:
        return _fail(e)
    except ValueError as e:
        return _fail(e, rc=2)
    except OSError as e:
        logger.debug("put %s failed", args.source, exc_info=True)
        return _fail(e)

    logger.info("put %s into %s (created=%s)", oid, store_dir, created)
    _emit(oid)
    target = escape(str(object_path(store_dir, oid)))
    if created:
        console.print(f"[green]Created.[/green] {target}")
    else:
        console.print(f"[dim]Already present.[/dim] {target}")
    return 0


def cmd_hash(args: argparse.Namespace) -> int:
    try:
        settings = _settings(args)
        _setup_logging(settings)
        algorithm = settings["algorithm"]
        chunk_size = int(settings["chunk_size"])
        if args.source == "-":
            digest = hash_stream(sys.stdin.buffer, algorithm, chunk_size)
        else:
            digest = hash_file(Path(args.source), algorithm, chunk_size)
    except ValueError as e:
        return _fail(e, rc=2)
    except OSError as e:
        return _fail(e)
    _emit(digest)
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    from rich.table import Table

    table = Table()
    table.add_column("OID", overflow="fold")
    table.add_column("State", no_wrap=True)
    table.add_column("Path", overflow="fold")

    styles = {
        "ok": "green",
        "mismatch": "red",
        "staging": "yellow",
        "missing": "red",
    }
    counts: Counter[str] = Counter()

    def _row(oid: str, state: str, path: Path) -> None:
        counts[state] += 1
        table.add_row(escape(oid), f"[{styles[state]}]{state}[/{styles[state]}]", escape(str(path)))

    try:
        settings = _settings(args)
        _setup_logging(settings)
        store_dir = Path(settings["store_dir"])
        algorithm = settings["algorithm"]
        table.title = escape(f"content-addressable objects in {store_dir}")
        if args.oids:
            for oid in args.oids:
                path = object_path(store_dir, oid)
                if not path.is_file():
                    _row(oid, "missing", path)
                elif verify_object(path, algorithm):
                    _row(oid, ObjectState.OK.value, path)
                else:
                    _row(oid, ObjectState.MISMATCH.value, path)
        else:
            for status in iter_objects(store_dir, settings["suffix"], algorithm):
                _row(status.oid, status.state.value, status.path)
    except ValueError as e:
        return _fail(e, rc=2)
    except OSError as e:
        return _fail(e)

    console.print(table)
    summary = ", ".join(f"{counts[state]} {state}" for state in styles if counts[state])
    console.print(summary or "[dim]No objects.[/dim]")
    return 1 if counts["mismatch"] or counts["missing"] else 0


def _version() -> str:
    try:
        return version("content-addressable")
    except PackageNotFoundError:
        return "unknown"


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--algorithm", help="hashlib algorithm name (default: sha256)")
    parser.add_argument("--debug", action="store_true", help="Log debug output")


def _add_store_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--store", dest="store_dir", help="Object directory")
    parser.add_argument("--suffix", help="Staging file suffix (default: -temp)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content-addressable",
        description="Atomic, content-verified file storage",
    )
    sub = parser.add_subparsers(dest="command")

    p_put = sub.add_parser("put", help="Store a file under its content hash")
    p_put.add_argument("source", help="File to store, or '-' for stdin")
    p_put.add_argument("--oid", help="Expected OID; the write fails if the content differs")
    _add_store_flags(p_put)
    _add_common_flags(p_put)

    p_hash = sub.add_parser("hash", help="Print the content hash of a file")
    p_hash.add_argument("source", help="File to hash, or '-' for stdin")
    _add_common_flags(p_hash)

    p_verify = sub.add_parser("verify", help="Re-hash stored objects")
    p_verify.add_argument("oids", nargs="*", help="OIDs to check (default: all)")
    _add_store_flags(p_verify)
    _add_common_flags(p_verify)

    sub.add_parser("version", help="Show version")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(0)

    commands = {
        "put": cmd_put,
        "hash": cmd_hash,
        "verify": cmd_verify,
        "version": lambda _: _emit(_version()) or 0,
    }
    sys.exit(commands[args.command](args))


if __name__ == "__main__":
    main()
