"""
`import-manager` command line.

Commands
--------
import-manager inspect <file>                       -- list the import units of a file
import-manager inspect <file> --json                -- full unit objects as JSON
import-manager apply <file> --script <script.yaml>  -- print the edited source
import-manager apply <file> --script <script.yaml> --diff
import-manager apply <file> --script <script.yaml> --write
"""

from __future__ import annotations

import argparse
import difflib
import json
import logging
import sys
from typing import Optional

import yaml

from .config import Config
from .errors import ImportManagerError
from .script import run_script
from .session import ImportManager

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read(path: str) -> str:
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def _load_script(path: str) -> list:
    """Load unit sections from a YAML file (a list, or a mapping with 'units')."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if isinstance(data, dict):
        data = data.get("units", [])
    if data is None:
        return []
    return data if isinstance(data, list) else [data]


def _open_session(args: argparse.Namespace) -> ImportManager:
    config = Config.load(args.config)
    return ImportManager(_read(args.file), args.file, config=config)


def compute_diff(filename: str, old: str, new: str) -> str:
    """Unified diff between *old* and *new*, empty if unchanged."""
    diff = difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
    )
    return "".join(diff)


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------

def _cmd_inspect(args: argparse.Namespace) -> None:
    manager = _open_session(args)
    if args.json:
        print(json.dumps([u.to_dict() for u in manager.units()], indent=2))
    else:
        print(manager.list_units())


def _cmd_apply(args: argparse.Namespace) -> None:
    manager = _open_session(args)
    run_script(manager, _load_script(args.script))
    result = str(manager)

    if args.diff:
        diff = compute_diff(args.file, manager.source, result)
        print(diff if diff else f"(no changes for {args.file})")
    elif args.write:
        if manager.has_changed():
            with open(args.file, "w", encoding="utf-8") as fh:
                fh.write(result)
            print(f"Updated {args.file}")
        else:
            print(f"(no changes for {args.file})")
    else:
        sys.stdout.write(result)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="import-manager",
        description="Inspect and edit import statements of JavaScript files",
    )
    parser.add_argument("--config", default=None,
                        help="Path to .importmanager.yaml config file")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # --- inspect ---
    inspect_p = subparsers.add_parser("inspect", help="List the import units of a file")
    inspect_p.add_argument("file", help="JavaScript source file")
    inspect_p.add_argument("--json", action="store_true",
                           help="Machine-readable JSON output")
    inspect_p.set_defaults(func=_cmd_inspect)

    # --- apply ---
    apply_p = subparsers.add_parser("apply", help="Apply an action script to a file")
    apply_p.add_argument("file", help="JavaScript source file")
    apply_p.add_argument("--script", required=True,
                         help="YAML file with unit sections")
    output = apply_p.add_mutually_exclusive_group()
    output.add_argument("--diff", action="store_true",
                        help="Print a unified diff instead of the result")
    output.add_argument("--write", action="store_true",
                        help="Write the result back to the file")
    apply_p.set_defaults(func=_cmd_apply)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the ``import-manager`` command.

    Returns the process exit code: 0 on success, 1 on an engine error,
    2 on a usage error.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Configure logging if not already configured
    if not logging.root.handlers:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(levelname)s  %(name)s  %(message)s",
        )

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        args.func(args)
    except ImportManagerError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
