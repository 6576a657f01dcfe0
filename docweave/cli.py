"""Command-line interface for docweave."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from enum import IntEnum
from pathlib import Path
from typing import Optional

from docweave.config import (
    DEFAULT_CONFIG_PATH,
    FALLBACK_CONFIG_PATH,
    ConfigError,
    WeaveConfig,
    load_config,
)
from docweave.controller import RunResult, run
from docweave.discovery import discover_documents
from docweave.report import RunMode


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1
    FILE_SYSTEM_ERROR = 2
    FAILED = 3


def _get_config(config_path: Optional[str], root: Path) -> WeaveConfig:
    """Load config from path or use defaults.

    Search order:
    1. Explicit --config path
    2. docweave.yaml in the root
    3. .docweave/config.yaml in the root
    4. Built-in defaults
    """
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(
                f"Config file not found: {config_path}",
                file=config_path,
                error_type="config_missing",
            )
        return load_config(path)

    for candidate in (root / DEFAULT_CONFIG_PATH, root / FALLBACK_CONFIG_PATH):
        if candidate.exists():
            config = load_config(candidate)
            # Config files below the root still describe the root
            if candidate.parent != root:
                config = replace(config, root_dir=str(root))
            return config

    return replace(load_config(root / DEFAULT_CONFIG_PATH), root_dir=str(root))


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr, force=True)


def print_summary(result: RunResult) -> None:
    """Print run counts and the verdict message to stdout."""
    log = result.log
    print(f"\n=== docweave {result.mode.value} ===")
    print(f"Documents: {result.documents}")
    print(f"Warnings: {log.n_warnings}")
    print(f"Errors: {log.n_errors}")
    if result.mode is RunMode.CHECK:
        print(f"Outdated: {log.n_outdated}")
    else:
        print(f"Written: {log.n_updated}")
    print()
    print(result.message)


def cmd_run(args: argparse.Namespace) -> int:
    """Run check or apply over the selected documents."""
    root = Path(args.root).resolve() if args.root else Path.cwd()

    try:
        config = _get_config(args.config, root)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    if args.paths:
        paths = [Path(p) if Path(p).is_absolute() else Path.cwd() / p for p in args.paths]
    else:
        if not config.root_path.is_dir():
            print(f"Error: root directory not found: {config.root_path}", file=sys.stderr)
            return ExitCode.FILE_SYSTEM_ERROR
        paths = discover_documents(config)

    mode = RunMode.CHECK if args.command == "check" else RunMode.APPLY
    try:
        result = run(config, paths, mode)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    if not args.quiet:
        print_summary(result)
    elif not result.success:
        print(result.message, file=sys.stderr)

    return ExitCode.SUCCESS if result.success else ExitCode.FAILED


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Root directory (defaults to current directory)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log every update")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only print failures")
    parser.add_argument(
        "paths",
        nargs="*",
        help="Documents to process (default: discovered from include/exclude patterns)",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="docweave",
        description="Keep documentation and runnable samples in sync",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Report outdated documents and samples (does not modify anything)",
    )
    _add_common_args(check_parser)

    apply_parser = subparsers.add_parser(
        "apply",
        help="Rewrite outdated documents and samples",
    )
    _add_common_args(apply_parser)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    return cmd_run(args)


if __name__ == "__main__":
    sys.exit(main())
