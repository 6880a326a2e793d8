"""Command-line entry point: ``spec-sync``.

Subcommands:

- ``diff BASELINE LOCAL REMOTE``: print the categorised remote changes.
- ``sync SPEC REMOTE``: merge safe remote enrichment into SPEC.

Reports go to stdout; logging goes to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import load_config
from .config_schema import UnifiedConfig
from .logger import setup_logging
from .reconcile.codec import DocumentCodec
from .reconcile.engine import ReconciliationEngine
from .reconcile.errors import ReconcileError
from .reconcile.reporter import (
    change_set_to_json,
    format_change_summary,
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)
from .reconcile.resolver import STRATEGIES
from .reconcile.workflow import FileRemoteStore, SpecSync, build_classifier

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spec-sync",
        description="Reverse-sync enrichment from a remote copy of an API spec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what changed remotely since the last sync
  spec-sync diff api.last-sync.yaml api.yaml remote.json

  # Preview a reverse sync without writing anything
  spec-sync sync api.yaml remote.json --dry-run

  # Merge, letting remote edits win on conflicts
  spec-sync sync api.yaml remote.json --strategy remote-wins

  # Take the remote value for one reviewed conflict only
  spec-sync sync api.yaml remote.json --strategy interactive \\
      --accept paths./tasks.get.description
        """,
    )
    parser.add_argument(
        "--config", type=Path, help="Config file (searched before the defaults)"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also append log records to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"spec-sync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    diff_cmd = sub.add_parser("diff", help="Categorise remote changes")
    diff_cmd.add_argument("baseline", type=Path)
    diff_cmd.add_argument("local", type=Path)
    diff_cmd.add_argument("remote", type=Path)

    sync_cmd = sub.add_parser("sync", help="Merge safe remote changes")
    sync_cmd.add_argument("spec", type=Path, help="Local spec file")
    sync_cmd.add_argument("remote", help="Remote document file")
    sync_cmd.add_argument(
        "--output", type=Path, help="Write the merged spec here instead"
    )
    sync_cmd.add_argument(
        "--strategy", choices=STRATEGIES, help="Conflict strategy"
    )
    sync_cmd.add_argument(
        "--accept",
        action="append",
        default=[],
        metavar="ADDRESS",
        help="Apply this needs-review change (interactive strategy; repeatable)",
    )
    sync_cmd.add_argument(
        "--dry-run", action="store_true", help="Report without writing"
    )
    sync_cmd.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not back up the spec before overwriting it",
    )

    for cmd in (diff_cmd, sync_cmd):
        cmd.add_argument(
            "--json", action="store_true", help="Print JSON instead of text"
        )
        cmd.add_argument(
            "--lenient",
            action="store_true",
            help="Treat unclassified paths as enrichment",
        )

    return parser


def _cli_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {
        "log_file": args.log_file,
        "log_format": args.log_format,
    }
    if args.lenient:
        overrides["strict_mode"] = False
    if args.command == "sync":
        overrides["conflict_strategy"] = args.strategy
        if args.no_backup:
            overrides["backup"] = False
    return overrides


def _cmd_diff(args: argparse.Namespace, config: UnifiedConfig) -> None:
    codec = DocumentCodec()
    engine = ReconciliationEngine(build_classifier(config.reconcile))
    change_set = engine.reconcile(
        codec.read(args.baseline), codec.read(args.local), codec.read(args.remote)
    )
    if args.json:
        print(json.dumps(change_set_to_json(change_set), indent=2))
    else:
        print(format_change_summary(change_set))
        print()
        print(format_dry_run_preview(change_set))


def _cmd_sync(args: argparse.Namespace, config: UnifiedConfig) -> None:
    sync = SpecSync(FileRemoteStore(), config.reconcile)
    report = sync.run(
        args.spec,
        args.remote,
        dry_run=args.dry_run,
        output_path=args.output,
        approved=args.accept,
    )
    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    elif args.dry_run:
        print(format_dry_run_preview(report.change_set))
    else:
        print(format_sync_report(report))


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the subcommand and return the exit status."""
    args = build_parser().parse_args(argv)
    load_dotenv()

    try:
        config = load_config(_cli_overrides(args), config_path=args.config)
    except (ValueError, OSError, yaml.YAMLError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        debug=args.debug,
        log_file=config.logging.file,
        debug_format=config.logging.format,
        level=config.logging.level,
    )

    try:
        if args.command == "diff":
            _cmd_diff(args, config)
        else:
            _cmd_sync(args, config)
    except (ReconcileError, ValueError, OSError, yaml.YAMLError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
