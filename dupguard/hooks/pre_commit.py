#!/usr/bin/env python3
"""Pre-commit hook for dupguard duplication checks.

This script is designed to be called by the pre-commit framework or from a
plain ``.git/hooks/pre-commit`` script. It checks staged files for
duplicated blocks and blocks the commit if any are found.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from dupguard.config import ConfigError, load_config, validate_config
from dupguard.detectors import CrossFileDuplicationDetector
from dupguard.logging_config import configure_logging, get_logger, log_operation
from dupguard.reporters import ConsoleReporter
from dupguard.sources import get_staged_files, load_source_units
from dupguard.validation import ValidationError, validate_extensions, validate_project_root

logger = get_logger(__name__)

ERROR_EXIT_CODE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="dupguard pre-commit hook for code duplication checks"
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="Files to check (provided by pre-commit framework; default: staged files)"
    )
    parser.add_argument(
        "--warn-only",
        action="store_true",
        help="Report duplicates but never block the commit"
    )
    parser.add_argument(
        "--min-lines",
        type=int,
        default=None,
        help="Block size in lines (overrides config, default: 10)"
    )
    parser.add_argument(
        "--min-similarity",
        type=float,
        default=None,
        help="Similarity threshold in percent (overrides config, default: 80)"
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Extra path pattern to exclude (repeatable)"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config file (default: search for .duprc / dupguard.toml)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: WARNING)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for pre-commit hook.

    Returns:
        0 if checks pass, 1 if duplicates were found, 2 on errors
    """
    args = build_parser().parse_args(argv)
    console = Console(stderr=True)

    try:
        config = load_config(config_file=args.config)
    except ConfigError as e:
        console.print(f"[red]❌ Config error: {e}[/red]")
        return ERROR_EXIT_CODE

    configure_logging(
        level=args.log_level or "WARNING",
        json_output=(config.logging.format == "json"),
        log_file=config.logging.file,
    )

    config = config.with_overrides(
        duplication={
            "min_lines": args.min_lines,
            "min_similarity": args.min_similarity,
            "excluded_paths": (
                list(config.duplication.excluded_paths) + args.exclude if args.exclude else None
            ),
        }
    )

    try:
        for warning in validate_config(config):
            logger.warning(warning)
    except ConfigError as e:
        console.print(f"[red]❌ Config error: {e}[/red]")
        return ERROR_EXIT_CODE

    try:
        root = validate_project_root(config.duplication.project_root or str(Path.cwd()))
    except ValidationError as e:
        console.print(f"[red]❌ {e}[/red]")
        return ERROR_EXIT_CODE

    extensions = validate_extensions(config.duplication.extensions)
    if args.files:
        files_to_check = [f for f in args.files if f.lower().endswith(tuple(extensions))]
    else:
        files_to_check = get_staged_files(root, extensions)

    if not files_to_check:
        console.print("✅ No files to check")
        return 0

    described = "file(s)" if args.files else "staged file(s)"
    console.print(f"🔍 Checking {len(files_to_check)} {described} for duplication...")

    try:
        units = load_source_units(files_to_check, root)
        detector = CrossFileDuplicationDetector(config.to_engine_config())
        with log_operation("pre_commit", logger, file_count=len(units)):
            result = detector.scan(units)
    except Exception as e:
        console.print(f"[red]❌ Error during duplication check: {e}[/red]")
        logger.exception("Pre-commit hook failed")
        return ERROR_EXIT_CODE

    if not result.has_duplicates:
        console.print("✅ No code duplication found in staged files")
        return 0

    ConsoleReporter(console=console, show_stats=False).render(result)

    if args.warn_only:
        console.print("⚠️  Commit allowed (--warn-only)")
        return 0

    console.print(f"\n❌ Commit blocked: {len(result.groups)} duplicated block group(s)")
    console.print("   Refactor the duplicates above or use 'git commit --no-verify' to bypass")
    return 1


if __name__ == "__main__":
    sys.exit(main())
