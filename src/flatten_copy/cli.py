"""
flatten_copy: collect project files into a single flat directory.

Overview
--------
Glob patterns are read from a `.flatten` rule file, one per line. Every
matching file is copied into one target directory and renamed so that its
original location survives in the name:

    src/components/Button.tsx  ->  src_components_Button.tsx
    lib/nav_bar.js             ->  lib_nav__bar.js

Underscores already present are doubled before path separators become single
underscores, so names stay unambiguous.

Rule file
---------
    # comment
    src/**/*.ts        include rule
    !**/*.test.*       exclude rule

Usage
-----
    flatten-copy --init              # create a .flatten file
    flatten-copy --dry-run           # preview what would be copied
    flatten-copy --clean --stats     # clean the target and show statistics
    flatten-copy --max-size 1MB out  # skip files larger than 1MB, copy to ./out
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from flatten_copy import __version__
from flatten_copy.engine import RuleEngine
from flatten_copy.exceptions import FlattenError
from flatten_copy.file_manipulation import clean_target, format_bytes, parse_file_size
from flatten_copy.logging import logger, setup_logging
from flatten_copy.output_construction import rule_lines, summary_lines
from flatten_copy.rules_file import load_gitignore_patterns, load_rules, write_init_file
from flatten_copy.settings import Settings, default_rules_file, default_target, load_environment

if TYPE_CHECKING:
    from collections.abc import Sequence

EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    p = argparse.ArgumentParser(
        prog="flatten-copy",
        description="Copy the files selected by a .flatten rule file into one flat directory.",
        epilog="Use # for comments and ! to exclude files in the rule file.",
    )
    p.add_argument(
        "target",
        nargs="?",
        default=default_target(),
        help="Directory to copy flattened files to (default: ../<project>-flatten-flattened).",
    )
    p.add_argument("-i", "--init", action="store_true", help="Initialize the rule file.")
    p.add_argument("-c", "--clean", action="store_true", help="Clean target directory before copying files.")
    p.add_argument("-s", "--symlinks", action="store_true", help="Follow symbolic links (use with caution).")
    p.add_argument("-v", "--verbose", action="store_true", help="Show each file as it's copied.")
    p.add_argument("-n", "--dry-run", action="store_true", help="Show what would be copied without copying.")
    p.add_argument("-g", "--gitignore", action="store_true", help="Respect .gitignore patterns.")
    p.add_argument(
        "--max-size",
        type=str,
        default="",
        metavar="SIZE",
        help="Maximum file size to copy (e.g. 1MB, 500KB). A size of 0 means no limit.",
    )
    p.add_argument("--stats", action="store_true", help="Show detailed statistics after operation.")
    p.add_argument(
        "--rules-file",
        type=str,
        default=default_rules_file(),
        help="Rule file (default: .flatten).",
    )
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line arguments into run settings.

    Args:
        argv (Sequence[str] | None, optional): arguments, `sys.argv[1:]` when None.

    Returns:
        Settings: the settings of the run
    """
    load_environment()
    args = build_parser().parse_args(argv)
    return Settings(**vars(args))


def prepare_target(settings: Settings) -> None:
    """Create the target directory and clean it if requested. Nothing happens in dry-run mode."""
    if settings.dry_run:
        return
    target = settings.target
    if not target.exists():
        target.mkdir(parents=True, exist_ok=True)
        if settings.verbose:
            print(f"Created target directory: {target}")
    if settings.clean:
        removed = clean_target(target)
        if removed:
            print(f"Cleaned {len(removed)} existing files from {target}")
        elif settings.verbose:
            print(f"No existing files to clean in {target}")


def run(settings: Settings) -> int:
    """Execute one flatten run from validated settings.

    Args:
        settings (Settings): the settings of the run

    Raises:
        FlattenError: on configuration errors, before any file is processed.

    Returns:
        int: the process exit code
    """
    rules_path = Path(settings.rules_file)
    if settings.init:
        write_init_file(rules_path)
        print(f"Created {rules_path.name} with default patterns")
        print("Edit the file to customize which files to include")
        return EXIT_SUCCESS

    rules = load_rules(rules_path)
    max_size = parse_file_size(settings.max_size) if settings.max_size else None
    max_size = max_size or None  # 0B means no limit

    prepare_target(settings)

    excludes = list(rules.excludes)
    if settings.gitignore:
        gitignore_rules = load_gitignore_patterns(rules_path.resolve().parent)
        excludes.extend(gitignore_rules)
        if settings.verbose and gitignore_rules:
            print(f"  Added {len(gitignore_rules)} patterns from .gitignore")

    if settings.dry_run:
        print("DRY RUN - No files will be copied")
    if settings.verbose:
        print(f"Found {len(rules.includes)} inclusion rules and {len(excludes)} exclusion rules")
        if max_size is not None:
            print(f"Maximum file size: {format_bytes(max_size)}")

    engine = RuleEngine(
        settings.target,
        max_size=max_size,
        dry_run=settings.dry_run,
        follow_symlinks=settings.symlinks,
    )
    report = engine.run(rules.includes, excludes)

    for rule_report in report.rules:
        for line in rule_lines(rule_report, verbose=settings.verbose, dry_run=settings.dry_run):
            print(line)
    for line in summary_lines(
        report,
        target=settings.target,
        dry_run=settings.dry_run,
        verbose=settings.verbose,
        show_stats=settings.stats,
        rules_file=rules_path.name,
    ):
        print(line)
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """Command line entry point.

    Args:
        argv (Sequence[str] | None, optional): arguments, `sys.argv[1:]` when None.

    Returns:
        int: 0 on success, including runs where some files failed; 1 on configuration errors
    """
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        return run(settings)
    except FlattenError as e:
        logger.error("run_aborted", error=str(e), kind=type(e).__name__)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
