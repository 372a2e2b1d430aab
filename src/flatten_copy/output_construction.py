from __future__ import annotations

from typing import TYPE_CHECKING

from flatten_copy.config import FLATTEN_FILE, CopyOutcome
from flatten_copy.file_manipulation import format_bytes

if TYPE_CHECKING:
    from pathlib import Path

    from flatten_copy.config import FileOutcome, RuleReport, RunReport


def outcome_line(outcome: FileOutcome, *, verbose: bool, dry_run: bool) -> str | None:
    """Render one file outcome, or None when nothing is shown for it.

    Dry-run copies and errors are always shown; skips and real copies only
    in verbose mode.

    Args:
        outcome (FileOutcome): the outcome to render
        verbose (bool): whether every file is listed
        dry_run (bool): whether the run only simulated the copies

    Returns:
        str | None: the line to print, if any
    """
    size = format_bytes(outcome.size or 0)
    match outcome.outcome:
        case CopyOutcome.WOULD_COPY:
            return f'  Would copy: "{outcome.source}" -> "{outcome.flat_name}" ({size})'
        case CopyOutcome.COPIED if verbose:
            return f'  "{outcome.source}" -> "{outcome.flat_name}" ({size})'
        case CopyOutcome.SKIPPED_SIZE if verbose:
            return f'  Skipping large file "{outcome.source}" ({size})'
        case CopyOutcome.SKIPPED_DUPLICATE if verbose:
            return f'  Skipping duplicate "{outcome.flat_name}"'
        case CopyOutcome.ERROR:
            action = "analyze" if dry_run else "copy"
            return f'  Failed to {action} "{outcome.source}": {outcome.error}'
    return None


def rule_lines(report: RuleReport, *, verbose: bool, dry_run: bool) -> list[str]:
    """Build the lines describing one include rule.

    Args:
        report (RuleReport): the engine report of the rule
        verbose (bool): list match counts, exclusions and every file
        dry_run (bool): whether the run only simulated the copies

    Returns:
        list[str]: lines to print, possibly empty
    """
    lines: list[str] = []
    if verbose and report.matched:
        lines.extend(("", f'Pattern "{report.pattern}" matched {report.matched} files'))
    if verbose:
        lines.extend(
            f'  Exclusion "{exclusion.rule.pattern}" filtered out {len(exclusion.removed)} files'
            for exclusion in report.exclusions
        )
    for outcome in report.outcomes:
        line = outcome_line(outcome, verbose=verbose, dry_run=dry_run)
        if line is not None:
            lines.append(line)
    return lines


def summary_lines(
    report: RunReport,
    *,
    target: Path,
    dry_run: bool,
    verbose: bool,
    show_stats: bool,
    rules_file: str = FLATTEN_FILE,
) -> list[str]:
    """Build the closing summary of a run.

    Args:
        report (RunReport): the engine report of the run
        target (Path): the target directory
        dry_run (bool): whether the run only simulated the copies
        verbose (bool): verbose mode also shows the statistics
        show_stats (bool): show elapsed time, skipped and error counts
        rules_file (str, optional): rule file named in the "nothing copied" hint.
            Defaults to FLATTEN_FILE.

    Returns:
        list[str]: lines to print
    """
    stats = report.stats
    lines: list[str] = []
    if verbose:
        lines.append("")
    if stats.copied > 0:
        if dry_run:
            lines.append(f"{stats.copied} files would be copied")
        else:
            lines.extend((f"{stats.copied} files copied to {target}", f"  Total size: {format_bytes(stats.total_bytes)}"))
    else:
        lines.extend((
            f"No files {'would be' if dry_run else 'were'} copied",
            f"  Check your patterns in {rules_file} - they might not match any files",
        ))

    if show_stats or verbose:
        lines.append(f"Operation took {round(stats.elapsed * 1000)}ms")
        if stats.skipped:
            lines.append(f"Skipped {stats.skipped} files (size limits, duplicates, etc.)")
        if stats.errors:
            lines.append(f"{stats.errors} files had errors")
    return lines
