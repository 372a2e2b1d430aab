from __future__ import annotations

import math
import os
import re
import shutil
from functools import lru_cache
from pathlib import Path

import pathspec
from wcmatch import glob

from flatten_copy.config import CLEAN_GLOB, DROPPED_SEGMENTS, SIZE_UNITS, ExcludeRule, RuleOrigin
from flatten_copy.exceptions import CleanTargetError, InvalidFileSizeError, InvalidPatternError
from flatten_copy.logging import logger

_SIZE_PATTERN = re.compile(r"^(?P<value>\d+(?:\.\d+)?)(?P<unit>B|KB|MB|GB)$", re.IGNORECASE)
_SEPARATORS = re.compile("[" + re.escape("".join({"/", os.sep, os.altsep or "/"})) + "]")

GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE
MATCH_FLAGS = GLOB_FLAGS | glob.FORCEUNIX


def flatten_path(source: str) -> str:
    """Encode a path as a single file name.

    Underscores are doubled first, so the single underscore used to join the
    path components stays unambiguous: `lib/nav_bar.js` becomes
    `lib_nav__bar.js`. Empty components and the `.` and `node_modules`
    segments are dropped, which means paths differing only in those segments
    share a flattened name.

    Args:
        source (str): the path to flatten, relative or absolute

    Returns:
        str: the flattened file name, free of path separators
    """
    escaped = source.replace("_", "__")
    parts = _SEPARATORS.split(escaped)
    return "_".join(p for p in parts if p and p not in DROPPED_SEGMENTS)


def parse_file_size(text: str) -> int:
    """Convert a size such as `1MB`, `500kb` or `1.5GB` to a byte count.

    Args:
        text (str): a number immediately followed by B, KB, MB or GB (case-insensitive)

    Raises:
        InvalidFileSizeError: if `text` does not follow that format.

    Returns:
        int: the size in bytes, rounded down
    """
    match = _SIZE_PATTERN.match(text.strip())
    if match is None:
        msg = f"Invalid file size format: {text}. Use format like: 1MB, 500KB, 2GB"
        raise InvalidFileSizeError(value=text, message=msg)
    return math.floor(float(match["value"]) * SIZE_UNITS[match["unit"].upper()])


def format_bytes(size: int) -> str:
    """Format a byte count for humans: `512B`, `1.5KB`, `3.0MB`.

    Args:
        size (int): number of bytes

    Returns:
        str: the size in the largest unit up to GB that keeps the value >= 1
    """
    units = list(SIZE_UNITS)
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:  # noqa: PLR2004
        value /= 1024
        idx += 1
    return f"{value:.{1 if idx else 0}f}{units[idx]}"


def posix_path(path: str) -> str:
    """Normalise a path for pattern matching: forward slashes, no leading `./`."""
    out = path.replace("\\", "/")
    while out.startswith("./"):
        out = out[2:]
    return out


def validate_pattern(pattern: str) -> None:
    """Reject patterns that can never name a file: empty once normalised, or holding a NUL byte.

    Raises:
        InvalidPatternError: if the pattern is unusable.
    """
    if "\x00" in pattern:
        raise InvalidPatternError(pattern=pattern, message=f"Invalid glob pattern {pattern!r}: NUL byte")
    if posix_path(pattern) in {"", "."}:
        raise InvalidPatternError(pattern=pattern, message=f"Invalid glob pattern {pattern!r}: empty pattern")


def glob_files(pattern: str, *, follow_symlinks: bool = False) -> list[str]:
    """Resolve one include pattern against the working tree.

    Supports `*`, `**`, `?`, bracket classes and `{a,b}` braces. Wildcards do
    not match names starting with a dot, so `**/*.js` stays out of `.git/` or
    `.cache/` unless the pattern names them. Absolute patterns are globbed
    from their anchor. Only regular files are returned, sorted so that the
    discovery order is stable between runs.

    Args:
        pattern (str): glob pattern, relative to the current working directory
        follow_symlinks (bool, optional): let `**` descend into symlinked
            directories. Defaults to False.

    Raises:
        InvalidPatternError: if the pattern is unusable.

    Returns:
        list[str]: the matching file paths
    """
    validate_pattern(pattern)
    flags = (GLOB_FLAGS | glob.FOLLOW) if follow_symlinks else GLOB_FLAGS
    matches = glob.glob(posix_path(pattern), flags=flags)
    return sorted({p for p in matches if Path(p).is_file()})


@lru_cache(maxsize=256)
def _gitignore_spec(pattern: str) -> pathspec.GitIgnoreSpec:
    return pathspec.GitIgnoreSpec.from_lines([posix_path(pattern)])


def matches_rule(path: str, rule: ExcludeRule) -> bool:
    """Check if a path is matched by an exclude rule.

    Patterns from the rule file are matched against the whole path with glob
    semantics: `*.js` only matches top-level files, `**/*.js` matches at any
    depth, and `src/*` or `dist` never match files below those directories.
    Patterns imported from `.gitignore` keep their gitignore meaning.

    Args:
        path (str): the path to test, as returned by the glob resolver
        rule (ExcludeRule): the exclude rule to test against

    Returns:
        bool: True if the rule matches the path
    """
    if rule.origin == RuleOrigin.GITIGNORE:
        return _gitignore_spec(rule.pattern).match_file(posix_path(path))
    return glob.globmatch(posix_path(path), posix_path(rule.pattern), flags=MATCH_FLAGS)


def file_size(path: str) -> int:
    """Return the size of `path` in bytes, following symlinks."""
    return Path(path).stat().st_size


def copy_file(source: str, destination: Path) -> None:
    """Copy the contents of `source` to `destination`, replacing it."""
    shutil.copyfile(source, destination)


def clean_target(target: Path) -> list[Path]:
    """Delete the top-level files of `target` matching `*.*`.

    Args:
        target (Path): the target directory

    Raises:
        CleanTargetError: on the first file that cannot be removed.

    Returns:
        list[Path]: the removed files
    """
    removed: list[Path] = []
    for file in sorted(target.glob(CLEAN_GLOB)):
        if not file.is_file():
            continue
        try:
            file.unlink()
        except OSError as e:
            logger.error("clean_failed", file=str(file), error=str(e))
            raise CleanTargetError(file=file, message=f'Failed to remove "{file}": {e}') from e
        removed.append(file)
    logger.info("target_cleaned", target=str(target), removed=len(removed))
    return removed
