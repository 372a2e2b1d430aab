"""Read and write the line-oriented `.flatten` rule file."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flatten_copy.config import INIT_TEMPLATE, ExcludeRule, RuleOrigin, RuleSet
from flatten_copy.exceptions import (
    EmptyRulesFileError,
    RulesFileExistsError,
    RulesFileNotFoundError,
    UnreadableRulesFileError,
)
from flatten_copy.file_manipulation import validate_pattern
from flatten_copy.logging import logger

if TYPE_CHECKING:
    from pathlib import Path


def strip_comment(line: str) -> str:
    """Drop everything from the first `#` to the end of the line, then trim."""
    return line.split("#", 1)[0].strip()


def parse_rules(text: str) -> RuleSet:
    """Parse the content of a rule file.

    - `#` starts a comment running to the end of the line.
    - Lines left empty once comments are stripped are ignored.
    - A line starting with `!` is an exclude rule, the pattern being the rest of the line.
    - Every other line is an include rule.

    There is no escaping of `#` or `!`.

    Args:
        text (str): the rule file content

    Returns:
        RuleSet: include and exclude rules in declaration order
    """
    includes: list[str] = []
    excludes: list[ExcludeRule] = []
    for raw in text.splitlines():
        line = strip_comment(raw)
        if not line:
            continue
        if line.startswith("!"):
            excludes.append(ExcludeRule(pattern=line[1:], origin=RuleOrigin.RULES))
        else:
            includes.append(line)
    return RuleSet(includes=includes, excludes=excludes)


def load_rules(path: Path) -> RuleSet:
    """Load the rule file at `path`.

    Args:
        path (Path): the rule file

    Raises:
        RulesFileNotFoundError: if the file does not exist.
        UnreadableRulesFileError: if the file cannot be read or is not UTF-8 text.
        EmptyRulesFileError: if the file declares no pattern at all.
        InvalidPatternError: if a pattern can never name a file.

    Returns:
        RuleSet: the parsed rules
    """
    if not path.is_file():
        msg = f"No {path.name} file found. Run with --init to create one, or create it manually."
        raise RulesFileNotFoundError(file=path, message=msg)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise UnreadableRulesFileError(file=path, message=f"Cannot read {path.name}: {e}") from e
    rules = parse_rules(text)
    if rules.is_empty:
        msg = f"No file patterns found in {path.name}. Add some glob patterns, or run with --init for examples."
        raise EmptyRulesFileError(file=path, message=msg)
    for pattern in [*rules.includes, *(rule.pattern for rule in rules.excludes)]:
        validate_pattern(pattern)
    logger.info(
        "rules_loaded",
        file=str(path),
        includes=len(rules.includes),
        excludes=len(rules.excludes),
    )
    return rules


def load_gitignore_patterns(root: Path) -> list[ExcludeRule]:
    """Read `<root>/.gitignore` as exclude rules.

    Negated lines are skipped: on its own a negated pattern cannot remove anything.

    Args:
        root (Path): directory holding the `.gitignore`

    Returns:
        list[ExcludeRule]: one gitignore rule per pattern line, empty if there is no `.gitignore`
    """
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return []
    rules: list[ExcludeRule] = []
    for raw in gitignore.read_text(encoding="utf-8", errors="ignore").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("!"):
            logger.info("gitignore_negation_skipped", pattern=line)
            continue
        rules.append(ExcludeRule(pattern=line, origin=RuleOrigin.GITIGNORE))
    return rules


def write_init_file(path: Path) -> None:
    """Create a rule file holding the default patterns.

    Args:
        path (Path): where to write the rule file

    Raises:
        RulesFileExistsError: if `path` already exists.
    """
    if path.exists():
        msg = f"Existing {path.name} file found! Will not overwrite."
        raise RulesFileExistsError(file=path, message=msg)
    path.write_text(INIT_TEMPLATE, encoding="utf-8")
    logger.info("rules_file_created", file=str(path))
