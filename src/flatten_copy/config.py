from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


FLATTEN_FILE = ".flatten"
TARGET_SUFFIX = "-flatten-flattened"

# Copied files above this size trigger a warning log.
LARGE_FILE_WARNING_SIZE = 10 * 1024 * 1024

SIZE_UNITS: dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}

# Path segments that never appear in a flattened name.
DROPPED_SEGMENTS = frozenset({".", "node_modules"})

# Glob matched against the target directory by --clean.
CLEAN_GLOB = "*.*"

INIT_TEMPLATE = """# Flatten Configuration File
#
# List file patterns to include (one per line)
# Use # for comments and ! to exclude files

# Common project files
package.json
README.md

# Source code (adjust patterns for your project)
src/**/*.js
src/**/*.ts
src/**/*.jsx
src/**/*.tsx

# Configuration files
tsconfig.json
*.config.js
*.config.ts

# Exclusion rules (files to ignore)
!**/*.d.ts
!**/*.test.*
!**/*.spec.*
!**/node_modules/**
!**/.git/**
!**/dist/**
!**/build/**
"""


class CopyOutcome(StrEnum):
    """What happened to one file matched by an include rule."""

    COPIED = "copied"
    WOULD_COPY = "would-copy"
    SKIPPED_SIZE = "skipped-size"
    SKIPPED_DUPLICATE = "skipped-duplicate"
    ERROR = "error"


class RuleOrigin(StrEnum):
    """Where an exclude rule comes from, which decides its matching semantics."""

    RULES = "rules"
    GITIGNORE = "gitignore"


class ExcludeRule(BaseModel):
    """A glob pattern removing files from an include rule's candidates."""

    model_config = ConfigDict(frozen=True)

    pattern: str = Field(..., description="Glob pattern, without the leading '!'")
    origin: RuleOrigin = Field(default=RuleOrigin.RULES, description="Rule file or .gitignore")


class RuleSet(BaseModel):
    """Include and exclude rules parsed from a rule file, in declaration order."""

    model_config = ConfigDict(frozen=True)

    includes: list[str] = Field(default_factory=list)
    excludes: list[ExcludeRule] = Field(default_factory=list)

    @computed_field
    @property
    def is_empty(self) -> bool:
        """True when the rule file did not declare a single pattern."""
        return not self.includes and not self.excludes


class FileOutcome(BaseModel):
    """Outcome of processing one source path under one include rule.

    Attributes:
        source: Path as returned by the glob resolver.
        rule: Include pattern that produced the path.
        outcome: Classification of the file.
        flat_name: Flattened file name, empty when it was never computed.
        size: File size in bytes, None when it could not be read.
        error: Error message for `CopyOutcome.ERROR`.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    rule: str
    outcome: CopyOutcome
    flat_name: str = ""
    size: int | None = Field(default=None, ge=0)
    error: str = ""


class ExclusionReport(BaseModel):
    """Paths one exclude rule removed from one include rule's working set."""

    model_config = ConfigDict(frozen=True)

    rule: ExcludeRule
    removed: list[str] = Field(default_factory=list)


class RuleReport(BaseModel):
    """Everything the engine decided for one include rule."""

    pattern: str
    matched: int = Field(default=0, ge=0, description="Paths resolved before exclusion")
    exclusions: list[ExclusionReport] = Field(default_factory=list)
    outcomes: list[FileOutcome] = Field(default_factory=list)

    def count(self, outcome: CopyOutcome) -> int:
        """Number of files of this rule with the given outcome."""
        return sum(1 for o in self.outcomes if o.outcome == outcome)


class OperationStats(BaseModel):
    """Aggregate counters for a whole run, mutated while rules are processed."""

    matched: int = 0
    excluded: int = 0
    copied: int = 0
    skipped_size: int = 0
    skipped_duplicate: int = 0
    errors: int = 0
    total_bytes: int = 0
    elapsed: float = 0.0

    @computed_field
    @property
    def skipped(self) -> int:
        """Files skipped for size limits or duplicates."""
        return self.skipped_size + self.skipped_duplicate

    def record(self, outcome: FileOutcome) -> None:
        """Account for one file outcome."""
        match outcome.outcome:
            case CopyOutcome.COPIED | CopyOutcome.WOULD_COPY:
                self.copied += 1
                self.total_bytes += outcome.size or 0
            case CopyOutcome.SKIPPED_SIZE:
                self.skipped_size += 1
            case CopyOutcome.SKIPPED_DUPLICATE:
                self.skipped_duplicate += 1
            case CopyOutcome.ERROR:
                self.errors += 1


class RunReport(BaseModel):
    """Rule reports in declaration order plus the run statistics."""

    rules: list[RuleReport] = Field(default_factory=list)
    stats: OperationStats = Field(default_factory=OperationStats)

    @property
    def outcomes(self) -> list[FileOutcome]:
        """All file outcomes, in rule order then discovery order."""
        return [o for r in self.rules for o in r.outcomes]
