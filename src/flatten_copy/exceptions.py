from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FlattenError(Exception):
    """Base exception for errors in the flatten_copy module."""

    message: str = "flatten_copy failed."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class RulesFileNotFoundError(FlattenError):
    """Raised when the rule file does not exist."""

    file: Path = Path(".flatten")
    message: str = "No rule file found. Run with --init to create one, or create it manually."


@dataclass(frozen=True)
class EmptyRulesFileError(FlattenError):
    """Raised when the rule file holds no pattern once comments are stripped."""

    file: Path = Path(".flatten")
    message: str = "No file patterns found. Add some glob patterns, or run with --init for examples."


@dataclass(frozen=True)
class RulesFileExistsError(FlattenError):
    """Raised when `--init` would overwrite an existing rule file."""

    file: Path = Path(".flatten")
    message: str = "Existing rule file found! Will not overwrite."


@dataclass(frozen=True)
class InvalidFileSizeError(FlattenError):
    """Raised when a size limit string cannot be parsed."""

    value: str = ""
    message: str = "Invalid file size format. Use format like: 1MB, 500KB, 2GB"


@dataclass(frozen=True)
class InvalidPatternError(FlattenError):
    """Raised when a rule pattern can never name a file."""

    pattern: str = ""
    message: str = "Invalid glob pattern."


@dataclass(frozen=True)
class CleanTargetError(FlattenError):
    """Raised when a file of the target directory cannot be removed."""

    file: Path = Path()
    message: str = "Failed to clean the target directory."


@dataclass(frozen=True)
class UnreadableRulesFileError(FlattenError):
    """Raised when the rule file exists but cannot be read as UTF-8 text."""

    file: Path = Path(".flatten")
    message: str = "Cannot read the rule file."
