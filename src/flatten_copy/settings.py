from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from flatten_copy.config import FLATTEN_FILE, TARGET_SUFFIX

ENV_FILE = find_dotenv(usecwd=True)


def load_environment() -> None:
    """Load the nearest `.env` file into the process environment without overriding it."""
    if ENV_FILE:
        load_dotenv(ENV_FILE, override=False)


def default_rules_file() -> str:
    """Rule file used when `--rules-file` is not given."""
    return os.environ.get("FLATTEN_RULES_FILE", FLATTEN_FILE)


def default_target() -> str:
    """Target directory used when no TARGET_PATH is given: a sibling of the working directory."""
    env_target = os.environ.get("FLATTEN_TARGET", "")
    if env_target:
        return env_target
    return str(Path("..") / f"{Path.cwd().name}{TARGET_SUFFIX}")


class Settings(BaseModel):
    """Configuration settings for one flatten_copy run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    target: Path = Field(default_factory=lambda: Path(default_target()), description="Target directory.")
    rules_file: Path = Field(
        default_factory=lambda: Path(default_rules_file()),
        description="Rule file with include and ! exclude patterns.",
    )
    init: bool = Field(default=False, description="Initialize the rule file.")
    clean: bool = Field(default=False, description="Clean target directory before copying files.")
    symlinks: bool = Field(default=False, description="Follow symbolic links.")
    verbose: bool = Field(default=False, description="Show each file as it's copied.")
    dry_run: bool = Field(default=False, description="Show what would be copied without copying.")
    gitignore: bool = Field(default=False, description="Respect .gitignore patterns.")
    max_size: str = Field(default="", description="Maximum file size to copy (e.g. 1MB, 500KB).")
    stats: bool = Field(default=False, description="Show detailed statistics after operation.")
    log_file: str = Field(default="", description="Log file path.")
