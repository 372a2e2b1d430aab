"""Apply include/exclude rules and decide, file by file, what gets copied."""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

from flatten_copy.config import (
    LARGE_FILE_WARNING_SIZE,
    CopyOutcome,
    ExcludeRule,
    ExclusionReport,
    FileOutcome,
    OperationStats,
    RuleReport,
    RunReport,
)
from flatten_copy.file_manipulation import copy_file, file_size, flatten_path, glob_files, matches_rule
from flatten_copy.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    Resolver = Callable[..., list[str]]
    Matcher = Callable[[str, ExcludeRule], bool]
    SizeReader = Callable[[str], int]
    Copier = Callable[[str, Path], None]


class RuleEngine:
    """Resolve include rules, filter them through exclude rules and copy the survivors.

    One engine owns the state of one run: the set of flat names already
    produced, used for first-wins duplicate detection across every rule, and
    the operation statistics. The filesystem collaborators are injectable so
    the decisions can be exercised without touching the disk.

    Args:
        target_dir (Path): directory receiving the flattened files
        max_size (int | None, optional): files strictly larger than this many
            bytes are skipped. Defaults to None (no limit).
        dry_run (bool, optional): compute every outcome but never copy.
            Defaults to False.
        follow_symlinks (bool, optional): passed to the resolver. Defaults to False.
        already_produced (set[str] | None, optional): flat names to treat as
            already copied; updated in place. Defaults to a fresh set.
        resolver: `resolver(pattern, follow_symlinks=...) -> list[str]`
        matcher: `matcher(path, exclude_rule) -> bool`
        size_of: `size_of(path) -> int`, may raise OSError
        copier: `copier(path, destination) -> None`, may raise OSError
    """

    def __init__(  # noqa: PLR0913
        self,
        target_dir: Path,
        *,
        max_size: int | None = None,
        dry_run: bool = False,
        follow_symlinks: bool = False,
        already_produced: set[str] | None = None,
        resolver: Resolver = glob_files,
        matcher: Matcher = matches_rule,
        size_of: SizeReader = file_size,
        copier: Copier = copy_file,
    ) -> None:
        self.target_dir = Path(target_dir)
        self.max_size = max_size
        self.dry_run = dry_run
        self.follow_symlinks = follow_symlinks
        self.produced: set[str] = already_produced if already_produced is not None else set()
        self.stats = OperationStats()
        self._resolver = resolver
        self._matcher = matcher
        self._size_of = size_of
        self._copier = copier

    def run(self, includes: Sequence[str], excludes: Sequence[ExcludeRule]) -> RunReport:
        """Process every include rule in declaration order.

        Args:
            includes (Sequence[str]): include patterns, in rule file order
            excludes (Sequence[ExcludeRule]): exclude rules applied to every include rule

        Returns:
            RunReport: one report per include rule and the statistics of the run
        """
        start = time.perf_counter()
        reports = [self.run_rule(pattern, excludes) for pattern in includes]
        self.stats.elapsed = time.perf_counter() - start
        logger.info(
            "run_finished",
            rules=len(reports),
            copied=self.stats.copied,
            skipped=self.stats.skipped,
            errors=self.stats.errors,
            total_bytes=self.stats.total_bytes,
            dry_run=self.dry_run,
        )
        return RunReport(rules=reports, stats=self.stats)

    def run_rule(self, pattern: str, excludes: Sequence[ExcludeRule]) -> RuleReport:
        """Resolve one include pattern and process its surviving files.

        Args:
            pattern (str): the include pattern
            excludes (Sequence[ExcludeRule]): exclude rules to filter the matches with

        Returns:
            RuleReport: matched count, exclusions and one outcome per surviving file
        """
        candidates = list(self._resolver(pattern, follow_symlinks=self.follow_symlinks))
        report = RuleReport(pattern=pattern, matched=len(candidates))
        self.stats.matched += len(candidates)
        logger.info("rule_resolved", pattern=pattern, matched=len(candidates))

        survivors, exclusions = self.filter_excluded(candidates, excludes)
        report.exclusions.extend(exclusions)
        for exclusion in exclusions:
            self.stats.excluded += len(exclusion.removed)

        for source in survivors:
            outcome = self.process_file(source, pattern)
            self.stats.record(outcome)
            report.outcomes.append(outcome)
        return report

    def filter_excluded(
        self,
        candidates: Sequence[str],
        excludes: Sequence[ExcludeRule],
    ) -> tuple[list[str], list[ExclusionReport]]:
        """Remove every candidate matched by at least one exclude rule.

        The survivors do not depend on the order of `excludes`. Each removed
        path is attributed to the first rule, in declaration order, matching it.

        Args:
            candidates (Sequence[str]): paths resolved for one include rule
            excludes (Sequence[ExcludeRule]): the exclude rules

        Returns:
            tuple[list[str], list[ExclusionReport]]: survivors in discovery
                order, and one report per exclude rule that removed something
        """
        working = list(candidates)
        exclusions: list[ExclusionReport] = []
        for rule in excludes:
            kept: list[str] = []
            removed: list[str] = []
            for path in working:
                (removed if self._matcher(path, rule) else kept).append(path)
            if removed:
                exclusions.append(ExclusionReport(rule=rule, removed=removed))
                logger.info("exclusion_applied", exclude=rule.pattern, origin=str(rule.origin), removed=len(removed))
            working = kept
        return working, exclusions

    def process_file(self, source: str, rule: str) -> FileOutcome:
        """Decide and carry out what happens to one surviving file.

        Size limit first, then first-wins duplicate detection on the flat
        name, then the copy itself. An OSError is turned into an error
        outcome for this file only.

        Args:
            source (str): the source path
            rule (str): the include pattern that produced it

        Returns:
            FileOutcome: the classification of the file
        """
        size: int | None = None
        flat_name = ""
        try:
            size = self._size_of(source)
            if self.max_size is not None and size > self.max_size:
                logger.info("skipped_size", source=source, size=size, max_size=self.max_size)
                return FileOutcome(source=source, rule=rule, outcome=CopyOutcome.SKIPPED_SIZE, size=size)

            flat_name = flatten_path(source)
            if flat_name in self.produced:
                logger.info("skipped_duplicate", source=source, flat_name=flat_name)
                return FileOutcome(
                    source=source,
                    rule=rule,
                    outcome=CopyOutcome.SKIPPED_DUPLICATE,
                    flat_name=flat_name,
                    size=size,
                )

            if size > LARGE_FILE_WARNING_SIZE:
                logger.warning("large_file", source=source, size=size)

            if not self.dry_run:
                self._copier(source, self.target_dir / flat_name)
        except OSError as e:
            logger.warning(
                "file_failed",
                source=source,
                action="analyze" if self.dry_run else "copy",
                error=str(e),
            )
            return FileOutcome(
                source=source,
                rule=rule,
                outcome=CopyOutcome.ERROR,
                flat_name=flat_name,
                size=size,
                error=str(e),
            )

        self.produced.add(flat_name)
        outcome = CopyOutcome.WOULD_COPY if self.dry_run else CopyOutcome.COPIED
        return FileOutcome(source=source, rule=rule, outcome=outcome, flat_name=flat_name, size=size)


def resolve_rules(  # noqa: PLR0913
    includes: Sequence[str],
    excludes: Sequence[ExcludeRule],
    target_dir: Path,
    *,
    max_size: int | None = None,
    already_produced: set[str] | None = None,
    dry_run: bool = False,
    follow_symlinks: bool = False,
    resolver: Resolver = glob_files,
    matcher: Matcher = matches_rule,
    size_of: SizeReader = file_size,
    copier: Copier = copy_file,
) -> list[FileOutcome]:
    """Run the rules once and return every file outcome.

    Args:
        includes (Sequence[str]): include patterns, in declaration order
        excludes (Sequence[ExcludeRule]): exclude rules
        target_dir (Path): directory receiving the flattened files
        max_size (int | None, optional): size limit in bytes. Defaults to None.
        already_produced (set[str] | None, optional): flat names already
            produced in this run; updated in place. Defaults to None.
        dry_run (bool, optional): suppress the copies. Defaults to False.
        follow_symlinks (bool, optional): passed to the resolver. Defaults to False.
        resolver: glob resolver collaborator
        matcher: exclude matcher collaborator
        size_of: size reader collaborator
        copier: copy collaborator

    Returns:
        list[FileOutcome]: outcomes in rule order, then discovery order
    """
    engine = RuleEngine(
        target_dir,
        max_size=max_size,
        dry_run=dry_run,
        follow_symlinks=follow_symlinks,
        already_produced=already_produced,
        resolver=resolver,
        matcher=matcher,
        size_of=size_of,
        copier=copier,
    )
    return engine.run(includes, excludes).outcomes
