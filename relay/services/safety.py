"""Pre-flight risk report for a set of candidate commits.

Four independent checks run against the commits the operator picked:

1. conflict files: files the commits touch that also changed on the
   comparison ref since the merge base
2. naming: path segments that break on Windows or other checkouts
3. large files: a single commit adding more lines than the threshold
4. binary files: informational only

A failed git query skips the check it feeds (recorded in `skipped`); it never
fails the report. The report is advisory, the caller decides what to do.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from relay.core.config import DEFAULT_LARGE_FILE_LINES
from relay.core.result import Err, Ok
from relay.git.backend import GitBackend
from relay.git.models import Commit
from relay.output.console import ConsoleProtocol, Style

__all__ = [
    "LargeFile",
    "NamingIssue",
    "SafetyAnalyzer",
    "SafetyReport",
    "SkippedCheck",
    "check_names",
    "print_safety_report",
]

MAX_SEGMENT_LENGTH = 255
MAX_PATH_LENGTH = 260
REPORT_LIST_LIMIT = 10

_SEGMENT_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\s{2,}"), "multiple consecutive spaces"),
    (re.compile(r"^\s|\s$"), "leading/trailing spaces"),
    (re.compile(r'[<>:"|?*\\]'), 'invalid characters (<>:"|?*\\)'),
    (re.compile(r"\.$"), "trailing period"),
    (
        re.compile(r"^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])(\..*)?$", re.IGNORECASE),
        "reserved Windows name",
    ),
)


@dataclass(frozen=True, slots=True)
class NamingIssue:
    path: str
    rule: str
    segment: str


@dataclass(frozen=True, slots=True)
class LargeFile:
    path: str
    added_lines: int
    commit: str


@dataclass(frozen=True, slots=True)
class SkippedCheck:
    check: str
    reason: str


@dataclass(frozen=True, slots=True)
class SafetyReport:
    """Result of the four checks. Lists keep first-seen order.

    `checked` is the number of commits analysed; `omitted` counts commits the
    caller left out of the analysis on purpose.
    """

    conflict_files: tuple[str, ...] = ()
    naming_issues: tuple[NamingIssue, ...] = ()
    large_files: tuple[LargeFile, ...] = ()
    binary_files: tuple[str, ...] = ()
    skipped: tuple[SkippedCheck, ...] = field(default_factory=tuple)
    checked: int = 0
    omitted: int = 0

    @property
    def has_issues(self) -> bool:
        # Binary files are reported but never count as an issue.
        return bool(self.conflict_files or self.naming_issues or self.large_files)


def check_names(paths: Iterable[str]) -> list[NamingIssue]:
    """Flag path segments and whole paths that are unsafe to check out."""
    issues: list[NamingIssue] = []
    for path in paths:
        for segment in path.split("/"):
            for pattern, rule in _SEGMENT_RULES:
                if pattern.search(segment):
                    issues.append(NamingIssue(path=path, rule=rule, segment=segment))
            if len(segment) > MAX_SEGMENT_LENGTH:
                issues.append(
                    NamingIssue(path=path, rule="name exceeds 255 characters", segment=segment)
                )
        if len(path) > MAX_PATH_LENGTH:
            issues.append(
                NamingIssue(path=path, rule="total path exceeds 260 characters", segment=path)
            )
    return issues


class SafetyAnalyzer:
    def __init__(
        self, *, backend: GitBackend, large_file_lines: int = DEFAULT_LARGE_FILE_LINES
    ) -> None:
        self._backend = backend
        self._large_file_lines = large_file_lines

    def analyze(self, commits: Sequence[Commit], comparison_ref: str) -> SafetyReport:
        skipped: list[SkippedCheck] = []

        touched = self._touched_files(commits)
        if isinstance(touched, str):
            skipped.append(SkippedCheck(check="conflicts", reason=touched))
            skipped.append(SkippedCheck(check="naming", reason=touched))
            conflicts: list[str] = []
            naming: list[NamingIssue] = []
        else:
            naming = check_names(touched)
            conflicts = self._conflict_files(touched, comparison_ref, skipped)

        large: list[LargeFile] = []
        binary: list[str] = []
        for commit in commits:
            stats = self._backend.files_changed_with_stats(commit.full_hash)
            if isinstance(stats, Err):
                reason = f"{commit.short_hash}: {stats.error.message}"
                skipped.append(SkippedCheck(check="large_files", reason=reason))
                skipped.append(SkippedCheck(check="binary_files", reason=reason))
                large, binary = [], []
                break
            for stat in stats.value:
                if stat.is_binary:
                    if stat.path not in binary:
                        binary.append(stat.path)
                elif stat.added is not None and stat.added > self._large_file_lines:
                    large.append(
                        LargeFile(path=stat.path, added_lines=stat.added, commit=commit.short_hash)
                    )

        return SafetyReport(
            conflict_files=tuple(conflicts),
            naming_issues=tuple(naming),
            large_files=tuple(large),
            binary_files=tuple(binary),
            skipped=tuple(skipped),
            checked=len(commits),
        )

    def _touched_files(self, commits: Sequence[Commit]) -> list[str] | str:
        """Union of files the commits touch, or the failure reason."""
        seen: dict[str, None] = {}
        for commit in commits:
            match self._backend.files_changed(commit.full_hash):
                case Err(e):
                    return f"{commit.short_hash}: {e.message}"
                case Ok(paths):
                    for path in paths:
                        seen.setdefault(path, None)
        return list(seen)

    def _conflict_files(
        self, touched: list[str], comparison_ref: str, skipped: list[SkippedCheck]
    ) -> list[str]:
        head = self._backend.current_branch() or "HEAD"
        changed = self._backend.diff_files(head, comparison_ref)
        if isinstance(changed, Err):
            skipped.append(SkippedCheck(check="conflicts", reason=changed.error.message))
            return []
        changed_set = set(changed.value)
        return [path for path in touched if path in changed_set]


def print_safety_report(report: SafetyReport, console: ConsoleProtocol) -> None:
    """Render a report section by section."""
    skipped = {s.check: s.reason for s in report.skipped}

    if report.omitted:
        console.warning(
            f"checked the newest {report.checked} commit(s) only; "
            f"{report.omitted} older commit(s) were not analysed"
        )

    console.step("1/4", "Checking for conflicting files")
    if "conflicts" in skipped:
        console.warning(f"could not check for conflicts: {skipped['conflicts']}")
    elif report.conflict_files:
        console.warning(f"potential conflicts in {len(report.conflict_files)} file(s):")
        _print_limited(console, list(report.conflict_files))
    else:
        console.success("no obvious file conflicts detected")

    console.step("2/4", "Checking file and directory names")
    if "naming" in skipped:
        console.warning(f"could not check file names: {skipped['naming']}")
    elif report.naming_issues:
        console.warning(f"found {len(report.naming_issues)} naming issue(s):")
        _print_limited(console, [f"{i.path}: {i.rule}" for i in report.naming_issues])
    else:
        console.success("all file and directory names are valid")

    console.step("3/4", "Checking for large files")
    if "large_files" in skipped:
        console.warning(f"could not check file sizes: {skipped['large_files']}")
    elif report.large_files:
        console.warning(f"found {len(report.large_files)} large file(s):")
        _print_limited(
            console,
            [f"{f.path}: +{f.added_lines:,} lines ({f.commit})" for f in report.large_files],
        )
    else:
        console.success("no unusually large files detected")

    console.step("4/4", "Checking for binary files")
    if "binary_files" in skipped:
        console.warning(f"could not check for binary files: {skipped['binary_files']}")
    elif report.binary_files:
        console.info(f"found {len(report.binary_files)} binary file(s):")
        _print_limited(console, list(report.binary_files))
    else:
        console.success("no binary files")

    console.newline()
    if report.has_issues:
        console.warning("potential issues detected, review before proceeding")
    else:
        console.success("all checks passed")


def _print_limited(console: ConsoleProtocol, lines: list[str]) -> None:
    for line in lines[:REPORT_LIST_LIMIT]:
        console.print(f"  - {line}")
    if len(lines) > REPORT_LIST_LIMIT:
        console.print(f"  ... and {len(lines) - REPORT_LIST_LIMIT} more", Style.DIM)
