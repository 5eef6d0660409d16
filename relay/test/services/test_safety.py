"""Tests for services/safety.py."""

from __future__ import annotations

from relay.git.memory import InMemoryBackend
from relay.git.models import Commit, FileStat
from relay.output.console import MockConsole
from relay.services.safety import (
    LargeFile,
    SafetyAnalyzer,
    SafetyReport,
    SkippedCheck,
    check_names,
    print_safety_report,
)


def _commit(h: str) -> Commit:
    return Commit(full_hash=h, subject=f"subject {h}", author_date="2026-01-01")


C1 = _commit("c1" * 20)
C2 = _commit("c2" * 20)


class TestCheckNames:
    def test_clean_paths(self) -> None:
        assert check_names(["src/app.py", "docs/read me.md", ".github/ci.yml"]) == []

    def test_trailing_space_and_reserved_name(self) -> None:
        issues = check_names(["file .txt ", "CON.txt"])
        assert [(i.path, i.rule) for i in issues] == [
            ("file .txt ", "leading/trailing spaces"),
            ("CON.txt", "reserved Windows name"),
        ]

    def test_reserved_name_is_case_insensitive(self) -> None:
        assert [i.segment for i in check_names(["src/lpt1/x.c", "com3"])] == ["lpt1", "com3"]

    def test_reserved_prefix_is_fine(self) -> None:
        assert check_names(["console.py", "auxiliary/x"]) == []

    def test_each_rule(self) -> None:
        rules = {
            i.rule
            for i in check_names(["a  b", "what?.txt", "dir./x", "back\\slash"])
        }
        assert rules == {
            "multiple consecutive spaces",
            'invalid characters (<>:"|?*\\)',
            "trailing period",
        }

    def test_lengths(self) -> None:
        long_segment = "x" * 256
        issues = check_names([long_segment])
        assert [i.rule for i in issues] == ["name exceeds 255 characters"]

        long_path = "/".join(["d" * 100] * 3)
        issues = check_names([long_path])
        assert [i.rule for i in issues] == ["total path exceeds 260 characters"]


class TestSafetyAnalyzer:
    def _backend(self) -> InMemoryBackend:
        backend = InMemoryBackend(
            stats={
                C1.full_hash: [FileStat("src/app.py", 10, 2), FileStat("logo.png", None, None)],
                C2.full_hash: [
                    FileStat("data/big.csv", 6000, 0),
                    FileStat("logo.png", None, None),
                    FileStat("CON.txt", 1, 0),
                ],
            }
        )
        backend.diffs[("main", "origin/release")] = ["src/app.py", "README.md"]
        return backend

    def test_all_checks(self) -> None:
        backend = self._backend()
        analyzer = SafetyAnalyzer(backend=backend, large_file_lines=5000)

        report = analyzer.analyze([C1, C2], "origin/release")

        assert report.conflict_files == ("src/app.py",)
        assert [i.path for i in report.naming_issues] == ["CON.txt"]
        assert report.large_files == (LargeFile("data/big.csv", 6000, C2.short_hash),)
        assert report.binary_files == ("logo.png",)
        assert report.skipped == ()
        assert report.has_issues is True

    def test_threshold_is_exclusive(self) -> None:
        backend = self._backend()
        report = SafetyAnalyzer(backend=backend, large_file_lines=6000).analyze(
            [C2], "origin/release"
        )
        assert report.large_files == ()

    def test_detached_head_compares_from_head(self) -> None:
        backend = self._backend()
        backend.branch = None
        SafetyAnalyzer(backend=backend).analyze([C1], "origin/release")
        assert backend.calls_to("diff_files")[0].args == ("HEAD", "origin/release")

    def test_binary_only_is_not_an_issue(self) -> None:
        backend = InMemoryBackend(stats={C1.full_hash: [FileStat("logo.png", None, None)]})
        report = SafetyAnalyzer(backend=backend).analyze([C1], "origin/release")
        assert report.binary_files == ("logo.png",)
        assert report.has_issues is False

    def test_diff_failure_skips_conflicts_only(self) -> None:
        backend = self._backend()
        backend.fail("diff_files", message="unknown revision")

        report = SafetyAnalyzer(backend=backend).analyze([C1, C2], "origin/release")

        assert report.skipped == (SkippedCheck("conflicts", "unknown revision"),)
        assert report.conflict_files == ()
        assert report.naming_issues != ()

    def test_files_changed_failure_skips_conflicts_and_naming(self) -> None:
        backend = self._backend()
        backend.fail("files_changed", C2.full_hash, message="bad object")

        report = SafetyAnalyzer(backend=backend).analyze([C1, C2], "origin/release")

        assert {s.check for s in report.skipped} == {"conflicts", "naming"}
        assert report.naming_issues == ()
        assert report.binary_files == ("logo.png",)

    def test_stats_failure_skips_size_checks(self) -> None:
        backend = self._backend()
        backend.fail("files_changed_with_stats", C2.full_hash)

        report = SafetyAnalyzer(backend=backend, large_file_lines=5000).analyze(
            [C1, C2], "origin/release"
        )

        assert {s.check for s in report.skipped} == {"large_files", "binary_files"}
        assert report.large_files == ()
        assert report.binary_files == ()

    def test_analysis_does_not_mutate(self) -> None:
        backend = self._backend()
        SafetyAnalyzer(backend=backend).analyze([C1, C2], "origin/release")
        assert backend.mutating_calls() == []


class TestPrintSafetyReport:
    def test_clean_report(self) -> None:
        console = MockConsole()
        print_safety_report(SafetyReport(), console)

        assert [m for m in console.messages if m.startswith("[")] == [
            "[1/4] Checking for conflicting files",
            "[2/4] Checking file and directory names",
            "[3/4] Checking for large files",
            "[4/4] Checking for binary files",
        ]
        assert console.messages[-1] == "OK all checks passed"
        assert not console.has_warning()

    def test_long_lists_are_truncated(self) -> None:
        console = MockConsole()
        report = SafetyReport(conflict_files=tuple(f"f{i}.py" for i in range(13)))

        print_safety_report(report, console)

        assert console.find("  - f9.py")
        assert not console.find("  - f10.py")
        assert console.find("  ... and 3 more")
        assert console.messages[-1] == (
            "warning: potential issues detected, review before proceeding"
        )

    def test_skipped_check_is_reported(self) -> None:
        console = MockConsole()
        report = SafetyReport(skipped=(SkippedCheck("conflicts", "no such ref"),))

        print_safety_report(report, console)

        assert console.find("could not check for conflicts: no such ref")

    def test_large_file_line(self) -> None:
        console = MockConsole()
        report = SafetyReport(large_files=(LargeFile("big.csv", 12000, "abc1234"),))

        print_safety_report(report, console)

        assert console.find("  - big.csv: +12,000 lines (abc1234)")
