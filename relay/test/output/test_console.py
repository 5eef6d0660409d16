"""Tests for relay.output.console module."""

from __future__ import annotations

from relay.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.STEP) == "step"

    def test_all_styles_exist(self) -> None:
        expected = {
            "DEFAULT",
            "SUCCESS",
            "ERROR",
            "WARNING",
            "INFO",
            "DIM",
            "BOLD",
            "HEADER",
            "STEP",
        }
        assert {s.name for s in Style} == expected


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs == [OutputRecord("hello", Style.DEFAULT)]

    def test_semantic_helpers_prefix_messages(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("broken")
        console.warning("careful")
        console.info("fyi")

        assert console.messages == ["OK done", "error: broken", "warning: careful", "info: fyi"]
        assert console.has_success()
        assert console.has_error()
        assert console.has_warning()

    def test_step(self) -> None:
        console = MockConsole()
        console.step("2/5", "Checking out origin/release")
        assert console.outputs[0] == OutputRecord("[2/5] Checking out origin/release", Style.STEP)

    def test_table(self) -> None:
        console = MockConsole()
        console.table(["commit", "subject"], [["abc1234", "fix"], ["def5678", "feat"]])
        assert console.messages == ["commit | subject", "abc1234 | fix", "def5678 | feat"]
        assert console.outputs[0].style == Style.BOLD

    def test_find_and_count(self) -> None:
        console = MockConsole()
        console.warning("one")
        console.warning("two")
        console.print("plain")

        assert len(console.find("tw")) == 1
        assert console.count(Style.WARNING) == 2

    def test_text_and_clear(self) -> None:
        console = MockConsole()
        console.print("a")
        console.newline()
        console.print("b")
        assert console.text == "a\n\nb"

        console.clear()
        assert console.outputs == []

    def test_has_error_false_when_clean(self) -> None:
        console = MockConsole()
        console.print("fine")
        assert not console.has_error()


class TestRichConsole:
    def test_implements_protocol(self) -> None:
        console: ConsoleProtocol = RichConsole()
        console.success("ok [not markup]")
        console.header("Release")
        console.step("1/5", "Pre-flight checks")
        console.table(["a"], [["b"]])

    def test_mock_implements_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.info("x")
