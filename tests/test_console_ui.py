#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter Test Suite - Console Output Tests

Tests for time/size formatting, progress bars, prompts and the progress
reporter.
"""

from console_ui import Colors, Console, draw_progress_bar, format_size, format_time
from progress_reporter import ConsoleProgressReporter


class TestTimeFormatting:
    """Tests for time formatting"""

    def test_seconds(self):
        assert format_time(0) == "0s"
        assert format_time(59) == "59s"

    def test_minutes(self):
        assert format_time(60) == "1m0s"
        assert format_time(90) == "1m30s"
        assert format_time(3599) == "59m59s"

    def test_hours(self):
        assert format_time(3600) == "1h0m"
        assert format_time(5400) == "1h30m"


class TestSizeFormatting:
    """Tests for byte count formatting"""

    def test_kilobytes(self):
        assert format_size(512) == "0.5 KB"

    def test_megabytes(self):
        assert format_size(5 * 1024 * 1024) == "5.0 MB"


class TestProgressBar:
    """Tests for progress bar drawing"""

    def test_empty(self):
        bar = draw_progress_bar(0, 100)
        assert len(bar) == 40
        assert bar.count("░") == 40

    def test_half(self):
        bar = draw_progress_bar(50, 100)
        assert bar.count("█") == 20
        assert bar.count("░") == 20

    def test_zero_total(self):
        assert draw_progress_bar(0, 0) == "░" * 40

    def test_overflow_clamped(self):
        """More completed units than announced never widens the bar"""
        bar = draw_progress_bar(12, 10, width=20)
        assert bar == "█" * 20


class TestColors:
    """Tests for per-instance color palettes"""

    def test_disabled_instance(self):
        plain = Colors(enabled=False)
        assert plain.RED == ""
        assert plain.NC == ""

    def test_disabling_is_not_global(self):
        Colors(enabled=False)
        assert Colors().RED == "\033[0;31m"
        assert Colors.RED == "\033[0;31m"


class TestConsole:
    """Tests for log lines and prompts"""

    def test_log_prefixes(self, make_console, output):
        console = make_console()
        console.info("hello")
        console.warn("careful")
        console.error("broken")
        console.step("next")
        text = output.getvalue()
        assert "[INFO] hello" in text
        assert "[WARN] careful" in text
        assert "[ERROR] broken" in text
        assert "[STEP] next" in text

    def test_confirm_yes(self, make_console):
        assert make_console(answers=["y"]).confirm("Continue?") is True

    def test_confirm_is_case_sensitive(self, make_console):
        assert make_console(answers=["Y"]).confirm("Continue?") is False

    def test_confirm_other_answers(self, make_console):
        assert make_console(answers=["yes"]).confirm("Continue?") is False
        assert make_console(answers=[""]).confirm("Continue?") is False

    def test_confirm_eof_declines(self, make_console):
        assert make_console().confirm("Continue?") is False

    def test_ask_input_closed(self, make_console):
        assert make_console().ask("Version?") is None
        assert make_console(answers=[""]).ask("Version?") == ""

    def test_question_shown(self, make_console, output):
        make_console(answers=["n"]).confirm("Download again?")
        assert "Download again? [y/N]" in output.getvalue()


class TestConsoleProgressReporter:
    """Tests for the decompilation progress sink"""

    def test_latches_total(self, make_console, output):
        reporter = ConsoleProgressReporter(make_console())
        reporter.report(3, "A.cs")
        reporter.report(99, "B.cs")
        assert reporter.total == 3
        assert reporter.completed == 2
        assert output.getvalue().count("Total files:") == 1
        assert "(2/3)" in output.getvalue()

    def test_counts_every_event(self, make_console, output):
        reporter = ConsoleProgressReporter(make_console())
        for i in range(5):
            reporter.report(5, f"File{i}.cs")
        reporter.close()
        text = output.getvalue()
        assert reporter.completed == 5
        assert "(5/5)" in text
        assert "100%" in text
        assert "Decompiled File4.cs" in text
