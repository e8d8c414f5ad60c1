#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Console Output

Colored log lines, boxed titles, progress bars and operator prompts.
A single Console instance is created by the CLI and passed explicitly to
every stage that writes to the terminal or asks a question.
"""

import sys
from typing import Callable, Optional, TextIO

# ============================================================
# Color and Display Utilities
# ============================================================


class Colors:
    """ANSI color codes for terminal output"""

    RED = "\033[0;31m"
    GREEN = "\033[0;32m"
    YELLOW = "\033[1;33m"
    BLUE = "\033[0;34m"
    CYAN = "\033[0;36m"
    MAGENTA = "\033[0;35m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    NC = "\033[0m"  # No Color

    def __init__(self, enabled: bool = True):
        if not enabled:
            self.RED = self.GREEN = self.YELLOW = self.BLUE = ""
            self.CYAN = self.MAGENTA = self.BOLD = self.DIM = self.NC = ""


def format_time(seconds: int) -> str:
    """Format seconds to human-readable time"""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        mins, secs = divmod(seconds, 60)
        return f"{mins}m{secs}s"
    else:
        hours, remainder = divmod(seconds, 3600)
        mins = remainder // 60
        return f"{hours}h{mins}m"


def format_size(num_bytes: int) -> str:
    """Format a byte count as KB/MB"""
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def draw_progress_bar(current: int, total: int, width: int = 40) -> str:
    """Draw a progress bar"""
    if total <= 0:
        return "░" * width

    filled = min(width, int(current * width / total))
    empty = width - filled
    return "█" * filled + "░" * empty


# ============================================================
# Console
# ============================================================


class Console:
    """Terminal writer and prompt reader used by the whole pipeline"""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        input_func: Callable[[str], str] = input,
        color: Optional[bool] = None,
    ):
        self.stream = stream if stream is not None else sys.stdout
        self.input_func = input_func
        if color is None:
            color = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.colors = Colors(enabled=color)
        self._progress_active = False

    # ---------------- log lines ----------------

    def print(self, msg: str = "", end: str = "\n"):
        self.stream.write(msg + end)
        self.stream.flush()

    def info(self, msg: str):
        c = self.colors
        self.print(f"{c.GREEN}[INFO]{c.NC} {msg}")

    def warn(self, msg: str):
        c = self.colors
        self.print(f"{c.YELLOW}[WARN]{c.NC} {msg}")

    def error(self, msg: str):
        c = self.colors
        self.print(f"{c.RED}[ERROR]{c.NC} {msg}")

    def step(self, msg: str):
        c = self.colors
        self.print(f"{c.MAGENTA}[STEP]{c.NC} {msg}")

    def banner(self):
        """Print the program banner"""
        c = self.colors
        self.print(f"{c.BLUE}")
        self.print("╔══════════════════════════════════════════════════════════════╗")
        self.print("║            SourceGetter - Terraria Server Decompiler         ║")
        self.print("║          Build identification & ILSpy orchestration          ║")
        self.print("╚══════════════════════════════════════════════════════════════╝")
        self.print(f"{c.NC}")

    def box(self, title: str, subtitle: str = ""):
        """Print a text box with title"""
        color = self.colors.BLUE
        nc = self.colors.NC
        width = max(50, len(title) + 6, len(subtitle) + 6)
        width = min(80, width)

        line = "═" * width

        pad_left = (width - len(title)) // 2
        pad_right = width - len(title) - pad_left
        self.print(f"{color}╔{line}╗{nc}")
        self.print(f"{color}║{' ' * pad_left}{title}{' ' * pad_right}║{nc}")

        if subtitle:
            pad_left = (width - len(subtitle)) // 2
            pad_right = width - len(subtitle) - pad_left
            self.print(f"{color}║{' ' * pad_left}{subtitle}{' ' * pad_right}║{nc}")

        self.print(f"{color}╚{line}╝{nc}")

    # ---------------- prompts ----------------

    def ask(self, prompt: str) -> Optional[str]:
        """Read one line from the operator; None once input is closed"""
        self.print(prompt)
        try:
            return self.input_func("")
        except EOFError:
            return None

    def confirm(self, question: str) -> bool:
        """Ask a yes/no question; only an exact 'y' counts as yes"""
        c = self.colors
        answer = self.ask(f"{c.YELLOW}{question} [y/N]{c.NC}")
        return answer is not None and answer.strip() == "y"

    # ---------------- progress ----------------

    def show_progress(self, current: int, total: int, label: str = ""):
        """Show progress bar with a label line below it"""
        if total <= 0:
            return

        c = self.colors
        percentage = min(100, current * 100 // total)
        bar = draw_progress_bar(current, total)

        progress_line = (
            f"{c.CYAN}[{bar}]{c.NC} {c.BOLD}{percentage}%{c.NC} ({current}/{total})"
        )

        self.print(f"\r\033[K{progress_line}")
        if label:
            self.print(f"\033[K{c.DIM}  -> {c.NC}{c.GREEN}{label}{c.NC}")
        else:
            self.print(f"\033[K{c.DIM}  -> Processing...{c.NC}")

        # Move cursor up 2 lines
        self.print("\033[2A", end="")
        self._progress_active = True

    def finish_progress(self, summary: str = ""):
        """Move below the progress bar and print an optional summary line"""
        if self._progress_active:
            self.print("\n\n", end="")
            self._progress_active = False
        if summary:
            self.print(summary)
