#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Decompilation Progress

Sink for per-file progress events coming from the decompiler.
"""

from console_ui import Console


class ProgressReporter:
    """Receives (total, label) events, one per completed unit"""

    def report(self, total: int, label: str):
        raise NotImplementedError

    def close(self):
        pass


class ConsoleProgressReporter(ProgressReporter):
    """Renders decompilation progress on the console"""

    def __init__(self, console: Console):
        self.console = console
        self.started = False
        self.total = 0
        self.completed = 0

    def report(self, total: int, label: str):
        if not self.started:
            self.started = True
            self.total = total
            self.console.info(f"Total files: {self.total}")

        self.completed += 1
        self.console.show_progress(self.completed, self.total, f"Decompiled {label}")

    def close(self):
        self.console.finish_progress()
