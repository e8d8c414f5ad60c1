#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - ILSpy Whole-Project Decompiler

Drives the ILSpy command line (ilspycmd) to turn a managed image into a
compilable C# project. Progress is reported per generated source file while
the decompiler runs.

Usage of ilspycmd:
    ilspycmd -p -o <output> -r <dir> [-r <dir> ...] <image>
"""

import os
import shutil
import subprocess
import tempfile
import time
from typing import Callable, Dict, List, Sequence, Set

from assembly_resolver import AssemblyResolver
from image_metadata import DnfileImage, ImageMetadata
from progress_reporter import ProgressReporter
from sourcegetter_errors import DecompilerError

DEFAULT_ILSPYCMD = "ilspycmd"

LOG_TAIL_LINES = 20


class ProjectDecompiler:
    """Whole-project decompile capability"""

    def decompile_project(
        self,
        raw_bytes: bytes,
        assembly_name: str,
        output_dir: str,
        resolver: AssemblyResolver,
        progress: ProgressReporter,
    ):
        raise NotImplementedError


def find_source_files(directory: str) -> List[str]:
    """Relative paths of all .cs files below directory"""
    found = []
    for root, _dirs, files in os.walk(directory):
        for name in files:
            if name.endswith(".cs"):
                found.append(os.path.relpath(os.path.join(root, name), directory))
    return sorted(found)


def snapshot_source_files(directory: str) -> Dict[str, int]:
    """Relative .cs path -> modification time in ns"""
    snapshot = {}
    for path in find_source_files(directory):
        try:
            snapshot[path] = os.stat(os.path.join(directory, path)).st_mtime_ns
        except FileNotFoundError:
            continue
    return snapshot


def read_log_tail(log_file: str, lines: int = LOG_TAIL_LINES) -> str:
    try:
        with open(log_file, "r", encoding="utf-8", errors="ignore") as f:
            return "".join(f.readlines()[-lines:])
    except OSError:
        return ""


class IlspyDecompiler(ProjectDecompiler):
    """ProjectDecompiler backed by an ilspycmd subprocess"""

    def __init__(
        self,
        executable: str = DEFAULT_ILSPYCMD,
        extra_args: Sequence[str] = (),
        poll_interval: float = 0.5,
        open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
    ):
        self.executable = executable
        self.extra_args = list(extra_args)
        self.poll_interval = poll_interval
        self.open_image = open_image

    def find_executable(self) -> str:
        path = shutil.which(self.executable)
        if path is None:
            raise DecompilerError(
                f"ilspycmd not found: {self.executable} "
                "(install with: dotnet tool install -g ilspycmd)"
            )
        return path

    def build_command(
        self, executable: str, image_path: str, output_dir: str, resolver: AssemblyResolver
    ) -> List[str]:
        cmd = [executable, "-p", "-o", output_dir]
        for directory in resolver.search_dirs:
            cmd.extend(["-r", directory])
        cmd.extend(self.extra_args)
        cmd.append(image_path)
        return cmd

    def decompile_project(
        self,
        raw_bytes: bytes,
        assembly_name: str,
        output_dir: str,
        resolver: AssemblyResolver,
        progress: ProgressReporter,
    ):
        executable = self.find_executable()

        image = self.open_image(raw_bytes)
        resolver.check(image.assembly_references())
        total = max(1, len(image.type_names()))

        temp_dir = tempfile.mkdtemp(prefix="sourcegetter_")
        try:
            # ilspycmd names the project after the input file
            image_path = os.path.join(temp_dir, f"{assembly_name}.exe")
            with open(image_path, "wb") as f:
                f.write(raw_bytes)

            cmd = self.build_command(
                executable, image_path, os.path.abspath(output_dir), resolver
            )
            log_file = os.path.join(temp_dir, "ilspycmd.log")
            # files already present count again once rewritten
            baseline = snapshot_source_files(output_dir)
            reported: Set[str] = set()

            with open(log_file, "w") as log_f:
                process = subprocess.Popen(
                    cmd, stdout=log_f, stderr=subprocess.STDOUT, text=True
                )
                while process.poll() is None:
                    self._report_new_files(
                        output_dir, baseline, reported, total, progress
                    )
                    time.sleep(self.poll_interval)
                self._report_new_files(output_dir, baseline, reported, total, progress)

            if process.returncode != 0:
                raise DecompilerError(
                    f"ilspycmd failed (exit code {process.returncode})\n"
                    f"{read_log_tail(log_file)}"
                )
        finally:
            if os.path.isdir(temp_dir):
                shutil.rmtree(temp_dir)

    @staticmethod
    def _report_new_files(
        output_dir: str,
        baseline: Dict[str, int],
        reported: Set[str],
        total: int,
        progress: ProgressReporter,
    ):
        """Report each file written since baseline, once"""
        for path, mtime in snapshot_source_files(output_dir).items():
            if path not in reported and baseline.get(path) != mtime:
                reported.add(path)
                progress.report(total, path)
