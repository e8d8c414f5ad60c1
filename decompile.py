#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Decompilation Orchestration

Turns a classified image into a source tree:

1. resolve the output directory (default "{version}-{release}-{Platform}-{Side}")
2. confirm before writing into a non-empty directory
3. extract embedded references into <output>/references
4. build the assembly resolver
5. run the whole-project decompiler
6. post-process the generated .csproj
"""

import os
import time
from typing import Callable, Iterable, Optional

from assembly_info import AssemblyInfo
from assembly_resolver import AssemblyResolver
from console_ui import Console, format_time
from ilspy_decompiler import ProjectDecompiler
from image_metadata import DnfileImage, ImageMetadata
from progress_reporter import ConsoleProgressReporter
from reference_extractor import extract_references
from sourcegetter_errors import UserDeclined

REFERENCES_DIR = "references"

CLIENT_PROFILE = "<TargetFrameworkProfile>Client</TargetFrameworkProfile>"
LEGACY_FRAMEWORK = "<TargetFrameworkVersion>v4.0</TargetFrameworkVersion>"
TARGET_FRAMEWORK = "<TargetFrameworkVersion>v4.5</TargetFrameworkVersion>"
XML_REFERENCE = '<Reference Include="System.Xml" />'
CORE_REFERENCE = '<Reference Include="System.Core">'


def default_output_dir(asm_info: AssemblyInfo) -> str:
    return asm_info.output_dir_name


def post_process_project_file(csproj: str) -> str:
    """Fix up a generated .csproj so it builds against a supported framework"""
    csproj = csproj.replace(CLIENT_PROFILE, "")
    csproj = csproj.replace(LEGACY_FRAMEWORK, TARGET_FRAMEWORK)
    if XML_REFERENCE not in csproj:
        csproj = csproj.replace(
            CORE_REFERENCE, f"{XML_REFERENCE}\n    {CORE_REFERENCE}", 1
        )
    return csproj


def post_process_project(output_dir: str, project_name: str) -> str:
    """Rewrite <output_dir>/<project_name>.csproj in place"""
    csproj_path = os.path.join(output_dir, f"{project_name}.csproj")
    with open(csproj_path, "r", encoding="utf-8") as f:
        content = f.read()
    with open(csproj_path, "w", encoding="utf-8") as f:
        f.write(post_process_project_file(content))
    return csproj_path


def prepare_output_dir(output_dir: str, confirm: Callable[[str], bool]):
    """Create output_dir, or confirm reuse if it already holds files"""
    if os.path.isdir(output_dir):
        has_files = any(
            entry.is_file() for entry in os.scandir(output_dir)
        )
        if has_files and not confirm(
            f"{os.path.abspath(output_dir)} is not empty! Continue?"
        ):
            raise UserDeclined(output_dir)
    else:
        os.makedirs(output_dir)


def build_resolver(
    reference_dir: str,
    additional_search_dirs: Iterable[str] = (),
    ignore_errors: bool = False,
) -> AssemblyResolver:
    resolver = AssemblyResolver(
        [os.getcwd(), reference_dir], throw_on_error=not ignore_errors
    )
    for d in additional_search_dirs:
        resolver.add_search_directory(d)
    return resolver


def decompile(
    asm_info: AssemblyInfo,
    output_dir: Optional[str] = None,
    ignore_errors: bool = False,
    additional_search_dirs: Optional[Iterable[str]] = None,
    *,
    decompiler: ProjectDecompiler,
    console: Console,
    confirm: Optional[Callable[[str], bool]] = None,
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
) -> Optional[float]:
    """
    Decompile a classified image into a project directory.

    Args:
        asm_info: Classified image
        output_dir: Target directory (default derived from the identity)
        ignore_errors: Tolerate unresolved references
        additional_search_dirs: Extra resolver search directories
        decompiler: Whole-project decompile capability
        console: Output console
        confirm: Yes/no prompt (default: console.confirm)

    Returns:
        Decompile duration in seconds, or None if the operator declined
    """
    if output_dir is None:
        output_dir = default_output_dir(asm_info)
    if confirm is None:
        confirm = console.confirm

    try:
        prepare_output_dir(output_dir, confirm)
    except UserDeclined:
        console.warn("Skipped, output directory left untouched")
        return None

    reference_dir = os.path.join(output_dir, REFERENCES_DIR)
    os.makedirs(reference_dir, exist_ok=True)
    count = extract_references(asm_info, reference_dir, open_image)
    console.info(f"Extracted {count} embedded references to {reference_dir}")

    resolver = build_resolver(
        reference_dir, additional_search_dirs or (), ignore_errors
    )

    progress = ConsoleProgressReporter(console)
    try:
        console.print()
        console.step("Start decompiling...")
        start_time = time.monotonic()
        decompiler.decompile_project(
            bytes(asm_info.raw_bytes), asm_info.name, output_dir, resolver, progress
        )
        duration = time.monotonic() - start_time
    finally:
        progress.close()

    csproj_path = post_process_project(output_dir, asm_info.name)

    c = console.colors
    console.print()
    console.info(f"{c.GREEN}Complete. Took {format_time(int(duration))}{c.NC}")
    console.print(f"  Output:       {os.path.abspath(output_dir)}")
    console.print(f"  Project:      {os.path.basename(csproj_path)}")
    console.print(f"  Source files: {progress.completed}")
    console.print(f"  References:   {count}")
    console.print()
    return duration
