#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Terraria Server Source Reconstruction Tool

Identifies Terraria builds from their embedded metadata and reconstructs a
buildable C# project with the ILSpy command line decompiler.

Features:
- Build identification (side, platform, version, release number)
- Embedded reference extraction for dependency resolution
- Whole-project decompilation with progress tracking
- .csproj fix-ups for current build tools
- Interactive download of historical dedicated server builds

Usage:
    python sourcegetter.py                       # interactive server download
    python sourcegetter.py /path/to/Terraria.exe # decompile one image
    python sourcegetter.py --info TerrariaServer.exe
"""

import argparse
import os
import sys

from acquisition import decompile_dedicated_server
from assembly_info import load_assembly_info
from console_ui import Console
from decompile import decompile
from ilspy_decompiler import DEFAULT_ILSPYCMD, IlspyDecompiler
from sourcegetter_errors import SourceGetterError
from version_catalog import DEFAULT_CATALOG, VersionCatalog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SourceGetter - Terraria Server Source Reconstruction Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Pick a dedicated server build, download and decompile it
  python sourcegetter.py

  # Decompile an image you already have
  python sourcegetter.py ~/Terraria/Terraria.exe

  # Only identify the build
  python sourcegetter.py --info TerrariaServer.exe

  # Use another download URL convention
  python sourcegetter.py --url-template "https://example.org/terraria-server-{version}.zip"

Output directory naming:
  <version>-<release>-<Platform>-<Side>   e.g. 1.4.0.5-230-Windows-Server
""",
    )

    parser.add_argument(
        "target",
        nargs="*",
        help="Executable image to decompile (omit for interactive download)",
    )
    parser.add_argument(
        "--ilspycmd",
        default=DEFAULT_ILSPYCMD,
        help=f"ilspycmd executable (default: {DEFAULT_ILSPYCMD})",
    )
    parser.add_argument(
        "--catalog",
        default=DEFAULT_CATALOG,
        help="Server version catalog JSON (default: bundled server_builds.json)",
    )
    parser.add_argument(
        "--url-template",
        help="Download URL template with {version} / {archive} fields",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output directory for a single image (default: derived from the build)",
    )
    parser.add_argument(
        "--ignore-resolution-errors",
        action="store_true",
        help="Decompile a single image even if references cannot be resolved",
    )
    parser.add_argument(
        "--info",
        action="store_true",
        help="Only print the build identity of the image",
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored output"
    )
    return parser


def print_identity(console: Console, path: str, asm_info):
    console.print(f"  File:           {path}")
    console.print(f"  Assembly:       {asm_info.name}")
    console.print(f"  Side:           {asm_info.side.value}")
    console.print(f"  Platform:       {asm_info.platform.value}")
    console.print(f"  Version:        {asm_info.version}")
    console.print(f"  Release number: {asm_info.release_number}")
    console.print(f"  Output name:    {asm_info.output_dir_name}")


def run_single_image(args, console: Console, decompiler: IlspyDecompiler):
    asm_path = args.target[0]
    if not os.path.isfile(asm_path):
        console.error(f"Invalid path: {asm_path}")
        return

    console.info(f"Image: {asm_path}")
    asm_info = load_assembly_info(asm_path)
    print_identity(console, asm_path, asm_info)
    if args.info:
        return

    decompile(
        asm_info,
        output_dir=args.output,
        ignore_errors=args.ignore_resolution_errors,
        additional_search_dirs=[os.path.dirname(os.path.abspath(asm_path))],
        decompiler=decompiler,
        console=console,
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console(color=False if args.no_color else None)
    decompiler = IlspyDecompiler(executable=args.ilspycmd)

    if len(args.target) > 1:
        return

    try:
        if not args.target:
            console.banner()
            catalog = VersionCatalog.load(args.catalog, args.url_template)
            decompile_dedicated_server(
                catalog, decompiler=decompiler, console=console
            )
        else:
            run_single_image(args, console, decompiler)
    except (SourceGetterError, OSError) as e:
        console.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
