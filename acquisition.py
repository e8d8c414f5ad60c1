#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Dedicated Server Acquisition

Interactive pipeline: choose a server build from the catalog, download and
extract it (both steps skipped when already done, unless the operator asks
to redo them), then decompile the server image of one or all platforms.

Extracted layout:
    terraria-server-<version>/<version>/Windows/TerrariaServer.exe
    terraria-server-<version>/<version>/Linux/TerrariaServer.exe
    terraria-server-<version>/<version>/Mac/Terraria Server.app/Contents/MacOS/TerrariaServer.exe
"""

import os
import shutil
import urllib.request
import zipfile
from typing import Callable, List, Tuple

from assembly_info import Platform, load_assembly_info
from console_ui import Console, format_size
from decompile import decompile
from ilspy_decompiler import ProjectDecompiler
from image_metadata import DnfileImage, ImageMetadata
from sourcegetter_errors import UserDeclined
from version_catalog import BuildId, VersionCatalog

SERVER_IMAGE = "TerrariaServer.exe"
MAC_BUNDLE = ("Terraria Server.app", "Contents", "MacOS")

PLATFORM_KEYS = {
    "w": [Platform.WINDOWS],
    "l": [Platform.LINUX],
    "m": [Platform.MAC],
    "a": [Platform.WINDOWS, Platform.LINUX, Platform.MAC],
}

DOWNLOAD_CHUNK = 64 * 1024


# ============================================================
# Build Selection
# ============================================================


def select_build(catalog: VersionCatalog, console: Console) -> BuildId:
    """Show the catalog and ask until a valid number is entered"""
    while True:
        console.print("Available versions:")
        for i, build in enumerate(catalog):
            console.print(f"{i:>3}.    {build.version:>6}")

        answer = console.ask("Input the No. of the version you want to decompile:")
        if answer is None:
            raise UserDeclined("no version selected")
        try:
            return catalog.resolve(int(answer.strip()))
        except ValueError:
            console.warn(f"Not a number: {answer.strip()!r}")
        except IndexError:
            console.warn(f"Out of range: {answer.strip()}")


def choose_platforms(console: Console) -> List[Platform]:
    answer = console.ask(
        "Choose the platform you want to decompile: [W(Windows)/l(Linux)/m(Mac)/a(All)]"
    )
    if answer is None:
        raise UserDeclined("no platform selected")
    return PLATFORM_KEYS.get(answer.strip().lower(), [Platform.WINDOWS])


# ============================================================
# Download & Extraction
# ============================================================


def download_file(url: str, dest: str, console: Console):
    """Download url to dest, writing through a .part file"""
    console.step(f"Downloading {url}")
    part_path = dest + ".part"

    with urllib.request.urlopen(url) as response:
        total = int(response.headers.get("Content-Length", 0) or 0)
        downloaded = 0
        with open(part_path, "wb") as out_file:
            while True:
                chunk = response.read(DOWNLOAD_CHUNK)
                if not chunk:
                    break
                out_file.write(chunk)
                downloaded += len(chunk)
                console.show_progress(
                    downloaded, total, f"{format_size(downloaded)} / {format_size(total)}"
                )

    os.replace(part_path, dest)
    console.finish_progress()
    console.info(f"Downloaded {format_size(downloaded)} to {dest}")


def extract_zip(zip_path: str, target_dir: str, console: Console):
    console.step(f"Extracting {zip_path}")
    os.makedirs(target_dir, exist_ok=True)
    with zipfile.ZipFile(zip_path, "r") as zip_ref:
        zip_ref.extractall(target_dir)
    console.info(f"Extracted to {target_dir}")


def ensure_archive(url: str, zip_path: str, console: Console) -> bool:
    """Download unless present and the operator keeps it; True if downloaded"""
    if os.path.isfile(zip_path):
        if not console.confirm(
            f"{zip_path} exists, do you want to download it again?"
        ):
            return False
        os.remove(zip_path)
    download_file(url, zip_path, console)
    return True


def ensure_extracted(zip_path: str, target_dir: str, console: Console) -> bool:
    """Extract unless present and the operator keeps it; True if extracted"""
    if os.path.isdir(target_dir):
        if not console.confirm(
            f"{target_dir} has been extracted, do you want to extract it again?"
        ):
            return False
        shutil.rmtree(target_dir)
    extract_zip(zip_path, target_dir, console)
    return True


# ============================================================
# Per-Platform Decompilation
# ============================================================


def server_image_location(common_dir: str, platform: Platform) -> Tuple[str, List[str]]:
    """
    Locate the server image of a platform.

    Returns:
        (image path, extra resolver search directories)
    """
    if platform == Platform.WINDOWS:
        image_dir = os.path.join(common_dir, "Windows")
        return os.path.join(image_dir, SERVER_IMAGE), []
    if platform == Platform.LINUX:
        image_dir = os.path.join(common_dir, "Linux")
    elif platform == Platform.MAC:
        image_dir = os.path.join(common_dir, "Mac", *MAC_BUNDLE)
    else:
        raise ValueError(f"No server image for platform {platform}")
    return os.path.join(image_dir, SERVER_IMAGE), [image_dir]


def decompile_platform(
    common_dir: str,
    platform: Platform,
    *,
    decompiler: ProjectDecompiler,
    console: Console,
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
):
    image_path, extra_dirs = server_image_location(common_dir, platform)

    console.print()
    console.box(f"Decompiling {platform.value} server assembly", image_path)
    asm_info = load_assembly_info(image_path, open_image)
    decompile(
        asm_info,
        additional_search_dirs=extra_dirs,
        decompiler=decompiler,
        console=console,
        open_image=open_image,
    )


def decompile_server_build(
    build: BuildId,
    catalog: VersionCatalog,
    *,
    decompiler: ProjectDecompiler,
    console: Console,
    work_dir: str = ".",
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
):
    """Download, extract and decompile one catalog build"""
    stem = os.path.join(work_dir, catalog.file_stem_for(build))
    zip_path = f"{stem}.zip"

    ensure_archive(catalog.url_for(build), zip_path, console)
    ensure_extracted(zip_path, stem, console)

    common_dir = os.path.abspath(os.path.join(stem, build.version))
    for platform in choose_platforms(console):
        decompile_platform(
            common_dir,
            platform,
            decompiler=decompiler,
            console=console,
            open_image=open_image,
        )


def decompile_dedicated_server(
    catalog: VersionCatalog,
    *,
    decompiler: ProjectDecompiler,
    console: Console,
    work_dir: str = ".",
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
):
    """Interactive entry: pick a build, then run the whole pipeline"""
    try:
        build = select_build(catalog, console)
        decompile_server_build(
            build,
            catalog,
            decompiler=decompiler,
            console=console,
            work_dir=work_dir,
            open_image=open_image,
        )
    except UserDeclined as e:
        console.warn(f"Input closed, {e}")
