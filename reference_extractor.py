#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Embedded Reference Extraction

Terraria ships some of its dependencies as embedded resources. They are
written out under their own assembly names so the decompiler's resolver can
find them.
"""

import os
from typing import Callable, Dict, Tuple

from assembly_info import AssemblyInfo, Platform
from image_metadata import DnfileImage, ImageMetadata

# Library suffixes per platform; managed .dll references exist everywhere
LIBRARY_SUFFIXES = {
    Platform.WINDOWS: (".dll",),
    Platform.LINUX: (".dll", ".so"),
    Platform.MAC: (".dll", ".dylib"),
    Platform.UNKNOWN: (".dll",),
}


def library_suffixes(platform: Platform) -> Tuple[str, ...]:
    return LIBRARY_SUFFIXES.get(platform, (".dll",))


def collect_references(
    asm_info: AssemblyInfo,
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
) -> Dict[str, bytes]:
    """Map output file name -> bytes for every embedded library resource"""
    suffixes = library_suffixes(asm_info.platform)
    references = {}

    for resource in asm_info.image.embedded_resources():
        if not resource.embedded or resource.data is None:
            continue
        suffix = next((s for s in suffixes if resource.name.endswith(s)), None)
        if suffix is None:
            continue

        real_name = open_image(resource.data).module_name
        references[f"{real_name}{suffix}"] = resource.data

    return references


def extract_references(
    asm_info: AssemblyInfo,
    target_dir: str,
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
) -> int:
    """
    Write embedded library resources into target_dir.

    Files are named after the dependency's declared assembly name, not the
    resource name. Existing files are overwritten.

    Returns:
        Number of files written
    """
    os.makedirs(target_dir, exist_ok=True)
    references = collect_references(asm_info, open_image)

    for filename, data in sorted(references.items()):
        with open(os.path.join(target_dir, filename), "wb") as f:
            f.write(data)

    return len(references)
