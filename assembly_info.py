#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Image Classification

Identify which Terraria build an executable image is from using only its
embedded metadata: client or server side, target platform, assembly version
and the internal release counter.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from image_metadata import DnfileImage, ImageMetadata
from sourcegetter_errors import MissingEntryPointError, ReleaseFieldNotFoundError

CLIENT_ASSEMBLY = "Terraria"
SERVER_ASSEMBLY = "TerrariaServer"

WINDOWS_LAUNCH = "Terraria.WindowsLaunch"
LINUX_LAUNCH = "Terraria.LinuxLaunch"
MAC_LAUNCH = "Terraria.MacLaunch"

RELEASE_TYPE = "Terraria.Main"
RELEASE_FIELD = "curRelease"


class Side(Enum):
    CLIENT = "Client"
    SERVER = "Server"
    UNKNOWN = "Unknown"


class Platform(Enum):
    WINDOWS = "Windows"
    LINUX = "Linux"
    MAC = "Mac"
    UNKNOWN = "Unknown"


SIDE_BY_ASSEMBLY = {
    CLIENT_ASSEMBLY: Side.CLIENT,
    SERVER_ASSEMBLY: Side.SERVER,
}

PLATFORM_BY_LAUNCH_TYPE = {
    WINDOWS_LAUNCH: Platform.WINDOWS,
    LINUX_LAUNCH: Platform.LINUX,
    MAC_LAUNCH: Platform.MAC,
}


@dataclass(frozen=True)
class AssemblyVersion:
    """Four-part assembly version"""

    major: int
    minor: int
    build: int
    revision: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}.{self.revision}"


@dataclass(frozen=True)
class AssemblyInfo:
    """Identity of a classified image"""

    raw_bytes: bytes = field(repr=False)
    name: str
    side: Side
    platform: Platform
    version: AssemblyVersion
    release_number: int
    image: ImageMetadata = field(repr=False, compare=False)

    @property
    def output_dir_name(self) -> str:
        return f"{self.version}-{self.release_number}-{self.platform.value}-{self.side.value}"


def detect_side(image: ImageMetadata) -> Side:
    return SIDE_BY_ASSEMBLY.get(image.module_name, Side.UNKNOWN)


def detect_platform(image: ImageMetadata) -> Platform:
    type_name = image.entry_point_type_name
    if type_name is None:
        raise MissingEntryPointError(f"{image.module_name!r} declares no entry point")
    return PLATFORM_BY_LAUNCH_TYPE.get(type_name, Platform.UNKNOWN)


def read_release_number(image: ImageMetadata) -> int:
    """Read the constant value of Terraria.Main.curRelease"""
    main_type = image.find_type(RELEASE_TYPE)
    if main_type is None:
        raise ReleaseFieldNotFoundError(f"Type {RELEASE_TYPE} not found")

    release_field = image.find_field(main_type, RELEASE_FIELD)
    if release_field is None:
        raise ReleaseFieldNotFoundError(
            f"Field {RELEASE_TYPE}.{RELEASE_FIELD} not found"
        )
    if release_field.constant is None:
        raise ReleaseFieldNotFoundError(
            f"Field {RELEASE_TYPE}.{RELEASE_FIELD} has no integer constant"
        )
    return int(release_field.constant)


def classify(
    raw_bytes: bytes,
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
) -> AssemblyInfo:
    """
    Classify an executable image.

    Args:
        raw_bytes: Complete content of the image file
        open_image: Metadata reader factory (raises MalformedImageError)

    Raises:
        MalformedImageError: bytes are not a managed image
        MissingEntryPointError: image has no entry point
        ReleaseFieldNotFoundError: release counter cannot be read
    """
    raw_bytes = bytes(raw_bytes)
    image = open_image(raw_bytes)

    return AssemblyInfo(
        raw_bytes=raw_bytes,
        name=image.module_name,
        side=detect_side(image),
        platform=detect_platform(image),
        version=AssemblyVersion(*image.version),
        release_number=read_release_number(image),
        image=image,
    )


def load_assembly_info(
    path: str,
    open_image: Callable[[bytes], ImageMetadata] = DnfileImage,
) -> AssemblyInfo:
    """Read an image file from disk and classify it"""
    with open(path, "rb") as f:
        return classify(f.read(), open_image)
