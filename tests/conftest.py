#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pytest configuration for SourceGetter tests.

This file is automatically loaded by pytest and sets up the Python path
to allow importing modules from the parent directory. It also provides an
in-memory image metadata reader so tests need no real .NET binaries.
"""

import io
import os
import shutil
import sys
import tempfile
from typing import Dict, List, Optional, Tuple

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from console_ui import Console  # noqa: E402
from image_metadata import FieldInfo, ImageMetadata, ResourceEntry  # noqa: E402
from sourcegetter_errors import MalformedImageError  # noqa: E402


class FakeImage(ImageMetadata):
    """ImageMetadata described by plain values"""

    def __init__(
        self,
        module_name: str = "TerrariaServer",
        entry_point_type_name: Optional[str] = "Terraria.WindowsLaunch",
        version: Tuple[int, int, int, int] = (1, 4, 0, 5),
        types: Optional[Dict[str, Dict[str, Optional[int]]]] = None,
        resources: Optional[List[ResourceEntry]] = None,
        references: Optional[List[str]] = None,
    ):
        self._module_name = module_name
        self._entry = entry_point_type_name
        self._version = version
        self.types = (
            types if types is not None else {"Terraria.Main": {"curRelease": 230}}
        )
        self.resources = resources or []
        self.references = references or []

    @property
    def module_name(self):
        return self._module_name

    @property
    def entry_point_type_name(self):
        return self._entry

    @property
    def version(self):
        return self._version

    def find_type(self, full_name):
        if full_name in self.types:
            return full_name
        return None

    def find_field(self, type_handle, name):
        fields = self.types[type_handle]
        if name not in fields:
            return None
        return FieldInfo(name=name, constant=fields[name])

    def embedded_resources(self):
        return iter(self.resources)

    def assembly_references(self):
        return list(self.references)

    def type_names(self):
        return list(self.types)


class FakeImageStore:
    """Maps raw bytes to FakeImage instances; acts as an open_image factory"""

    def __init__(self):
        self.images: Dict[bytes, FakeImage] = {}
        self.opened: List[bytes] = []

    def add(self, raw: bytes, image: FakeImage) -> bytes:
        self.images[raw] = image
        return raw

    def __call__(self, raw_bytes: bytes) -> FakeImage:
        self.opened.append(raw_bytes)
        if raw_bytes not in self.images:
            raise MalformedImageError("unknown test image")
        return self.images[raw_bytes]


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test"""
    path = tempfile.mkdtemp(prefix="sourcegetter_test_")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def make_console(output):
    """Build a Console writing to a buffer and reading scripted answers"""

    def factory(answers=()):
        pending = list(answers)

        def read(_prompt=""):
            if not pending:
                raise EOFError
            return pending.pop(0)

        return Console(stream=output, input_func=read, color=False)

    return factory
