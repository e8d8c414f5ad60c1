#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Assembly Resolution

Search-path based lookup of referenced assemblies. Framework assemblies are
left to the decompiler's own runtime lookup.
"""

import os
from typing import Iterable, List, Optional

from sourcegetter_errors import DependencyResolutionError

ASSEMBLY_EXTENSIONS = (".dll", ".exe")

FRAMEWORK_ASSEMBLIES = {
    "mscorlib",
    "netstandard",
    "System",
    "WindowsBase",
    "PresentationCore",
    "PresentationFramework",
    "Microsoft.CSharp",
    "Microsoft.VisualBasic",
}

FRAMEWORK_PREFIXES = ("System.", "Microsoft.Win32.")


def is_framework_assembly(name: str) -> bool:
    return name in FRAMEWORK_ASSEMBLIES or name.startswith(FRAMEWORK_PREFIXES)


class AssemblyResolver:
    """Resolve assembly names against an ordered list of directories"""

    def __init__(self, search_dirs: Iterable[str] = (), throw_on_error: bool = True):
        self.search_dirs: List[str] = []
        self.throw_on_error = throw_on_error
        for d in search_dirs:
            self.add_search_directory(d)

    def add_search_directory(self, directory: str):
        directory = os.path.abspath(directory)
        if directory not in self.search_dirs:
            self.search_dirs.append(directory)

    def resolve(self, name: str) -> Optional[str]:
        """Return the path of the first matching file, or None"""
        for directory in self.search_dirs:
            for ext in ASSEMBLY_EXTENSIONS:
                candidate = os.path.join(directory, name + ext)
                if os.path.isfile(candidate):
                    return candidate
        return None

    def unresolved(self, names: Iterable[str]) -> List[str]:
        return [
            name
            for name in names
            if not is_framework_assembly(name) and self.resolve(name) is None
        ]

    def check(self, names: Iterable[str]) -> List[str]:
        """
        Check that every non-framework reference resolves.

        Raises DependencyResolutionError when throw_on_error is set;
        otherwise returns the unresolved names.
        """
        missing = self.unresolved(names)
        if missing and self.throw_on_error:
            raise DependencyResolutionError(missing)
        return missing
