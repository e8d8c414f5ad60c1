#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Error Types

Fatal pipeline errors derive from SourceGetterError. UserDeclined is not an
error: it marks a clean abort of a single operation after a refused prompt.
"""

from typing import Iterable


class SourceGetterError(Exception):
    """Base class for fatal pipeline errors"""


class MalformedImageError(SourceGetterError):
    """The bytes are not a valid executable image with CLR metadata"""


class MissingEntryPointError(SourceGetterError):
    """The image declares no managed entry point"""


class ReleaseFieldNotFoundError(SourceGetterError):
    """The release counter type or field is absent from the image"""


class DependencyResolutionError(SourceGetterError):
    """One or more referenced assemblies could not be found"""

    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(set(missing))
        super().__init__(
            f"Unresolved assembly references: {', '.join(self.missing)}"
        )


class DecompilerError(SourceGetterError):
    """The external decompiler is unavailable or failed"""


class CatalogError(SourceGetterError):
    """The version catalog configuration is invalid"""


class UserDeclined(Exception):
    """The operator refused a confirmation prompt"""
