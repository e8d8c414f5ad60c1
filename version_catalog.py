#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Server Version Catalog

The list of downloadable dedicated server builds and the hosting URL
convention. Both change over time, so they live in a JSON file
(server_builds.json) rather than in code.

File format:
    {
      "url_template": "https://.../terraria-server-{version}.zip",
      "file_template": "terraria-server-{version}",
      "builds": {
        "0": {"version": "1423"},
        "1": {"version": "143", "archive": 36}
      }
    }

Templates may use {version} and {archive}. Build keys are the selection
numbers shown to the operator and must be unique and contiguous from 0.
"""

import json
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from sourcegetter_errors import CatalogError

DEFAULT_CATALOG = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "server_builds.json"
)


@dataclass(frozen=True)
class BuildId:
    """A downloadable build: public version number and archive index"""

    version: str
    archive: Optional[int] = None


def _reject_duplicate_keys(pairs):
    result = {}
    for key, value in pairs:
        if key in result:
            raise CatalogError(f"Duplicate catalog key: {key}")
        result[key] = value
    return result


def _format(template: str, build: BuildId) -> str:
    if "{archive" in template and build.archive is None:
        raise CatalogError(f"Build {build.version} has no archive number")
    try:
        return template.format(version=build.version, archive=build.archive)
    except (KeyError, IndexError, ValueError) as e:
        raise CatalogError(f"Invalid template {template!r}: {e}") from e


class VersionCatalog:
    """Ordered, read-only mapping selection number -> BuildId"""

    def __init__(
        self,
        builds: List[BuildId],
        url_template: str,
        file_template: str = "terraria-server-{version}",
    ):
        self._builds = list(builds)
        self.url_template = url_template
        self.file_template = file_template

    def __len__(self) -> int:
        return len(self._builds)

    def __iter__(self):
        return iter(self._builds)

    def resolve(self, index: int) -> BuildId:
        if not 0 <= index < len(self._builds):
            raise IndexError(f"No build with number {index}")
        return self._builds[index]

    def url_for(self, build: BuildId) -> str:
        return _format(self.url_template, build)

    def file_stem_for(self, build: BuildId) -> str:
        return _format(self.file_template, build)

    @classmethod
    def from_dict(cls, data: Dict, url_template: Optional[str] = None):
        raw_builds = data.get("builds")
        if not isinstance(raw_builds, dict) or not raw_builds:
            raise CatalogError("Catalog has no builds")

        try:
            keyed = {int(key): value for key, value in raw_builds.items()}
        except ValueError as e:
            raise CatalogError(f"Catalog keys must be integers: {e}") from e
        if len(keyed) != len(raw_builds):
            raise CatalogError("Duplicate catalog key after normalization")
        if sorted(keyed) != list(range(len(keyed))):
            raise CatalogError(
                f"Catalog keys must be contiguous from 0, got {sorted(keyed)}"
            )

        builds = []
        for key in range(len(keyed)):
            entry = keyed[key]
            if isinstance(entry, dict):
                if "version" not in entry:
                    raise CatalogError(f"Build {key} has no version")
                archive = entry.get("archive")
                builds.append(
                    BuildId(
                        version=str(entry["version"]),
                        archive=int(archive) if archive is not None else None,
                    )
                )
            else:
                builds.append(BuildId(version=str(entry)))

        template = url_template or data.get("url_template")
        if not template:
            raise CatalogError("Catalog has no url_template")

        return cls(
            builds,
            template,
            data.get("file_template", "terraria-server-{version}"),
        )

    @classmethod
    def load(cls, path: str = DEFAULT_CATALOG, url_template: Optional[str] = None):
        """Load and validate a catalog file"""
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f, object_pairs_hook=_reject_duplicate_keys)
            except json.JSONDecodeError as e:
                raise CatalogError(f"Invalid catalog file {path}: {e}") from e
        return cls.from_dict(data, url_template)
